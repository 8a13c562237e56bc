"""CLI entry point for BrainDumper."""

import os
import sys
from pathlib import Path

import click
from rich.console import Console

from .config import DEFAULT_DB, MAX_DUMP_TOKENS
from .db import Database
from .errors import IncompleteInput, MalformedResponse, ProviderUnavailable, TaskNotFound
from .models import BUCKETS, TASK_STATUSES
from .reports import (
    print_analysis,
    print_breakdown,
    print_dashboard,
    print_help,
    print_ideas,
    print_markdown,
    print_sessions,
    print_tasks,
)

console = Console()


def read_input(source: str | None) -> str:
    """Read text from a file, or from stdin when no file (or ``-``) is given."""
    if source and source != "-":
        return Path(source).read_text()
    return sys.stdin.read()


def open_db(ctx) -> Database:
    db_path = ctx.obj["db_path"]
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = Database(db_path)
    db.connect()
    db.init_schema()
    return db


@click.group()
@click.option(
    "--db",
    type=click.Path(),
    default=str(DEFAULT_DB),
    help="Path to SQLite database",
)
@click.option(
    "--user",
    default=lambda: os.environ.get("USER", "local"),
    help="User id to act as",
)
@click.pass_context
def cli(ctx, db, user):
    """Organize brain dumps into tasks and keep focused."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db)
    ctx.obj["user"] = user


@cli.command()
@click.argument("source", required=False)
@click.option("--no-save", is_flag=True, help="Show the analysis without storing it")
@click.pass_context
def dump(ctx, source, no_save):
    """Analyze a brain dump from FILE or stdin."""
    from .analyzer import analyze_dump, count_tokens, save_analysis
    from .llm import LLM

    text = read_input(source)
    if not text.strip():
        console.print("[red]Brain dump text is required[/red]")
        sys.exit(1)

    tokens = count_tokens(text)
    if tokens > MAX_DUMP_TOKENS:
        console.print(
            f"[yellow]Dump is ~{tokens} tokens; only the first {MAX_DUMP_TOKENS} will be analyzed[/yellow]"
        )

    console.print("[cyan]Organizing your thoughts...[/cyan]")
    try:
        result = analyze_dump(LLM.from_env(), text)
    except (ProviderUnavailable, MalformedResponse) as e:
        console.print(f"[red]Failed to analyze brain dump: {e}[/red]")
        sys.exit(1)

    print_analysis(result)

    if no_save:
        return

    db = open_db(ctx)
    try:
        saved = save_analysis(db, ctx.obj["user"], text, result)
    finally:
        db.close()
    console.print(f"\n[green]Saved session {saved.session.id} with {len(saved.tasks)} tasks[/green]")


@cli.command()
@click.pass_context
def dashboard(ctx):
    """Show productivity statistics."""
    from .stats import get_dashboard_stats

    db_path = ctx.obj["db_path"]

    if not db_path.exists():
        console.print(f"[red]Database not found at {db_path}[/red]")
        console.print("Run 'braindumper dump' first.")
        return

    try:
        stats = get_dashboard_stats(db_path, ctx.obj["user"])
    except IncompleteInput as e:
        console.print(f"[red]{e}: {e.__cause__}[/red]")
        sys.exit(1)

    print_dashboard(stats)


@cli.command()
@click.option("--bucket", type=click.Choice(BUCKETS), help="Only show one bucket")
@click.option("--session", "session_id", help="Only show tasks from one session")
@click.pass_context
def tasks(ctx, bucket, session_id):
    """Show the task board."""
    db = open_db(ctx)
    try:
        print_tasks(db.list_tasks(ctx.obj["user"], bucket=bucket, session_id=session_id))
    finally:
        db.close()


@cli.command("task-status")
@click.argument("task_id")
@click.argument("status", type=click.Choice(TASK_STATUSES))
@click.pass_context
def task_status(ctx, task_id, status):
    """Change a task's status."""
    from .focus import set_task_status

    db = open_db(ctx)
    try:
        task = set_task_status(db, task_id, status)
    except TaskNotFound as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    finally:
        db.close()
    console.print(f"[green]{task.title}[/green] is now {task.status}")


@cli.command("task-move")
@click.argument("task_id")
@click.argument("bucket", type=click.Choice(BUCKETS))
@click.pass_context
def task_move(ctx, task_id, bucket):
    """Move a task to another bucket."""
    from .focus import move_task

    db = open_db(ctx)
    try:
        task = move_task(db, task_id, bucket)
    except TaskNotFound as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    finally:
        db.close()
    console.print(f"[green]{task.title}[/green] moved to {task.bucket}")


@cli.command("focus-start")
@click.argument("task_id")
@click.pass_context
def focus_start(ctx, task_id):
    """Start a focus session on a task."""
    from .focus import start_focus

    db = open_db(ctx)
    try:
        task = start_focus(db, task_id)
    except TaskNotFound as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    finally:
        db.close()
    console.print(f"[cyan]Focusing on:[/cyan] {task.title}")


@cli.command("focus-done")
@click.argument("task_id")
@click.option("--minutes", default=0, type=click.IntRange(min=0), help="Minutes spent")
@click.pass_context
def focus_done(ctx, task_id, minutes):
    """Finish a focus session and complete the task."""
    from .focus import complete_focus

    db = open_db(ctx)
    try:
        task = complete_focus(db, task_id, minutes)
    except TaskNotFound as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    finally:
        db.close()
    console.print(f"[green]Done![/green] {task.title} ({task.time_spent_minutes}m total)")


@cli.command()
@click.argument("source", required=False)
@click.option("--thinking", is_flag=True, help="Use the reasoning model")
@click.option("--model", "preferred", type=click.Choice(["anthropic", "deepseek", "openrouter"]))
@click.option("--no-save", is_flag=True, help="Show the document without storing it")
@click.pass_context
def idea(ctx, source, thinking, preferred, no_save):
    """Turn an idea from FILE or stdin into a specification document."""
    from .ideas import generate_idea_document, save_idea
    from .llm import LLM

    text = read_input(source)
    if not text.strip():
        console.print("[red]User input is required[/red]")
        sys.exit(1)

    console.print("[cyan]Writing specification...[/cyan]")
    try:
        completion = generate_idea_document(LLM.from_env(), text, thinking=thinking, preferred=preferred)
    except ProviderUnavailable as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    print_markdown(completion.text)
    console.print(f"\n[dim]Generated with {completion.provider}[/dim]")

    if no_save:
        return

    db = open_db(ctx)
    try:
        saved = save_idea(db, ctx.obj["user"], text, completion.text)
    finally:
        db.close()
    console.print(f"[green]Saved idea {saved.id}: {saved.title}[/green]")


@cli.command()
@click.option("--show", "idea_id", help="Print the document of one idea")
@click.option("--delete", "delete_id", help="Delete one idea")
@click.pass_context
def ideas(ctx, idea_id, delete_id):
    """List saved ideas."""
    db = open_db(ctx)
    try:
        if delete_id:
            if not db.delete_idea(delete_id):
                console.print(f"[red]Idea not found: {delete_id}[/red]")
                sys.exit(1)
            console.print(f"[green]Deleted idea {delete_id}[/green]")
        elif idea_id:
            found = db.get_idea(idea_id)
            if found is None:
                console.print(f"[red]Idea not found: {idea_id}[/red]")
                return
            print_markdown(found.generated_markdown)
        else:
            print_ideas(db.list_ideas(ctx.obj["user"]))
    finally:
        db.close()


@cli.command()
@click.option("--archive", "archive_id", help="Archive one session")
@click.option("--restore", "restore_id", help="Make an archived session active again")
@click.option("--all", "show_all", is_flag=True, help="Include archived sessions")
@click.pass_context
def history(ctx, archive_id, restore_id, show_all):
    """List past brain dumps."""
    db = open_db(ctx)
    try:
        if archive_id or restore_id:
            session_id = archive_id or restore_id
            status = "archived" if archive_id else "active"
            session = db.update_session_status(session_id, status)
            if session is None:
                console.print(f"[red]Session not found: {session_id}[/red]")
                sys.exit(1)
            console.print(f"[green]{session.title}[/green] is now {session.status}")
            return

        user = ctx.obj["user"]
        sessions = db.list_sessions(user)
        if not show_all:
            sessions = [s for s in sessions if s.status == "active"]
        print_sessions(sessions, db.list_tasks(user))
    finally:
        db.close()


def _load_task(ctx, task_id):
    db = open_db(ctx)
    try:
        task = db.get_task(task_id)
    finally:
        db.close()
    if task is None:
        console.print(f"[red]Task not found: {task_id}[/red]")
        sys.exit(1)
    return task


@cli.command()
@click.argument("task_id")
@click.pass_context
def breakdown(ctx, task_id):
    """Break a task into tiny steps."""
    from .coach import breakdown_task
    from .llm import LLM

    task = _load_task(ctx, task_id)
    try:
        print_breakdown(breakdown_task(LLM.from_env(), task.title, task.description))
    except (ProviderUnavailable, MalformedResponse) as e:
        console.print(f"[red]Failed to break down task: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("task_id")
@click.pass_context
def unstuck(ctx, task_id):
    """Get tips for a task you are stuck on."""
    from .coach import get_unstuck
    from .llm import LLM

    task = _load_task(ctx, task_id)
    try:
        print_help(get_unstuck(LLM.from_env(), task.title, task.description))
    except (ProviderUnavailable, MalformedResponse) as e:
        console.print(f"[red]Failed to get help: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=5001, help="Port to listen on")
@click.option("--debug", is_flag=True, help="Run Flask in debug mode")
@click.pass_context
def serve(ctx, host, port, debug):
    """Run the JSON API server."""
    from .web import create_app

    db_path = ctx.obj["db_path"]
    db_path.parent.mkdir(parents=True, exist_ok=True)

    console.print(f"[cyan]Serving BrainDumper API at http://{host}:{port}[/cyan]")
    create_app(db_path).run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
