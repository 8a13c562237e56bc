"""Report generation for CLI output."""

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from .models import (
    BUCKETS,
    AIAnalysisResult,
    DashboardStats,
    Idea,
    Session,
    StuckHelp,
    Task,
    TaskBreakdown,
)

console = Console()

ACTIVITY_LABELS = {
    "session_created": "Brain Dump",
    "task_completed": "Task Completed",
    "idea_created": "Idea Created",
    "focus_started": "Focus Started",
    "focus_ended": "Focus Ended",
}

BUCKET_STYLES = {"now": "red", "next": "yellow", "later": "blue"}


def format_minutes(total: int) -> str:
    """Render minutes as e.g. ``45m``, ``2h`` or ``1h 30m``."""
    if total < 60:
        return f"{total}m"
    hours, mins = divmod(total, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


def print_dashboard(stats: DashboardStats):
    """Print dashboard statistics."""
    table = Table(title="Dashboard")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Brain Dumps", str(stats.total_sessions))
    table.add_row("Ideas Created", str(stats.total_ideas))
    table.add_row("Tasks", str(stats.total_tasks))
    table.add_row("Completed", str(stats.completed_tasks))
    table.add_row("In Progress", str(stats.in_progress_tasks))
    table.add_row("Pending", str(stats.pending_tasks))
    table.add_row("Completion Rate", f"{stats.completion_rate}%")
    table.add_row("Focus Time", format_minutes(stats.total_time_spent_minutes))
    table.add_row("Current Streak", f"{stats.streak_days} days")

    console.print(table)

    week = Table(title="This Week")
    week.add_column("Sessions", justify="right")
    week.add_column("Tasks", justify="right")
    week.add_column("Completed", justify="right")
    week.add_row(
        str(stats.this_week_sessions),
        str(stats.this_week_tasks),
        str(stats.this_week_completed),
    )
    console.print(week)

    buckets = Table(title="Buckets")
    buckets.add_column("Now", style="red", justify="right")
    buckets.add_column("Next", style="yellow", justify="right")
    buckets.add_column("Later", style="blue", justify="right")
    buckets.add_row(str(stats.now_tasks), str(stats.next_tasks), str(stats.later_tasks))
    console.print(buckets)

    if stats.recent_activity:
        activity = Table(title="Recent Activity")
        activity.add_column("When", style="dim")
        activity.add_column("Type", style="magenta")
        activity.add_column("Description")
        for event in stats.recent_activity:
            activity.add_row(
                event.created_at.strftime("%Y-%m-%d %H:%M") if event.created_at else "",
                ACTIVITY_LABELS.get(event.type, "Activity"),
                event.description,
            )
        console.print(activity)


def print_analysis(result: AIAnalysisResult):
    """Print an organized brain dump."""
    console.print(f"\n[bold]Summary[/bold]\n{result.summary}\n")

    for section in result.sections:
        if not isinstance(section, dict):
            continue
        console.print(f"[bold cyan]{section.get('title', 'Section')}[/bold cyan]")
        for item in section.get("items") or []:
            console.print(f"  • {item}")
    if result.sections:
        console.print()

    if result.tasks:
        table = Table(title="Tasks")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Bucket")
        table.add_column("Priority")
        table.add_column("Title", style="cyan")
        for task in result.tasks:
            style = BUCKET_STYLES.get(task.bucket, "white")
            table.add_row(
                str(task.order_index + 1),
                f"[{style}]{task.bucket}[/{style}]",
                task.priority,
                task.title,
            )
        console.print(table)

    focus = result.focus_task()
    if focus:
        console.print(f"\n[bold green]Focus:[/bold green] {focus.title}")
    else:
        console.print("\n[bold yellow]No focus task[/bold yellow]")
    console.print(f"[dim]{result.current_focus.reason}[/dim]")

    if result.insights:
        console.print("\n[bold]Insights[/bold]")
        for insight in result.insights:
            console.print(f"  💡 {insight}")


def print_tasks(tasks: list[Task]):
    """Print tasks grouped into Now / Next / Later."""
    if not tasks:
        console.print("[yellow]No tasks found.[/yellow]")
        return

    for bucket in BUCKETS:
        in_bucket = [t for t in tasks if t.bucket == bucket]
        style = BUCKET_STYLES[bucket]
        table = Table(title=f"[{style}]{bucket.title()}[/{style}] ({len(in_bucket)})")
        table.add_column("ID", style="dim")
        table.add_column("Title", style="cyan")
        table.add_column("Priority")
        table.add_column("Status")
        table.add_column("Time", justify="right")
        for task in in_bucket:
            table.add_row(
                task.id,
                task.title,
                task.priority,
                task.status,
                format_minutes(task.time_spent_minutes or 0),
            )
        console.print(table)


def print_ideas(ideas: list[Idea]):
    """Print saved ideas."""
    if not ideas:
        console.print("[yellow]No ideas saved yet.[/yellow]")
        return

    table = Table(title="Ideas")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Created")
    for idea in ideas:
        table.add_row(idea.id, idea.title, idea.created_at.strftime("%Y-%m-%d"))
    console.print(table)


def print_sessions(sessions: list[Session], tasks: list[Task]):
    """Print brain dump history with task progress per session."""
    if not sessions:
        console.print("[yellow]No brain dumps yet.[/yellow]")
        return

    table = Table(title="History")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Title", style="cyan")
    table.add_column("Done", justify="right")
    table.add_column("Status")
    for session in sessions:
        own = [t for t in tasks if t.session_id == session.id]
        done = sum(1 for t in own if t.status == "completed")
        table.add_row(
            session.id,
            session.created_at.strftime("%Y-%m-%d"),
            session.title,
            f"{done}/{len(own)}",
            session.status,
        )
    console.print(table)


def print_markdown(text: str):
    console.print(Markdown(text))


def print_breakdown(breakdown: TaskBreakdown):
    """Print the steps of a broken-down task."""
    for index, step in enumerate(breakdown.steps, 1):
        console.print(f"[cyan]{index}. {step.title}[/cyan] [dim]({step.time_estimate})[/dim]")
        if step.tip:
            console.print(f"   [dim]Tip: {step.tip}[/dim]")
    console.print(f"\n[green]{breakdown.encouragement}[/green]")


def print_help(stuck: StuckHelp):
    """Print tips for a stuck task."""
    for tip in stuck.tips:
        console.print(f"  • {tip}")
    console.print(f"\n[green]{stuck.motivation}[/green]")
