"""
Flask JSON API for BrainDumper.
Exposes brain dump analysis, idea generation, task coaching, history and dashboard stats.
"""

from pathlib import Path

from flask import Flask, jsonify, request
from rich.console import Console

from .analyzer import analyze_dump, save_analysis
from .coach import breakdown_task, get_unstuck
from .config import DEFAULT_DB
from .db import Database
from .errors import IncompleteInput, MalformedResponse, ProviderUnavailable, TaskNotFound
from .focus import update_task
from .ideas import generate_idea_document, save_idea
from .llm import LLM
from .stats import get_dashboard_stats

console = Console(stderr=True)


def read_payload() -> dict | None:
    """The request's JSON object; ``{}`` for a missing or unreadable body, None for non-objects."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        return None
    return payload


def bad_body():
    return jsonify({"error": "Request body must be a JSON object"}), 400


def create_app(db_path: str | Path = DEFAULT_DB, llm=None) -> Flask:
    """Build the app. ``llm`` defaults to providers configured in the environment."""
    app = Flask(__name__)
    app.config["DB_PATH"] = Path(db_path)

    with Database(app.config["DB_PATH"]) as db:
        db.init_schema()

    def get_llm():
        return llm if llm is not None else LLM.from_env()

    @app.post("/api/analyze-dump")
    def api_analyze_dump():
        """Organize a brain dump; store it when a userId is given."""
        payload = read_payload()
        if payload is None:
            return bad_body()
        text = payload.get("text")
        user_id = payload.get("userId")

        if not text or not str(text).strip():
            return jsonify({"error": "Brain dump text is required"}), 400

        try:
            result = analyze_dump(get_llm(), str(text))
        except ProviderUnavailable as e:
            console.print(f"[red]Analyze dump error: {e}[/red]")
            return jsonify({"error": "AI API key not configured"}), 500
        except MalformedResponse as e:
            console.print(f"[red]Analyze dump error: {e}[/red]")
            return jsonify({"error": "Failed to analyze brain dump"}), 500

        body = result.to_dict()
        if user_id:
            with Database(app.config["DB_PATH"]) as db:
                saved = save_analysis(db, user_id, str(text), result)
            body["storedSessionId"] = saved.session.id
            body["storedTaskIds"] = [t.id for t in saved.tasks]

        return jsonify(body)

    @app.post("/api/generate")
    def api_generate():
        """Generate a specification document from an idea."""
        payload = read_payload()
        if payload is None:
            return bad_body()
        user_input = payload.get("userInput")

        if not user_input or not str(user_input).strip():
            return jsonify({"error": "User input is required"}), 400

        try:
            completion = generate_idea_document(
                get_llm(),
                str(user_input),
                thinking=bool(payload.get("useThinking")),
                preferred=payload.get("selectedModel"),
            )
        except ProviderUnavailable as e:
            console.print(f"[red]Generate error: {e}[/red]")
            return jsonify({"error": "No AI API available. Please configure API keys."}), 500

        body = {"markdown": completion.text, "usedApi": completion.provider}
        user_id = payload.get("userId")
        if user_id:
            with Database(app.config["DB_PATH"]) as db:
                idea = save_idea(db, user_id, str(user_input), completion.text)
            body["ideaId"] = idea.id
            body["title"] = idea.title

        response = jsonify(body)
        response.headers["X-Used-API"] = completion.provider
        return response

    @app.post("/api/tasks")
    def api_tasks():
        """Break a task down, or get help when stuck."""
        payload = read_payload()
        if payload is None:
            return bad_body()
        action = payload.get("action")
        title = payload.get("title") or ""
        description = payload.get("description")

        if action not in ("breakdown", "help"):
            return jsonify({"error": "Invalid action"}), 400

        try:
            if action == "breakdown":
                return jsonify(breakdown_task(get_llm(), title, description).to_dict())
            return jsonify(get_unstuck(get_llm(), title, description).to_dict())
        except (ProviderUnavailable, MalformedResponse) as e:
            console.print(f"[red]Task AI error: {e}[/red]")
            return jsonify({"error": "Failed to process request"}), 500

    @app.patch("/api/tasks/<task_id>")
    def api_update_task(task_id):
        """Change a task's status and/or bucket. Nothing is saved if either is invalid."""
        payload = read_payload()
        if payload is None:
            return bad_body()

        status = payload.get("status")
        bucket = payload.get("bucket")
        if status is None and bucket is None:
            return jsonify({"error": "Nothing to update"}), 400

        try:
            with Database(app.config["DB_PATH"]) as db:
                task = update_task(db, task_id, status=status, bucket=bucket)
        except TaskNotFound as e:
            return jsonify({"error": str(e)}), 404
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        return jsonify(
            {
                "id": task.id,
                "status": task.status,
                "bucket": task.bucket,
                "timeSpent": task.time_spent_minutes,
                "completedAt": task.completed_at.isoformat() if task.completed_at else None,
            }
        )

    @app.get("/api/sessions/<user_id>")
    def api_sessions(user_id):
        """A user's brain dump history, newest first, with task progress."""
        with Database(app.config["DB_PATH"]) as db:
            sessions = db.list_sessions(user_id)
            tasks = db.list_tasks(user_id)

        body = []
        for session in sessions:
            own = [t for t in tasks if t.session_id == session.id]
            entry = session.to_dict()
            entry["taskCount"] = len(own)
            entry["completedCount"] = sum(1 for t in own if t.status == "completed")
            body.append(entry)
        return jsonify(body)

    @app.patch("/api/sessions/<session_id>")
    def api_update_session(session_id):
        """Archive or restore a session."""
        payload = read_payload()
        if payload is None:
            return bad_body()

        try:
            with Database(app.config["DB_PATH"]) as db:
                session = db.update_session_status(session_id, payload.get("status"))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        if session is None:
            return jsonify({"error": f"Session not found: {session_id}"}), 404
        return jsonify(session.to_dict())

    @app.get("/api/ideas/<user_id>")
    def api_ideas(user_id):
        """A user's saved ideas, newest first."""
        with Database(app.config["DB_PATH"]) as db:
            ideas = db.list_ideas(user_id)
        return jsonify([idea.to_dict() for idea in ideas])

    @app.delete("/api/ideas/<idea_id>")
    def api_delete_idea(idea_id):
        with Database(app.config["DB_PATH"]) as db:
            deleted = db.delete_idea(idea_id)

        if not deleted:
            return jsonify({"error": f"Idea not found: {idea_id}"}), 404
        return jsonify({"deleted": idea_id})

    @app.get("/api/dashboard/<user_id>")
    def api_dashboard(user_id):
        """Dashboard statistics for a user."""
        try:
            stats = get_dashboard_stats(app.config["DB_PATH"], user_id)
        except IncompleteInput as e:
            console.print(f"[red]Dashboard error: {e} ({e.__cause__})[/red]")
            return jsonify({"error": "Failed to load dashboard data"}), 500

        return jsonify(stats.to_dict())

    return app
