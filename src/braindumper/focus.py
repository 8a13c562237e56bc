"""Task board changes and focus sessions."""

from .db import Database
from .errors import TaskNotFound
from .models import BUCKETS, TASK_STATUSES, Task
from .stats import minutes


def _get(db: Database, task_id: str) -> Task:
    task = db.get_task(task_id)
    if task is None:
        raise TaskNotFound(task_id)
    return task


def _apply(db: Database, task: Task, **updates) -> Task:
    """Write all updates in one statement, then log a first completion."""
    updated = db.update_task(task.id, **updates)
    if updates.get("status") == "completed" and task.status != "completed":
        db.log_activity(task.user_id, "task_completed", f"Completed: {task.title}")
    return updated


def update_task(
    db: Database, task_id: str, status: str | None = None, bucket: str | None = None
) -> Task:
    """Change a task's status and/or bucket.

    Both values are checked before anything is written, so an invalid value
    leaves the task untouched.
    """
    if status is not None and status not in TASK_STATUSES:
        raise ValueError(f"Invalid status: {status}")
    if bucket is not None and bucket not in BUCKETS:
        raise ValueError(f"Invalid bucket: {bucket}")

    task = _get(db, task_id)
    updates = {}
    if status is not None:
        updates["status"] = status
    if bucket is not None:
        updates["bucket"] = bucket
    if not updates:
        return task
    return _apply(db, task, **updates)


def set_task_status(db: Database, task_id: str, status: str) -> Task:
    """Change a task's status, logging the first move into ``completed``."""
    if status is None:
        raise ValueError("Invalid status: None")
    return update_task(db, task_id, status=status)


def move_task(db: Database, task_id: str, bucket: str) -> Task:
    """Move a task to another bucket."""
    if bucket is None:
        raise ValueError("Invalid bucket: None")
    return update_task(db, task_id, bucket=bucket)


def start_focus(db: Database, task_id: str) -> Task:
    """Begin focusing on a task. A pending task becomes in progress."""
    task = _get(db, task_id)
    if task.status == "pending":
        task = db.update_task(task_id, status="in_progress")

    db.log_activity(task.user_id, "focus_started", f"Started focusing on: {task.title}")
    return task


def complete_focus(db: Database, task_id: str, spent_minutes: int = 0) -> Task:
    """Finish a focus session: add the time spent and complete the task."""
    task = _get(db, task_id)
    total = minutes(task.time_spent_minutes) + minutes(spent_minutes)

    updated = _apply(db, task, time_spent_minutes=total, status="completed")
    db.log_activity(task.user_id, "focus_ended", f"Completed focus on: {task.title}")
    return updated
