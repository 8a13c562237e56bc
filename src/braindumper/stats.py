"""Dashboard statistics over a user's sessions, tasks, ideas and activity."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable

from .config import ACTIVITY_LIST_LIMIT, COLLECTION_LIMIT, RECENT_ITEMS
from .db import Database
from .errors import IncompleteInput
from .models import (
    ActivityEvent,
    DashboardStats,
    Idea,
    Session,
    Task,
    TaskCounts,
    WeeklyCounts,
)

COLLECTIONS = ("sessions", "tasks", "ideas", "activity")


def to_local(value: datetime | str | None) -> datetime | None:
    """Convert a timestamp to a naive datetime in the process's local time.

    Aware values are shifted to local time; naive values are taken as local.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def minutes(value) -> int:
    """Read a time-spent value, treating anything unusable as 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if isinstance(value, str):
        try:
            return max(int(float(value)), 0)
        except ValueError:
            return 0
    return 0


def aggregate_tasks(tasks: Iterable[Task]) -> TaskCounts:
    """Count tasks by status and bucket and sum their time spent."""
    counts = TaskCounts()
    for task in tasks:
        counts.total_tasks += 1
        counts.total_time_spent_minutes += minutes(task.time_spent_minutes)

        if task.status == "completed":
            counts.completed_tasks += 1
        elif task.status == "pending":
            counts.pending_tasks += 1
        elif task.status == "in_progress":
            counts.in_progress_tasks += 1

        if task.bucket == "now":
            counts.now_tasks += 1
        elif task.bucket == "next":
            counts.next_tasks += 1
        elif task.bucket == "later":
            counts.later_tasks += 1

    return counts


def start_of_week(now: datetime) -> datetime:
    """Midnight local time on the most recent Sunday, relative to ``now``."""
    now = to_local(now)
    # weekday(): Monday is 0, Sunday is 6
    days_since_sunday = (now.weekday() + 1) % 7
    start = now - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def weekly_counts(
    sessions: Iterable[Session], tasks: Iterable[Task], boundary: datetime
) -> WeeklyCounts:
    """Count sessions and tasks created, and tasks completed, on or after ``boundary``."""
    boundary = to_local(boundary)
    counts = WeeklyCounts()

    for session in sessions:
        created = to_local(session.created_at)
        if created is not None and created >= boundary:
            counts.this_week_sessions += 1

    for task in tasks:
        created = to_local(task.created_at)
        if created is not None and created >= boundary:
            counts.this_week_tasks += 1

        # completed_at is authoritative; completed tasks without it are not counted
        completed = to_local(task.completed_at)
        if task.status == "completed" and completed is not None and completed >= boundary:
            counts.this_week_completed += 1

    return counts


def calculate_streak(timestamps: Iterable[datetime | str], today: date) -> int:
    """Count consecutive days with at least one session, ending today or yesterday.

    A day without a session breaks the streak, except that today may still
    be empty while yesterday's session keeps the streak alive.
    """
    days = set()
    for value in timestamps:
        local = to_local(value)
        if local is not None and local.date() <= today:
            days.add(local.date())

    streak = 0
    cursor = today
    for day in sorted(days, reverse=True):
        if day == cursor or day == cursor - timedelta(days=1):
            streak += 1
            cursor = day
        else:
            break

    return streak


def completion_rate(completed: int, total: int) -> int:
    """Completed share as a whole percentage, rounded half up."""
    if total <= 0:
        return 0
    return int(100 * completed / total + 0.5)


def compose_dashboard_stats(
    sessions: list[Session],
    tasks: list[Task],
    ideas: list[Idea],
    activity: list[ActivityEvent],
    now: datetime | None = None,
) -> DashboardStats:
    """Build the dashboard record from a user's raw collections."""
    now = to_local(now) if now is not None else datetime.now()

    task_counts = aggregate_tasks(tasks)
    weekly = weekly_counts(sessions, tasks, start_of_week(now))
    streak = calculate_streak((s.created_at for s in sessions), now.date())

    return DashboardStats(
        total_sessions=len(sessions),
        total_tasks=task_counts.total_tasks,
        completed_tasks=task_counts.completed_tasks,
        pending_tasks=task_counts.pending_tasks,
        in_progress_tasks=task_counts.in_progress_tasks,
        total_ideas=len(ideas),
        now_tasks=task_counts.now_tasks,
        next_tasks=task_counts.next_tasks,
        later_tasks=task_counts.later_tasks,
        total_time_spent_minutes=task_counts.total_time_spent_minutes,
        streak_days=streak,
        this_week_sessions=weekly.this_week_sessions,
        this_week_tasks=weekly.this_week_tasks,
        this_week_completed=weekly.this_week_completed,
        completion_rate=completion_rate(task_counts.completed_tasks, task_counts.total_tasks),
        recent_activity=list(activity[:ACTIVITY_LIST_LIMIT]),
        recent_sessions=list(sessions[:RECENT_ITEMS]),
        recent_ideas=list(ideas[:RECENT_ITEMS]),
    )


def fetch_all(readers: dict[str, Callable[[], list]]) -> dict[str, list]:
    """Run independent collection reads concurrently and join the results.

    All reads must succeed; the first failure, in collection order, raises
    IncompleteInput naming that collection.
    """
    with ThreadPoolExecutor(max_workers=len(readers) or 1) as pool:
        futures = {name: pool.submit(reader) for name, reader in readers.items()}

    results = {}
    for name, future in futures.items():
        try:
            results[name] = future.result()
        except Exception as e:
            raise IncompleteInput(name) from e
    return results


def collection_readers(db_path: str | Path, user_id: str) -> dict[str, Callable[[], list]]:
    """One reader per collection, each on its own connection."""

    def reader(collection: str) -> Callable[[], list]:
        def read() -> list:
            with Database(db_path) as db:
                if collection == "sessions":
                    return db.list_sessions(user_id)
                if collection == "tasks":
                    return db.list_tasks(user_id)
                if collection == "ideas":
                    return db.list_ideas(user_id, limit=COLLECTION_LIMIT)
                return db.list_activity(user_id, limit=ACTIVITY_LIST_LIMIT)

        return read

    return {name: reader(name) for name in COLLECTIONS}


def get_dashboard_stats(
    db_path: str | Path, user_id: str, now: datetime | None = None
) -> DashboardStats:
    """Load a user's collections and compose their dashboard statistics."""
    data = fetch_all(collection_readers(db_path, user_id))
    return compose_dashboard_stats(
        data["sessions"], data["tasks"], data["ideas"], data["activity"], now=now
    )
