"""SQLite database operations."""

import json
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

from .config import ACTIVITY_LIST_LIMIT, COLLECTION_LIMIT, IDEA_LIST_LIMIT, SIZE_CAPS
from .models import AIAnalysisResult, ActivityEvent, CurrentFocus, Idea, Session, Task

SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    raw_dump TEXT,
    summary TEXT,
    sections TEXT,       -- JSON array
    insights TEXT,       -- JSON array
    current_focus TEXT,  -- JSON object
    status TEXT DEFAULT 'active',
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    session_id TEXT,
    title TEXT NOT NULL,
    description TEXT,
    priority TEXT DEFAULT 'medium',
    bucket TEXT DEFAULT 'later',
    status TEXT DEFAULT 'pending',
    time_spent INTEGER DEFAULT 0,  -- minutes
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL,
    completed_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS ideas (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    raw_input TEXT,
    generated_markdown TEXT,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS activity (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    type TEXT NOT NULL,
    description TEXT,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sessions_user ON sessions(user_id);
CREATE INDEX IF NOT EXISTS idx_sessions_created ON sessions(created_at);
CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id);
CREATE INDEX IF NOT EXISTS idx_tasks_session ON tasks(session_id);
CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
CREATE INDEX IF NOT EXISTS idx_tasks_bucket ON tasks(bucket);
CREATE INDEX IF NOT EXISTS idx_ideas_user ON ideas(user_id);
CREATE INDEX IF NOT EXISTS idx_activity_user ON activity(user_id);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity(created_at);
"""

TASK_COLUMNS = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "bucket": "bucket",
    "status": "status",
    "time_spent_minutes": "time_spent",
    "completed_at": "completed_at",
    "session_id": "session_id",
}


def cap(value: str | None, key: str) -> str:
    """Truncate a string to the size cap of its column."""
    return (value or "")[: SIZE_CAPS[key]]


def _timestamp(value) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class Database:
    """SQLite database wrapper."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Connect to the database."""
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        return self.conn

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def _require(self) -> sqlite3.Connection:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    def init_schema(self):
        """Initialize the database schema."""
        conn = self._require()
        conn.executescript(SCHEMA)
        conn.commit()

    # Sessions

    def create_session(
        self,
        user_id: str,
        title: str,
        raw_dump: str,
        result: AIAnalysisResult | None = None,
        current_focus: CurrentFocus | None = None,
        created_at: datetime | None = None,
    ) -> Session:
        """Store a brain dump session, with its analysis when available.

        ``current_focus`` overrides the analysis focus, e.g. once task ids
        have been mapped to stored ids.
        """
        conn = self._require()
        now = created_at or datetime.now()

        session = Session(
            id=self.new_id(),
            user_id=user_id,
            title=cap(title, "title"),
            raw_dump=cap(raw_dump, "raw_dump"),
            created_at=now,
            updated_at=now,
        )
        if result is not None:
            session.summary = cap(result.summary, "summary")
            session.sections = cap(json.dumps(result.sections), "sections")
            session.insights = cap(json.dumps(result.insights), "insights")
            focus = current_focus or result.current_focus
            session.current_focus = cap(json.dumps(focus.to_dict()), "current_focus")

        conn.execute(
            """
            INSERT INTO sessions
            (id, user_id, title, raw_dump, summary, sections, insights, current_focus,
             status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session.id,
                session.user_id,
                session.title,
                session.raw_dump,
                session.summary,
                session.sections,
                session.insights,
                session.current_focus,
                session.status,
                session.created_at.isoformat(),
                session.updated_at.isoformat(),
            ),
        )
        conn.commit()
        return session

    def list_sessions(self, user_id: str, limit: int = COLLECTION_LIMIT) -> list[Session]:
        """Get a user's sessions, newest first."""
        cursor = self._require().execute(
            "SELECT * FROM sessions WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
            (user_id, limit),
        )
        return [self._session(row) for row in cursor]

    def get_session(self, session_id: str) -> Session | None:
        """Get a single session by ID."""
        row = self._require().execute(
            "SELECT * FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
        return self._session(row) if row else None

    def update_session_status(self, session_id: str, status: str) -> Session | None:
        """Set a session's status. The raw dump is never changed."""
        if status not in ("active", "archived"):
            raise ValueError(f"Invalid session status: {status}")
        conn = self._require()
        conn.execute(
            "UPDATE sessions SET status = ?, updated_at = ? WHERE id = ?",
            (status, datetime.now().isoformat(), session_id),
        )
        conn.commit()
        return self.get_session(session_id)

    @staticmethod
    def _session(row: sqlite3.Row) -> Session:
        return Session(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            raw_dump=row["raw_dump"] or "",
            summary=row["summary"] or "",
            sections=row["sections"] or "[]",
            insights=row["insights"] or "[]",
            current_focus=row["current_focus"] or "{}",
            status=row["status"] or "active",
            created_at=_timestamp(row["created_at"]),
            updated_at=_timestamp(row["updated_at"]),
        )

    # Tasks

    def create_task(
        self,
        user_id: str,
        title: str,
        session_id: str | None = None,
        description: str = "",
        priority: str = "medium",
        bucket: str = "later",
        status: str = "pending",
        task_id: str | None = None,
        created_at: datetime | None = None,
    ) -> Task:
        """Store a task. A task created as completed gets completed_at set."""
        conn = self._require()
        now = created_at or datetime.now()

        task = Task(
            id=task_id or self.new_id(),
            user_id=user_id,
            session_id=session_id,
            title=cap(title, "task_title"),
            description=cap(description, "description"),
            priority=priority,
            bucket=bucket,
            status=status,
            created_at=now,
            updated_at=now,
            completed_at=now if status == "completed" else None,
        )
        conn.execute(
            """
            INSERT INTO tasks
            (id, user_id, session_id, title, description, priority, bucket, status,
             time_spent, created_at, updated_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.id,
                task.user_id,
                task.session_id,
                task.title,
                task.description,
                task.priority,
                task.bucket,
                task.status,
                task.time_spent_minutes,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
                task.completed_at.isoformat() if task.completed_at else None,
            ),
        )
        conn.commit()
        return task

    def list_tasks(
        self,
        user_id: str,
        bucket: str | None = None,
        session_id: str | None = None,
        limit: int = COLLECTION_LIMIT,
    ) -> list[Task]:
        """Get a user's tasks, newest first, optionally filtered."""
        conditions = ["user_id = ?"]
        params: list = [user_id]

        if bucket:
            conditions.append("bucket = ?")
            params.append(bucket)

        if session_id:
            conditions.append("session_id = ?")
            params.append(session_id)

        where_clause = " AND ".join(conditions)
        params.append(limit)

        cursor = self._require().execute(
            f"SELECT * FROM tasks WHERE {where_clause} ORDER BY created_at DESC LIMIT ?",
            params,
        )
        return [self._task(row) for row in cursor]

    def get_task(self, task_id: str) -> Task | None:
        """Get a single task by ID."""
        row = self._require().execute(
            "SELECT * FROM tasks WHERE id = ?", (task_id,)
        ).fetchone()
        return self._task(row) if row else None

    def update_task(self, task_id: str, **updates) -> Task | None:
        """Update task fields.

        Moving into ``completed`` stamps completed_at unless the caller gave
        one; a task that already has completed_at keeps it.
        """
        conn = self._require()
        current = self.get_task(task_id)
        if current is None:
            return None

        unknown = set(updates) - set(TASK_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")

        now = datetime.now()
        if (
            updates.get("status") == "completed"
            and current.status != "completed"
            and updates.get("completed_at") is None
            and current.completed_at is None
        ):
            updates["completed_at"] = now

        if "title" in updates:
            updates["title"] = cap(updates["title"], "task_title")
        if "description" in updates:
            updates["description"] = cap(updates["description"], "description")

        assignments = []
        params = []
        for field_name, value in updates.items():
            if isinstance(value, datetime):
                value = value.isoformat()
            assignments.append(f"{TASK_COLUMNS[field_name]} = ?")
            params.append(value)

        assignments.append("updated_at = ?")
        params.extend([now.isoformat(), task_id])

        conn.execute(f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ?", params)
        conn.commit()
        return self.get_task(task_id)

    @staticmethod
    def _task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            user_id=row["user_id"],
            session_id=row["session_id"],
            title=row["title"],
            description=row["description"] or "",
            priority=row["priority"] or "medium",
            bucket=row["bucket"] or "later",
            status=row["status"] or "pending",
            time_spent_minutes=row["time_spent"] or 0,
            created_at=_timestamp(row["created_at"]),
            updated_at=_timestamp(row["updated_at"]),
            completed_at=_timestamp(row["completed_at"]),
        )

    # Ideas

    def create_idea(
        self,
        user_id: str,
        title: str,
        raw_input: str,
        generated_markdown: str,
        created_at: datetime | None = None,
    ) -> Idea:
        """Store a generated specification document."""
        conn = self._require()
        now = created_at or datetime.now()

        idea = Idea(
            id=self.new_id(),
            user_id=user_id,
            title=cap(title, "title"),
            raw_input=cap(raw_input, "raw_input"),
            generated_markdown=cap(generated_markdown, "generated_markdown"),
            created_at=now,
            updated_at=now,
        )
        conn.execute(
            """
            INSERT INTO ideas (id, user_id, title, raw_input, generated_markdown, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                idea.id,
                idea.user_id,
                idea.title,
                idea.raw_input,
                idea.generated_markdown,
                idea.created_at.isoformat(),
                idea.updated_at.isoformat(),
            ),
        )
        conn.commit()
        return idea

    def list_ideas(self, user_id: str, limit: int = IDEA_LIST_LIMIT) -> list[Idea]:
        """Get a user's ideas, newest first."""
        cursor = self._require().execute(
            "SELECT * FROM ideas WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
            (user_id, limit),
        )
        return [self._idea(row) for row in cursor]

    def get_idea(self, idea_id: str) -> Idea | None:
        """Get a single idea by ID."""
        row = self._require().execute(
            "SELECT * FROM ideas WHERE id = ?", (idea_id,)
        ).fetchone()
        return self._idea(row) if row else None

    def delete_idea(self, idea_id: str) -> bool:
        """Delete an idea. Returns whether it existed."""
        conn = self._require()
        cursor = conn.execute("DELETE FROM ideas WHERE id = ?", (idea_id,))
        conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _idea(row: sqlite3.Row) -> Idea:
        return Idea(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            raw_input=row["raw_input"] or "",
            generated_markdown=row["generated_markdown"] or "",
            created_at=_timestamp(row["created_at"]),
            updated_at=_timestamp(row["updated_at"]),
        )

    # Activity

    def log_activity(
        self,
        user_id: str,
        activity_type: str,
        description: str = "",
        created_at: datetime | None = None,
    ) -> ActivityEvent:
        """Append an event to the activity log."""
        conn = self._require()
        event = ActivityEvent(
            id=self.new_id(),
            user_id=user_id,
            type=activity_type,
            description=cap(description, "activity_description"),
            created_at=created_at or datetime.now(),
        )
        conn.execute(
            "INSERT INTO activity (id, user_id, type, description, created_at) VALUES (?, ?, ?, ?, ?)",
            (event.id, event.user_id, event.type, event.description, event.created_at.isoformat()),
        )
        conn.commit()
        return event

    def list_activity(self, user_id: str, limit: int = ACTIVITY_LIST_LIMIT) -> list[ActivityEvent]:
        """Get a user's most recent activity, newest first."""
        cursor = self._require().execute(
            "SELECT * FROM activity WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
            (user_id, limit),
        )
        return [
            ActivityEvent(
                id=row["id"],
                user_id=row["user_id"],
                type=row["type"],
                description=row["description"] or "",
                created_at=_timestamp(row["created_at"]),
            )
            for row in cursor
        ]
