"""Data models for BrainDumper."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

BUCKETS = ("now", "next", "later")
PRIORITIES = ("low", "medium", "high")
TASK_STATUSES = ("pending", "in_progress", "completed")
ANALYSIS_STATUSES = ("todo", "in_progress", "done")
SESSION_STATUSES = ("active", "archived")
ACTIVITY_TYPES = ("session_created", "task_completed", "idea_created", "focus_started", "focus_ended")

# Analysis results speak todo/done, stored tasks speak pending/completed
STATUS_FROM_ANALYSIS = {
    "todo": "pending",
    "in_progress": "in_progress",
    "done": "completed",
}


@dataclass
class Session:
    """A submitted brain dump."""

    id: str
    user_id: str
    title: str
    raw_dump: str
    created_at: datetime
    updated_at: datetime
    summary: str = ""
    sections: str = "[]"  # JSON array
    insights: str = "[]"  # JSON array
    current_focus: str = "{}"  # JSON object
    status: Literal["active", "archived"] = "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "status": self.status,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class Task:
    """A stored task, created from an analysis or standalone."""

    id: str
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    session_id: str | None = None
    description: str = ""
    priority: str = "medium"
    bucket: str = "later"
    status: str = "pending"
    time_spent_minutes: int = 0
    completed_at: datetime | None = None


@dataclass
class Idea:
    """A saved specification document generated from an idea."""

    id: str
    user_id: str
    title: str
    raw_input: str
    generated_markdown: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "rawInput": self.raw_input,
            "generatedMarkdown": self.generated_markdown,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class ActivityEvent:
    """One entry of the append-only activity log."""

    id: str
    user_id: str
    type: str
    description: str
    created_at: datetime


@dataclass
class AnalyzedTask:
    """A task as proposed by the analysis, before it is stored."""

    id: str
    title: str
    description: str
    status: str
    bucket: str
    priority: str
    category: str | None
    due_date: str | None
    subtasks: list[str]
    order_index: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "bucket": self.bucket,
            "priority": self.priority,
            "category": self.category,
            "dueDate": self.due_date,
            "subtasks": list(self.subtasks),
            "orderIndex": self.order_index,
        }


@dataclass
class CurrentFocus:
    """The single task recommended to work on next."""

    task_id: str | None
    reason: str

    def to_dict(self) -> dict:
        return {"taskId": self.task_id, "reason": self.reason}


@dataclass
class AIAnalysisResult:
    """Fully populated result of analyzing a brain dump."""

    session_id: str
    summary: str
    sections: list
    tasks: list[AnalyzedTask]
    current_focus: CurrentFocus
    insights: list
    suggested_replies: list
    created_at: str  # ISO-8601

    def focus_task(self) -> AnalyzedTask | None:
        """Return the focus task, or None when the reference is empty or dangling."""
        if self.current_focus.task_id is None:
            return None
        for task in self.tasks:
            if task.id == self.current_focus.task_id:
                return task
        return None

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "summary": self.summary,
            "sections": self.sections,
            "tasks": [t.to_dict() for t in self.tasks],
            "currentFocus": self.current_focus.to_dict(),
            "insights": self.insights,
            "suggestedReplies": self.suggested_replies,
            "createdAt": self.created_at,
        }


@dataclass
class TaskCounts:
    """Counts over a user's tasks."""

    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    now_tasks: int = 0
    next_tasks: int = 0
    later_tasks: int = 0
    total_time_spent_minutes: int = 0


@dataclass
class WeeklyCounts:
    """Counts of records created or completed since the start of the week."""

    this_week_sessions: int = 0
    this_week_tasks: int = 0
    this_week_completed: int = 0


@dataclass
class DashboardStats:
    """Derived statistics for one user's dashboard. Never persisted."""

    total_sessions: int
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    in_progress_tasks: int
    total_ideas: int
    now_tasks: int
    next_tasks: int
    later_tasks: int
    total_time_spent_minutes: int
    streak_days: int
    this_week_sessions: int
    this_week_tasks: int
    this_week_completed: int
    completion_rate: int
    recent_activity: list[ActivityEvent] = field(default_factory=list)
    recent_sessions: list[Session] = field(default_factory=list)
    recent_ideas: list[Idea] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalSessions": self.total_sessions,
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "pendingTasks": self.pending_tasks,
            "inProgressTasks": self.in_progress_tasks,
            "totalIdeas": self.total_ideas,
            "nowTasks": self.now_tasks,
            "nextTasks": self.next_tasks,
            "laterTasks": self.later_tasks,
            "totalTimeSpent": self.total_time_spent_minutes,
            "streakDays": self.streak_days,
            "thisWeekSessions": self.this_week_sessions,
            "thisWeekTasks": self.this_week_tasks,
            "thisWeekCompleted": self.this_week_completed,
            "completionRate": self.completion_rate,
            "recentActivity": [
                {
                    "id": a.id,
                    "type": a.type,
                    "description": a.description,
                    "createdAt": _iso(a.created_at),
                }
                for a in self.recent_activity
            ],
            "recentSessions": [
                {
                    "id": s.id,
                    "title": s.title,
                    "summary": s.summary,
                    "status": s.status,
                    "createdAt": _iso(s.created_at),
                }
                for s in self.recent_sessions
            ],
            "recentIdeas": [
                {"id": i.id, "title": i.title, "createdAt": _iso(i.created_at)}
                for i in self.recent_ideas
            ],
        }


@dataclass
class BreakdownStep:
    """One tiny step of a broken-down task."""

    id: str
    title: str
    time_estimate: str
    tip: str | None = None


@dataclass
class TaskBreakdown:
    """A task split into small steps, with a word of encouragement."""

    steps: list[BreakdownStep]
    encouragement: str

    def to_dict(self) -> dict:
        return {
            "steps": [
                {"id": s.id, "title": s.title, "timeEstimate": s.time_estimate, "tip": s.tip}
                for s in self.steps
            ],
            "encouragement": self.encouragement,
        }


@dataclass
class StuckHelp:
    """Tips for getting started on a task the user is stuck on."""

    tips: list[str]
    motivation: str

    def to_dict(self) -> dict:
        return {"tips": list(self.tips), "motivation": self.motivation}


def _iso(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
