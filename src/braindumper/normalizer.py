"""Normalization of model replies into fully populated analysis results."""

import json
import uuid
from datetime import datetime

from .errors import MalformedResponse
from .models import (
    ANALYSIS_STATUSES,
    BUCKETS,
    PRIORITIES,
    AIAnalysisResult,
    AnalyzedTask,
    CurrentFocus,
)

DEFAULT_SUMMARY = "Brain dump organized"
DEFAULT_TASK_TITLE = "Untitled task"
DEFAULT_FOCUS_REASON = "No focus task identified"
DEFAULT_SUGGESTED_REPLIES = [
    "Start a focus session",
    "Break down the main task",
    "Add more thoughts",
]


def parse_json_response(content: str) -> dict:
    """Parse a JSON object from a model reply.

    Tries a strict parse first. If that fails, strips any markdown code fence
    and parses the span from the first ``{`` to the last ``}``. Raises
    MalformedResponse when neither yields an object.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    if not isinstance(content, str):
        raise MalformedResponse(f"Expected text, got {type(content).__name__}")

    text = content.strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = _parse_embedded_object(text, content)

    if not isinstance(parsed, dict):
        raise MalformedResponse("Response is not a JSON object", content)
    return parsed


def _parse_embedded_object(text: str, original: str) -> dict:
    # Handle markdown code blocks
    if "```" in text:
        parts = text.split("```")
        if len(parts) >= 3:
            text = parts[1]
            if text.startswith("json"):
                text = text[4:]
            text = text.strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise MalformedResponse("No JSON object found in response", original)

    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Invalid JSON in response: {e}", original) from e


def generate_session_id(now: datetime) -> str:
    return f"sess_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:6]}"


def normalize_analysis(raw, now: datetime | None = None) -> AIAnalysisResult:
    """Turn a raw model reply into an AIAnalysisResult with every field set.

    ``raw`` may be the reply text or an already decoded JSON value. Missing or
    mistyped fields fall back to defaults; only an unreadable reply raises.
    """
    now = now or datetime.now()
    data = raw if isinstance(raw, dict) else parse_json_response(raw)

    raw_tasks = data.get("tasks")
    if not isinstance(raw_tasks, list):
        raw_tasks = []

    return AIAnalysisResult(
        session_id=generate_session_id(now),
        summary=_text(data.get("summary")) or DEFAULT_SUMMARY,
        sections=_list(data.get("sections")),
        tasks=[normalize_task(task, index) for index, task in enumerate(raw_tasks)],
        current_focus=normalize_focus(data.get("currentFocus")),
        insights=_list(data.get("insights")),
        suggested_replies=_list(data.get("suggestedReplies"), DEFAULT_SUGGESTED_REPLIES),
        created_at=now.isoformat(),
    )


def normalize_task(raw, index: int) -> AnalyzedTask:
    """Default one task entry. ``index`` is its zero-based position in the reply."""
    if not isinstance(raw, dict):
        raw = {}

    task_id = raw.get("id")
    subtasks = raw.get("subtasks")

    return AnalyzedTask(
        id=str(task_id) if task_id not in (None, "") else f"task_{index + 1}",
        title=_text(raw.get("title")) or DEFAULT_TASK_TITLE,
        description=_text(raw.get("description")),
        status=_choice(raw.get("status"), ANALYSIS_STATUSES, "todo"),
        bucket=_choice(raw.get("bucket"), BUCKETS, "later"),
        priority=_choice(raw.get("priority"), PRIORITIES, "medium"),
        category=_text(raw.get("category")) or None,
        due_date=_text(raw.get("dueDate")) or None,
        subtasks=[str(s) for s in subtasks] if isinstance(subtasks, list) else [],
        order_index=index,
    )


def normalize_focus(raw) -> CurrentFocus:
    if not isinstance(raw, dict):
        return CurrentFocus(task_id=None, reason=DEFAULT_FOCUS_REASON)

    task_id = raw.get("taskId")
    return CurrentFocus(
        task_id=str(task_id) if task_id not in (None, "") else None,
        reason=_text(raw.get("reason")) or DEFAULT_FOCUS_REASON,
    )


def _text(value) -> str:
    if not value or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _list(value, default: list | None = None) -> list:
    if isinstance(value, list):
        return value
    return list(default) if default else []


def _choice(value, allowed: tuple[str, ...], default: str) -> str:
    return value if value in allowed else default
