"""Shared fixtures."""

import json

import pytest

from braindumper.db import Database
from braindumper.llm import Completion


class FakeLLM:
    """Returns canned replies in order and records each call."""

    def __init__(self, *replies, provider="fake"):
        self.replies = list(replies)
        self.provider = provider
        self.calls = []

    def complete(self, system, prompt, **kwargs):
        self.calls.append({"system": system, "prompt": prompt, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return Completion(text=reply, provider=self.provider)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "test.db"
    with Database(path) as db:
        db.init_schema()
    return path


@pytest.fixture
def db(db_path):
    with Database(db_path) as database:
        yield database


@pytest.fixture
def analysis_reply():
    return {
        "summary": "Exam prep and a pile of chores.",
        "sections": [{"title": "📚 Study", "items": ["OS assignment"]}],
        "tasks": [
            {
                "id": "t1",
                "title": "Finish OS assignment",
                "description": "Due Friday.",
                "status": "todo",
                "bucket": "now",
                "priority": "high",
                "category": "Study",
                "dueDate": None,
                "subtasks": ["Read chapter 4"],
            },
            {"id": "t2", "title": "Buy groceries", "bucket": "next"},
            {"title": "Call grandma", "status": "done"},
        ],
        "currentFocus": {"taskId": "t1", "reason": "It has a deadline."},
        "insights": ["You sound stretched thin."],
        "suggestedReplies": ["Start now"],
    }
