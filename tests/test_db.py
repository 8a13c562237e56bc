"""Tests for the SQLite store."""

import json
from datetime import datetime

import pytest

from braindumper.config import SIZE_CAPS
from braindumper.db import Database
from braindumper.normalizer import normalize_analysis


class TestConnection:
    def test_requires_connection(self, db_path):
        db = Database(db_path)
        with pytest.raises(RuntimeError, match="not connected"):
            db.list_sessions("u1")

    def test_init_schema_is_idempotent(self, db):
        db.init_schema()
        db.init_schema()
        assert db.list_sessions("u1") == []


class TestSessions:
    def test_stores_analysis_fields(self, db, analysis_reply):
        result = normalize_analysis(analysis_reply)
        session = db.create_session("u1", "Exams", "raw dump text", result=result)

        loaded = db.get_session(session.id)
        assert loaded.raw_dump == "raw dump text"
        assert loaded.summary == "Exam prep and a pile of chores."
        assert json.loads(loaded.sections) == analysis_reply["sections"]
        assert json.loads(loaded.insights) == ["You sound stretched thin."]
        assert json.loads(loaded.current_focus) == {"taskId": "t1", "reason": "It has a deadline."}
        assert loaded.status == "active"

    def test_without_analysis(self, db):
        session = db.create_session("u1", "Plain", "text")
        loaded = db.get_session(session.id)
        assert loaded.summary == ""
        assert loaded.sections == "[]"

    def test_list_is_newest_first_and_per_user(self, db):
        db.create_session("u1", "old", "a", created_at=datetime(2024, 5, 1))
        db.create_session("u1", "new", "b", created_at=datetime(2024, 5, 2))
        db.create_session("u2", "other", "c", created_at=datetime(2024, 5, 3))

        assert [s.title for s in db.list_sessions("u1")] == ["new", "old"]

    def test_title_is_capped(self, db):
        session = db.create_session("u1", "x" * 1000, "text")
        assert len(session.title) == SIZE_CAPS["title"]

    def test_archive_keeps_raw_dump(self, db):
        session = db.create_session("u1", "dump", "keep me")
        archived = db.update_session_status(session.id, "archived")

        assert archived.status == "archived"
        assert archived.raw_dump == "keep me"

    def test_invalid_session_status(self, db):
        session = db.create_session("u1", "dump", "text")
        with pytest.raises(ValueError):
            db.update_session_status(session.id, "deleted")

    def test_missing_session(self, db):
        assert db.get_session("nope") is None


class TestTasks:
    def test_defaults(self, db):
        task = db.get_task(db.create_task("u1", "Water plants").id)

        assert task.bucket == "later"
        assert task.priority == "medium"
        assert task.status == "pending"
        assert task.time_spent_minutes == 0
        assert task.completed_at is None
        assert task.session_id is None

    def test_created_completed_gets_timestamp(self, db):
        task = db.create_task("u1", "Already done", status="completed")
        assert db.get_task(task.id).completed_at is not None

    def test_given_id_is_used(self, db):
        task = db.create_task("u1", "Pinned", task_id="abc123")
        assert db.get_task("abc123").title == "Pinned"
        assert task.id == "abc123"

    def test_filters(self, db):
        session = db.create_session("u1", "dump", "text")
        db.create_task("u1", "A", bucket="now", session_id=session.id)
        db.create_task("u1", "B", bucket="next", session_id=session.id)
        db.create_task("u1", "C", bucket="now")

        assert {t.title for t in db.list_tasks("u1", bucket="now")} == {"A", "C"}
        assert {t.title for t in db.list_tasks("u1", session_id=session.id)} == {"A", "B"}
        assert [t.title for t in db.list_tasks("u1", bucket="now", session_id=session.id)] == ["A"]

    def test_completion_stamps_completed_at_once(self, db):
        task = db.create_task("u1", "Report")
        first = db.update_task(task.id, status="completed")
        assert first.completed_at is not None

        db.update_task(task.id, status="in_progress")
        again = db.update_task(task.id, status="completed")
        assert again.completed_at == first.completed_at

    def test_explicit_completed_at_wins(self, db):
        task = db.create_task("u1", "Report")
        stamp = datetime(2024, 5, 3, 11, 0)
        updated = db.update_task(task.id, status="completed", completed_at=stamp)
        assert updated.completed_at == stamp

    def test_time_spent_round_trip(self, db):
        task = db.create_task("u1", "Report")
        assert db.update_task(task.id, time_spent_minutes=25).time_spent_minutes == 25

    def test_unknown_field(self, db):
        task = db.create_task("u1", "Report")
        with pytest.raises(ValueError, match="Unknown task fields"):
            db.update_task(task.id, colour="blue")

    def test_update_missing_task(self, db):
        assert db.update_task("nope", status="completed") is None


class TestIdeas:
    def test_create_list_delete(self, db):
        first = db.create_idea("u1", "Todo app", "raw", "# Todo", created_at=datetime(2024, 5, 1))
        second = db.create_idea("u1", "Habit app", "raw", "# Habit", created_at=datetime(2024, 5, 2))
        db.create_idea("u2", "Other", "raw", "# Other")

        assert [i.id for i in db.list_ideas("u1")] == [second.id, first.id]
        assert db.get_idea(first.id).generated_markdown == "# Todo"

        assert db.delete_idea(first.id) is True
        assert db.delete_idea(first.id) is False
        assert db.get_idea(first.id) is None

    def test_list_limit(self, db):
        for i in range(3):
            db.create_idea("u1", f"Idea {i}", "raw", "")
        assert len(db.list_ideas("u1", limit=2)) == 2


class TestActivity:
    def test_newest_first_with_limit(self, db):
        for day in range(1, 6):
            db.log_activity("u1", "focus_started", f"day {day}", created_at=datetime(2024, 5, day))

        events = db.list_activity("u1", limit=3)
        assert [e.description for e in events] == ["day 5", "day 4", "day 3"]
        assert events[0].type == "focus_started"
