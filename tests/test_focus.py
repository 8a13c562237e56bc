"""Tests for task board changes and focus sessions."""

import sqlite3

import pytest

from braindumper.errors import TaskNotFound
from braindumper.focus import complete_focus, move_task, set_task_status, start_focus, update_task


@pytest.fixture
def task(db):
    return db.create_task("u1", "Write report", bucket="next")


def activity_types(db):
    return [e.type for e in db.list_activity("u1")]


class TestSetTaskStatus:
    def test_complete_logs_once(self, db, task):
        done = set_task_status(db, task.id, "completed")
        set_task_status(db, task.id, "completed")

        assert done.status == "completed"
        assert done.completed_at is not None
        assert activity_types(db) == ["task_completed"]
        assert db.list_activity("u1")[0].description == "Completed: Write report"

    def test_other_statuses_are_not_logged(self, db, task):
        set_task_status(db, task.id, "in_progress")
        assert activity_types(db) == []

    def test_invalid_status(self, db, task):
        with pytest.raises(ValueError):
            set_task_status(db, task.id, "done")

    def test_missing_task(self, db):
        with pytest.raises(TaskNotFound):
            set_task_status(db, "nope", "completed")


class TestMoveTask:
    def test_move(self, db, task):
        assert move_task(db, task.id, "now").bucket == "now"
        assert db.get_task(task.id).bucket == "now"

    def test_invalid_bucket(self, db, task):
        with pytest.raises(ValueError):
            move_task(db, task.id, "someday")

    def test_missing_task(self, db):
        with pytest.raises(TaskNotFound):
            move_task(db, "nope", "now")


class TestUpdateTask:
    def test_status_and_bucket_together(self, db, task):
        updated = update_task(db, task.id, status="completed", bucket="now")

        assert (updated.status, updated.bucket) == ("completed", "now")
        assert activity_types(db) == ["task_completed"]

    def test_invalid_status_leaves_bucket_untouched(self, db, task):
        with pytest.raises(ValueError):
            update_task(db, task.id, status="bogus", bucket="now")
        assert db.get_task(task.id).bucket == "next"

    def test_invalid_bucket_leaves_status_untouched(self, db, task):
        with pytest.raises(ValueError):
            update_task(db, task.id, status="completed", bucket="someday")

        stored = db.get_task(task.id)
        assert stored.status == "pending"
        assert stored.completed_at is None
        assert activity_types(db) == []

    def test_nothing_given(self, db, task):
        assert update_task(db, task.id).bucket == "next"


class TestFocusSession:
    def test_start_moves_pending_to_in_progress(self, db, task):
        started = start_focus(db, task.id)

        assert started.status == "in_progress"
        assert activity_types(db) == ["focus_started"]

    def test_start_keeps_completed_status(self, db, task):
        set_task_status(db, task.id, "completed")
        assert start_focus(db, task.id).status == "completed"

    def test_complete_adds_time_and_completes(self, db, task):
        start_focus(db, task.id)
        complete_focus(db, task.id, 25)
        db.update_task(task.id, status="in_progress")
        finished = complete_focus(db, task.id, 15)

        assert finished.time_spent_minutes == 40
        assert finished.status == "completed"
        assert activity_types(db).count("focus_ended") == 2
        assert activity_types(db).count("task_completed") == 2

    def test_failed_completion_keeps_no_time(self, db, task, monkeypatch):
        real_update = db.update_task

        def failing_update(task_id, **updates):
            if updates.get("status") == "completed":
                raise sqlite3.OperationalError("disk I/O error")
            return real_update(task_id, **updates)

        monkeypatch.setattr(db, "update_task", failing_update)
        with pytest.raises(sqlite3.OperationalError):
            complete_focus(db, task.id, 30)
        monkeypatch.undo()

        stored = db.get_task(task.id)
        assert stored.time_spent_minutes == 0
        assert stored.status == "pending"
        assert "focus_ended" not in activity_types(db)

    def test_negative_minutes_add_nothing(self, db, task):
        assert complete_focus(db, task.id, -10).time_spent_minutes == 0

    def test_missing_task(self, db):
        with pytest.raises(TaskNotFound):
            start_focus(db, "nope")
