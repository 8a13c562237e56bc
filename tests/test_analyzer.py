"""Tests for brain dump analysis and storage."""

import json
from datetime import datetime

import pytest

from braindumper.analyzer import analyze_dump, cap_dump, count_tokens, save_analysis, session_title
from braindumper.errors import MalformedResponse

from conftest import FakeLLM

NOW = datetime(2024, 5, 3, 9, 30)


class TestAnalyzeDump:
    def test_prompts_with_dump_and_normalizes(self, analysis_reply):
        llm = FakeLLM(analysis_reply)
        result = analyze_dump(llm, "exam friday, groceries, call grandma", now=NOW)

        assert len(result.tasks) == 3
        assert result.created_at == NOW.isoformat()
        assert "call grandma" in llm.calls[0]["prompt"]
        assert "valid JSON" in llm.calls[0]["system"]

    def test_empty_dump(self):
        with pytest.raises(ValueError, match="required"):
            analyze_dump(FakeLLM(), "   \n ")

    def test_unreadable_reply(self):
        with pytest.raises(MalformedResponse):
            analyze_dump(FakeLLM("I'm not sure what you mean."), "stuff")


class TestSessionTitle:
    def test_first_line(self):
        assert session_title("  Exams this week\nand more") == "Exams this week"

    def test_first_line_is_capped(self):
        assert len(session_title("x" * 300)) == 100

    def test_falls_back_to_summary(self):
        assert session_title("", "A busy week") == "A busy week"

    def test_generic(self):
        assert session_title("") == "Brain Dump Session"


class TestTokenBudget:
    def test_short_dump_unchanged(self):
        assert cap_dump("buy milk", max_tokens=100) == "buy milk"

    def test_long_dump_truncated(self):
        text = "word " * 500
        capped = cap_dump(text, max_tokens=50)

        assert capped.endswith("[TRUNCATED]")
        assert count_tokens(capped) < count_tokens(text)


class TestSaveAnalysis:
    def test_stores_session_and_tasks(self, db, analysis_reply):
        result = analyze_dump(FakeLLM(analysis_reply), "Exams\nand chores", now=NOW)
        saved = save_analysis(db, "u1", "Exams\nand chores", result)

        assert saved.session.title == "Exams"
        assert [t.title for t in saved.tasks] == ["Finish OS assignment", "Buy groceries", "Call grandma"]
        assert all(t.session_id == saved.session.id for t in saved.tasks)
        assert len(db.list_tasks("u1", session_id=saved.session.id)) == 3

    def test_maps_statuses(self, db, analysis_reply):
        result = analyze_dump(FakeLLM(analysis_reply), "dump", now=NOW)
        saved = save_analysis(db, "u1", "dump", result)

        assert [t.status for t in saved.tasks] == ["pending", "pending", "completed"]
        assert saved.tasks[2].completed_at is not None
        assert saved.tasks[0].bucket == "now"
        assert saved.tasks[0].priority == "high"

    def test_focus_points_at_stored_task(self, db, analysis_reply):
        result = analyze_dump(FakeLLM(analysis_reply), "dump", now=NOW)
        saved = save_analysis(db, "u1", "dump", result)

        focus = json.loads(db.get_session(saved.session.id).current_focus)
        assert focus == {"taskId": saved.tasks[0].id, "reason": "It has a deadline."}

    def test_dangling_focus_is_stored_as_none(self, db, analysis_reply):
        analysis_reply["currentFocus"] = {"taskId": "ghost", "reason": "?"}
        result = analyze_dump(FakeLLM(analysis_reply), "dump", now=NOW)
        saved = save_analysis(db, "u1", "dump", result)

        focus = json.loads(db.get_session(saved.session.id).current_focus)
        assert focus["taskId"] is None

    def test_logs_activity(self, db, analysis_reply):
        result = analyze_dump(FakeLLM(analysis_reply), "Exams\nand chores", now=NOW)
        save_analysis(db, "u1", "Exams\nand chores", result)

        events = db.list_activity("u1")
        assert len(events) == 1
        assert events[0].type == "session_created"
        assert events[0].description == "Brain dump: Exams"

    def test_no_tasks(self, db):
        result = analyze_dump(FakeLLM({"summary": "Just venting."}), "ugh", now=NOW)
        saved = save_analysis(db, "u1", "ugh", result)

        assert saved.tasks == []
        assert db.get_session(saved.session.id).summary == "Just venting."
