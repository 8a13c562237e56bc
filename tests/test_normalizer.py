"""Tests for reply parsing and analysis normalization."""

import json
from datetime import datetime

import pytest

from braindumper.errors import MalformedResponse
from braindumper.normalizer import (
    DEFAULT_FOCUS_REASON,
    DEFAULT_SUGGESTED_REPLIES,
    DEFAULT_SUMMARY,
    normalize_analysis,
    parse_json_response,
)

NOW = datetime(2024, 5, 3, 9, 30)


class TestParseJsonResponse:
    def test_strict_json(self):
        assert parse_json_response('{"summary": "ok"}') == {"summary": "ok"}

    def test_object_wrapped_in_prose(self):
        content = 'Sure! Here you go:\n{"summary": "ok", "tasks": []}\nHope that helps.'
        assert parse_json_response(content) == {"summary": "ok", "tasks": []}

    def test_markdown_code_fence(self):
        content = '```json\n{"summary": "fenced"}\n```'
        assert parse_json_response(content) == {"summary": "fenced"}

    def test_no_object_raises(self):
        with pytest.raises(MalformedResponse, match="No JSON object"):
            parse_json_response("I could not organize that, sorry.")

    def test_broken_object_raises(self):
        with pytest.raises(MalformedResponse, match="Invalid JSON"):
            parse_json_response('here: {"summary": "unterminated}')

    def test_array_is_not_an_object(self):
        with pytest.raises(MalformedResponse, match="not a JSON object"):
            parse_json_response('[{"summary": "ok"}]')

    def test_bytes_are_decoded(self):
        assert parse_json_response(b'{"a": 1}') == {"a": 1}


class TestNormalizeAnalysis:
    def test_empty_object_gets_every_default(self):
        result = normalize_analysis("{}", now=NOW)

        assert result.session_id.startswith("sess_")
        assert result.summary == DEFAULT_SUMMARY
        assert result.sections == []
        assert result.tasks == []
        assert result.current_focus.task_id is None
        assert result.current_focus.reason == DEFAULT_FOCUS_REASON
        assert result.insights == []
        assert result.suggested_replies == DEFAULT_SUGGESTED_REPLIES
        assert len(result.suggested_replies) == 3
        assert result.created_at == NOW.isoformat()

    def test_accepts_decoded_object(self, analysis_reply):
        result = normalize_analysis(analysis_reply, now=NOW)
        assert result.summary == "Exam prep and a pile of chores."
        assert result.insights == ["You sound stretched thin."]
        assert result.suggested_replies == ["Start now"]

    def test_task_defaults(self):
        result = normalize_analysis({"tasks": [{}]}, now=NOW)
        task = result.tasks[0]

        assert task.id == "task_1"
        assert task.title == "Untitled task"
        assert task.description == ""
        assert task.status == "todo"
        assert task.bucket == "later"
        assert task.priority == "medium"
        assert task.category is None
        assert task.due_date is None
        assert task.subtasks == []
        assert task.order_index == 0

    def test_placeholder_ids_are_one_based_positions(self, analysis_reply):
        result = normalize_analysis(analysis_reply, now=NOW)
        assert [t.id for t in result.tasks] == ["t1", "t2", "task_3"]

    @pytest.mark.parametrize("count", [0, 1, 7])
    def test_order_index_follows_input_order(self, count):
        tasks = [{"title": f"Task {i}"} for i in range(count)]
        result = normalize_analysis({"tasks": tasks}, now=NOW)

        assert [t.order_index for t in result.tasks] == list(range(count))
        assert [t.title for t in result.tasks] == [f"Task {i}" for i in range(count)]

    def test_unknown_enum_values_fall_back(self):
        raw = {"tasks": [{"bucket": "someday", "priority": "urgent", "status": "blocked"}]}
        task = normalize_analysis(raw, now=NOW).tasks[0]
        assert (task.bucket, task.priority, task.status) == ("later", "medium", "todo")

    def test_wrong_types_are_defaulted(self):
        raw = {
            "summary": None,
            "sections": "not a list",
            "tasks": {"id": "x"},
            "currentFocus": "t1",
            "insights": 42,
            "suggestedReplies": None,
        }
        result = normalize_analysis(raw, now=NOW)

        assert result.summary == DEFAULT_SUMMARY
        assert result.sections == []
        assert result.tasks == []
        assert result.current_focus.task_id is None
        assert result.insights == []
        assert result.suggested_replies == DEFAULT_SUGGESTED_REPLIES

    @pytest.mark.parametrize("summary", [0, False, ""])
    def test_falsy_summary_gets_fallback(self, summary):
        assert normalize_analysis({"summary": summary}, now=NOW).summary == DEFAULT_SUMMARY

    def test_falsy_task_title_gets_placeholder(self):
        task = normalize_analysis({"tasks": [{"title": 0}]}, now=NOW).tasks[0]
        assert task.title == "Untitled task"

    def test_non_object_task_entries_are_defaulted(self):
        result = normalize_analysis({"tasks": ["just a string", None]}, now=NOW)
        assert [t.id for t in result.tasks] == ["task_1", "task_2"]
        assert all(t.title == "Untitled task" for t in result.tasks)

    def test_empty_suggested_replies_are_kept(self):
        result = normalize_analysis({"suggestedReplies": []}, now=NOW)
        assert result.suggested_replies == []

    def test_session_id_is_never_taken_from_input(self):
        result = normalize_analysis({"sessionId": "sess_from_model"}, now=NOW)
        assert result.session_id != "sess_from_model"

    def test_prose_wrapped_reply(self, analysis_reply):
        content = "Here is your organized dump:\n" + json.dumps(analysis_reply)
        result = normalize_analysis(content, now=NOW)
        assert len(result.tasks) == 3

    @pytest.mark.parametrize("raw", ["", "no json here", "[1, 2]", None, 17])
    def test_unparseable_input_raises(self, raw):
        with pytest.raises(MalformedResponse):
            normalize_analysis(raw, now=NOW)


class TestFocusTask:
    def test_resolves_focus(self, analysis_reply):
        result = normalize_analysis(analysis_reply, now=NOW)
        assert result.focus_task().title == "Finish OS assignment"

    def test_dangling_focus_resolves_to_none(self, analysis_reply):
        analysis_reply["currentFocus"] = {"taskId": "missing", "reason": "?"}
        result = normalize_analysis(analysis_reply, now=NOW)

        assert result.current_focus.task_id == "missing"
        assert result.focus_task() is None

    def test_to_dict_uses_wire_names(self, analysis_reply):
        data = normalize_analysis(analysis_reply, now=NOW).to_dict()

        assert set(data) == {
            "sessionId",
            "summary",
            "sections",
            "tasks",
            "currentFocus",
            "insights",
            "suggestedReplies",
            "createdAt",
        }
        assert data["currentFocus"] == {"taskId": "t1", "reason": "It has a deadline."}
        assert data["tasks"][0]["orderIndex"] == 0
        assert data["tasks"][0]["dueDate"] is None
