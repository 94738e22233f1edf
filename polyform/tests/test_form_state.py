"""
Unit tests for the FormEngine wizard state machine.

Tests cover:
- Initial state and state snapshots
- Answer storage, touched tracking and validate-on-change
- Group visibility: hidden groups and groups with no visible questions are skipped
- next() gating on validation, completion, and next() after completion
- previous() bounds, allow_back, reopening a completed form
- List item add/remove/update and their errors
- Notification hooks
- reset, cancel, apply_defaults, get_visible_answers
- Loading presets (replacement, list coercion, questionnaire mismatch)
"""

from datetime import datetime, timezone

import pytest

from polyform.core.errors import (
    ListOperationError,
    NavigationError,
    PresetMismatchError,
    UnknownGroupError,
    UnknownQuestionError,
)
from polyform.core.form_state import FormEngine, FormEngineOptions, FormEvents
from polyform.core.presets import Preset
from polyform.core.schema import Questionnaire


def _preset(questionnaire_id: str, answers: dict) -> Preset:
    now = datetime.now(timezone.utc)
    return Preset(
        id="preset_test",
        name="Saved",
        questionnaire_id=questionnaire_id,
        answers=answers,
        created_at=now,
        updated_at=now,
    )


# =============================================================
# Test: Initialization and state
# =============================================================


class TestInitialization:

    def test_initial_state(self, extra_engine):
        state = extra_engine.get_state()
        assert state.form_id == "extras"
        assert state.answers == {}
        assert state.current_group_index == 0
        assert state.is_complete is False
        assert state.errors == {}
        assert state.touched == set()

    def test_state_is_a_copy(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        engine.set_answer("emails", ["a@b.co"])
        state = engine.get_state()
        state.answers["emails"].append("hacked@b.co")
        state.touched.add("note")
        assert engine.get_answer("emails") == ["a@b.co"]
        assert engine.get_state().touched == {"emails"}

    def test_current_group_is_first_visible(self, extra_engine):
        assert extra_engine.get_current_group().id == "group-a"
        assert [q.id for q in extra_engine.get_current_questions()] == ["includeExtra"]


# =============================================================
# Test: Answers
# =============================================================


class TestAnswers:

    def test_set_and_get_answer(self, extra_engine):
        extra_engine.set_answer("includeExtra", True)
        assert extra_engine.get_answer("includeExtra") is True
        assert extra_engine.get_answers() == {"includeExtra": True}
        assert extra_engine.get_state().touched == {"includeExtra"}

    def test_unknown_question_raises(self, extra_engine):
        with pytest.raises(UnknownQuestionError) as exc_info:
            extra_engine.set_answer("ghost", 1)
        assert exc_info.value.question_id == "ghost"

    def test_unanswered_is_none(self, extra_engine):
        assert extra_engine.get_answer("extraDetail") is None

    def test_validate_on_change_records_errors(self, three_group_questionnaire):
        engine = FormEngine(three_group_questionnaire)
        engine.set_answer("age", "old")
        assert engine.get_errors("age") == ["Age must be a number"]

        engine.set_answer("age", 30)
        assert engine.get_errors("age") == []
        assert "age" not in engine.get_errors()

    def test_validate_on_change_disabled(self, three_group_questionnaire):
        engine = FormEngine(three_group_questionnaire, FormEngineOptions(validate_on_change=False))
        engine.set_answer("age", "old")
        assert engine.get_errors() == {}

    def test_list_answers_always_stored_as_lists(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        engine.set_answer("emails", "a@b.co")
        assert engine.get_answer("emails") == ["a@b.co"]
        engine.set_answer("emails", None)
        assert engine.get_answer("emails") == []

    def test_apply_defaults(self):
        form = Questionnaire(
            id="defaults",
            title="Defaults",
            groups=[{
                "id": "g",
                "questions": [
                    {"id": "pm", "type": "text", "title": "PM", "default": "pnpm"},
                    {"id": "name", "type": "text", "title": "Name", "default": "app"},
                    {"id": "none", "type": "text", "title": "No default"},
                    {"id": "tags", "type": "list", "title": "Tags", "default": "web", "list_spec": {"item_type": "text"}},
                ],
            }],
        )
        engine = FormEngine(form)
        engine.set_answer("name", "mine")
        engine.apply_defaults()
        assert engine.get_answers() == {"pm": "pnpm", "name": "mine", "tags": ["web"]}
        assert engine.get_state().touched == {"name"}


# =============================================================
# Test: Visibility-driven navigation
# =============================================================


class TestConditionalNavigation:

    def test_hidden_group_is_skipped_to_completion(self, extra_engine):
        extra_engine.set_answer("includeExtra", False)
        assert extra_engine.next() is True
        assert extra_engine.is_complete is True
        assert "extraDetail" not in extra_engine.get_errors()

    def test_revealed_required_question_blocks(self, extra_engine):
        extra_engine.set_answer("includeExtra", True)
        assert extra_engine.next() is True
        assert extra_engine.get_current_group().id == "group-b"

        assert extra_engine.next() is False
        assert extra_engine.is_complete is False
        assert extra_engine.get_errors() == {"extraDetail": ["Extra detail is required"]}

        extra_engine.set_answer("extraDetail", "more")
        assert extra_engine.next() is True
        assert extra_engine.is_complete is True

    def test_blocked_next_does_not_move(self, extra_engine):
        assert extra_engine.next() is False
        assert extra_engine.current_group_index == 0
        assert extra_engine.get_errors("includeExtra") == ["Include extra? is required"]

    def test_group_without_visible_questions_is_skipped(self, extra_engine):
        assert [g.id for g in extra_engine.get_visible_groups()] == ["group-a"]
        extra_engine.set_answer("includeExtra", True)
        assert [g.id for g in extra_engine.get_visible_groups()] == ["group-a", "group-b"]

    def test_group_show_if(self):
        form = Questionnaire(
            id="g",
            title="G",
            groups=[
                {"id": "first", "questions": [{"id": "mode", "type": "text", "title": "Mode"}]},
                {
                    "id": "advanced",
                    "show_if": [{"depends_on": "mode", "condition": {"type": "equals", "value": "advanced"}}],
                    "questions": [{"id": "level", "type": "number", "title": "Level"}],
                },
            ],
        )
        engine = FormEngine(form)
        assert engine.get_progress() == (1, 1)
        engine.set_answer("mode", "advanced")
        assert engine.get_progress() == (1, 2)

    def test_get_visible_questions_unknown_group(self, extra_engine):
        with pytest.raises(UnknownGroupError):
            extra_engine.get_visible_questions("ghost")

    def test_visible_answers_exclude_hidden(self, extra_engine):
        extra_engine.set_answer("includeExtra", True)
        extra_engine.set_answer("extraDetail", "kept in store")
        extra_engine.set_answer("includeExtra", False)
        assert extra_engine.get_answers() == {"includeExtra": False, "extraDetail": "kept in store"}
        assert extra_engine.get_visible_answers() == {"includeExtra": False}


# =============================================================
# Test: next / previous
# =============================================================


class TestNavigation:

    def test_walk_forward_to_completion(self, three_group_questionnaire):
        engine = FormEngine(three_group_questionnaire)
        engine.set_answer("name", "Ada")
        assert engine.next() is True
        assert engine.get_current_group().id == "two"
        assert engine.next() is True
        assert engine.get_current_group().id == "three"
        assert engine.can_go_next() is True
        assert engine.next() is True
        assert engine.is_complete is True
        assert engine.can_go_next() is False

    def test_next_after_completion_raises(self, extra_engine):
        extra_engine.set_answer("includeExtra", False)
        extra_engine.next()
        with pytest.raises(NavigationError, match="already complete"):
            extra_engine.next()

    def test_previous_at_first_group_raises(self, extra_engine):
        assert extra_engine.can_go_previous() is False
        with pytest.raises(NavigationError, match="first group"):
            extra_engine.previous()

    def test_previous_does_not_validate(self, three_group_questionnaire):
        engine = FormEngine(three_group_questionnaire)
        engine.set_answer("name", "Ada")
        engine.next()
        engine.set_answer("age", "invalid")
        assert engine.previous() is True
        assert engine.get_current_group().id == "one"

    def test_previous_reopens_completed_form(self, three_group_questionnaire):
        engine = FormEngine(three_group_questionnaire)
        engine.set_answer("name", "Ada")
        engine.next()
        engine.next()
        engine.next()
        assert engine.is_complete is True

        engine.previous()
        assert engine.is_complete is False
        assert engine.get_current_group().id == "two"

    def test_back_disabled(self):
        form = Questionnaire(
            id="forward",
            title="Forward only",
            settings={"allow_back": False},
            groups=[
                {"id": "one", "questions": [{"id": "a", "type": "text", "title": "A"}]},
                {"id": "two", "questions": [{"id": "b", "type": "text", "title": "B"}]},
            ],
        )
        engine = FormEngine(form)
        engine.next()
        assert engine.can_go_previous() is False
        with pytest.raises(NavigationError, match="does not allow going back"):
            engine.previous()

    def test_validate_current_group_collects_all_errors(self):
        form = Questionnaire(
            id="multi",
            title="Multi",
            groups=[{
                "id": "g",
                "questions": [
                    {"id": "a", "type": "text", "title": "A", "required": True},
                    {"id": "b", "type": "number", "title": "B", "required": True},
                ],
            }],
        )
        engine = FormEngine(form)
        result = engine.validate_current_group()
        assert result.is_valid is False
        assert result.errors == {"a": ["A is required"], "b": ["B is required"]}


# =============================================================
# Test: List items
# =============================================================


class TestListItems:

    def test_add_update_remove(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        engine.add_item("emails", "a@b.co")
        engine.add_item("emails", "c@d.co")
        engine.update_item("emails", 0, "x@y.co")
        assert engine.get_answer("emails") == ["x@y.co", "c@d.co"]

        engine.remove_item("emails", 1)
        assert engine.get_answer("emails") == ["x@y.co"]
        assert "emails" in engine.get_state().touched

    def test_add_beyond_max_items(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        for email in ["a@b.co", "c@d.co", "e@f.co"]:
            engine.add_item("emails", email)
        with pytest.raises(ListOperationError, match="cannot add more than 3 items"):
            engine.add_item("emails", "g@h.co")
        assert len(engine.get_answer("emails")) == 3

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_index_out_of_range(self, list_questionnaire, index):
        engine = FormEngine(list_questionnaire)
        engine.add_item("emails", "a@b.co")
        with pytest.raises(ListOperationError, match="out of range"):
            engine.remove_item("emails", index)
        with pytest.raises(ListOperationError, match="out of range"):
            engine.update_item("emails", index, "z@z.co")

    def test_list_operation_on_non_list(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        with pytest.raises(ListOperationError, match="is not a list question"):
            engine.add_item("note", "text")

    def test_item_errors_revalidated(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        engine.add_item("emails", "broken")
        assert engine.get_errors("emails") == ["Item 1: Emails must be a valid email address"]
        engine.update_item("emails", 0, "fixed@b.co")
        assert engine.get_errors("emails") == []


# =============================================================
# Test: Events
# =============================================================


class TestEvents:

    def test_hooks_fire(self, extra_questionnaire):
        calls = []
        events = FormEvents(
            on_answer_change=lambda qid, value, state: calls.append(("change", qid, value)),
            on_question_validate=lambda qid, result: calls.append(("validate", qid, result.is_valid)),
            on_group_complete=lambda gid, state: calls.append(("group", gid)),
            on_form_complete=lambda state: calls.append(("complete", state.is_complete)),
            on_form_cancel=lambda state: calls.append(("cancel",)),
        )
        engine = FormEngine(extra_questionnaire, events=events)

        engine.set_answer("includeExtra", False)
        engine.next()
        engine.cancel()

        assert calls == [
            ("validate", "includeExtra", True),
            ("change", "includeExtra", False),
            ("validate", "includeExtra", True),
            ("group", "group-a"),
            ("complete", True),
            ("cancel",),
        ]

    def test_answer_change_receives_snapshot(self, list_questionnaire):
        snapshots = []
        engine = FormEngine(
            list_questionnaire,
            events=FormEvents(on_answer_change=lambda qid, value, state: snapshots.append((value, state))),
        )
        engine.add_item("emails", "a@b.co")
        value, state = snapshots[0]
        value.append("mutated")
        assert engine.get_answer("emails") == ["a@b.co"]
        assert state.answers == {"emails": ["a@b.co"]}

    def test_blocked_next_does_not_fire_group_complete(self, extra_questionnaire):
        completed = []
        engine = FormEngine(extra_questionnaire, events=FormEvents(on_group_complete=lambda g, s: completed.append(g)))
        assert engine.next() is False
        assert completed == []


# =============================================================
# Test: Reset, cancel and presets
# =============================================================


class TestLifecycle:

    def test_reset(self, extra_engine):
        extra_engine.set_answer("includeExtra", False)
        extra_engine.next()
        extra_engine.reset()
        state = extra_engine.get_state()
        assert state.answers == {}
        assert state.is_complete is False
        assert state.current_group_index == 0
        assert state.touched == set()

    def test_cancel_keeps_state(self, extra_engine):
        extra_engine.set_answer("includeExtra", True)
        extra_engine.cancel()
        assert extra_engine.get_answer("includeExtra") is True

    def test_load_preset_replaces_answers(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        engine.set_answer("note", "old")
        engine.load_preset(_preset("contacts", {"emails": "a@b.co"}))

        assert engine.get_answers() == {"emails": ["a@b.co"]}
        state = engine.get_state()
        assert state.current_group_index == 0
        assert state.touched == set()

    def test_load_preset_drops_unknown_question_ids(self, list_questionnaire):
        engine = FormEngine(list_questionnaire)
        engine.load_preset(_preset("contacts", {"note": "kept", "legacy": 1, "removedField": [1]}))
        assert engine.get_answers() == {"note": "kept"}

    def test_load_preset_rewinds_completed_form(self, extra_engine):
        extra_engine.set_answer("includeExtra", False)
        extra_engine.next()
        extra_engine.load_preset(_preset("extras", {"includeExtra": True}))
        assert extra_engine.is_complete is False
        assert extra_engine.get_current_group().id == "group-a"

    def test_load_preset_from_other_questionnaire(self, extra_engine):
        with pytest.raises(PresetMismatchError) as exc_info:
            extra_engine.load_preset(_preset("contacts", {}))
        assert exc_info.value.expected == "extras"
        assert exc_info.value.actual == "contacts"
