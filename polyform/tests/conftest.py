"""
Shared test fixtures for the polyform test suite.

Provides small questionnaires covering the interesting shapes
(conditional groups, list questions, back navigation disabled) and a
preset store backed by process memory.
"""

import pytest

from polyform.core.form_state import FormEngine
from polyform.core.presets import InMemoryPresetStorage, PresetStore
from polyform.core.schema import Questionnaire


@pytest.fixture
def extra_questionnaire() -> Questionnaire:
    """Group A asks whether to include extras; group B only shows when it does."""
    return Questionnaire(
        id="extras",
        title="Extras",
        groups=[
            {
                "id": "group-a",
                "title": "Group A",
                "questions": [
                    {"id": "includeExtra", "type": "toggle", "title": "Include extra?", "required": True},
                ],
            },
            {
                "id": "group-b",
                "title": "Group B",
                "questions": [
                    {
                        "id": "extraDetail",
                        "type": "text",
                        "title": "Extra detail",
                        "required": True,
                        "show_if": [
                            {"depends_on": "includeExtra", "condition": {"type": "equals", "value": True}},
                        ],
                    },
                ],
            },
        ],
    )


@pytest.fixture
def list_questionnaire() -> Questionnaire:
    """A single group with a bounded list of emails and a free-text note."""
    return Questionnaire(
        id="contacts",
        title="Contacts",
        groups=[
            {
                "id": "people",
                "questions": [
                    {
                        "id": "emails",
                        "type": "list",
                        "title": "Emails",
                        "required": True,
                        "list_spec": {"item_type": "email", "min_items": 1, "max_items": 3},
                    },
                    {"id": "note", "type": "text", "title": "Note"},
                ],
            },
        ],
    )


@pytest.fixture
def three_group_questionnaire() -> Questionnaire:
    return Questionnaire(
        id="three",
        title="Three Steps",
        groups=[
            {"id": "one", "questions": [{"id": "name", "type": "text", "title": "Name", "required": True}]},
            {"id": "two", "questions": [{"id": "age", "type": "number", "title": "Age"}]},
            {"id": "three", "questions": [{"id": "agree", "type": "boolean", "title": "Agree"}]},
        ],
    )


@pytest.fixture
def extra_engine(extra_questionnaire) -> FormEngine:
    return FormEngine(extra_questionnaire)


@pytest.fixture
def memory_store() -> PresetStore:
    return PresetStore(InMemoryPresetStorage())
