"""
Wizard state machine for a questionnaire session.

Manages the state of one questionnaire run:
- Which groups and questions are visible based on current answers
- The current group and whether the form is complete
- Validation errors per question and which questions were touched
- Group-by-group navigation gated by validation
- Element-level mutation of list answers
- Loading a preset's answers back into the session

Visibility is recomputed from the answers on every call; nothing is
cached across mutations. No I/O happens here: the only side effects
are the notifications in FormEvents.
"""

import copy
import logging
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from polyform.core.conditions import is_visible
from polyform.core.errors import (
    ListOperationError,
    NavigationError,
    PresetMismatchError,
    UnknownGroupError,
    UnknownQuestionError,
)
from polyform.core.schema import Question, QuestionGroup, QuestionType, Questionnaire
from polyform.core.validation import coerce_list_value, validate_answer

if TYPE_CHECKING:
    from polyform.core.presets import Preset

logger = logging.getLogger(__name__)


# --- State, results and hooks ---


class FormState(BaseModel):
    """Snapshot of a session, safe to hand to observers."""

    form_id: str
    answers: dict[str, Any] = Field(default_factory=dict)
    current_group_index: int = 0
    is_complete: bool = False
    errors: dict[str, list[str]] = Field(default_factory=dict)
    touched: set[str] = Field(default_factory=set)


class ValidationResult(BaseModel):
    """Outcome of validating one question or a whole group."""

    is_valid: bool
    errors: dict[str, list[str]] = Field(default_factory=dict)


class FormEngineOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    validate_on_change: bool = True


class FormEvents(BaseModel):
    """Optional notification hooks for the presentation layer."""

    model_config = ConfigDict(frozen=True)

    on_answer_change: Callable[[str, Any, FormState], None] | None = None
    on_question_validate: Callable[[str, ValidationResult], None] | None = None
    on_group_complete: Callable[[str, FormState], None] | None = None
    on_form_complete: Callable[[FormState], None] | None = None
    on_form_cancel: Callable[[FormState], None] | None = None


class FormEngine:
    """Drives a questionnaire group by group.

    Holds the answer set as private state. Callers read it through
    get_answer/get_answers or a full get_state() snapshot.

    Args:
        questionnaire: A validated Questionnaire definition.
        options: Engine behaviour switches.
        events: Notification hooks.
    """

    def __init__(
        self,
        questionnaire: Questionnaire,
        options: FormEngineOptions | None = None,
        events: FormEvents | None = None,
    ):
        self.questionnaire = questionnaire
        self.options = options or FormEngineOptions()
        self.events = events or FormEvents()
        self._reset_state()

    # -----------------------------------------------------------------
    # State
    # -----------------------------------------------------------------

    def get_state(self) -> FormState:
        """Return a deep copy of the current state."""
        return FormState(
            form_id=self.questionnaire.id,
            answers=copy.deepcopy(self._answers),
            current_group_index=self._current_group_index,
            is_complete=self._is_complete,
            errors={qid: list(msgs) for qid, msgs in self._errors.items()},
            touched=set(self._touched),
        )

    @property
    def current_group_index(self) -> int:
        return self._current_group_index

    @property
    def is_complete(self) -> bool:
        return self._is_complete

    def get_errors(self, question_id: str | None = None) -> dict[str, list[str]] | list[str]:
        """Return the error map, or the messages of one question."""
        if question_id is not None:
            return list(self._errors.get(question_id, []))
        return {qid: list(msgs) for qid, msgs in self._errors.items()}

    def get_progress(self) -> tuple[int, int]:
        """Return (current 1-based group position, number of visible groups)."""
        total = len(self.get_visible_groups())
        return min(self._current_group_index + 1, total), total

    # -----------------------------------------------------------------
    # Group and question resolution
    # -----------------------------------------------------------------

    def get_visible_groups(self) -> list[QuestionGroup]:
        """Return groups whose rules pass and that have at least one visible question."""
        return [
            group for group in self.questionnaire.groups
            if is_visible(group, self._answers)
            and any(is_visible(q, self._answers) for q in group.questions)
        ]

    def get_visible_questions(self, group_id: str) -> list[Question]:
        """Return the currently visible questions of a group."""
        group = self.questionnaire.find_group(group_id)
        if group is None:
            raise UnknownGroupError(group_id)
        return [q for q in group.questions if is_visible(q, self._answers)]

    def get_current_group(self) -> QuestionGroup:
        visible_groups = self.get_visible_groups()
        if not 0 <= self._current_group_index < len(visible_groups):
            raise NavigationError(
                f"Current group index {self._current_group_index} is out of bounds "
                f"({len(visible_groups)} visible groups)"
            )
        return visible_groups[self._current_group_index]

    def get_current_questions(self) -> list[Question]:
        return self.get_visible_questions(self.get_current_group().id)

    # -----------------------------------------------------------------
    # Answer management
    # -----------------------------------------------------------------

    def set_answer(self, question_id: str, value: Any) -> None:
        """Store an answer for the given question.

        List questions always store a list: a scalar becomes a
        one-element list and None becomes an empty list.

        Raises:
            UnknownQuestionError: If the question does not exist.
        """
        question = self._get_question(question_id)
        if question.type == QuestionType.LIST:
            value = coerce_list_value(value)
        self._store(question, value)

    def get_answer(self, question_id: str) -> Any:
        """Retrieve the current answer for a question, or None if not answered."""
        return self._answers.get(question_id)

    def get_answers(self) -> dict[str, Any]:
        """Return a copy of all current answers."""
        return copy.deepcopy(self._answers)

    def get_visible_answers(self) -> dict[str, Any]:
        """Return only answers for questions in visible groups that are themselves visible."""
        visible_ids = {
            q.id
            for group in self.get_visible_groups()
            for q in self.get_visible_questions(group.id)
        }
        return {k: copy.deepcopy(v) for k, v in self._answers.items() if k in visible_ids}

    def apply_defaults(self) -> None:
        """Pre-fill unanswered questions with their default values.

        Defaults are not user input: nothing is marked touched and no
        notification fires. Questions in hidden groups get their defaults
        too, so hand get_visible_answers() (not get_answers()) to the
        feature resolver.
        """
        for question in self.questionnaire.all_questions():
            if question.id in self._answers or question.default is None:
                continue
            value = copy.deepcopy(question.default)
            if question.type == QuestionType.LIST:
                value = coerce_list_value(value)
            self._answers[question.id] = value

    # -----------------------------------------------------------------
    # List answers
    # -----------------------------------------------------------------

    def add_item(self, question_id: str, value: Any) -> None:
        """Append an element to a list answer.

        Raises:
            ListOperationError: If the question is not a list or the list is full.
        """
        question = self._get_list_question(question_id)
        items = coerce_list_value(self._answers.get(question_id))
        max_items = question.list_spec.max_items
        if max_items is not None and len(items) >= max_items:
            raise ListOperationError(question_id, f"cannot add more than {max_items} items")
        items.append(value)
        self._store(question, items)

    def remove_item(self, question_id: str, index: int) -> None:
        """Remove the element at ``index`` from a list answer."""
        question = self._get_list_question(question_id)
        items = coerce_list_value(self._answers.get(question_id))
        self._check_index(question_id, index, items)
        del items[index]
        self._store(question, items)

    def update_item(self, question_id: str, index: int, value: Any) -> None:
        """Replace the element at ``index`` in a list answer."""
        question = self._get_list_question(question_id)
        items = coerce_list_value(self._answers.get(question_id))
        self._check_index(question_id, index, items)
        items[index] = value
        self._store(question, items)

    # -----------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------

    def validate_question(self, question_id: str) -> ValidationResult:
        """Validate one question's current answer and update the error map."""
        question = self._get_question(question_id)
        errors = validate_answer(question, self._answers.get(question_id), self._answers)

        if errors:
            self._errors[question_id] = errors
        else:
            self._errors.pop(question_id, None)

        result = ValidationResult(is_valid=not errors, errors={question_id: errors})
        if self.events.on_question_validate:
            self.events.on_question_validate(question_id, result)
        return result

    def validate_current_group(self) -> ValidationResult:
        """Validate every visible question of the current group, collecting all errors."""
        all_errors: dict[str, list[str]] = {}
        for question in self.get_current_questions():
            result = self.validate_question(question.id)
            if not result.is_valid:
                all_errors.update(result.errors)
        return ValidationResult(is_valid=not all_errors, errors=all_errors)

    # -----------------------------------------------------------------
    # Navigation
    # -----------------------------------------------------------------

    def next(self) -> bool:
        """Advance to the next visible group, or complete the form.

        Returns:
            False if the current group failed validation (nothing moves);
            True if the wizard advanced or the form completed.

        Raises:
            NavigationError: If the form is already complete.
        """
        if self._is_complete:
            raise NavigationError("Form is already complete")

        current_group = self.get_current_group()
        validation = self.validate_current_group()
        if not validation.is_valid:
            logger.info(
                "Group '%s' blocked by %d invalid question(s): %s",
                current_group.id, len(validation.errors), list(validation.errors),
            )
            return False

        if self.events.on_group_complete:
            self.events.on_group_complete(current_group.id, self.get_state())

        # Completing the current group can change which groups follow it
        visible_groups = self.get_visible_groups()
        if self._current_group_index < len(visible_groups) - 1:
            self._current_group_index += 1
            logger.debug("Advanced to group '%s'", visible_groups[self._current_group_index].id)
            return True

        self._is_complete = True
        logger.info("Form '%s' complete", self.questionnaire.id)
        if self.events.on_form_complete:
            self.events.on_form_complete(self.get_state())
        return True

    def previous(self) -> bool:
        """Go back one visible group without validating.

        Leaving a completed form reopens it.

        Raises:
            NavigationError: At the first group, or when back navigation is disabled.
        """
        if not self.questionnaire.settings.allow_back:
            raise NavigationError(f"Form '{self.questionnaire.id}' does not allow going back")
        if self._current_group_index <= 0:
            raise NavigationError("Already at the first group")

        self._current_group_index -= 1
        self._is_complete = False
        logger.debug("Moved back to group index %d", self._current_group_index)
        return True

    def can_go_next(self) -> bool:
        return not self._is_complete and self.validate_current_group().is_valid

    def can_go_previous(self) -> bool:
        return self._current_group_index > 0 and self.questionnaire.settings.allow_back

    def reset(self) -> None:
        """Clear answers, errors and touched state and return to the first group."""
        self._reset_state()

    def cancel(self) -> None:
        """Notify observers that the session was abandoned. Nothing is torn down."""
        if self.events.on_form_cancel:
            self.events.on_form_cancel(self.get_state())

    # -----------------------------------------------------------------
    # Presets
    # -----------------------------------------------------------------

    def load_preset(self, preset: "Preset") -> None:
        """Replace the whole answer set with a preset's answers and rewind.

        Answers for question IDs this questionnaire does not define are
        dropped.

        Raises:
            PresetMismatchError: If the preset was saved for another questionnaire.
        """
        if preset.questionnaire_id != self.questionnaire.id:
            raise PresetMismatchError(preset.id, self.questionnaire.id, preset.questionnaire_id)

        self._reset_state()
        answers: dict[str, Any] = {}
        for question_id, value in preset.answers.items():
            question = self.questionnaire.find_question(question_id)
            if question is None:
                logger.debug("Dropping preset answer for unknown question '%s'", question_id)
                continue
            value = copy.deepcopy(value)
            if question.type == QuestionType.LIST:
                value = coerce_list_value(value)
            answers[question_id] = value
        self._answers = answers
        logger.info("Loaded preset '%s' (%d answers)", preset.name, len(answers))

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _reset_state(self) -> None:
        self._answers: dict[str, Any] = {}
        self._errors: dict[str, list[str]] = {}
        self._touched: set[str] = set()
        self._current_group_index = 0
        self._is_complete = False

    def _get_question(self, question_id: str) -> Question:
        question = self.questionnaire.find_question(question_id)
        if question is None:
            raise UnknownQuestionError(question_id)
        return question

    def _get_list_question(self, question_id: str) -> Question:
        question = self._get_question(question_id)
        if question.type != QuestionType.LIST:
            raise ListOperationError(question_id, "is not a list question")
        return question

    @staticmethod
    def _check_index(question_id: str, index: int, items: list[Any]) -> None:
        if not 0 <= index < len(items):
            raise ListOperationError(
                question_id, f"index {index} is out of range for {len(items)} items"
            )

    def _store(self, question: Question, value: Any) -> None:
        """Store a value, then validate and notify as for any answer change."""
        self._answers[question.id] = value
        self._touched.add(question.id)

        if self.options.validate_on_change:
            self.validate_question(question.id)

        if self.events.on_answer_change:
            self.events.on_answer_change(question.id, copy.deepcopy(value), self.get_state())
