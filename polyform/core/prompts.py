"""
Presentation boundary: prompt descriptors for a rendering layer.

The engine never renders anything. A front end asks for the prompts of
the current group and receives one PromptDescriptor per visible
question, telling it which widget to draw, what to pre-fill and which
choices to offer. Answers flow back through FormEngine.set_answer.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from polyform.core.schema import Question, QuestionType, SelectOption
from polyform.core.utils import same_value

if TYPE_CHECKING:
    from polyform.core.form_state import FormEngine


class PromptType(str, Enum):
    """Widget kinds a rendering layer must support."""

    TEXT = "text"
    NUMBER = "number"
    CONFIRM = "confirm"
    TOGGLE = "toggle"
    SELECT = "select"
    MULTISELECT = "multiselect"
    DATE = "date"
    PASSWORD = "password"
    LIST = "list"


class PromptChoice(BaseModel):
    title: str
    value: Any
    description: str | None = None


class ListPromptSpec(BaseModel):
    """Element metadata for list prompts."""

    item_type: PromptType
    min_items: int | None = None
    max_items: int | None = None
    item_placeholder: str | None = None
    add_label: str | None = None
    remove_label: str | None = None
    choices: list[PromptChoice] = Field(default_factory=list)


class PromptDescriptor(BaseModel):
    """Everything a renderer needs to ask one question."""

    name: str
    type: PromptType
    message: str
    hint: str | None = None
    required: bool = False
    initial: Any = None
    choices: list[PromptChoice] = Field(default_factory=list)
    list_spec: ListPromptSpec | None = None
    props: dict[str, Any] = Field(default_factory=dict)


_QUESTION_TYPE_TO_PROMPT: dict[QuestionType, PromptType] = {
    QuestionType.TEXT: PromptType.TEXT,
    QuestionType.NUMBER: PromptType.NUMBER,
    QuestionType.BOOLEAN: PromptType.CONFIRM,
    QuestionType.TOGGLE: PromptType.TOGGLE,
    QuestionType.SELECT: PromptType.SELECT,
    QuestionType.MULTISELECT: PromptType.MULTISELECT,
    QuestionType.DATE: PromptType.DATE,
    QuestionType.EMAIL: PromptType.TEXT,
    QuestionType.PASSWORD: PromptType.PASSWORD,
    QuestionType.URL: PromptType.TEXT,
    QuestionType.LIST: PromptType.LIST,
}

_HINTED_BY_PLACEHOLDER = {
    QuestionType.TEXT,
    QuestionType.PASSWORD,
    QuestionType.EMAIL,
    QuestionType.URL,
}


def prompt_type_for(question_type: QuestionType) -> PromptType:
    return _QUESTION_TYPE_TO_PROMPT[question_type]


def initial_value(question: Question, answers: dict[str, Any]) -> Any:
    """Return the value a prompt should start with.

    The current answer wins over the question default. Choice prompts
    get option indexes instead of values: an index (or None) for
    select, a list of indexes for multiselect.
    """
    value = answers[question.id] if question.id in answers else question.default

    if question.type == QuestionType.SELECT:
        if value is None:
            return None
        return _option_index(question, value)

    if question.type == QuestionType.MULTISELECT:
        if not isinstance(value, list):
            return []
        indexes = [_option_index(question, v) for v in value]
        return [i for i in indexes if i is not None]

    return value


def build_prompt_for_question(question: Question, answers: dict[str, Any]) -> PromptDescriptor:
    """Build the prompt descriptor for a single question.

    Placeholders take precedence over descriptions as the hint for
    free-text kinds.
    """
    hint = question.description
    if question.placeholder and question.type in _HINTED_BY_PLACEHOLDER:
        hint = question.placeholder

    list_spec = None
    if question.list_spec is not None:
        spec = question.list_spec
        list_spec = ListPromptSpec(
            item_type=prompt_type_for(spec.item_type),
            min_items=spec.min_items,
            max_items=spec.max_items,
            item_placeholder=spec.item_placeholder,
            add_label=spec.add_label,
            remove_label=spec.remove_label,
            choices=[_choice(option) for option in spec.item_options or []],
        )

    return PromptDescriptor(
        name=question.id,
        type=prompt_type_for(question.type),
        message=question.title,
        hint=hint,
        required=question.required,
        initial=initial_value(question, answers),
        choices=[_choice(option) for option in question.options or []],
        list_spec=list_spec,
        props=dict(question.props),
    )


def build_prompts_for_current_group(engine: "FormEngine") -> list[PromptDescriptor]:
    """Build prompts for every visible question of the engine's current group."""
    answers = engine.get_answers()
    return [build_prompt_for_question(q, answers) for q in engine.get_current_questions()]


def build_completion_payload(engine: "FormEngine") -> dict:
    """Assemble the final answers of a completed session.

    Only answers of visible questions are included; answers left
    behind by branches the user backed out of are dropped.
    """
    return {
        "form_id": engine.questionnaire.id,
        "is_complete": engine.is_complete,
        "data": engine.get_visible_answers(),
    }


def _choice(option: SelectOption) -> PromptChoice:
    return PromptChoice(title=option.label, value=option.value, description=option.description)


def _option_index(question: Question, value: Any) -> int | None:
    for index, option in enumerate(question.options or []):
        if same_value(option.value, value):
            return index
    return None
