"""
Questionnaire definition models.

These Pydantic models are the vocabulary shared by the wizard, the
feature resolver and the preset store: question kinds, conditional
visibility predicates, validation rules, and the questionnaire itself.

Rule types are closed sets modelled as discriminated unions keyed on
``type``. Custom predicates are plain callables; the host application
owns their correctness and must keep them free of side effects.
"""

import re
from enum import Enum
from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Enums ---


class QuestionType(str, Enum):
    """Supported question kinds."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TOGGLE = "toggle"
    SELECT = "select"
    MULTISELECT = "multiselect"
    DATE = "date"
    EMAIL = "email"
    PASSWORD = "password"
    URL = "url"
    LIST = "list"


CHOICE_TYPES = {QuestionType.SELECT, QuestionType.MULTISELECT}


class SelectOption(BaseModel):
    """A selectable option for choice questions."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str | int | float | bool
    description: str | None = None


# --- Predicates ---
#
# Shared by conditional visibility rules and feature activation conditions.


class EqualsPredicate(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["equals"] = "equals"
    value: Any


class NotEqualsPredicate(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["not_equals"] = "not_equals"
    value: Any


class GreaterThanPredicate(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["greater_than"] = "greater_than"
    value: float


class LessThanPredicate(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["less_than"] = "less_than"
    value: float


class ContainsPredicate(BaseModel):
    """Substring match against a string answer."""

    model_config = ConfigDict(frozen=True)

    type: Literal["contains"] = "contains"
    value: str


class InPredicate(BaseModel):
    """The answer is one of the given values."""

    model_config = ConfigDict(frozen=True)

    type: Literal["in"] = "in"
    values: list[Any]


class NotInPredicate(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["not_in"] = "not_in"
    values: list[Any]


class IncludesPredicate(BaseModel):
    """A collection answer includes the given value."""

    model_config = ConfigDict(frozen=True)

    type: Literal["includes"] = "includes"
    value: Any


class ExistsPredicate(BaseModel):
    """The answer is present and not None."""

    model_config = ConfigDict(frozen=True)

    type: Literal["exists"] = "exists"


class CustomPredicate(BaseModel):
    """Host-supplied predicate: ``evaluator(dependent_value, answers) -> bool``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["custom"] = "custom"
    evaluator: Callable[[Any, dict[str, Any]], bool]


Predicate = Annotated[
    Union[
        EqualsPredicate,
        NotEqualsPredicate,
        GreaterThanPredicate,
        LessThanPredicate,
        ContainsPredicate,
        InPredicate,
        NotInPredicate,
        IncludesPredicate,
        ExistsPredicate,
        CustomPredicate,
    ],
    Field(discriminator="type"),
]


class ConditionalRule(BaseModel):
    """Visibility rule: the predicate is applied to the answer of ``depends_on``."""

    model_config = ConfigDict(frozen=True)

    depends_on: str = Field(..., min_length=1)
    condition: Predicate


# --- Validation Rules ---


class RequiredRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["required"] = "required"
    message: str | None = None


class MinLengthRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["min_length"] = "min_length"
    value: int
    message: str | None = None


class MaxLengthRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["max_length"] = "max_length"
    value: int
    message: str | None = None


class MinRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["min"] = "min"
    value: float
    message: str | None = None


class MaxRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["max"] = "max"
    value: float
    message: str | None = None


class MinItemsRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["min_items"] = "min_items"
    value: int
    message: str | None = None


class MaxItemsRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["max_items"] = "max_items"
    value: int
    message: str | None = None


class PatternRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["pattern"] = "pattern"
    value: re.Pattern
    message: str | None = None


class EmailRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["email"] = "email"
    message: str | None = None


class UrlRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["url"] = "url"
    message: str | None = None


class CustomRule(BaseModel):
    """Host-supplied check: ``validator(value, answers)`` returns a bool or a failure message."""

    model_config = ConfigDict(frozen=True)

    type: Literal["custom"] = "custom"
    validator: Callable[[Any, dict[str, Any]], bool | str]
    message: str | None = None


ValidationRule = Annotated[
    Union[
        RequiredRule,
        MinLengthRule,
        MaxLengthRule,
        MinRule,
        MaxRule,
        MinItemsRule,
        MaxItemsRule,
        PatternRule,
        EmailRule,
        UrlRule,
        CustomRule,
    ],
    Field(discriminator="type"),
]


# --- List Specification ---


class ListSpec(BaseModel):
    """Element kind, item-count bounds and per-element rules of a list question."""

    model_config = ConfigDict(frozen=True)

    item_type: QuestionType = Field(
        ...,
        description="Kind of every element (any kind except 'list')",
    )
    min_items: int | None = Field(default=None, ge=0)
    max_items: int | None = Field(default=None, ge=0)
    item_options: list[SelectOption] | None = None
    item_validation: list[ValidationRule] = Field(default_factory=list)
    item_placeholder: str | None = None
    add_label: str | None = None
    remove_label: str | None = None

    @model_validator(mode="after")
    def validate_bounds(self) -> "ListSpec":
        if self.item_type == QuestionType.LIST:
            raise ValueError("List elements cannot themselves be lists")
        if self.item_type in CHOICE_TYPES and not self.item_options:
            raise ValueError(
                f"List elements of type '{self.item_type.value}' need non-empty 'item_options'"
            )
        if (
            self.min_items is not None
            and self.max_items is not None
            and self.min_items > self.max_items
        ):
            raise ValueError(
                f"min_items ({self.min_items}) is greater than max_items ({self.max_items})"
            )
        return self


# --- Question ---


class Question(BaseModel):
    """Definition of a single question.

    Choice questions must include options and list questions must
    carry a ListSpec.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique question identifier")
    type: QuestionType
    title: str = Field(..., min_length=1)
    description: str | None = None
    required: bool = False
    default: Any = None
    placeholder: str | None = None
    options: list[SelectOption] | None = None
    list_spec: ListSpec | None = None
    validation: list[ValidationRule] = Field(default_factory=list)
    show_if: list[ConditionalRule] = Field(
        default_factory=list,
        description="Visibility conditions (AND); always visible if empty",
    )
    props: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_type_requirements(self) -> "Question":
        if self.type in CHOICE_TYPES and not self.options:
            raise ValueError(
                f"Question '{self.id}' of type '{self.type.value}' must have non-empty 'options'"
            )
        if self.type == QuestionType.LIST and self.list_spec is None:
            raise ValueError(f"List question '{self.id}' must define 'list_spec'")
        if self.type != QuestionType.LIST and self.list_spec is not None:
            raise ValueError(
                f"Question '{self.id}' of type '{self.type.value}' should not have 'list_spec'"
            )
        return self

    @property
    def option_values(self) -> list[Any]:
        return [option.value for option in self.options or []]


class QuestionGroup(BaseModel):
    """An ordered set of questions shown together, with its own visibility rule."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str | None = None
    description: str | None = None
    questions: list[Question] = Field(default_factory=list)
    show_if: list[ConditionalRule] = Field(default_factory=list)


class FormSettings(BaseModel):
    """Global questionnaire settings."""

    model_config = ConfigDict(frozen=True)

    allow_back: bool = True
    show_progress: bool = True
    submit_label: str = "Submit"
    cancel_label: str = "Cancel"


# --- Top-Level Questionnaire ---


class Questionnaire(BaseModel):
    """Top-level questionnaire definition.

    Validates group and question ID uniqueness and that every
    conditional rule references a question of this questionnaire.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    description: str | None = None
    groups: list[QuestionGroup] = Field(..., min_length=1)
    settings: FormSettings = Field(default_factory=FormSettings)

    @model_validator(mode="after")
    def validate_cross_references(self) -> "Questionnaire":
        group_ids: set[str] = set()
        question_ids: set[str] = set()

        for group in self.groups:
            if group.id in group_ids:
                raise ValueError(f"Duplicate group ID: '{group.id}'")
            group_ids.add(group.id)
            for question in group.questions:
                if question.id in question_ids:
                    raise ValueError(f"Duplicate question ID: '{question.id}'")
                question_ids.add(question.id)

        for group in self.groups:
            for rule in group.show_if:
                if rule.depends_on not in question_ids:
                    raise ValueError(
                        f"Group '{group.id}' has show_if referencing "
                        f"non-existent question '{rule.depends_on}'"
                    )
            for question in group.questions:
                for rule in question.show_if:
                    if rule.depends_on not in question_ids:
                        raise ValueError(
                            f"Question '{question.id}' has show_if referencing "
                            f"non-existent question '{rule.depends_on}'"
                        )
                    if rule.depends_on == question.id:
                        raise ValueError(
                            f"Question '{question.id}' has show_if referencing itself"
                        )

        return self

    def all_questions(self) -> list[Question]:
        return [q for group in self.groups for q in group.questions]

    def find_question(self, question_id: str) -> Question | None:
        for group in self.groups:
            for question in group.questions:
                if question.id == question_id:
                    return question
        return None

    def find_group(self, group_id: str) -> QuestionGroup | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None
