"""
Helpers for constructing questionnaire and feature definitions in code.

Usage:
    form = (
        FormBuilder("feedback", "User Feedback")
        .group("basics", "Basic Information")
        .question(Questions.text("name", "Your name", required=True))
        .group("extra", "Extra")
        .group_show_if([Conditions.equals("wants_extra", True)])
        .question(Questions.email("email", "Email"))
        .build()
    )
"""

from typing import Any, Callable

from polyform.core.errors import DefinitionError
from polyform.core.features import ActivationCondition, ActivationNode, ActivationRule
from polyform.core.schema import (
    ConditionalRule,
    ContainsPredicate,
    CustomPredicate,
    CustomRule,
    EmailRule,
    EqualsPredicate,
    ExistsPredicate,
    FormSettings,
    GreaterThanPredicate,
    IncludesPredicate,
    InPredicate,
    LessThanPredicate,
    ListSpec,
    MaxItemsRule,
    MaxLengthRule,
    MaxRule,
    MinItemsRule,
    MinLengthRule,
    MinRule,
    NotEqualsPredicate,
    NotInPredicate,
    PatternRule,
    Question,
    QuestionGroup,
    Questionnaire,
    QuestionType,
    RequiredRule,
    SelectOption,
    UrlRule,
)


class FormBuilder:
    """Fluent builder for a Questionnaire.

    Questions are added to the most recently started group; build()
    runs the full Questionnaire validation.
    """

    def __init__(self, form_id: str, title: str):
        self._form: dict[str, Any] = {"id": form_id, "title": title, "groups": []}
        self._current_group: dict[str, Any] | None = None

    def description(self, description: str) -> "FormBuilder":
        self._form["description"] = description
        return self

    def settings(self, **settings: Any) -> "FormBuilder":
        self._form["settings"] = FormSettings(**settings)
        return self

    def group(self, group_id: str, title: str | None = None, description: str | None = None) -> "FormBuilder":
        self._flush_group()
        self._current_group = {
            "id": group_id,
            "title": title,
            "description": description,
            "questions": [],
            "show_if": [],
        }
        return self

    def group_show_if(self, conditions: list[ConditionalRule]) -> "FormBuilder":
        if self._current_group is None:
            raise DefinitionError("No group started. Call group() first.")
        self._current_group["show_if"] = list(conditions)
        return self

    def question(self, question: Question) -> "FormBuilder":
        if self._current_group is None:
            raise DefinitionError("No group started. Call group() first.")
        self._current_group["questions"].append(question)
        return self

    def build(self) -> Questionnaire:
        self._flush_group()
        return Questionnaire(**self._form)

    def _flush_group(self) -> None:
        if self._current_group is not None:
            self._form["groups"].append(QuestionGroup(**self._current_group))
            self._current_group = None


class Questions:
    """Question factories. Extra keyword arguments go straight to Question."""

    @staticmethod
    def text(question_id: str, title: str, **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.TEXT, title=title, **kwargs)

    @staticmethod
    def number(question_id: str, title: str, **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.NUMBER, title=title, **kwargs)

    @staticmethod
    def boolean(question_id: str, title: str, **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.BOOLEAN, title=title, **kwargs)

    @staticmethod
    def toggle(question_id: str, title: str, **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.TOGGLE, title=title, **kwargs)

    @staticmethod
    def date(question_id: str, title: str, **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.DATE, title=title, **kwargs)

    @staticmethod
    def email(question_id: str, title: str, **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.EMAIL, title=title, **kwargs)

    @staticmethod
    def url(question_id: str, title: str, **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.URL, title=title, **kwargs)

    @staticmethod
    def select(question_id: str, title: str, options: list[SelectOption], **kwargs: Any) -> Question:
        return Question(id=question_id, type=QuestionType.SELECT, title=title, options=options, **kwargs)

    @staticmethod
    def multiselect(question_id: str, title: str, options: list[SelectOption], **kwargs: Any) -> Question:
        return Question(
            id=question_id, type=QuestionType.MULTISELECT, title=title, options=options, **kwargs
        )

    @staticmethod
    def list_of(
        question_id: str,
        title: str,
        item_type: QuestionType,
        min_items: int | None = None,
        max_items: int | None = None,
        item_validation: list | None = None,
        item_options: list[SelectOption] | None = None,
        **kwargs: Any,
    ) -> Question:
        spec = ListSpec(
            item_type=item_type,
            min_items=min_items,
            max_items=max_items,
            item_validation=item_validation or [],
            item_options=item_options,
        )
        return Question(id=question_id, type=QuestionType.LIST, title=title, list_spec=spec, **kwargs)


class Rules:
    """Validation rule factories."""

    @staticmethod
    def required(message: str | None = None) -> RequiredRule:
        return RequiredRule(message=message)

    @staticmethod
    def min_length(value: int, message: str | None = None) -> MinLengthRule:
        return MinLengthRule(value=value, message=message)

    @staticmethod
    def max_length(value: int, message: str | None = None) -> MaxLengthRule:
        return MaxLengthRule(value=value, message=message)

    @staticmethod
    def min(value: float, message: str | None = None) -> MinRule:
        return MinRule(value=value, message=message)

    @staticmethod
    def max(value: float, message: str | None = None) -> MaxRule:
        return MaxRule(value=value, message=message)

    @staticmethod
    def min_items(value: int, message: str | None = None) -> MinItemsRule:
        return MinItemsRule(value=value, message=message)

    @staticmethod
    def max_items(value: int, message: str | None = None) -> MaxItemsRule:
        return MaxItemsRule(value=value, message=message)

    @staticmethod
    def pattern(value: str, message: str | None = None) -> PatternRule:
        return PatternRule(value=value, message=message)

    @staticmethod
    def email(message: str | None = None) -> EmailRule:
        return EmailRule(message=message)

    @staticmethod
    def url(message: str | None = None) -> UrlRule:
        return UrlRule(message=message)

    @staticmethod
    def custom(validator: Callable[[Any, dict[str, Any]], bool | str], message: str | None = None) -> CustomRule:
        return CustomRule(validator=validator, message=message)


class Conditions:
    """Conditional visibility rule factories."""

    @staticmethod
    def equals(depends_on: str, value: Any) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=EqualsPredicate(value=value))

    @staticmethod
    def not_equals(depends_on: str, value: Any) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=NotEqualsPredicate(value=value))

    @staticmethod
    def is_in(depends_on: str, values: list[Any]) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=InPredicate(values=values))

    @staticmethod
    def not_in(depends_on: str, values: list[Any]) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=NotInPredicate(values=values))

    @staticmethod
    def greater_than(depends_on: str, value: float) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=GreaterThanPredicate(value=value))

    @staticmethod
    def less_than(depends_on: str, value: float) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=LessThanPredicate(value=value))

    @staticmethod
    def contains(depends_on: str, value: str) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=ContainsPredicate(value=value))

    @staticmethod
    def includes(depends_on: str, value: Any) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=IncludesPredicate(value=value))

    @staticmethod
    def exists(depends_on: str) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=ExistsPredicate())

    @staticmethod
    def custom(depends_on: str, evaluator: Callable[[Any, dict[str, Any]], bool]) -> ConditionalRule:
        return ConditionalRule(depends_on=depends_on, condition=CustomPredicate(evaluator=evaluator))


class Activation:
    """Feature activation condition and rule factories."""

    @staticmethod
    def includes_value(question_id: str, value: Any) -> ActivationCondition:
        return ActivationCondition(question_id=question_id, condition=IncludesPredicate(value=value))

    @staticmethod
    def equals(question_id: str, value: Any) -> ActivationCondition:
        return ActivationCondition(question_id=question_id, condition=EqualsPredicate(value=value))

    @staticmethod
    def is_one_of(question_id: str, values: list[Any]) -> ActivationCondition:
        return ActivationCondition(question_id=question_id, condition=InPredicate(values=values))

    @staticmethod
    def contains(question_id: str, value: str) -> ActivationCondition:
        return ActivationCondition(question_id=question_id, condition=ContainsPredicate(value=value))

    @staticmethod
    def custom(question_id: str, evaluator: Callable[[Any, dict[str, Any]], bool]) -> ActivationCondition:
        return ActivationCondition(question_id=question_id, condition=CustomPredicate(evaluator=evaluator))

    @staticmethod
    def all_of(*conditions: ActivationNode) -> ActivationRule:
        return ActivationRule(type="and", conditions=list(conditions))

    @staticmethod
    def any_of(*conditions: ActivationNode) -> ActivationRule:
        return ActivationRule(type="or", conditions=list(conditions))


class Options:
    """Reusable option lists."""

    @staticmethod
    def yes_no() -> list[SelectOption]:
        return [
            SelectOption(label="Yes", value=True),
            SelectOption(label="No", value=False),
        ]

    @staticmethod
    def package_managers() -> list[SelectOption]:
        return [
            SelectOption(label="pnpm (recommended)", value="pnpm", description="Fast, disk space efficient"),
            SelectOption(label="npm", value="npm", description="Default Node.js package manager"),
            SelectOption(label="yarn", value="yarn", description="Fast, reliable, and secure"),
        ]
