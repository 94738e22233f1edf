"""
Answer validation per question kind and validation rule.

Validation never raises for bad user input: every check produces a
human-readable message, all configured rules are evaluated (no
short-circuit), and the messages are returned together in order.

List questions are validated as a whole first (presence, item counts,
question-level rules), then element by element against the element
kind and the ListSpec's per-item rules. Element messages carry an
"Item N: " prefix with a 1-based position.
"""

import re
from typing import Any, Iterable

from pydantic import AnyUrl, TypeAdapter, ValidationError

from polyform.core.schema import (
    CustomRule,
    EmailRule,
    MaxItemsRule,
    MaxLengthRule,
    MaxRule,
    MinItemsRule,
    MinLengthRule,
    MinRule,
    PatternRule,
    Question,
    QuestionType,
    RequiredRule,
    SelectOption,
    UrlRule,
    ValidationRule,
)
from polyform.core.utils import coerce_number, is_empty, parse_date, same_value

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_url_adapter = TypeAdapter(AnyUrl)

_TEXT_TYPES = {QuestionType.TEXT, QuestionType.PASSWORD, QuestionType.EMAIL, QuestionType.URL}


def coerce_list_value(value: Any) -> list[Any]:
    """Normalize an answer for a list question into a list.

    None becomes an empty list, sequences are copied, and any other
    value is wrapped as a single element.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def validate_answer(
    question: Question,
    value: Any,
    answers: dict[str, Any] | None = None,
) -> list[str]:
    """Validate an answer against its question definition.

    Args:
        question: The question the answer belongs to.
        value: The answer value (None when unanswered).
        answers: The full answer set, passed to custom validators.

    Returns:
        Error messages in evaluation order; empty when the answer is valid.
    """
    answers = answers or {}

    if question.type == QuestionType.LIST:
        return _validate_list(question, value, answers)

    errors = _run_rules(_effective_rules(question), value, question.title, answers)
    if not is_empty(value):
        errors.extend(_kind_errors(question.type, question.title, value, question.options, question.validation))
    return errors


def run_validation_rule(
    rule: ValidationRule,
    value: Any,
    title: str,
    answers: dict[str, Any],
) -> str | None:
    """Evaluate one validation rule.

    Args:
        rule: The rule to run.
        value: The value under validation.
        title: The question title, used in default messages.
        answers: The full answer set (for custom validators).

    Returns:
        The failure message, or None if the rule passes.
    """
    match rule:
        case RequiredRule():
            if is_empty(value):
                return rule.message or f"{title} is required"

        case MinLengthRule():
            if isinstance(value, str) and len(value) < rule.value:
                return rule.message or f"{title} must be at least {rule.value} characters"

        case MaxLengthRule():
            if isinstance(value, str) and len(value) > rule.value:
                return rule.message or f"{title} must be no more than {rule.value} characters"

        case MinRule():
            number = None if is_empty(value) else coerce_number(value)
            if number is not None and number < rule.value:
                return rule.message or f"{title} must be at least {_format_number(rule.value)}"

        case MaxRule():
            number = None if is_empty(value) else coerce_number(value)
            if number is not None and number > rule.value:
                return rule.message or f"{title} must be no more than {_format_number(rule.value)}"

        case MinItemsRule():
            if isinstance(value, (list, tuple)) and len(value) < rule.value:
                return rule.message or f"{title} must have at least {rule.value} items"

        case MaxItemsRule():
            if isinstance(value, (list, tuple)) and len(value) > rule.value:
                return rule.message or f"{title} must have no more than {rule.value} items"

        case PatternRule():
            if isinstance(value, str) and not rule.value.search(value):
                return rule.message or f"{title} format is invalid"

        case EmailRule():
            if isinstance(value, str) and not is_valid_email(value):
                return rule.message or f"{title} must be a valid email address"

        case UrlRule():
            if isinstance(value, str) and not is_valid_url(value):
                return rule.message or f"{title} must be a valid URL"

        case CustomRule():
            result = rule.validator(value, answers)
            if isinstance(result, str):
                return result or None
            if not result:
                return rule.message or f"{title} is invalid"

    return None


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_valid_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


# -----------------------------------------------------------------
# Internal helpers
# -----------------------------------------------------------------


def _effective_rules(question: Question) -> list[ValidationRule]:
    """Declared rules, with an implicit required rule first for required questions."""
    rules = list(question.validation)
    if question.required and not any(isinstance(rule, RequiredRule) for rule in rules):
        rules.insert(0, RequiredRule())
    return rules


def _run_rules(
    rules: Iterable[ValidationRule],
    value: Any,
    title: str,
    answers: dict[str, Any],
) -> list[str]:
    errors = []
    for rule in rules:
        message = run_validation_rule(rule, value, title, answers)
        if message:
            errors.append(message)
    return errors


def _validate_list(question: Question, value: Any, answers: dict[str, Any]) -> list[str]:
    """Validate a list answer as a whole, then each element independently."""
    spec = question.list_spec
    items = coerce_list_value(value)
    title = question.title

    errors = _run_rules(_effective_rules(question), items, title, answers)

    if spec.min_items is not None and len(items) < spec.min_items:
        errors.append(f"{title} must have at least {spec.min_items} items")
    if spec.max_items is not None and len(items) > spec.max_items:
        errors.append(f"{title} must have no more than {spec.max_items} items")

    for position, item in enumerate(items, start=1):
        item_errors = _run_rules(spec.item_validation, item, title, answers)
        if not is_empty(item):
            item_errors.extend(
                _kind_errors(spec.item_type, title, item, spec.item_options, spec.item_validation)
            )
        errors.extend(f"Item {position}: {message}" for message in item_errors)

    return errors


def _kind_errors(
    kind: QuestionType,
    title: str,
    value: Any,
    options: list[SelectOption] | None,
    declared: list[ValidationRule],
) -> list[str]:
    """Check a non-empty value against what its question kind implies.

    Email and URL format checks are skipped when the matching rule is
    already declared, so a failure is reported once.
    """
    match kind:
        case QuestionType.NUMBER:
            if coerce_number(value) is None:
                return [f"{title} must be a number"]

        case QuestionType.DATE:
            if parse_date(value) is None:
                return [f"{title} must be a valid date"]

        case QuestionType.BOOLEAN | QuestionType.TOGGLE:
            if not isinstance(value, bool):
                return [f"{title} must be yes or no"]

        case QuestionType.SELECT:
            allowed = [option.value for option in options or []]
            if not any(same_value(value, candidate) for candidate in allowed):
                return [f"'{value}' is not a valid option for {title}"]

        case QuestionType.MULTISELECT:
            if not isinstance(value, (list, tuple)):
                return [f"{title} must be a list of selections"]
            allowed = [option.value for option in options or []]
            invalid = [
                item for item in value
                if not any(same_value(item, candidate) for candidate in allowed)
            ]
            if invalid:
                return [f"{title} contains invalid selections: {invalid}"]

    if kind in _TEXT_TYPES and not isinstance(value, str):
        return [f"{title} must be text"]

    if kind == QuestionType.EMAIL and not any(isinstance(r, EmailRule) for r in declared):
        if not is_valid_email(value):
            return [f"{title} must be a valid email address"]

    if kind == QuestionType.URL and not any(isinstance(r, UrlRule) for r in declared):
        if not is_valid_url(value):
            return [f"{title} must be a valid URL"]

    return []


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
