"""
Deterministic visibility evaluator for groups and questions.

A group or question is visible when every ConditionalRule in its
``show_if`` list holds against the current answers (AND logic). There
is no OR at this level; a custom predicate can express one.

The same predicate semantics are reused by feature activation
conditions in ``polyform.core.features``.
"""

from typing import Any, Iterable

from polyform.core.schema import (
    ConditionalRule,
    ContainsPredicate,
    CustomPredicate,
    EqualsPredicate,
    ExistsPredicate,
    GreaterThanPredicate,
    IncludesPredicate,
    InPredicate,
    LessThanPredicate,
    NotEqualsPredicate,
    NotInPredicate,
    Predicate,
    Question,
    QuestionGroup,
)
from polyform.core.utils import coerce_number, same_value


def evaluate_visibility(rules: Iterable[ConditionalRule] | None, answers: dict[str, Any]) -> bool:
    """Evaluate a list of conditional rules against the current answers.

    An absent or empty rule list is vacuously true.

    Args:
        rules: The rules to evaluate (all must pass).
        answers: Current answers keyed by question ID.

    Returns:
        True if every rule passes, False otherwise.
    """
    if not rules:
        return True

    for rule in rules:
        if not evaluate_predicate(rule.condition, answers.get(rule.depends_on), answers):
            return False

    return True


def is_visible(element: Question | QuestionGroup, answers: dict[str, Any]) -> bool:
    """Determine if a group or question should be shown given the current answers."""
    return evaluate_visibility(element.show_if, answers)


def evaluate_predicate(predicate: Predicate, value: Any, answers: dict[str, Any]) -> bool:
    """Apply a single predicate to a dependent answer value.

    Args:
        predicate: The predicate to apply.
        value: The answer of the question the predicate depends on.
        answers: The full answer set (passed through to custom predicates).

    Returns:
        True if the predicate holds, False otherwise.
    """
    match predicate:
        case EqualsPredicate():
            return same_value(value, predicate.value)

        case NotEqualsPredicate():
            return not same_value(value, predicate.value)

        case GreaterThanPredicate():
            number = coerce_number(value)
            return number is not None and number > predicate.value

        case LessThanPredicate():
            number = coerce_number(value)
            return number is not None and number < predicate.value

        case ContainsPredicate():
            return isinstance(value, str) and predicate.value in value

        case InPredicate():
            return any(same_value(value, candidate) for candidate in predicate.values)

        case NotInPredicate():
            return not any(same_value(value, candidate) for candidate in predicate.values)

        case IncludesPredicate():
            if not isinstance(value, (list, tuple, set)):
                return False
            return any(same_value(item, predicate.value) for item in value)

        case ExistsPredicate():
            return value is not None

        case CustomPredicate():
            return bool(predicate.evaluator(value, answers))

    return False
