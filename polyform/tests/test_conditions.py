"""
Unit tests for the visibility rule evaluator.

Tests cover:
- Empty rule lists are always visible
- Every predicate kind, including missing answers
- Strict equality (True is not 1)
- Numeric comparisons coerce numeric strings
- AND semantics across multiple rules
- Custom predicates receive the dependent value and the full answer set
"""

import pytest

from polyform.core.conditions import evaluate_predicate, evaluate_visibility, is_visible
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
    Question,
)


def _rule(depends_on: str, condition) -> ConditionalRule:
    return ConditionalRule(depends_on=depends_on, condition=condition)


# =============================================================
# Test: Vacuous truth
# =============================================================


class TestEmptyRules:

    @pytest.mark.parametrize("answers", [{}, {"a": 1}, {"a": None, "b": [1, 2]}])
    def test_no_rules_always_visible(self, answers):
        assert evaluate_visibility([], answers) is True
        assert evaluate_visibility(None, answers) is True

    def test_question_without_show_if_is_visible(self):
        question = Question(id="q", type="text", title="Q")
        assert is_visible(question, {}) is True


# =============================================================
# Test: Predicates
# =============================================================


class TestPredicates:

    def test_equals(self):
        assert evaluate_predicate(EqualsPredicate(value="yes"), "yes", {}) is True
        assert evaluate_predicate(EqualsPredicate(value="yes"), "no", {}) is False
        assert evaluate_predicate(EqualsPredicate(value="yes"), None, {}) is False

    def test_equals_is_strict_about_booleans(self):
        assert evaluate_predicate(EqualsPredicate(value=True), 1, {}) is False
        assert evaluate_predicate(EqualsPredicate(value=0), False, {}) is False
        assert evaluate_predicate(EqualsPredicate(value=True), True, {}) is True

    def test_not_equals(self):
        assert evaluate_predicate(NotEqualsPredicate(value="a"), "b", {}) is True
        assert evaluate_predicate(NotEqualsPredicate(value="a"), "a", {}) is False
        assert evaluate_predicate(NotEqualsPredicate(value="a"), None, {}) is True

    def test_greater_than(self):
        assert evaluate_predicate(GreaterThanPredicate(value=5), 6, {}) is True
        assert evaluate_predicate(GreaterThanPredicate(value=5), 5, {}) is False
        assert evaluate_predicate(GreaterThanPredicate(value=5), "7.5", {}) is True
        assert evaluate_predicate(GreaterThanPredicate(value=5), None, {}) is False
        assert evaluate_predicate(GreaterThanPredicate(value=0), True, {}) is False

    def test_less_than(self):
        assert evaluate_predicate(LessThanPredicate(value=5), 4, {}) is True
        assert evaluate_predicate(LessThanPredicate(value=5), "abc", {}) is False

    def test_contains(self):
        assert evaluate_predicate(ContainsPredicate(value="graph"), "graphql", {}) is True
        assert evaluate_predicate(ContainsPredicate(value="graph"), "rest", {}) is False
        assert evaluate_predicate(ContainsPredicate(value="graph"), ["graph"], {}) is False

    def test_in_and_not_in(self):
        assert evaluate_predicate(InPredicate(values=["a", "b"]), "b", {}) is True
        assert evaluate_predicate(InPredicate(values=["a", "b"]), "c", {}) is False
        assert evaluate_predicate(NotInPredicate(values=["a", "b"]), "c", {}) is True
        assert evaluate_predicate(NotInPredicate(values=["a", "b"]), "a", {}) is False

    def test_includes(self):
        assert evaluate_predicate(IncludesPredicate(value="css"), ["js", "css"], {}) is True
        assert evaluate_predicate(IncludesPredicate(value="css"), ["js"], {}) is False
        assert evaluate_predicate(IncludesPredicate(value="css"), "css", {}) is False
        assert evaluate_predicate(IncludesPredicate(value="css"), None, {}) is False

    def test_exists(self):
        assert evaluate_predicate(ExistsPredicate(), "", {}) is True
        assert evaluate_predicate(ExistsPredicate(), False, {}) is True
        assert evaluate_predicate(ExistsPredicate(), None, {}) is False

    def test_custom_receives_value_and_answers(self):
        seen = []

        def evaluator(value, answers):
            seen.append((value, dict(answers)))
            return value == answers.get("other")

        predicate = CustomPredicate(evaluator=evaluator)
        assert evaluate_predicate(predicate, 3, {"a": 3, "other": 3}) is True
        assert seen == [(3, {"a": 3, "other": 3})]


# =============================================================
# Test: Rule lists
# =============================================================


class TestEvaluateVisibility:

    def test_all_rules_must_hold(self):
        rules = [
            _rule("kind", EqualsPredicate(value="web")),
            _rule("size", GreaterThanPredicate(value=10)),
        ]
        assert evaluate_visibility(rules, {"kind": "web", "size": 11}) is True
        assert evaluate_visibility(rules, {"kind": "web", "size": 9}) is False
        assert evaluate_visibility(rules, {"kind": "cli", "size": 11}) is False

    def test_missing_dependency_is_treated_as_unanswered(self):
        rules = [_rule("kind", EqualsPredicate(value="web"))]
        assert evaluate_visibility(rules, {}) is False

    def test_or_through_custom_predicate(self):
        either = CustomPredicate(evaluator=lambda value, answers: value == "a" or answers.get("b") == "b")
        rules = [_rule("a", either)]
        assert evaluate_visibility(rules, {"a": "a"}) is True
        assert evaluate_visibility(rules, {"b": "b"}) is True
        assert evaluate_visibility(rules, {}) is False

    def test_is_visible_on_question(self):
        question = Question(
            id="detail",
            type="text",
            title="Detail",
            show_if=[_rule("includeExtra", EqualsPredicate(value=True))],
        )
        assert is_visible(question, {"includeExtra": True}) is True
        assert is_visible(question, {"includeExtra": False}) is False
