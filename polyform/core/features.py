"""
Feature activation and dependency resolution.

A Feature is an optional capability of the generated project. Each one
may carry an activation rule: an AND/OR tree of conditions over the
answer set, nested to any depth. The resolver:

1. Seeds the result with the root feature (the project itself).
2. Adds every feature whose activation rule holds.
3. Closes the set over ``depends_on`` edges until nothing new appears.

Dependency edges override activation rules: a feature pulled in as a
dependency is included even if its own rule is false or absent.
Cycles are tolerated; the closure is set-based and converges.

Ordering for installation is a separate concern, handled by
``FeatureResolver.sort_features``, which does reject cycles.
"""

import copy
import logging
from typing import Any, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from polyform.core.conditions import evaluate_predicate
from polyform.core.errors import DefinitionError, DependencyCycleError, UnknownFeatureError
from polyform.core.schema import Predicate, Question

logger = logging.getLogger(__name__)


# --- Activation Models ---


class ActivationCondition(BaseModel):
    """Leaf of an activation tree: a predicate over one answer."""

    model_config = ConfigDict(frozen=True)

    question_id: str = Field(..., min_length=1)
    condition: Predicate


class ActivationRule(BaseModel):
    """AND/OR node combining conditions and nested rules."""

    model_config = ConfigDict(frozen=True)

    type: Literal["and", "or"]
    conditions: list[Union[ActivationCondition, "ActivationRule"]] = Field(default_factory=list)


ActivationRule.model_rebuild()

ActivationNode = Union[ActivationCondition, ActivationRule]


class FeatureStage(BaseModel):
    """A named step of a feature's installation, optionally gated by its own rule."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str | None = None
    activated_by: ActivationNode | None = None


class Feature(BaseModel):
    """An optional capability with an activation rule and hard dependencies."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    depends_on: list[str] = Field(default_factory=list)
    activated_by: ActivationNode | None = Field(
        default=None,
        description="Only reachable through dependencies (or as root) when absent",
    )
    configuration: list[Question] = Field(
        default_factory=list,
        description="Feature-scoped questions whose answers configure the feature",
    )
    stages: list[FeatureStage] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_definition(self) -> "Feature":
        if self.id in self.depends_on:
            raise ValueError(f"Feature '{self.id}' depends on itself")
        question_ids = [q.id for q in self.configuration]
        if len(question_ids) != len(set(question_ids)):
            raise ValueError(f"Feature '{self.id}' has duplicate configuration question IDs")
        return self


# --- Rule evaluation ---


def evaluate_condition(condition: ActivationCondition, answers: dict[str, Any]) -> bool:
    return evaluate_predicate(condition.condition, answers.get(condition.question_id), answers)


def evaluate_rule(rule: ActivationNode, answers: dict[str, Any]) -> bool:
    """Evaluate an activation tree recursively.

    An empty AND node is true; an empty OR node is false.
    """
    if isinstance(rule, ActivationCondition):
        return evaluate_condition(rule, answers)

    if rule.type == "and":
        return all(evaluate_rule(child, answers) for child in rule.conditions)
    return any(evaluate_rule(child, answers) for child in rule.conditions)


# --- Resolver ---


class FeatureResolver:
    """Resolves which features an answer set activates.

    Args:
        features: Feature definitions, in declaration order.
        root_feature_id: The implicit feature present in every resolution.

    Raises:
        DefinitionError: If two features share an ID.
        UnknownFeatureError: If the root feature is not among ``features``.
    """

    def __init__(self, features: Iterable[Feature], root_feature_id: str):
        self._features: dict[str, Feature] = {}
        for feature in features:
            if feature.id in self._features:
                raise DefinitionError(f"Duplicate feature ID: '{feature.id}'")
            self._features[feature.id] = feature

        if root_feature_id not in self._features:
            raise UnknownFeatureError(root_feature_id)
        self.root_feature_id = root_feature_id

    @property
    def features(self) -> dict[str, Feature]:
        return dict(self._features)

    def get_feature(self, feature_id: str) -> Feature:
        feature = self._features.get(feature_id)
        if feature is None:
            raise UnknownFeatureError(feature_id)
        return feature

    def select_features(self, answers: dict[str, Any]) -> list[str]:
        """Return the root plus every feature whose own activation rule holds."""
        selected = [self.root_feature_id]
        for feature_id, feature in self._features.items():
            if feature_id == self.root_feature_id:
                continue
            if feature.activated_by is not None and evaluate_rule(feature.activated_by, answers):
                selected.append(feature_id)
        return selected

    def resolve(self, answers: dict[str, Any]) -> list[str]:
        """Return the activated features closed over their dependencies.

        The result has no duplicates: root first, then activated
        features in declaration order, then dependencies in the order
        they were discovered.

        Raises:
            UnknownFeatureError: If a dependency names an unregistered feature.
        """
        selected = self.select_features(answers)
        resolved = self._close_over_dependencies(selected)
        logger.info(
            "Resolved %d feature(s) (%d activated by answers): %s",
            len(resolved), len(selected), resolved,
        )
        return resolved

    def feature_configuration(
        self,
        feature_ids: Iterable[str],
        answers: dict[str, Any],
    ) -> dict[str, dict[str, Any]]:
        """Project the answer set through each feature's configuration questions.

        Absent answers fall back to the question's default value.

        Returns:
            {feature_id: {question_id: value}} for every given feature.
        """
        configuration: dict[str, dict[str, Any]] = {}
        for feature_id in feature_ids:
            feature = self.get_feature(feature_id)
            configuration[feature_id] = {
                question.id: copy.deepcopy(
                    answers[question.id] if question.id in answers else question.default
                )
                for question in feature.configuration
            }
        return configuration

    def active_stages(self, feature_id: str, answers: dict[str, Any]) -> list[FeatureStage]:
        """Return the feature's stages that have no rule or whose rule holds."""
        feature = self.get_feature(feature_id)
        return [
            stage for stage in feature.stages
            if stage.activated_by is None or evaluate_rule(stage.activated_by, answers)
        ]

    def sort_features(self, feature_ids: Iterable[str]) -> list[str]:
        """Order features so every dependency precedes its dependents.

        Dependencies reachable from ``feature_ids`` are included.

        Raises:
            DependencyCycleError: If the dependency graph has a cycle.
            UnknownFeatureError: If a feature or dependency is not registered.
        """
        ordered: list[str] = []
        visited: set[str] = set()
        visiting: set[str] = set()

        def visit(feature_id: str) -> None:
            if feature_id in visiting:
                raise DependencyCycleError(feature_id)
            if feature_id in visited:
                return
            visiting.add(feature_id)
            for dependency in self.get_feature(feature_id).depends_on:
                visit(dependency)
            visiting.discard(feature_id)
            visited.add(feature_id)
            ordered.append(feature_id)

        for feature_id in feature_ids:
            visit(feature_id)
        return ordered

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _close_over_dependencies(self, feature_ids: list[str]) -> list[str]:
        resolved: dict[str, None] = dict.fromkeys(feature_ids)
        pending = list(feature_ids)

        while pending:
            feature = self.get_feature(pending.pop(0))
            for dependency in feature.depends_on:
                if dependency not in resolved:
                    if dependency not in self._features:
                        raise UnknownFeatureError(dependency)
                    resolved[dependency] = None
                    pending.append(dependency)

        return list(resolved)
