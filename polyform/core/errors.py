"""
Exception hierarchy for the polyform engine.

Validation failures are never raised: they are returned as lists of
messages. Everything here represents a host programming error or a
persistence problem the caller has to deal with.
"""


class PolyformError(Exception):
    """Base class for all polyform errors."""


class DefinitionError(PolyformError):
    """A questionnaire or feature definition is malformed or incomplete."""


class UnknownQuestionError(DefinitionError):
    """Raised when a question ID does not exist in the questionnaire."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question '{question_id}' does not exist in the questionnaire")


class UnknownGroupError(DefinitionError):
    """Raised when a group ID does not exist in the questionnaire."""

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Group '{group_id}' does not exist in the questionnaire")


class UnknownFeatureError(DefinitionError):
    """Raised when a feature ID is not registered with the resolver."""

    def __init__(self, feature_id: str):
        self.feature_id = feature_id
        super().__init__(f"Feature '{feature_id}' is not registered")


class NavigationError(PolyformError):
    """Raised when the wizard is driven outside its allowed bounds."""


class ListOperationError(NavigationError):
    """Raised for invalid add/remove/update calls on a list question."""

    def __init__(self, question_id: str, message: str):
        self.question_id = question_id
        self.message = message
        super().__init__(f"Question '{question_id}': {message}")


class PresetMismatchError(PolyformError):
    """Raised when a preset is loaded into a different questionnaire."""

    def __init__(self, preset_id: str, expected: str, actual: str):
        self.preset_id = preset_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Preset '{preset_id}' belongs to questionnaire '{actual}', not '{expected}'"
        )


class PresetImportError(PolyformError):
    """Raised when an import payload cannot be parsed."""


class DependencyCycleError(PolyformError):
    """Raised by the install-order sort when feature dependencies form a cycle."""

    def __init__(self, feature_id: str):
        self.feature_id = feature_id
        super().__init__(f"Circular dependency detected involving '{feature_id}'")
