"""
YAML loader for questionnaire definitions.

Lets questionnaires live in data files instead of code:

    id: feedback
    title: User Feedback
    groups:
      - id: basics
        questions:
          - id: name
            type: text
            title: Your name
            required: true
          - id: contact_email
            type: email
            title: Email
            show_if:
              - depends_on: wants_reply
                condition: {type: equals, value: true}

Custom predicates and validators are callables and cannot be expressed
in YAML; add them in code with the builders instead.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from polyform.core.errors import DefinitionError
from polyform.core.schema import Questionnaire

logger = logging.getLogger(__name__)


def parse_questionnaire_yaml(content: str) -> dict[str, Any]:
    """Parse a YAML document into a raw questionnaire mapping.

    Raises:
        DefinitionError: If the document is not valid YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise DefinitionError(f"Invalid questionnaire YAML: {e}") from e

    if not isinstance(data, dict):
        raise DefinitionError("Questionnaire YAML must be a mapping at the top level")
    return data


def load_questionnaire_yaml(content: str) -> Questionnaire:
    """Build a validated Questionnaire from a YAML document.

    Structural problems (duplicate IDs, dangling show_if references, a
    list question without list_spec) surface as pydantic.ValidationError.
    """
    return Questionnaire.model_validate(parse_questionnaire_yaml(content))


def load_questionnaire_file(path: str | Path) -> Questionnaire:
    path = Path(path)
    logger.debug("Loading questionnaire from %s", path)
    return load_questionnaire_yaml(path.read_text(encoding="utf-8"))
