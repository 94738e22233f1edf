"""
Shared utility functions for the polyform engine.
"""

from datetime import date, datetime
from typing import Any

from dateutil import parser as dateutil_parser


def parse_date(value: Any) -> date | None:
    """Parse a date string (or date object) into a date.

    Supports ISO 8601 formats (YYYY-MM-DD) and datetime strings.
    Returns None if the value cannot be parsed.

    Args:
        value: The date string to parse.

    Returns:
        A date object, or None if parsing fails.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None

    try:
        return dateutil_parser.parse(value).date()
    except (ValueError, TypeError, OverflowError):
        return None


def coerce_number(value: Any) -> float | None:
    """Coerce an int, float or numeric string into a float.

    Booleans are not numbers here, even though Python treats them as ints.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def is_empty(value: Any) -> bool:
    """An answer is empty when it is None, a blank string or an empty list."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def same_value(left: Any, right: Any) -> bool:
    """Strict equality: True does not equal 1 and False does not equal 0."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right
