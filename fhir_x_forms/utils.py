"""
Common utility functions shared across fhir_x_forms modules.
"""

import math
import re
import uuid
from typing import Any, Callable, TypeAlias

# Zero-argument callable producing a globally unique identifier string
IdFactory: TypeAlias = Callable[[], str]

_LEADING_FLOAT = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def generate_uuid() -> str:
    """Generate a random (version 4) UUID string."""
    return str(uuid.uuid4())


def parse_float(value: str) -> float | None:
    """
    Parse a string as a float.

    Args:
        value: Candidate numeric string

    Returns:
        The parsed float, or None if the string is not a number (NaN included)
    """
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(number):
        return None
    return number


def parse_leading_float(value: str) -> float | None:
    """
    Parse the numeric prefix of a string, e.g. "120 mmHg" -> 120.0.

    Leading text that is not a number ("abc", "mmHg 120") yields None.
    """
    match = _LEADING_FLOAT.match(value)
    if match is None:
        return None
    return float(match.group(0).replace("Infinity", "inf"))


def to_number(value: Any) -> int | float | None:
    """Convert a decimal-ish value (Decimal, str, int, float) to int or float.

    Integral values come back as int so that `72` stays `72` after a trip
    through a FHIR decimal.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    number = parse_float(str(value))
    if number is None:
        return None
    if number.is_integer():
        return int(number)
    return number
