"""
Common helper functions for FHIR mapping operations.
Shared utilities used across to_fhir and to_form modules.

The builders return None when inputs are empty, for use with chidian's
@mapper, which strips None values from output.
"""

from datetime import date, datetime, timezone
from typing import Any

from .constants import DATE_PATTERN, URN_UUID_PREFIX


def format_datetime(value: str | date | None) -> str | None:
    """
    Format a datetime value to ISO 8601 with timezone.

    Args:
        value: Datetime string (e.g., "2024-01-15T10:30:00Z" or "2024-01-15"),
            or a date/datetime object

    Returns:
        ISO 8601 formatted string, or None if parsing fails. Naive datetimes
        and bare date strings are assumed to be UTC; date objects are
        returned as YYYY-MM-DD.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value.isoformat()
    else:
        if not value or not isinstance(value, str) or value.strip() == "":
            return None
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def format_date_prefixed(value: str) -> str | None:
    """
    Format a string that starts with YYYY-MM-DD as an ISO 8601 datetime.

    Args:
        value: Trimmed string value

    Returns:
        ISO 8601 string, or None if the prefix is missing or the text does
        not parse as a valid date/datetime
    """
    if not DATE_PATTERN.match(value):
        return None
    return format_datetime(value)


def utc_now() -> str:
    """Current UTC time in ISO 8601 format, second precision."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def urn_uuid(resource_id: str) -> str:
    """Build an in-bundle locator: 'abc' -> 'urn:uuid:abc'."""
    return f"{URN_UUID_PREFIX}{resource_id}"


def coding(
    system: str | None,
    code: str | None,
    display: str | None = None,
) -> dict[str, str] | None:
    """
    Create a FHIR Coding, or None if code is empty.

    Args:
        system: Code system URL
        code: The code value
        display: Optional display text

    Returns:
        Coding dict or None
    """
    if not code or (isinstance(code, str) and not code.strip()):
        return None

    result: dict[str, str] = {}
    if system:
        result["system"] = system
    result["code"] = code if isinstance(code, str) else str(code)
    if display:
        result["display"] = display
    return result


def codeable_concept(
    system: str | None,
    code: str | None,
    display: str | None = None,
    text: str | None = None,
) -> dict[str, Any] | None:
    """
    Create a FHIR CodeableConcept, or None if code is empty.

    Args:
        system: Code system URL
        code: The code value
        display: Optional display text for coding
        text: Optional text field

    Returns:
        CodeableConcept dict or None
    """
    c = coding(system, code, display)
    if c is None:
        # If no code but we have text, still create concept
        if text:
            return {"text": text}
        return None

    result: dict[str, Any] = {"coding": [c]}
    if text:
        result["text"] = text
    return result


def extension(
    url: str, value: Any, value_type: str = "valueString"
) -> dict[str, Any] | None:
    """
    Create a FHIR Extension, or None if value is empty.

    Args:
        url: Extension URL
        value: Extension value
        value_type: FHIR value type key (e.g., "valueString", "valueAttachment")

    Returns:
        Extension dict or None
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return {"url": url, value_type: value}


def quantity(value: float | int | None) -> dict[str, Any] | None:
    """
    Create a FHIR Quantity carrying only a value, or None if value is None.

    Args:
        value: Numeric value

    Returns:
        Quantity dict or None
    """
    if value is None:
        return None
    return {"value": value}


def member_ref(full_url: str, resource_type: str) -> dict[str, str]:
    """Create a typed in-bundle Reference to another entry."""
    return {"reference": full_url, "type": resource_type}


def note(text: str | None) -> list[dict[str, str]] | None:
    """Create a one-element Annotation list, or None if there is no text.

    Whitespace-only text is kept as given.
    """
    if not text:
        return None
    return [{"text": str(text)}]
