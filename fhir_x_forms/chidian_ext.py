"""
Chidian extensions for FHIR x Forms mappings.

Provides helpers that integrate with chidian's grab() and @mapper:
- coalesce(): Try multiple paths, return first non-None
- to_dict(): Normalize pydantic models (form records, FHIR resources) to dicts
- FHIR extraction helpers: extract_code, extract_display, extract_ext, etc.
- Reexports from chidian for convenience
"""

from typing import Any, Callable

from chidian import KEEP, grab, mapper


def coalesce(
    source: dict | object,
    *paths: str,
    default: Any = None,
    apply: Callable | None = None,
) -> Any:
    """
    Return the first non-None value from multiple paths.

    Args:
        source: Source data (dict or object with attributes)
        *paths: Path strings to try in order
        default: Default if all paths return None
        apply: Optional function to apply to the result

    Returns:
        First non-None value (optionally transformed), or default

    Example:
        # Concepts carry their id under either key
        coalesce(d, "uuid", "identifier")
    """
    for path in paths:
        result = grab(source, path)
        if result is not None:
            if apply is not None:
                return apply(result)
            return result
    return default


def to_dict(obj: Any) -> dict:
    """
    Convert a pydantic model or similar to dict.

    Handles:
    - Objects with model_dump() (Pydantic v2, including fhir.resources models)
    - Plain dicts (pass through)

    Dumps by alias in python mode so camelCase keys survive and date/datetime
    values keep their runtime type (value dispatch depends on it).

    Args:
        obj: Object to convert

    Returns:
        Dictionary representation
    """
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump"):
        return obj.model_dump(by_alias=True, exclude_none=True)
    raise TypeError(f"Cannot convert {type(obj).__name__} to dict")


def to_json_dict(obj: Any) -> dict:
    """Convert a pydantic model to a JSON-compatible dict (dates as strings)."""
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"Cannot convert {type(obj).__name__} to dict")


# =============================================================================
# FHIR Extraction Helpers
# These combine grab() with FHIR-specific extraction logic for use in mappings.
# =============================================================================


def extract_code(source: dict, path: str, default: str = "") -> str:
    """
    Extract the first coding's code from a FHIR CodeableConcept at the given path.

    Args:
        source: Source dict
        path: Path to CodeableConcept (e.g., "code", "interpretation[0]")
        default: Default if not found

    Returns:
        Code string

    Example:
        extract_code(d, "code")  # {"code": {"coding": [{"code": "abc"}]}} -> "abc"
    """
    concept = grab(source, path)
    if not concept or not isinstance(concept, dict):
        return default

    codings = concept.get("coding") or []
    if not codings:
        return default

    return str(codings[0].get("code") or "") or default


def extract_display(source: dict, path: str, default: str = "") -> str:
    """
    Extract display text from a FHIR CodeableConcept.

    Tries the first coding's display, then the concept's text.

    Args:
        source: Source dict
        path: Path to CodeableConcept
        default: Default if not found

    Returns:
        Display string
    """
    concept = grab(source, path)
    if not concept or not isinstance(concept, dict):
        return default

    codings = concept.get("coding") or []
    if codings and codings[0].get("display"):
        return str(codings[0]["display"])

    return concept.get("text") or default


def extract_ext(
    source: dict,
    ext_url: str,
    value_type: str = "valueString",
    default: Any = "",
) -> Any:
    """
    Extract a value from a FHIR extension by URL.

    Args:
        source: Source dict (resource with extension array)
        ext_url: Extension URL to find
        value_type: Type of value to extract (valueString, valueAttachment, etc.)
        default: Default if not found

    Returns:
        Extension value

    Example:
        extract_ext(d, FORM_NAMESPACE_PATH_URL)  # -> "Bahmni^Vitals.1/2-0"
    """
    extensions = grab(source, "extension") or []
    for ext in extensions:
        if ext.get("url") == ext_url:
            value = ext.get(value_type)
            if value is not None:
                return value
    return default


def extract_refs(source: dict, path: str) -> list[str]:
    """
    Extract reference strings from a list of FHIR References.

    Args:
        source: Source dict
        path: Path to a Reference list (e.g., "hasMember")

    Returns:
        Reference strings in order, skipping entries without one
    """
    refs = grab(source, path) or []
    return [r["reference"] for r in refs if isinstance(r, dict) and r.get("reference")]


__all__ = [
    # Chidian reexports
    "grab",
    "mapper",
    "KEEP",
    # Core extensions
    "coalesce",
    "to_dict",
    "to_json_dict",
    # FHIR extraction helpers
    "extract_code",
    "extract_display",
    "extract_ext",
    "extract_refs",
]
