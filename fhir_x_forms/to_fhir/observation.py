"""Form Observation → FHIR Observation"""

from datetime import date
from typing import Any

from ..chidian_ext import KEEP, coalesce, grab, mapper, to_dict
from ..constants import (
    COMPLEX_DATA_URL,
    DATATYPE_COMPLEX,
    DATATYPE_NUMERIC,
    DEFAULT_INTERPRETATION,
    FORM_NAMESPACE_PATH_URL,
    FORM_PATH_SEPARATOR,
    INTERPRETATION_SYSTEM,
    INTERPRETATION_TO_CODE,
    RESOURCE_TYPE_OBSERVATION,
    STATUS_FINAL,
)
from ..fhir_lib import (
    codeable_concept,
    extension,
    format_date_prefixed,
    format_datetime,
    note,
    quantity,
    utc_now,
)
from ..types import ReferenceContext
from ..utils import parse_leading_float


def _concept_code(concept: Any) -> str | None:
    """Concept identifier from a bare string or a concept object."""
    if isinstance(concept, str):
        return concept
    if isinstance(concept, dict):
        return coalesce(concept, "uuid", "identifier")
    return None


def _concept_datatype(concept: Any) -> str | None:
    if isinstance(concept, dict):
        return grab(concept, "datatype")
    return None


def _string_value(raw: str, datatype: str | None) -> dict[str, Any]:
    """Value fields for a string value.

    Order matters: a date prefix wins over a numeric parse, so a Numeric
    concept holding "2024-01-15" becomes valueDateTime.
    """
    trimmed = raw.strip()
    if not trimmed:
        return {}

    if datatype == DATATYPE_COMPLEX:
        return {
            "extension": [
                extension(COMPLEX_DATA_URL, {"url": raw}, "valueAttachment")
            ],
            "valueString": raw,
        }

    timestamp = format_date_prefixed(trimmed)
    if timestamp is not None:
        return {"valueDateTime": timestamp}

    if datatype == DATATYPE_NUMERIC:
        number = parse_leading_float(trimmed)
        if number is not None:
            return {"valueQuantity": KEEP(quantity(number))}

    return {"valueString": raw}


def _coded_value(value: dict) -> dict[str, Any]:
    code = coalesce(value, "uuid", "identifier")
    if not code:
        return {}
    display = grab(value, "display") or grab(value, "displayString")
    return {"valueCodeableConcept": codeable_concept(None, code, display)}


def _value(value: Any, datatype: str | None) -> dict[str, Any]:
    """Build observation value fields from the runtime type of the value.

    At most one value[x] is returned; a Complex string also contributes the
    complex-data extension.
    """
    if value is None:
        return {}
    # bool before int: True is an int in Python
    if isinstance(value, bool):
        return {"valueBoolean": KEEP(value)}
    if isinstance(value, (int, float)):
        return {"valueQuantity": KEEP(quantity(value))}
    if isinstance(value, str):
        return _string_value(value, datatype)
    if isinstance(value, date):
        return {"valueDateTime": format_datetime(value)}
    if isinstance(value, dict):
        return _coded_value(value)
    return {}


def _interpretation(tag: Any):
    """Map a free-text interpretation to a one-element CodeableConcept list."""
    if not tag:
        return None
    mapping = INTERPRETATION_TO_CODE.get(
        str(tag).upper(), INTERPRETATION_TO_CODE[DEFAULT_INTERPRETATION]
    )
    return [{"coding": [{"system": INTERPRETATION_SYSTEM, **mapping}]}]


def _form_path_extension(d: dict):
    """Provenance extension, only when both namespace and field path are set."""
    namespace = grab(d, "formNamespace")
    field_path = grab(d, "formFieldPath")
    if not namespace or not field_path:
        return None
    return extension(
        FORM_NAMESPACE_PATH_URL, f"{namespace}{FORM_PATH_SEPARATOR}{field_path}"
    )


def _effective_datetime(d: dict) -> str:
    # First truthy field wins; an empty obsDatetime defers to observationDateTime
    effective = grab(d, "obsDatetime") or grab(d, "observationDateTime")
    if not effective:
        return utc_now()
    if isinstance(effective, str):
        return effective
    return format_datetime(effective) or utc_now()


@mapper
def _to_fhir_observation(
    d: dict,
    context: ReferenceContext,
    include_value: bool = True,
):
    """Core mapping from dict to FHIR Observation structure."""
    concept = grab(d, "concept")

    value_dict: dict[str, Any] = {}
    if include_value:
        value_dict = _value(grab(d, "value"), _concept_datatype(concept))

    extensions = [
        ext
        for ext in [*value_dict.pop("extension", []), _form_path_extension(d)]
        if ext is not None
    ]

    return {
        "resourceType": RESOURCE_TYPE_OBSERVATION,
        "status": STATUS_FINAL,
        "code": codeable_concept(None, _concept_code(concept)),
        "subject": context.patient_reference,
        "encounter": context.encounter_reference,
        "performer": [context.performer_reference],
        "effectiveDateTime": _effective_datetime(d),
        **value_dict,
        "interpretation": _interpretation(grab(d, "interpretation")),
        "extension": extensions or None,
        "note": note(grab(d, "comment")),
    }


def convert(
    src: Any,
    context: ReferenceContext,
    *,
    include_value: bool = True,
) -> dict[str, Any]:
    """Convert one form observation to a FHIR Observation resource dict.

    The resource carries no `id`; identifiers are assigned by the caller
    when the resource is placed in a bundle entry.

    Args:
        src: Observation record (dict or ObservationRecord)
        context: Patient, encounter and performer references
        include_value: False for group parents, which carry no value[x]

    Returns:
        FHIR Observation as a dict
    """
    return _to_fhir_observation(to_dict(src), context, include_value)
