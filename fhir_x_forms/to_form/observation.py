"""FHIR Observation → Form Observation"""

import logging
from typing import Any

from ..chidian_ext import (
    extract_code,
    extract_display,
    extract_ext,
    grab,
    to_json_dict,
)
from ..constants import (
    COMPLEX_DATA_URL,
    DATATYPE_BOOLEAN,
    DATATYPE_CODED,
    DATATYPE_COMPLEX,
    DATATYPE_DATETIME,
    DATATYPE_NUMERIC,
    DATATYPE_TEXT,
    FORM_NAMESPACE_PATH_URL,
    FORM_PATH_SEPARATOR,
    INTERPRETATION_TO_CODE,
)
from ..utils import to_number

logger = logging.getLogger(__name__)

_CODE_TO_INTERPRETATION = {
    mapping["code"]: name for name, mapping in INTERPRETATION_TO_CODE.items()
}


def _value(d: dict) -> tuple[Any, str | None]:
    """Return (value, inferred concept datatype) from the resource's value[x]."""
    quantity_value = grab(d, "valueQuantity.value")
    if quantity_value is not None:
        return to_number(quantity_value), DATATYPE_NUMERIC

    boolean = grab(d, "valueBoolean")
    if boolean is not None:
        return bool(boolean), DATATYPE_BOOLEAN

    timestamp = grab(d, "valueDateTime")
    if timestamp is not None:
        return str(timestamp), DATATYPE_DATETIME

    if grab(d, "valueCodeableConcept") is not None:
        coded: dict[str, Any] = {"uuid": extract_code(d, "valueCodeableConcept")}
        display = extract_display(d, "valueCodeableConcept")
        if display:
            coded["display"] = display
        return coded, DATATYPE_CODED

    text = grab(d, "valueString")
    if text is not None:
        if extract_ext(d, COMPLEX_DATA_URL, "valueAttachment", default=None):
            return text, DATATYPE_COMPLEX
        return text, DATATYPE_TEXT

    return None, None


def _interpretation(d: dict) -> str | None:
    code = extract_code(d, "interpretation[0]")
    if not code:
        return None
    name = _CODE_TO_INTERPRETATION.get(code)
    if name is None:
        logger.warning(
            "Observation %s has unmapped interpretation code %r; dropping it",
            grab(d, "id"),
            code,
        )
    return name


def convert(src: Any) -> dict[str, Any]:
    """Convert a FHIR Observation to a flat form observation record.

    Group membership is not resolved here; see extract_observations.

    Args:
        src: FHIR Observation as a dict or fhir.resources model

    Returns:
        Form observation record dict
    """
    d = to_json_dict(src)

    value, datatype = _value(d)

    concept: dict[str, Any] = {"uuid": extract_code(d, "code")}
    if datatype:
        concept["datatype"] = datatype

    record: dict[str, Any] = {"concept": concept}
    if value is not None:
        record["value"] = value

    effective = grab(d, "effectiveDateTime")
    if effective:
        record["obsDatetime"] = str(effective)

    interpretation = _interpretation(d)
    if interpretation:
        record["interpretation"] = interpretation

    form_path = extract_ext(d, FORM_NAMESPACE_PATH_URL)
    if form_path and FORM_PATH_SEPARATOR in form_path:
        namespace, field_path = form_path.split(FORM_PATH_SEPARATOR, 1)
        record["formNamespace"] = namespace
        record["formFieldPath"] = field_path

    comment = grab(d, "note[0].text")
    if comment:
        record["comment"] = comment

    return record
