"""
FHIR wire constants for observation mapping.

These values are shared with downstream consumers and must match exactly.
"""

import re

RESOURCE_TYPE_OBSERVATION = "Observation"
STATUS_FINAL = "final"

INTERPRETATION_SYSTEM = (
    "http://terminology.hl7.org/CodeSystem/v3-ObservationInterpretation"
)
FORM_NAMESPACE_PATH_URL = "http://fhir.bahmni.org/ext/observation/form-namespace-path"
COMPLEX_DATA_URL = "http://fhir.bahmni.org/ext/observation/complex-data"

# Concept datatypes
DATATYPE_NUMERIC = "Numeric"
DATATYPE_COMPLEX = "Complex"
DATATYPE_CODED = "Coded"
DATATYPE_TEXT = "Text"
DATATYPE_DATETIME = "DateTime"
DATATYPE_BOOLEAN = "Boolean"

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")

INTERPRETATION_TO_CODE: dict[str, dict[str, str]] = {
    "ABNORMAL": {"code": "A", "display": "Abnormal"},
    "NORMAL": {"code": "N", "display": "Normal"},
}
DEFAULT_INTERPRETATION = "NORMAL"

FORM_PATH_SEPARATOR = "^"
URN_UUID_PREFIX = "urn:uuid:"

DEFAULT_MAX_DEPTH = 100
