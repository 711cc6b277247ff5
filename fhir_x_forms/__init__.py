"""
FHIR x Forms: Bidirectional mapping between form observation trees and FHIR Observations.

Usage:
    # Whole observation trees
    from fhir_x_forms import transform_to_fhir, extract_observations
    entries = transform_to_fhir(observations, {
        "patientReference": {"reference": "Patient/uuid"},
        "encounterReference": {"reference": "Encounter/uuid"},
        "performerReference": {"reference": "Practitioner/uuid"},
    })
    records = extract_observations(entries)

    # Individual converters
    from fhir_x_forms import to_fhir, to_form
    fhir_observation = to_fhir.observation.convert(record, context)
    record = to_form.observation.convert(fhir_observation)

    # Bundle assembly
    from fhir_x_forms import observation_bundle
    bundle = observation_bundle(entries)
"""

__version__ = "0.1.0"

from fhir_x_forms import to_fhir, to_form
from fhir_x_forms.bundle import (
    ObservationTransformer,
    observation_bundle,
    resolve_context,
    transform_to_fhir,
)
from fhir_x_forms.exceptions import (
    FhirFormsError,
    InvalidArgumentError,
    ObservationNestingError,
)
from fhir_x_forms.extract import extract_observations
from fhir_x_forms.types import (
    CodedValue,
    Concept,
    ObservationRecord,
    ReferenceContext,
    extract_id_from_ref,
    extract_ref,
    make_ref,
)
from fhir_x_forms.utils import generate_uuid

__all__ = [
    # Conversion modules
    "to_fhir",
    "to_form",
    # Orchestration helpers
    "transform_to_fhir",
    "extract_observations",
    "observation_bundle",
    "resolve_context",
    "ObservationTransformer",
    # Data model
    "ObservationRecord",
    "Concept",
    "CodedValue",
    "ReferenceContext",
    # Errors
    "FhirFormsError",
    "InvalidArgumentError",
    "ObservationNestingError",
    # Reference and identifier helpers
    "make_ref",
    "extract_ref",
    "extract_id_from_ref",
    "generate_uuid",
]
