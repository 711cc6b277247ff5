"""
Form → FHIR conversion modules.

Each module exposes a `convert` function for transforming one form record
to a FHIR resource dict.

Usage:
    from fhir_x_forms.to_fhir import observation
    fhir_observation = observation.convert(record, context)
"""

from fhir_x_forms.to_fhir import observation

__all__ = [
    "observation",
]
