"""
FHIR → Form conversion modules.

Each module exposes a `convert` function for transforming one FHIR resource
back to a form record dict.

Usage:
    from fhir_x_forms.to_form import observation
    record = observation.convert(fhir_observation)
"""

from fhir_x_forms.to_form import observation

__all__ = [
    "observation",
]
