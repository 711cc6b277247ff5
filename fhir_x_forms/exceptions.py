"""Exceptions raised by fhir_x_forms."""


class FhirFormsError(Exception):
    """Base exception for fhir_x_forms errors."""

    pass


class InvalidArgumentError(FhirFormsError, ValueError):
    """Required caller configuration is missing or unusable."""

    pass


class ObservationNestingError(InvalidArgumentError):
    """Observation groups are nested deeper than the allowed maximum."""

    def __init__(self, max_depth: int):
        super().__init__(
            f"Observation groups nested deeper than max_depth={max_depth}"
        )
        self.max_depth = max_depth
