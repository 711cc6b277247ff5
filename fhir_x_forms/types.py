"""
Shared types and reference helpers for FHIR x Forms conversions.

Form records arrive loosely typed (plain dicts from the form layer). The
pydantic models here are the typed shape a producer can build instead;
the converters accept either.
"""

from datetime import datetime
from typing import Any, TypeAlias

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Reference string format: "{ResourceType}/{id}" or "urn:uuid:{id}"
RefString: TypeAlias = str

# A FHIR Reference as a plain dict: {"reference": "Patient/123", ...}
RefDict: TypeAlias = dict[str, Any]


def make_ref(ref: RefString | RefDict | Any | None) -> RefDict | None:
    """Normalize a reference handle to a Reference dict, or None if empty.

    Accepts 'Patient/123', {"reference": "Patient/123"} or a fhir.resources
    Reference model.
    """
    if ref is None:
        return None
    if isinstance(ref, str):
        return {"reference": ref.strip()} if ref.strip() else None
    if hasattr(ref, "model_dump"):
        ref = ref.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(ref, dict):
        return ref or None
    return None


def extract_ref(ref: RefDict | None) -> RefString | None:
    """Extract reference string from a Reference dict, or None."""
    if not ref:
        return None
    return ref.get("reference")


def extract_id_from_ref(ref: RefDict | None) -> str | None:
    """Extract just the ID from a Reference dict.

    {"reference": "Patient/123"} → '123'
    {"reference": "urn:uuid:abc"} → 'abc'
    """
    ref_str = extract_ref(ref)
    if ref_str is None:
        return None
    if "/" in ref_str:
        return ref_str.split("/")[-1]
    return ref_str.split(":")[-1]


class ReferenceContext(BaseModel):
    """Patient, encounter and performer handles stamped on every resource."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    patient_reference: RefDict = Field(alias="patientReference")
    encounter_reference: RefDict = Field(alias="encounterReference")
    performer_reference: RefDict = Field(alias="performerReference")

    @field_validator(
        "patient_reference", "encounter_reference", "performer_reference", mode="before"
    )
    @classmethod
    def _normalize(cls, value: Any) -> RefDict:
        ref = make_ref(value)
        if ref is None:
            raise ValueError("reference handle is required")
        return ref


class Concept(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uuid: str | None = Field(None, validation_alias=AliasChoices("uuid", "identifier"))
    datatype: str | None = None
    display: str | None = None


class CodedValue(BaseModel):
    """A coded answer, e.g. {"uuid": "male-uuid", "display": "Male"}."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uuid: str = Field(validation_alias=AliasChoices("uuid", "identifier"))
    display: str | None = None
    display_string: str | None = Field(None, alias="displayString")


class ObservationRecord(BaseModel):
    """One form observation, possibly a group of nested observations.

    `value` is deliberately untyped: number, string, bool, date/datetime,
    CodedValue (or an equivalent dict), or None. The converter dispatches on
    its runtime type.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uuid: str | None = None
    concept: Concept | str | None = None
    value: Any = None
    group_members: list["ObservationRecord"] | None = Field(None, alias="groupMembers")
    voided: bool = False
    interpretation: str | None = None
    form_namespace: str | None = Field(None, alias="formNamespace")
    form_field_path: str | None = Field(None, alias="formFieldPath")
    comment: str | None = None
    obs_datetime: str | datetime | None = Field(None, alias="obsDatetime")
    observation_date_time: str | datetime | None = Field(
        None, alias="observationDateTime"
    )
