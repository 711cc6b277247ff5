"""Orchestration helpers for building FHIR Observation entries and Bundles from form data."""

import logging
from typing import Any

from fhir.resources.bundle import Bundle, BundleEntry
from fhir.resources.observation import Observation
from pydantic import ValidationError

from .chidian_ext import grab, to_dict
from .constants import DEFAULT_MAX_DEPTH, RESOURCE_TYPE_OBSERVATION
from .exceptions import InvalidArgumentError, ObservationNestingError
from .extract import extract_observations
from .fhir_lib import member_ref, urn_uuid
from .to_fhir import observation as observation_to_fhir
from .types import ReferenceContext
from .utils import IdFactory, generate_uuid

logger = logging.getLogger(__name__)

# A bundle entry as a plain dict: {"resource": {...}, "fullUrl": "urn:uuid:..."}
Entry = dict[str, Any]


def resolve_context(options: Any) -> ReferenceContext:
    """Validate the patient/encounter/performer references.

    Args:
        options: ReferenceContext, or a dict/model with patientReference,
            encounterReference and performerReference

    Raises:
        InvalidArgumentError: If any of the three references is missing
    """
    if isinstance(options, ReferenceContext):
        return options
    if options is None:
        raise InvalidArgumentError(
            "transform_to_fhir requires patientReference, encounterReference, "
            "and performerReference in options"
        )
    try:
        return ReferenceContext.model_validate(to_dict(options))
    except (TypeError, ValidationError) as exc:
        raise InvalidArgumentError(
            "transform_to_fhir requires patientReference, encounterReference, "
            "and performerReference in options"
        ) from exc


def _as_record(obs: Any) -> dict:
    # Unusable records map to a fieldless resource rather than failing the batch
    try:
        return to_dict(obs)
    except TypeError:
        return {}


def _entry(resource: dict[str, Any], id_factory: IdFactory) -> Entry:
    resource_id = id_factory()
    return {
        "resource": {**resource, "id": resource_id},
        "fullUrl": urn_uuid(resource_id),
    }


def _expand(
    observations: list | tuple,
    context: ReferenceContext,
    id_factory: IdFactory,
    depth: int,
    max_depth: int,
) -> list[Entry]:
    """Post-order walk: members are emitted before the group that lists them."""
    if depth > max_depth:
        raise ObservationNestingError(max_depth)

    entries: list[Entry] = []
    for obs in observations:
        d = _as_record(obs)
        if grab(d, "voided"):
            continue

        members = grab(d, "groupMembers")
        if isinstance(members, (list, tuple)) and members:
            member_entries = _expand(members, context, id_factory, depth + 1, max_depth)
            entries.extend(member_entries)

            parent = observation_to_fhir.convert(d, context, include_value=False)
            if member_entries:
                parent["hasMember"] = [
                    member_ref(member["fullUrl"], RESOURCE_TYPE_OBSERVATION)
                    for member in member_entries
                ]
            entries.append(_entry(parent, id_factory))
        else:
            entries.append(_entry(observation_to_fhir.convert(d, context), id_factory))

    return entries


def transform_to_fhir(
    observations: Any,
    options: Any,
    *,
    id_factory: IdFactory = generate_uuid,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[Entry]:
    """Transform form observations to FHIR Observation bundle entries.

    Voided observations are dropped. A group with members yields its members'
    entries first, then one parent entry whose hasMember references every
    entry produced beneath it.

    Args:
        observations: List of observation records (dicts or ObservationRecord).
            Anything other than a list or tuple yields no entries.
        options: Patient, encounter and performer references
        id_factory: Produces the id of each resource (and its urn:uuid fullUrl)
        max_depth: Deepest allowed group nesting

    Returns:
        List of {"resource": ..., "fullUrl": ...} entries

    Raises:
        InvalidArgumentError: If a reference is missing from options
        ObservationNestingError: If groups nest deeper than max_depth

    Example:
        >>> entries = transform_to_fhir(observations, {
        ...     "patientReference": {"reference": "Patient/uuid"},
        ...     "encounterReference": {"reference": "Encounter/uuid"},
        ...     "performerReference": {"reference": "Practitioner/uuid"},
        ... })
    """
    context = resolve_context(options)

    if not isinstance(observations, (list, tuple)):
        return []

    entries = _expand(observations, context, id_factory, 0, max_depth)
    logger.debug(
        "Transformed %d top-level observations into %d FHIR entries",
        len(observations),
        len(entries),
    )
    return entries


def observation_bundle(
    entries: list[Entry],
    bundle_type: str = "collection",
) -> Bundle:
    """Wrap transformed entries in a FHIR Bundle.

    Each resource is validated as a fhir.resources Observation here, at the
    consumer boundary; the transformer itself does not validate.

    Args:
        entries: Output of transform_to_fhir
        bundle_type: FHIR Bundle.type

    Returns:
        FHIR Bundle

    Raises:
        pydantic.ValidationError: If a resource is not a valid Observation
    """
    bundle_entries = [
        BundleEntry(
            fullUrl=entry["fullUrl"],
            resource=Observation(**entry["resource"]),
        )
        for entry in entries
    ]
    return Bundle(type=bundle_type, entry=bundle_entries or None)


class ObservationTransformer:
    """Stateless facade over transform_to_fhir and extract_observations.

    Holds only call configuration, so one instance can be shared freely.
    """

    def __init__(
        self,
        id_factory: IdFactory = generate_uuid,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.id_factory = id_factory
        self.max_depth = max_depth

    def to_fhir(self, observations: Any, options: Any) -> list[Entry]:
        return transform_to_fhir(
            observations,
            options,
            id_factory=self.id_factory,
            max_depth=self.max_depth,
        )

    def from_fhir(self, source: Bundle | list[Entry]) -> list[dict[str, Any]]:
        return extract_observations(source)

    def to_bundle(self, observations: Any, options: Any) -> Bundle:
        return observation_bundle(self.to_fhir(observations, options))
