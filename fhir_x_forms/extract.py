"""Orchestration helper for rebuilding form observation trees from FHIR entries."""

import logging
from typing import Any

from fhir.resources.bundle import Bundle

from .chidian_ext import extract_refs, grab, to_json_dict
from .constants import RESOURCE_TYPE_OBSERVATION
from .fhir_lib import urn_uuid
from .to_form import observation as observation_to_form

logger = logging.getLogger(__name__)


def _resource_type(resource: Any, d: dict) -> str | None:
    if isinstance(resource, dict):
        return d.get("resourceType")
    return resource.__class__.__name__


def _observation_entries(source: Bundle | list) -> list[tuple[str, dict]]:
    """(fullUrl, Observation dict) pairs in entry order."""
    if isinstance(source, Bundle):
        items = [(entry.fullUrl, entry.resource) for entry in source.entry or []]
    elif isinstance(source, (list, tuple)):
        items = [
            (grab(entry, "fullUrl"), grab(entry, "resource"))
            for entry in source
            if isinstance(entry, dict)
        ]
    else:
        return []

    observations: list[tuple[str, dict]] = []
    for full_url, resource in items:
        if resource is None:
            continue
        d = to_json_dict(resource)
        if _resource_type(resource, d) != RESOURCE_TYPE_OBSERVATION:
            continue
        if full_url:
            observations.append((str(full_url), d))
        elif d.get("id"):
            observations.append((urn_uuid(d["id"]), d))
    return observations


def _direct_members(
    url: str, members: dict[str, list[str]]
) -> list[str]:
    """Members of a group that are not reachable through another member group.

    hasMember may list every descendant, not just direct children.
    """
    refs = members.get(url, [])
    nested: set[str] = set()
    for ref in refs:
        nested.update(members.get(ref, []))
    return [ref for ref in refs if ref not in nested]


def extract_observations(source: Bundle | list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Rebuild form observation records from FHIR Observation entries.

    Groups are reassembled from hasMember references into nested
    groupMembers lists; top-level records are those no group references.

    Args:
        source: FHIR Bundle, or a list of {"resource", "fullUrl"} entry dicts
            as produced by transform_to_fhir

    Returns:
        List of top-level form observation records

    Example:
        >>> entries = transform_to_fhir(observations, options)
        >>> records = extract_observations(entries)
    """
    entries = _observation_entries(source)
    records = {url: observation_to_form.convert(d) for url, d in entries}

    members: dict[str, list[str]] = {}
    for url, d in entries:
        refs = extract_refs(d, "hasMember")
        resolved = [ref for ref in refs if ref in records and ref != url]
        if len(resolved) < len(refs):
            logger.warning(
                "Observation %s references %d members outside the entries; ignoring them",
                url,
                len(refs) - len(resolved),
            )
        if resolved:
            members[url] = resolved

    referenced = {ref for refs in members.values() for ref in refs}

    def build(url: str, path: frozenset[str]) -> dict[str, Any]:
        record = dict(records[url])
        children = [
            build(child, path | {child})
            for child in _direct_members(url, members)
            if child not in path
        ]
        if children:
            record["groupMembers"] = children
        return record

    return [
        build(url, frozenset({url})) for url, _ in entries if url not in referenced
    ]
