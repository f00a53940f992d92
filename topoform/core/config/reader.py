"""
Project reader — builds a validated ``Project`` from a raw config mapping.

Validation is fail-fast per field but fail-complete per document: every
component, resource, sub-edge, endpoint and dev mapping is validated on
its own, and all problems are returned together so a user can fix them
in one edit. Nothing partial is returned on failure.

Unknown keys are ignored. Requirements that only some backends have
(e.g. an image on every resource) are checked by those backends, not here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from topoform.core.models.endpoint import Endpoint
from topoform.core.models.errors import TopologyError
from topoform.core.models.project import Component, MappedResource, Project, Resource
from topoform.core.models.topology import Edge, SubEdge, Topology

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class ReadResult:
    """Either a project or the list of everything wrong with the input."""

    project: Project | None = None
    errors: list[TopologyError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.project is not None and not self.errors

    def to_dict(self) -> dict:
        if not self.ok:
            return {"ok": False, "errors": [str(e) for e in self.errors]}
        assert self.project is not None
        return {
            "ok": True,
            "project": self.project.id,
            "components": len(self.project.components),
            "resources": len(self.project.resources),
            "sub_edges": len(self.project.sub_edge_defs()),
            "endpoints": len(self.project.endpoints),
        }


# ═══════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════


def _join(*parts: object) -> str:
    return ".".join(str(p) for p in parts if p != "")


def _validation_errors(exc: ValidationError, location: str) -> list[TopologyError]:
    """One input error per pydantic error, located under *location*."""
    return [
        TopologyError.input(err["msg"], location=_join(location, *err["loc"]))
        for err in exc.errors()
    ]


def _mapping_or_error(
    value: Any, location: str, errors: list[TopologyError],
) -> Mapping[str, Any] | None:
    """Treat a missing / null section as empty; anything but a mapping is an error."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        errors.append(TopologyError.input(
            f"expected a mapping, got {type(value).__name__}", location=location,
        ))
        return None
    return value


def _validate(
    model: type[M],
    data: Mapping[str, Any],
    location: str,
    errors: list[TopologyError],
) -> M | None:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors.extend(_validation_errors(e, location))
        return None


def _read_section(
    raw: Mapping[str, Any],
    key: str,
    build: Callable[[str, Mapping[str, Any], str, list[TopologyError]], M | None],
    errors: list[TopologyError],
) -> dict[str, M]:
    """Validate each entry of an ``id -> body`` section independently."""
    section = _mapping_or_error(raw.get(key), key, errors)
    if section is None:
        return {}
    entries: dict[str, M] = {}
    for entry_id, body in section.items():
        entry_id = str(entry_id)
        location = _join(key, entry_id)
        body = _mapping_or_error(body, location, errors)
        if body is None:
            continue
        entry = build(entry_id, body, location, errors)
        if entry is not None:
            entries[entry_id] = entry
    return entries


def _build_component(
    entry_id: str, body: Mapping[str, Any], location: str, errors: list[TopologyError],
) -> Component | None:
    return _validate(Component, {**body, "id": entry_id}, location, errors)


def _build_resource(
    entry_id: str, body: Mapping[str, Any], location: str, errors: list[TopologyError],
) -> Resource | None:
    return _validate(Resource, {**body, "id": entry_id}, location, errors)


def _build_endpoint(
    entry_id: str, body: Mapping[str, Any], location: str, errors: list[TopologyError],
) -> Endpoint | None:
    return _validate(Endpoint, body, location, errors)


def _read_topology(raw: Mapping[str, Any], errors: list[TopologyError]) -> Topology:
    section = _mapping_or_error(raw.get("topology"), "topology", errors)
    if section is None:
        return Topology()
    edges: dict[str, Edge] = {}
    for edge_id, edge_body in section.items():
        edge_id = str(edge_id)
        edge_location = _join("topology", edge_id)
        edge_body = _mapping_or_error(edge_body, edge_location, errors)
        if edge_body is None:
            continue
        sub_edges: dict[str, SubEdge] = {}
        for sub_edge_id, body in edge_body.items():
            sub_edge_id = str(sub_edge_id)
            location = _join(edge_location, sub_edge_id)
            body = _mapping_or_error(body, location, errors)
            if body is None:
                continue
            sub_edge = _validate(SubEdge, body, location, errors)
            if sub_edge is not None:
                sub_edges[sub_edge_id] = sub_edge
        edges[edge_id] = Edge(sub_edges)
    return Topology(edges)


def _read_dev_resources(
    dev_resources: Mapping[str, Any] | None,
    resources: Mapping[str, Resource],
    resource_ids: set[str],
    errors: list[TopologyError],
) -> dict[str, MappedResource]:
    section = _mapping_or_error(dev_resources, "dev-resources", errors)
    if not section:
        return {}
    mapped: dict[str, MappedResource] = {}
    for resource_id, body in section.items():
        resource_id = str(resource_id)
        location = _join("dev-resources", resource_id)
        if resource_id not in resource_ids:
            errors.append(TopologyError.referential(
                f"dev mapping for unknown resource '{resource_id}'", location=location,
            ))
            continue
        body = _mapping_or_error(body, location, errors)
        resource = resources.get(resource_id)
        if body is None or resource is None:
            # the resource itself failed validation and was already reported
            continue
        entry = _validate(MappedResource, {**body, "resource": resource}, location, errors)
        if entry is not None:
            mapped[resource_id] = entry
    return mapped


def _check_references(
    topology: Topology,
    endpoints: Mapping[str, Endpoint],
    known_ids: set[str],
    errors: list[TopologyError],
) -> None:
    for sub_edge_def in topology.sub_edge_defs():
        if sub_edge_def.target not in known_ids:
            errors.append(TopologyError.referential(
                f"target '{sub_edge_def.target}' is not a known component or resource",
                location=_join("topology", sub_edge_def.edge_id, sub_edge_def.sub_edge_id, "target"),
            ))
    for name in sorted(endpoints):
        endpoint = endpoints[name]
        if endpoint.target not in known_ids:
            errors.append(TopologyError.referential(
                f"target '{endpoint.target}' is not a known component or resource",
                location=_join("endpoints", name, "target"),
            ))


# ═══════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════


def read_project(
    raw: Mapping[str, Any],
    dev_resources: Mapping[str, Any] | None = None,
) -> ReadResult:
    """Build a ``Project`` from a parsed config mapping.

    Args:
        raw: The project mapping (already loaded from YAML).
        dev_resources: Optional ``{resource_id: mapping}`` overrides.

    Returns:
        ReadResult holding the project, or every error found.
    """
    errors: list[TopologyError] = []

    if not isinstance(raw, Mapping):
        errors.append(TopologyError.input(
            f"project configuration must be a mapping, got {type(raw).__name__}",
        ))
        return ReadResult(errors=errors)

    project_id = raw.get("id")
    if not isinstance(project_id, str) or not project_id.strip():
        errors.append(TopologyError.input("a non-empty string is required", location="id"))

    components = _read_section(raw, "components", _build_component, errors)
    resources = _read_section(raw, "resources", _build_resource, errors)
    topology = _read_topology(raw, errors)
    endpoints = _read_section(raw, "endpoints", _build_endpoint, errors)

    # ids as declared, so a component that failed validation is still a valid target
    known_ids = _declared_ids(raw, "components") | _declared_ids(raw, "resources")
    _check_references(topology, endpoints, known_ids, errors)
    mapped = _read_dev_resources(
        dev_resources, resources, _declared_ids(raw, "resources"), errors,
    )

    if errors:
        logger.debug("Project config has %d error(s)", len(errors))
        return ReadResult(errors=errors)

    project = Project(
        id=project_id,
        components=components,
        resources=resources,
        topology=topology,
        endpoints=endpoints,
        mapped_resources=mapped,
    )
    logger.info(
        "Read project '%s': %d components, %d resources, %d sub-edges, %d endpoints",
        project.id,
        len(components),
        len(resources),
        len(project.sub_edge_defs()),
        len(endpoints),
    )
    return ReadResult(project=project)


def _declared_ids(raw: Mapping[str, Any], key: str) -> set[str]:
    section = raw.get(key)
    if not isinstance(section, Mapping):
        return set()
    return {str(k) for k in section}
