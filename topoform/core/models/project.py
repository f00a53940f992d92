"""
Project model — the root aggregate of a topology description.

Built once per generation run by the project reader and never mutated
afterwards. Collections are kept in their declared order; generators use
the ``sorted_*`` accessors so output does not depend on the order keys
appeared in the source file.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from topoform.core.models.endpoint import Endpoint
from topoform.core.models.topology import SubEdgeDef, Topology

_MODEL_CONFIG = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


def _stringify(value: object) -> str:
    """Render a YAML scalar the way it would be typed in a shell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _DeployableFields(BaseModel):
    """Fields every rendered service carries."""

    model_config = _MODEL_CONFIG

    environment: dict[str, str] = Field(default_factory=dict)
    exposed_ports: list[str] = Field(default_factory=list, alias="exposed-ports")

    @field_validator("environment", mode="before")
    @classmethod
    def _stringify_environment(cls, value: object) -> object:
        if isinstance(value, dict):
            return {str(k): _stringify(v) for k, v in value.items()}
        return value

    @field_validator("exposed_ports", mode="before")
    @classmethod
    def _stringify_ports(cls, value: object) -> object:
        # port specs are opaque tokens; YAML may hand us bare ints
        if isinstance(value, list):
            return [_stringify(v) if isinstance(v, int) else v for v in value]
        return value


class Component(_DeployableFields):
    """A buildable unit of the project (a service with source code)."""

    id: str = Field(min_length=1)
    path: str = ""


class Resource(_DeployableFields):
    """An externally provided dependency, e.g. a database."""

    id: str = Field(min_length=1)
    resource_type: str = Field(min_length=1, alias="type")
    image: str | None = None


class MappedResource(_DeployableFields):
    """A resource replaced by a developer-supplied local service.

    ``resource`` points back at the ``Resource`` this mapping replaces;
    the project still owns that resource.
    """

    path: str = ""
    tag_name: str = Field(min_length=1, alias="tag-name")
    links: list[str] = Field(default_factory=list)
    resource: Resource
    # the dev-resources file calls these "ports"
    exposed_ports: list[str] = Field(default_factory=list, alias="ports")

    @property
    def id(self) -> str:
        return self.resource.id


class Project(BaseModel):
    """Root aggregate: components, resources, topology, endpoints."""

    model_config = _MODEL_CONFIG

    id: str = Field(min_length=1)
    components: dict[str, Component] = Field(default_factory=dict)
    resources: dict[str, Resource] = Field(default_factory=dict)
    topology: Topology = Field(default_factory=Topology)
    endpoints: dict[str, Endpoint] = Field(default_factory=dict)
    mapped_resources: dict[str, MappedResource] = Field(
        default_factory=dict, alias="mapped-resources"
    )

    @model_validator(mode="after")
    def _keys_match_ids(self) -> Project:
        for key, component in self.components.items():
            if component.id != key:
                raise ValueError(f"component filed under '{key}' has id '{component.id}'")
        for key, resource in self.resources.items():
            if resource.id != key:
                raise ValueError(f"resource filed under '{key}' has id '{resource.id}'")
        for key, mapped in self.mapped_resources.items():
            if mapped.id != key:
                raise ValueError(f"mapping filed under '{key}' replaces '{mapped.id}'")
        return self

    # ── Sorted views ─────────────────────────────────────────────

    def sorted_components(self) -> list[Component]:
        """Components ordered by id (case-sensitive)."""
        return [self.components[k] for k in sorted(self.components)]

    def sorted_resources(self) -> list[Resource]:
        """Resources ordered by id (case-sensitive)."""
        return [self.resources[k] for k in sorted(self.resources)]

    def sorted_endpoints(self) -> list[tuple[str, Endpoint]]:
        """(name, endpoint) pairs ordered by endpoint name."""
        return sorted(self.endpoints.items(), key=lambda item: item[0])

    def sub_edge_defs(self) -> list[SubEdgeDef]:
        """Every sub-edge with its identity, ordered by edge then sub-edge id."""
        return self.topology.sub_edge_defs()

    # ── Lookups ──────────────────────────────────────────────────

    def has_target(self, target_id: str) -> bool:
        """Whether *target_id* names a component or a resource."""
        return target_id in self.components or target_id in self.resources

    def get_mapping(self, resource_id: str) -> MappedResource | None:
        """Developer mapping for a resource, if one was supplied."""
        return self.mapped_resources.get(resource_id)

    def endpoints_for(self, target_id: str) -> list[Endpoint]:
        """Endpoints publishing *target_id*, ordered by endpoint name."""
        return [ep for _, ep in self.sorted_endpoints() if ep.target == target_id]

    def external_ports(self, target_id: str) -> list[str]:
        """Endpoint port mappings for *target_id* as ``external:internal``."""
        return [str(ep.port_mapping) for ep in self.endpoints_for(target_id)]

    def unresolved_targets(self) -> list[str]:
        """Descriptions of sub-edges and endpoints whose target is unknown."""
        problems: list[str] = []
        for sub_edge_def in self.sub_edge_defs():
            if not self.has_target(sub_edge_def.target):
                problems.append(
                    f"topology.{sub_edge_def.edge_id}.{sub_edge_def.sub_edge_id}"
                    f" -> '{sub_edge_def.target}'"
                )
        for name, endpoint in self.sorted_endpoints():
            if not self.has_target(endpoint.target):
                problems.append(f"endpoints.{name} -> '{endpoint.target}'")
        return problems
