"""
Topology model — edges that expose internal services to the outside world.

The topology is a two-level mapping::

    topology:
      main:                 # edge id
        public-api:         # sub-edge id
          target: api
          type: http

Neither ``Edge`` nor ``SubEdge`` stores its own identifier; the id is the
key it is filed under. ``SubEdgeDef`` pairs the two keys with the value
at traversal time so generators get an identity without the model ever
carrying a back-reference to its own key.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, RootModel


class _CaseInsensitiveEnum(StrEnum):
    """StrEnum that accepts any casing of its values ("HTTP", "Http")."""

    @classmethod
    def _missing_(cls, value: object) -> _CaseInsensitiveEnum | None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class EdgeType(_CaseInsensitiveEnum):
    """Protocol of an externally reachable edge. Closed set."""

    HTTP = "http"
    HTTPS = "https"


class TlsTermination(_CaseInsensitiveEnum):
    EDGE = "edge"
    PASSTHROUGH = "passthrough"
    REENCRYPT = "reencrypt"


class InsecureEdgePolicy(_CaseInsensitiveEnum):
    NONE = "none"
    ALLOW = "allow"
    REDIRECT = "redirect"


def _parsed_as(enum_cls: type[_CaseInsensitiveEnum]) -> BeforeValidator:
    """Run config strings through the enum lookup so casing never matters."""

    def coerce(value: object) -> object:
        if isinstance(value, str):
            return enum_cls(value)
        return value

    return BeforeValidator(coerce)


EdgeTypeValue = Annotated[EdgeType, _parsed_as(EdgeType)]


class TlsConfig(BaseModel):
    """How TLS behaves on an edge or endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    termination: Annotated[TlsTermination, _parsed_as(TlsTermination)] = TlsTermination.EDGE
    insecure_edge_policy: Annotated[InsecureEdgePolicy, _parsed_as(InsecureEdgePolicy)] = Field(
        default=InsecureEdgePolicy.REDIRECT,
        alias="insecure-edge-policy",
    )


class SubEdge(BaseModel):
    """One exposure route inside an edge."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    target: str = Field(min_length=1)   # component or resource id
    edge_type: EdgeTypeValue = Field(alias="type")
    tls: TlsConfig | None = None


class Edge(RootModel[dict[str, SubEdge]]):
    """A named group of sub-edges, keyed by sub-edge id."""

    model_config = ConfigDict(frozen=True)

    def __len__(self) -> int:
        return len(self.root)

    def items(self):
        return self.root.items()

    def sorted_items(self) -> list[tuple[str, SubEdge]]:
        """Sub-edges ordered by sub-edge id."""
        return sorted(self.root.items(), key=lambda item: item[0])


class Topology(RootModel[dict[str, Edge]]):
    """All edges of a project, keyed by edge id."""

    model_config = ConfigDict(frozen=True)

    root: dict[str, Edge] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.root)

    def items(self):
        return self.root.items()

    def sub_edge_defs(self) -> list[SubEdgeDef]:
        """Flatten to (edge id, sub-edge id, sub-edge), sorted by both ids."""
        defs: list[SubEdgeDef] = []
        for edge_id, edge in sorted(self.root.items(), key=lambda item: item[0]):
            for sub_edge_id, sub_edge in edge.sorted_items():
                defs.append(SubEdgeDef(edge_id, sub_edge_id, sub_edge))
        return defs


@dataclass(frozen=True)
class SubEdgeDef:
    """A sub-edge paired with the keys it was filed under."""

    edge_id: str
    sub_edge_id: str
    sub_edge: SubEdge

    @property
    def target(self) -> str:
        return self.sub_edge.target

    @property
    def edge_type(self) -> EdgeType:
        return self.sub_edge.edge_type
