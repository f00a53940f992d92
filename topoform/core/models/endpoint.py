"""
Endpoint model — a named external exposure of one target.

    endpoints:
      public-api:
        type: http
        target: public_api
        port-mapping: "80:9000"
        tls:
          termination: edge
          insecure-edge-policy: redirect
      public:
        type: http
        target: public_www
        port-mapping: 80

Unlike a sub-edge, an endpoint always carries an explicit port mapping
and is published directly on its target.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from topoform.core.models.topology import EdgeTypeValue, TlsConfig

_PORT_MIN = 1
_PORT_MAX = 65535


def _is_ascii_number(text: str) -> bool:
    return text.isascii() and text.isdecimal()


class PortMapping(BaseModel):
    """An ``external:internal`` port pair."""

    model_config = ConfigDict(frozen=True)

    external: int = Field(ge=_PORT_MIN, le=_PORT_MAX)
    internal: int = Field(ge=_PORT_MIN, le=_PORT_MAX)

    @model_validator(mode="before")
    @classmethod
    def _parse_shorthand(cls, value: object) -> object:
        """Accept ``"80:9000"``, ``"80"`` and ``80`` as well as a mapping."""
        if isinstance(value, bool):
            raise ValueError("port mapping must be 'external:internal' or a port number")
        if isinstance(value, int):
            return {"external": value, "internal": value}
        if isinstance(value, str):
            parts = value.strip().split(":")
            if len(parts) == 1:
                parts = parts * 2
            if len(parts) != 2 or not all(_is_ascii_number(p.strip()) for p in parts):
                raise ValueError(
                    f"port mapping '{value}' must be 'external:internal' or a port number"
                )
            return {"external": int(parts[0]), "internal": int(parts[1])}
        return value

    def __str__(self) -> str:
        return f"{self.external}:{self.internal}"


class Endpoint(BaseModel):
    """Externally reachable name bound to a single target."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    target: str = Field(min_length=1)
    port_mapping: PortMapping = Field(alias="port-mapping")
    endpoint_type: EdgeTypeValue = Field(alias="type")
    tls: TlsConfig = Field(default_factory=TlsConfig)
