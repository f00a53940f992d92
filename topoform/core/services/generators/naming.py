"""
Naming and formatting rules shared by the backend generators.

All functions are pure and total: degenerate input yields a degenerate
(possibly empty) token, never an exception. The transforms are lossy,
so two ids can map to the same generated name; ``find_collisions``
reports such groups so a generator can refuse to render them.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import assert_never

from topoform.core.models.project import Component, MappedResource, Resource
from topoform.core.models.topology import EdgeType, SubEdgeDef

_SERVICE_NAME_STRIP = str.maketrans("", "", "/ -_")
_IMAGE_NAME_REPLACE = str.maketrans({" ": "_", "-": "_"})


# ═══════════════════════════════════════════════════════════════════
#  Normalisation
# ═══════════════════════════════════════════════════════════════════


def normalise_service_name(name: str) -> str:
    """Drop ``/``, space, ``-`` and ``_`` then lower-case.

    >>> normalise_service_name("Public-API/v2")
    'publicapiv2'
    """
    return name.translate(_SERVICE_NAME_STRIP).lower()


def normalise_image_name(name: str) -> str:
    """Replace space and ``-`` with ``_`` then lower-case.

    >>> normalise_image_name("demo/Web-App")
    'demo/web_app'
    """
    return name.translate(_IMAGE_NAME_REPLACE).lower()


# ═══════════════════════════════════════════════════════════════════
#  Derived names
# ═══════════════════════════════════════════════════════════════════


def component_service_name(component: Component) -> str:
    return normalise_service_name(component.id)


def component_image_name(project_id: str, component: Component) -> str:
    return normalise_image_name(f"{project_id}/{component.id}")


def resource_service_name(resource: Resource | MappedResource) -> str:
    return normalise_service_name(resource.id)


def mapped_resource_image_name(project_id: str, mapped: MappedResource) -> str:
    return normalise_image_name(f"{project_id}/{mapped.tag_name}")


def _sub_edge_base_name(project_id: str, sub_edge_def: SubEdgeDef) -> str:
    return f"{project_id}_{sub_edge_def.edge_id}_{sub_edge_def.sub_edge_id}_nginx"


def sub_edge_service_name(project_id: str, sub_edge_def: SubEdgeDef) -> str:
    return normalise_service_name(_sub_edge_base_name(project_id, sub_edge_def))


def sub_edge_image_name(project_id: str, sub_edge_def: SubEdgeDef) -> str:
    return normalise_image_name(_sub_edge_base_name(project_id, sub_edge_def))


# ═══════════════════════════════════════════════════════════════════
#  Formatting
# ═══════════════════════════════════════════════════════════════════


def edge_port_definition(edge_type: EdgeType) -> str:
    """Published port pair for a reverse-proxy front of the given type."""
    match edge_type:
        case EdgeType.HTTP:
            return "80:80"
        case EdgeType.HTTPS:
            return "443:443"
        case _:
            assert_never(edge_type)


def format_port(port: str) -> str:
    """Double-quote a port spec so YAML never reads ``22:22`` as base-60."""
    return json.dumps(port)


def format_environment(key: str, value: str) -> str:
    return f"{key}={value}"


def format_environment_entries(environment: Mapping[str, str]) -> list[str]:
    """One ``KEY=VALUE`` line per entry, in the mapping's own order."""
    return [format_environment(key, value) for key, value in environment.items()]


# ═══════════════════════════════════════════════════════════════════
#  Collisions
# ═══════════════════════════════════════════════════════════════════


def find_collisions(named: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    """Group source ids by generated name, keeping only shared names.

    Args:
        named: ``(source_id, generated_name)`` pairs.

    Returns:
        ``{generated_name: [source_id, ...]}`` for every name produced by
        more than one source id, both levels sorted.
    """
    groups: dict[str, list[str]] = {}
    for source_id, generated in named:
        groups.setdefault(generated, []).append(source_id)
    return {
        name: sorted(ids)
        for name, ids in sorted(groups.items())
        if len(ids) > 1
    }
