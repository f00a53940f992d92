"""
Compose generator — render a project as a Docker Compose (v3) file.

Output layout::

    # Generated by topoform (0.1.0)
    # Source file: /abs/path/topoform.yml
    # Date: 2026-01-01 00:00:00
    version: '3'
    services:
      <one reverse-proxy service per sub-edge>
      <one service per component, sorted by id>
      <one service per resource, sorted by id>

All preconditions are checked before the first line is written, so a
failed run produces no text at all.

@see https://docs.docker.com/compose/compose-file/
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from topoform.core.models.errors import TopologyError
from topoform.core.models.project import Component, MappedResource, Project, Resource
from topoform.core.models.template import GeneratedFile
from topoform.core.models.topology import SubEdgeDef
from topoform.core.services.generators.common import (
    GenerateResult,
    check_images,
    check_names,
    check_targets,
    quoted,
    write_preamble,
    yaml_scalar,
)
from topoform.core.services.generators.naming import (
    component_image_name,
    component_service_name,
    edge_port_definition,
    format_environment_entries,
    format_port,
    mapped_resource_image_name,
    resource_service_name,
    sub_edge_image_name,
    sub_edge_service_name,
)
from topoform.core.services.generators.writer import WriterContext

logger = logging.getLogger(__name__)

COMPOSE_FILE_NAME = "docker-compose.yml"
COMPOSE_VERSION = "'3'"
RESTART_POLICY = "always"


def generate_compose(
    project: Project,
    source_path: Path | str,
    *,
    include_edges: bool = True,
    generated_at: datetime | None = None,
) -> GenerateResult:
    """Render *project* as a single compose file.

    Args:
        project: A project built by the reader.
        source_path: Input file path, recorded in the preamble.
        include_edges: Render a reverse-proxy service per sub-edge.
        generated_at: Timestamp for the preamble (default: now).

    Returns:
        GenerateResult with one ``GeneratedFile``, or the precondition errors.
    """
    errors = check_compose(project, include_edges=include_edges)
    if errors:
        logger.debug("Compose generation refused: %d problem(s)", len(errors))
        return GenerateResult(errors=errors)

    ctx = WriterContext()
    write_preamble(ctx, source_path, generated_at)
    ctx.write(f"version: {COMPOSE_VERSION}")
    ctx.write("services:")
    with ctx.indented():
        if include_edges:
            write_edges(ctx, project.id, project.sub_edge_defs())
        write_components(ctx, project, project.sorted_components())
        write_resources(ctx, project, project.sorted_resources())

    service_count = (
        (len(project.sub_edge_defs()) if include_edges else 0)
        + len(project.components)
        + len(project.resources)
    )
    logger.info("Rendered compose file for '%s' (%d services)", project.id, service_count)
    return GenerateResult(files=[GeneratedFile(
        path=COMPOSE_FILE_NAME,
        content=ctx.getvalue(),
        reason=f"Compose services for {project.id} ({service_count})",
    )])


def check_compose(project: Project, *, include_edges: bool = True) -> list[TopologyError]:
    """Every reason this project cannot be rendered as a compose file."""
    named: list[tuple[str, str]] = []
    if include_edges:
        for sub_edge_def in project.sub_edge_defs():
            named.append((
                f"sub-edge '{sub_edge_def.edge_id}.{sub_edge_def.sub_edge_id}'",
                sub_edge_service_name(project.id, sub_edge_def),
            ))
    for component in project.sorted_components():
        named.append((f"component '{component.id}'", component_service_name(component)))
    for resource in project.sorted_resources():
        named.append((f"resource '{resource.id}'", resource_service_name(resource)))

    return check_targets(project) + check_images(project) + check_names(named)


# ═══════════════════════════════════════════════════════════════════
#  Sections
# ═══════════════════════════════════════════════════════════════════


def write_edges(ctx: WriterContext, project_id: str, sub_edge_defs: Iterable[SubEdgeDef]) -> None:
    for sub_edge_def in sub_edge_defs:
        write_sub_edge(ctx, project_id, sub_edge_def)


def write_components(ctx: WriterContext, project: Project, components: Iterable[Component]) -> None:
    for component in components:
        write_component(ctx, project, component)


def write_resources(ctx: WriterContext, project: Project, resources: Iterable[Resource]) -> None:
    for resource in resources:
        mapped = project.get_mapping(resource.id)
        if mapped is not None:
            write_mapped_resource(ctx, project, mapped)
        else:
            write_resource(ctx, project, resource)


# ═══════════════════════════════════════════════════════════════════
#  Services
# ═══════════════════════════════════════════════════════════════════


def write_sub_edge(ctx: WriterContext, project_id: str, sub_edge_def: SubEdgeDef) -> None:
    """Reverse-proxy front publishing the edge type's standard port."""
    ctx.write(f"{yaml_scalar(sub_edge_service_name(project_id, sub_edge_def))}:")
    with ctx.indented():
        ctx.write(f"image: {sub_edge_image_name(project_id, sub_edge_def)}")
        ctx.write(f"restart: {RESTART_POLICY}")
        write_ports(ctx, [edge_port_definition(sub_edge_def.edge_type)])


def write_component(ctx: WriterContext, project: Project, component: Component) -> None:
    ctx.write(f"{yaml_scalar(component_service_name(component))}:")
    with ctx.indented():
        ctx.write(f"image: {component_image_name(project.id, component)}")
        ctx.write(f"restart: {RESTART_POLICY}")
        write_labels(ctx, component.path)
        write_environment_variables(ctx, component.environment)
        write_ports(ctx, component.exposed_ports + project.external_ports(component.id))


def write_resource(ctx: WriterContext, project: Project, resource: Resource) -> None:
    ctx.write(f"{yaml_scalar(resource_service_name(resource))}:")
    with ctx.indented():
        ctx.write(f"image: {yaml_scalar(resource.image or '')}")
        ctx.write(f"restart: {RESTART_POLICY}")
        write_environment_variables(ctx, resource.environment)
        write_ports(ctx, resource.exposed_ports + project.external_ports(resource.id))


def write_mapped_resource(ctx: WriterContext, project: Project, mapped: MappedResource) -> None:
    """A resource swapped for a locally built service from dev-resources."""
    ctx.write(f"{yaml_scalar(resource_service_name(mapped))}:")
    with ctx.indented():
        ctx.write(f"image: {mapped_resource_image_name(project.id, mapped)}")
        ctx.write(f"restart: {RESTART_POLICY}")
        write_labels(ctx, mapped.path)
        write_environment_variables(ctx, mapped.environment)
        write_ports(ctx, mapped.exposed_ports + project.external_ports(mapped.id))
        ctx.block("links:", [f"- {yaml_scalar(link)}" for link in mapped.links])


# ═══════════════════════════════════════════════════════════════════
#  Blocks (omitted entirely when empty)
# ═══════════════════════════════════════════════════════════════════


def write_labels(ctx: WriterContext, source_path: str) -> None:
    labels: list[str] = []
    if source_path:
        labels.append(f"source.path: {quoted(source_path)}")
    labels.append(f"project.artefact: {quoted('true')}")
    ctx.block("labels:", labels)


def write_environment_variables(ctx: WriterContext, environment: dict[str, str]) -> None:
    ctx.block(
        "environment:",
        [f"- {yaml_scalar(entry)}" for entry in format_environment_entries(environment)],
    )


def write_ports(ctx: WriterContext, ports: Iterable[str]) -> None:
    ctx.block("ports:", [f"- {format_port(port)}" for port in ports])
