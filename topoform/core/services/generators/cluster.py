"""
Cluster generator — render a project as Kubernetes manifests.

Produces one file per manifest, meant for a target directory:

    <name>-service.yaml      for every exposed component / resource
    <name>-deployment.yaml   for every component / resource

A component or resource is *exposed* when it has at least one exposed
port or at least one endpoint targets it. Endpoint-published services
get ``type: NodePort`` so they are reachable from outside the cluster
(minikube); the rest are ``ClusterIP``.

Port specs are opaque to the data model. This backend needs numbers,
so it parses them here (``"8080"``, ``"80:8080"``, ``"127.0.0.1:80:8080"``,
optionally ``/tcp`` or ``/udp``) and refuses the whole project if any
spec does not parse.

@see https://kubernetes.io/docs/reference/kubernetes-api/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from topoform.core.models.errors import TopologyError
from topoform.core.models.project import Component, Project, Resource
from topoform.core.models.template import GeneratedFile
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
    mapped_resource_image_name,
    normalise_service_name,
    resource_service_name,
)
from topoform.core.services.generators.writer import WriterContext

logger = logging.getLogger(__name__)

DEFAULT_REPLICAS = 1
_PROTOCOLS = {"tcp": "TCP", "udp": "UDP"}
_SOURCE_PATH_ANNOTATION = "topoform/source-path"


# ═══════════════════════════════════════════════════════════════════
#  Ports
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PortSpec:
    """A parsed port: what the service listens on and where it forwards."""

    port: int
    target_port: int
    protocol: str = "TCP"

    @property
    def name(self) -> str:
        return f"{self.protocol.lower()}-{self.port}"


def _is_port_number(text: str) -> bool:
    # isdigit() alone accepts "²" and other digits int() cannot parse
    return text.isascii() and text.isdecimal() and 1 <= int(text) <= 65535


def parse_port_spec(spec: str) -> PortSpec | None:
    """Parse a compose-style port spec; ``None`` if it is not one this backend supports.

    >>> parse_port_spec("80:8080/udp")
    PortSpec(port=80, target_port=8080, protocol='UDP')
    """
    text, _, proto = spec.strip().partition("/")
    protocol = _PROTOCOLS.get(proto.lower() if proto else "tcp")
    if protocol is None:
        return None
    parts = text.split(":")
    if len(parts) > 3:
        return None
    numbers = parts[-2:] if len(parts) > 1 else parts * 2
    if not all(_is_port_number(n) for n in numbers):
        return None
    return PortSpec(port=int(numbers[0]), target_port=int(numbers[1]), protocol=protocol)


# ═══════════════════════════════════════════════════════════════════
#  Workloads
# ═══════════════════════════════════════════════════════════════════


@dataclass
class Workload:
    """Everything the manifests need about one component or resource."""

    source: str                         # "component 'api'", for messages
    name: str
    image: str
    environment: dict[str, str]
    ports: list[PortSpec] = field(default_factory=list)
    external: bool = False              # targeted by an endpoint
    source_path: str = ""

    @property
    def exposed(self) -> bool:
        return bool(self.ports)

    @property
    def container_ports(self) -> list[tuple[int, str]]:
        seen: list[tuple[int, str]] = []
        for spec in self.ports:
            key = (spec.target_port, spec.protocol)
            if key not in seen:
                seen.append(key)
        return seen

    @property
    def service_ports(self) -> list[PortSpec]:
        unique: dict[tuple[int, str], PortSpec] = {}
        for spec in self.ports:
            unique.setdefault((spec.port, spec.protocol), spec)
        return list(unique.values())


def _collect_ports(
    source: str,
    location: str,
    specs: list[str],
    project: Project,
    target_id: str,
    errors: list[TopologyError],
) -> list[PortSpec]:
    ports: list[PortSpec] = []
    for spec in specs:
        parsed = parse_port_spec(spec)
        if parsed is None:
            errors.append(TopologyError.precondition(
                f"{source} has a port spec this backend cannot parse: '{spec}'",
                location=location,
            ))
        else:
            ports.append(parsed)
    for endpoint in project.endpoints_for(target_id):
        ports.append(PortSpec(
            port=endpoint.port_mapping.external,
            target_port=endpoint.port_mapping.internal,
        ))
    return ports


def _component_workload(
    project: Project, component: Component, errors: list[TopologyError],
) -> Workload:
    source = f"component '{component.id}'"
    return Workload(
        source=source,
        name=component_service_name(component),
        image=component_image_name(project.id, component),
        environment=component.environment,
        ports=_collect_ports(
            source, f"components.{component.id}.exposed-ports",
            component.exposed_ports, project, component.id, errors,
        ),
        external=bool(project.endpoints_for(component.id)),
        source_path=component.path,
    )


def _resource_workload(
    project: Project, resource: Resource, errors: list[TopologyError],
) -> Workload:
    source = f"resource '{resource.id}'"
    mapped = project.get_mapping(resource.id)
    if mapped is not None:
        image = mapped_resource_image_name(project.id, mapped)
        environment, specs, source_path = mapped.environment, mapped.exposed_ports, mapped.path
    else:
        image = resource.image or ""
        environment, specs, source_path = resource.environment, resource.exposed_ports, ""
    return Workload(
        source=source,
        name=resource_service_name(resource),
        image=image,
        environment=environment,
        ports=_collect_ports(
            source, f"resources.{resource.id}.exposed-ports",
            specs, project, resource.id, errors,
        ),
        external=bool(project.endpoints_for(resource.id)),
        source_path=source_path,
    )


def build_workloads(project: Project) -> tuple[list[Workload], list[TopologyError]]:
    """Components then resources, each sorted by id, plus any port errors."""
    errors: list[TopologyError] = []
    workloads = [_component_workload(project, c, errors) for c in project.sorted_components()]
    workloads += [_resource_workload(project, r, errors) for r in project.sorted_resources()]
    return workloads, errors


# ═══════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════


def generate_cluster(
    project: Project,
    source_path: Path | str,
    *,
    replicas: int = DEFAULT_REPLICAS,
    generated_at: datetime | None = None,
) -> GenerateResult:
    """Render *project* as a set of Kubernetes manifest files.

    Returns:
        GenerateResult with the service files then the deployment files,
        or every precondition error found.
    """
    workloads, port_errors = build_workloads(project)
    errors = (
        check_targets(project)
        + check_images(project)
        + check_names((w.source, w.name) for w in workloads)
        + port_errors
    )
    if errors:
        logger.debug("Cluster generation refused: %d problem(s)", len(errors))
        return GenerateResult(errors=errors)

    part_of = normalise_service_name(project.id)
    files: list[GeneratedFile] = []

    for workload in workloads:
        if not workload.exposed:
            continue
        ctx = WriterContext()
        write_preamble(ctx, source_path, generated_at)
        write_service(ctx, workload, part_of)
        files.append(GeneratedFile(
            path=f"{workload.name}-service.yaml",
            content=ctx.getvalue(),
            reason=f"Service for {workload.source}",
        ))

    for workload in workloads:
        ctx = WriterContext()
        write_preamble(ctx, source_path, generated_at)
        write_deployment(ctx, workload, part_of, replicas)
        files.append(GeneratedFile(
            path=f"{workload.name}-deployment.yaml",
            content=ctx.getvalue(),
            reason=f"Deployment for {workload.source} ({replicas} replicas)",
        ))

    logger.info("Rendered %d cluster manifests for '%s'", len(files), project.id)
    return GenerateResult(files=files)


# ═══════════════════════════════════════════════════════════════════
#  Manifests
# ═══════════════════════════════════════════════════════════════════


def write_metadata(ctx: WriterContext, workload: Workload, part_of: str) -> None:
    ctx.write("metadata:")
    with ctx.indented():
        ctx.write(f"name: {yaml_scalar(workload.name)}")
        ctx.block("labels:", [
            f"app: {yaml_scalar(workload.name)}",
            f"app.kubernetes.io/part-of: {yaml_scalar(part_of)}",
        ])
        if workload.source_path:
            ctx.block("annotations:", [
                f"{_SOURCE_PATH_ANNOTATION}: {quoted(workload.source_path)}",
            ])


def write_service(ctx: WriterContext, workload: Workload, part_of: str) -> None:
    ctx.write("apiVersion: v1")
    ctx.write("kind: Service")
    write_metadata(ctx, workload, part_of)
    ctx.write("spec:")
    with ctx.indented():
        ctx.write(f"type: {'NodePort' if workload.external else 'ClusterIP'}")
        ctx.write("ports:")
        with ctx.indented():
            for spec in workload.service_ports:
                ctx.write(f"- name: {spec.name}")
                with ctx.indented():
                    ctx.write(f"port: {spec.port}")
                    ctx.write(f"targetPort: {spec.target_port}")
                    ctx.write(f"protocol: {spec.protocol}")
        ctx.block("selector:", [f"app: {yaml_scalar(workload.name)}"])


def write_deployment(ctx: WriterContext, workload: Workload, part_of: str, replicas: int) -> None:
    ctx.write("apiVersion: apps/v1")
    ctx.write("kind: Deployment")
    write_metadata(ctx, workload, part_of)
    ctx.write("spec:")
    with ctx.indented():
        ctx.write(f"replicas: {replicas}")
        ctx.write("selector:")
        with ctx.indented():
            ctx.block("matchLabels:", [f"app: {yaml_scalar(workload.name)}"])
        ctx.write("template:")
        with ctx.indented():
            ctx.write("metadata:")
            with ctx.indented():
                ctx.block("labels:", [f"app: {yaml_scalar(workload.name)}"])
            ctx.write("spec:")
            with ctx.indented():
                ctx.write("containers:")
                with ctx.indented():
                    write_container(ctx, workload)


def write_container(ctx: WriterContext, workload: Workload) -> None:
    ctx.write(f"- name: {yaml_scalar(workload.name)}")
    with ctx.indented():
        ctx.write(f"image: {yaml_scalar(workload.image)}")
        write_env(ctx, workload.environment)
        write_container_ports(ctx, workload)


def write_env(ctx: WriterContext, environment: dict[str, str]) -> None:
    if not environment:
        return
    ctx.write("env:")
    with ctx.indented():
        for key, value in environment.items():
            ctx.write(f"- name: {yaml_scalar(key)}")
            with ctx.indented():
                ctx.write(f"value: {quoted(value)}")


def write_container_ports(ctx: WriterContext, workload: Workload) -> None:
    if not workload.container_ports:
        return
    ctx.write("ports:")
    with ctx.indented():
        for port, protocol in workload.container_ports:
            ctx.write(f"- containerPort: {port}")
            with ctx.indented():
                ctx.write(f"protocol: {protocol}")
