"""
Generate use case — from project file to manifests on disk.

Load config → check the output target → read and validate the project
→ render with the chosen backend → write. Each stage stops the run on
error, and nothing is written unless every earlier stage succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from topoform.core.config.loader import ConfigError, load_dev_resources, load_project_config
from topoform.core.config.reader import read_project
from topoform.core.models.errors import TopologyError
from topoform.core.models.project import Project
from topoform.core.services.generate import (
    Backend,
    OutputShape,
    check_output_target,
    output_shape,
    render,
    write_output,
)

logger = logging.getLogger(__name__)


@dataclass
class GenerateRunResult:
    """Result of one generate run."""

    backend: Backend
    out: Path
    project: Project | None = None
    config_path: Path | None = None
    written: list[Path] = field(default_factory=list)
    errors: list[TopologyError] = field(default_factory=list)
    error: str | None = None     # config file could not be loaded at all

    @property
    def ok(self) -> bool:
        return self.error is None and not self.errors

    @property
    def message(self) -> str:
        if not self.ok:
            return self.error or f"{len(self.errors)} problem(s) found"
        match output_shape(self.backend):
            case OutputShape.FILE:
                return (
                    f"Wrote configuration to [{self.out}].\n"
                    f"Run with `docker-compose -f '{self.out}' up`"
                )
            case OutputShape.DIRECTORY:
                return (
                    f"Wrote {len(self.written)} manifest(s) to [{self.out}].\n"
                    f"Run with `kubectl apply -f '{self.out}'`"
                )

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok, "backend": str(self.backend), "out": str(self.out)}
        if self.error:
            result["error"] = self.error
        if self.errors:
            result["errors"] = [str(e) for e in self.errors]
        if self.ok:
            result["project"] = self.project.id if self.project else None
            result["written"] = [str(p) for p in self.written]
        return result


def run_generate(
    backend: Backend,
    out: Path,
    *,
    config_path: Path | None = None,
    dev_resources_path: Path | None = None,
    include_edges: bool = True,
    generated_at: datetime | None = None,
) -> GenerateRunResult:
    """Generate manifests for *backend* into *out*.

    Args:
        backend: Which generator to use.
        out: Output file (compose) or existing directory (cluster).
        config_path: Explicit topoform.yml; searched upward when None.
        dev_resources_path: Optional dev-resources file.
        include_edges: Compose only — render sub-edge proxy services.
        generated_at: Preamble timestamp override.
    """
    result = GenerateRunResult(backend=backend, out=out)

    try:
        config_path, raw = load_project_config(config_path)
        dev_resources = load_dev_resources(dev_resources_path) if dev_resources_path else None
    except ConfigError as e:
        result.error = str(e)
        return result
    result.config_path = config_path

    result.errors = check_output_target(backend, out)
    if result.errors:
        return result

    read = read_project(raw, dev_resources)
    if not read.ok:
        result.errors = read.errors
        return result
    result.project = read.project
    assert read.project is not None

    rendered = render(
        backend,
        read.project,
        config_path,
        include_edges=include_edges,
        generated_at=generated_at,
    )
    if not rendered.ok:
        result.errors = rendered.errors
        return result

    result.written = write_output(backend, rendered.files, out)
    logger.info("Generated %s output for '%s' at %s", backend, read.project.id, out)
    return result
