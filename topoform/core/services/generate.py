"""
Generation service — backend selection, output-target checks, persistence.

Each backend has a fixed output shape: compose writes one file, cluster
writes a set of files into an existing directory. The shape is checked
before anything is rendered, and files are only written once rendering
has fully succeeded, each via a temp file + rename so a failed run never
leaves a half-written manifest behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import assert_never

from topoform.core.models.errors import TopologyError
from topoform.core.models.project import Project
from topoform.core.models.template import GeneratedFile
from topoform.core.services.generators.cluster import generate_cluster
from topoform.core.services.generators.common import GenerateResult
from topoform.core.services.generators.compose import generate_compose

logger = logging.getLogger(__name__)


class Backend(StrEnum):
    """Supported deployment targets."""

    COMPOSE = "compose"
    CLUSTER = "cluster"


class OutputShape(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"


def output_shape(backend: Backend) -> OutputShape:
    match backend:
        case Backend.COMPOSE:
            return OutputShape.FILE
        case Backend.CLUSTER:
            return OutputShape.DIRECTORY
        case _:
            assert_never(backend)


def check_output_target(backend: Backend, out: Path) -> list[TopologyError]:
    """Whether *out* has the shape *backend* writes to. Never creates directories."""
    location = str(out)
    match output_shape(backend):
        case OutputShape.FILE:
            if out.is_dir():
                return [TopologyError.output_target(
                    f"Output path is a directory. {backend} output requires a single file.",
                    location=location,
                )]
            parent = out.absolute().parent
            if not parent.is_dir():
                return [TopologyError.output_target(
                    f"Output directory [{parent}] does not exist.", location=location,
                )]
        case OutputShape.DIRECTORY:
            if out.exists() and not out.is_dir():
                return [TopologyError.output_target(
                    f"Output path is a file. {backend} output requires a directory.",
                    location=location,
                )]
            if not out.is_dir():
                return [TopologyError.output_target(
                    f"Output directory [{out}] does not exist.", location=location,
                )]
    return []


def render(
    backend: Backend,
    project: Project,
    source_path: Path | str,
    *,
    include_edges: bool = True,
    generated_at: datetime | None = None,
) -> GenerateResult:
    """Run the generator for *backend*; nothing is written to disk."""
    match backend:
        case Backend.COMPOSE:
            return generate_compose(
                project, source_path, include_edges=include_edges, generated_at=generated_at,
            )
        case Backend.CLUSTER:
            return generate_cluster(project, source_path, generated_at=generated_at)
        case _:
            assert_never(backend)


def _atomic_write(path: Path, content: str) -> None:
    """Write via a sibling temp file and rename over *path*."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_output(backend: Backend, files: list[GeneratedFile], out: Path) -> list[Path]:
    """Persist rendered files to *out* according to the backend's shape.

    Returns:
        The paths written, in order.
    """
    written: list[Path] = []
    match output_shape(backend):
        case OutputShape.FILE:
            # single-file backends render exactly one file
            (generated,) = files
            _atomic_write(out, generated.content)
            written.append(out)
        case OutputShape.DIRECTORY:
            for generated in files:
                target = out / generated.path
                _atomic_write(target, generated.content)
                written.append(target)
    for path in written:
        logger.debug("Wrote %s", path)
    return written
