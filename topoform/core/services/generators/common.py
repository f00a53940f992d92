"""
Shared pieces of the backend generators: result type, preamble,
and the precondition checks more than one backend runs.

Must NOT import from any sibling backend module.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import yaml

from topoform import __app_name__, __version__
from topoform.core.models.errors import TopologyError
from topoform.core.models.project import Project
from topoform.core.models.template import GeneratedFile
from topoform.core.services.generators.naming import find_collisions
from topoform.core.services.generators.writer import WriterContext

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Characters that make a bare YAML scalar mean something else
_YAML_INDICATORS = frozenset("-?:,[]{}#&*!|>'\"%@`")
_YAML_PLAIN_UNSAFE = re.compile(r": |\s#|:$|^\s|\s$")


@dataclass
class GenerateResult:
    """Outcome of one generator run: rendered files, or the reasons why not.

    Exactly one of ``files`` / ``errors`` is non-empty.
    """

    files: list[GeneratedFile] = field(default_factory=list)
    errors: list[TopologyError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        if self.errors:
            return {"ok": False, "errors": [str(e) for e in self.errors]}
        return {"ok": True, "files": [f.model_dump() for f in self.files]}


# ── Formatting helpers ──────────────────────────────────────────


def formatted_date(generated_at: datetime | None = None) -> str:
    """Generation timestamp for the preamble (UTC)."""
    return (generated_at or datetime.now(UTC)).strftime(DATE_FORMAT)


def yaml_scalar(text: str) -> str:
    """Render *text* as a YAML scalar, quoting only when a bare one would misparse."""
    if not text or text[0] in _YAML_INDICATORS or _YAML_PLAIN_UNSAFE.search(text):
        return json.dumps(text)
    if not _reads_back_as_string(text):
        return json.dumps(text)
    return text


def _reads_back_as_string(text: str) -> bool:
    # "true", "123", "1.5", "22:22" (base 60) all resolve to non-strings
    try:
        return yaml.safe_load(text) == text
    except yaml.YAMLError:
        return False


def quoted(text: str) -> str:
    """Always double-quote (label values, ``project.artefact: "true"``)."""
    return json.dumps(text)


def write_preamble(
    ctx: WriterContext,
    source_path: Path | str,
    generated_at: datetime | None = None,
) -> None:
    """The three comment lines that open every generated file."""
    ctx.write(f"# Generated by {__app_name__} ({__version__})")
    ctx.write(f"# Source file: {source_path}")
    ctx.write(f"# Date: {formatted_date(generated_at)}")


# ── Preconditions ───────────────────────────────────────────────


def check_targets(project: Project) -> list[TopologyError]:
    """Every sub-edge and endpoint must point at a known component or resource."""
    return [
        TopologyError.referential(f"unknown target {problem}")
        for problem in project.unresolved_targets()
    ]


def check_images(project: Project) -> list[TopologyError]:
    """Resources without a dev mapping need an image to run."""
    errors: list[TopologyError] = []
    for resource in project.sorted_resources():
        if resource.image is None and project.get_mapping(resource.id) is None:
            errors.append(TopologyError.precondition(
                f"Image name is required for: {resource.id}",
                location=f"resources.{resource.id}.image",
            ))
    return errors


def check_names(named: Iterable[tuple[str, str]]) -> list[TopologyError]:
    """Reject empty generated names and names shared by several sources.

    Args:
        named: ``(source label, generated name)`` pairs, e.g.
            ``("component 'my-app'", "myapp")``.
    """
    pairs = list(named)
    errors = [
        TopologyError.precondition(f"{source} normalises to an empty service name")
        for source, generated in pairs
        if not generated
    ]
    for generated, sources in find_collisions((s, g) for s, g in pairs if g).items():
        errors.append(TopologyError.precondition(
            f"generated service name '{generated}' is shared by {', '.join(sources)}"
        ))
    return errors
