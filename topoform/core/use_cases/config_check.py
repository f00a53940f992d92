"""
Config check use case — validate topoform.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from topoform.core.config.loader import (
    ConfigError,
    load_dev_resources,
    load_project_config,
    project_root,
)
from topoform.core.config.reader import read_project
from topoform.core.models.project import Project
from topoform.core.services.generators.common import check_images
from topoform.core.services.generators.naming import (
    component_service_name,
    find_collisions,
    resource_service_name,
)


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    project: Project | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "project_id": self.project.id if self.project else None,
            "component_count": len(self.project.components) if self.project else 0,
            "resource_count": len(self.project.resources) if self.project else 0,
            "sub_edge_count": len(self.project.sub_edge_defs()) if self.project else 0,
            "endpoint_count": len(self.project.endpoints) if self.project else 0,
        }


def check_config(
    config_path: Path | None = None,
    dev_resources_path: Path | None = None,
) -> ConfigCheckResult:
    """Validate project configuration and report issues.

    Errors make the configuration unusable. Warnings flag things that
    will stop a particular backend (e.g. a resource without an image)
    or that look like mistakes.

    Args:
        config_path: Optional explicit path to topoform.yml.
        dev_resources_path: Optional dev-resources file to validate with it.
    """
    result = ConfigCheckResult()

    # Load
    try:
        config_path, raw = load_project_config(config_path)
        result.config_path = config_path
        dev_resources = load_dev_resources(dev_resources_path) if dev_resources_path else None
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Validate
    read = read_project(raw, dev_resources)
    if not read.ok:
        result.errors.extend(str(e) for e in read.errors)
        return result
    project = read.project
    assert project is not None
    result.project = project

    # Semantic checks
    if not project.components and not project.resources:
        result.warnings.append("No components or resources defined. Nothing will be generated.")

    named = [(f"component '{c.id}'", component_service_name(c)) for c in project.sorted_components()]
    named += [(f"resource '{r.id}'", resource_service_name(r)) for r in project.sorted_resources()]
    for generated, sources in find_collisions(named).items():
        result.warnings.append(
            f"{', '.join(sources)} share the generated name '{generated}'; "
            "generators will refuse this project"
        )

    for problem in check_images(project):
        result.warnings.append(problem.message)

    # Check component paths exist (relative to project root)
    root = project_root(config_path)
    for component in project.sorted_components():
        if component.path and not (root / component.path).exists():
            result.warnings.append(
                f"Component '{component.id}' path does not exist: {component.path}"
            )

    result.valid = len(result.errors) == 0
    return result
