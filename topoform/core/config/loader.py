"""
Configuration loader — reads topoform.yml into a raw mapping.

This is the upstream half of the pipeline: it finds and parses YAML and
nothing else. Turning the mapping into a ``Project`` (and reporting what
is wrong with it) is the reader's job.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from yaml.constructor import ConstructorError

logger = logging.getLogger(__name__)

# Default config filename
PROJECT_CONFIG_FILE = "topoform.yml"

# Top-level key of the dev-resources file
DEV_RESOURCES_KEY = "dev-resources"

_MERGE_TAG = "tag:yaml.org,2002:merge"


class ConfigError(Exception):
    """Raised when a configuration file is missing or not parseable."""


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses a mapping declaring the same key twice.

    Plain ``safe_load`` keeps the last value, which would silently drop
    e.g. one of two components both named ``api``.
    """

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen: set = set()
            for key_node, _ in node.value:
                if key_node.tag == _MERGE_TAG:
                    continue
                key = self.construct_object(key_node, deep=deep)
                try:
                    duplicate = key in seen
                except TypeError:
                    continue  # unhashable; the base constructor reports it
                if duplicate:
                    raise ConstructorError(
                        "while constructing a mapping", node.start_mark,
                        f"found duplicate key {key!r}", key_node.start_mark,
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Search for topoform.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to topoform.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Read *path* and return its top-level YAML mapping.

    Raises:
        ConfigError: If the file is missing, unreadable, invalid YAML,
            or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading YAML from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.load(raw, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_project_config(path: Path | None = None) -> tuple[Path, dict[str, Any]]:
    """Locate and parse the project file.

    The YAML may wrap everything under a "project" key or be flat.

    Args:
        path: Explicit path to topoform.yml. If None, searches upward.

    Returns:
        (resolved path, raw project mapping)

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_project_file()

    if path is None:
        raise ConfigError(
            f"No {PROJECT_CONFIG_FILE} found. "
            "Create one in the project root, or specify --config."
        )

    data = load_yaml_mapping(path)
    project_data = data["project"] if isinstance(data.get("project"), dict) else data

    logger.info("Loaded project config from %s", path)
    return path.resolve(), project_data


def load_dev_resources(path: Path) -> dict[str, Any]:
    """Parse a dev-resources file into ``{resource_id: mapping}``.

    Accepts the mappings either under a ``dev-resources:`` key or at the
    top level.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    data = load_yaml_mapping(path)
    mappings = data.get(DEV_RESOURCES_KEY, data)
    if not isinstance(mappings, dict):
        raise ConfigError(
            f"Expected '{DEV_RESOURCES_KEY}' in {path} to be a mapping, "
            f"got {type(mappings).__name__}"
        )
    logger.info("Loaded %d dev resource mapping(s) from %s", len(mappings), path)
    return mappings


def project_root(config_path: Path) -> Path:
    """Get the project root directory from a config file path."""
    return config_path.parent.resolve()
