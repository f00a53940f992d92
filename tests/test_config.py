"""
Tests for configuration loading — topoform.yml and dev-resources parsing.
"""

import textwrap
from pathlib import Path

import pytest

from topoform.core.config.loader import (
    ConfigError,
    find_project_file,
    load_dev_resources,
    load_project_config,
    load_yaml_mapping,
    project_root,
)


@pytest.fixture
def wrapped_project_yml(tmp_path: Path) -> Path:
    """Create a topoform.yml with content under a 'project:' key."""
    content = textwrap.dedent("""\
        project:
          id: wrapped
          components:
            web:
              path: web
    """)
    path = tmp_path / "topoform.yml"
    path.write_text(content)
    return path


@pytest.fixture
def dev_resources_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        dev-resources:
          db:
            path: resources/postgres
            tag-name: dev_postgres
            ports:
              - "5432:5432"
    """)
    path = tmp_path / "dev-resources.yml"
    path.write_text(content)
    return path


class TestLoadProjectConfig:
    """Tests for load_project_config()."""

    def test_flat_format(self, config_file: Path):
        path, raw = load_project_config(config_file)
        assert path == config_file.resolve()
        assert raw["id"] == "demo"
        assert set(raw["components"]) == {"webapp", "api"}

    def test_wrapped_format(self, wrapped_project_yml: Path):
        _, raw = load_project_config(wrapped_project_yml)
        assert raw["id"] == "wrapped"
        assert "web" in raw["components"]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_project_config(tmp_path / "nope.yml")

    def test_auto_detect(self, config_file: Path, monkeypatch):
        nested = config_file.parent / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        path, raw = load_project_config()
        assert path == config_file.resolve()
        assert raw["id"] == "demo"

    def test_nothing_to_detect(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match="No topoform.yml found"):
            load_project_config()


class TestLoadYamlMapping:
    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yml"
        path.write_text("id: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_yaml_mapping(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_yaml_mapping(path)

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_yaml_mapping(path) == {}

    def test_directory_is_not_a_file(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_yaml_mapping(tmp_path)

    def test_duplicate_key_rejected(self, tmp_path: Path):
        path = tmp_path / "dup.yml"
        path.write_text("id: p\ncomponents:\n  api:\n    path: one\n  api:\n    path: two\n")
        with pytest.raises(ConfigError, match="duplicate key 'api'"):
            load_yaml_mapping(path)

    def test_duplicate_top_level_key_rejected(self, tmp_path: Path):
        path = tmp_path / "dup.yml"
        path.write_text("id: first\nid: second\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_yaml_mapping(path)

    def test_merge_keys_still_allowed(self, tmp_path: Path):
        path = tmp_path / "merge.yml"
        path.write_text(textwrap.dedent("""\
            base: &base
              restart: always
            web:
              <<: *base
              path: web
        """))
        assert load_yaml_mapping(path)["web"] == {"restart": "always", "path": "web"}


class TestLoadDevResources:
    def test_under_key(self, dev_resources_yml: Path):
        mappings = load_dev_resources(dev_resources_yml)
        assert list(mappings) == ["db"]
        assert mappings["db"]["tag-name"] == "dev_postgres"

    def test_top_level(self, tmp_path: Path):
        path = tmp_path / "dev.yml"
        path.write_text("cache:\n  tag-name: dev_redis\n")
        assert load_dev_resources(path) == {"cache": {"tag-name": "dev_redis"}}

    def test_duplicate_resource_rejected(self, tmp_path: Path):
        path = tmp_path / "dev.yml"
        path.write_text("dev-resources:\n  db:\n    tag-name: a\n  db:\n    tag-name: b\n")
        with pytest.raises(ConfigError, match="duplicate key"):
            load_dev_resources(path)

    def test_key_must_hold_mapping(self, tmp_path: Path):
        path = tmp_path / "dev.yml"
        path.write_text("dev-resources:\n  - db\n")
        with pytest.raises(ConfigError, match="to be a mapping"):
            load_dev_resources(path)


class TestFindProjectFile:
    """Tests for find_project_file()."""

    def test_find_in_current_dir(self, config_file: Path):
        assert find_project_file(config_file.parent) == config_file.resolve()

    def test_find_in_parent(self, config_file: Path):
        child = config_file.parent / "child"
        child.mkdir()
        assert find_project_file(child) == config_file.resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_project_file(tmp_path) is None


class TestProjectRoot:
    def test_parent_of_config(self, config_file: Path):
        assert project_root(config_file) == config_file.parent.resolve()
