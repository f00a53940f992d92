"""
Tests for the compose generator — layout, preconditions, determinism.
"""

import textwrap

import pytest
import yaml

from topoform.core.config.reader import read_project
from topoform.core.models import ErrorKind
from topoform.core.services.generators.common import yaml_scalar
from topoform.core.services.generators.compose import (
    COMPOSE_FILE_NAME,
    check_compose,
    generate_compose,
)

SOURCE = "/work/topoform.yml"

EXPECTED_SAMPLE = textwrap.dedent("""\
    # Generated by topoform (0.1.0)
    # Source file: /work/topoform.yml
    # Date: 2026-01-02 03:04:05
    version: '3'
    services:
      demomainpublicapinginx:
        image: demo_main_public_api_nginx
        restart: always
        ports:
          - "80:80"
      demomainsecurewwwnginx:
        image: demo_main_secure_www_nginx
        restart: always
        ports:
          - "443:443"
      api:
        image: demo/api
        restart: always
        labels:
          source.path: "src/api"
          project.artefact: "true"
        environment:
          - LOG_LEVEL=info
          - WORKERS=4
        ports:
          - "8080:8080"
      webapp:
        image: demo/webapp
        restart: always
        labels:
          source.path: "src/web"
          project.artefact: "true"
        ports:
          - "443:8443"
      db:
        image: postgres:16
        restart: always
        environment:
          - POSTGRES_DB=demo
        ports:
          - "5432"
""")


def _project(raw: dict, dev_resources: dict | None = None):
    result = read_project(raw, dev_resources)
    assert result.ok, result.errors
    return result.project


def _render(project, fixed_date, **kwargs) -> str:
    result = generate_compose(project, SOURCE, generated_at=fixed_date, **kwargs)
    assert result.ok, result.errors
    [generated] = result.files
    assert generated.path == COMPOSE_FILE_NAME
    return generated.content


class TestComposeLayout:
    def test_single_component(self, fixed_date):
        project = _project({"id": "demo", "components": {"webapp": {"path": "src/web"}}})
        content = _render(project, fixed_date)
        assert content.endswith(textwrap.dedent("""\
            services:
              webapp:
                image: demo/webapp
                restart: always
                labels:
                  source.path: "src/web"
                  project.artefact: "true"
        """))
        assert "environment:" not in content
        assert "ports:" not in content

    def test_full_sample(self, sample_project, fixed_date):
        assert _render(sample_project, fixed_date) == EXPECTED_SAMPLE

    def test_parses_as_yaml(self, sample_project, fixed_date):
        doc = yaml.safe_load(_render(sample_project, fixed_date))
        assert doc["version"] == "3"
        services = doc["services"]
        assert list(services) == [
            "demomainpublicapinginx",
            "demomainsecurewwwnginx",
            "api",
            "webapp",
            "db",
        ]
        assert services["api"]["environment"] == ["LOG_LEVEL=info", "WORKERS=4"]
        assert services["api"]["labels"]["project.artefact"] == "true"
        assert services["db"]["image"] == "postgres:16"

    def test_empty_project_still_has_services_header(self, fixed_date):
        content = _render(_project({"id": "empty"}), fixed_date)
        assert content.splitlines()[-1] == "services:"

    def test_preamble(self, sample_project, fixed_date):
        lines = _render(sample_project, fixed_date).splitlines()
        assert lines[:3] == [
            "# Generated by topoform (0.1.0)",
            f"# Source file: {SOURCE}",
            "# Date: 2026-01-02 03:04:05",
        ]

    def test_no_edges(self, sample_project, fixed_date):
        content = _render(sample_project, fixed_date, include_edges=False)
        assert "nginx" not in content
        assert "  api:\n" in content

    def test_sorted_regardless_of_declared_order(self, fixed_date):
        project = _project({"id": "p", "components": {"zeta": {}, "alpha": {}, "mid": {}}})
        services = yaml.safe_load(_render(project, fixed_date))["services"]
        assert list(services) == ["alpha", "mid", "zeta"]

    def test_environment_order_preserved(self, fixed_date):
        project = _project({
            "id": "p",
            "components": {"web": {"environment": {"ABC": "DEF", "123": "345"}}},
        })
        services = yaml.safe_load(_render(project, fixed_date))["services"]
        assert services["web"]["environment"] == ["ABC=DEF", "123=345"]

    def test_ports_passed_through_verbatim(self, fixed_date):
        project = _project({
            "id": "p",
            "components": {"web": {"exposed-ports": ["anything", "127.0.0.1:80:80/udp"]}},
        })
        services = yaml.safe_load(_render(project, fixed_date))["services"]
        assert services["web"]["ports"] == ["anything", "127.0.0.1:80:80/udp"]

    @pytest.mark.parametrize("name", ["123", "true", "null"])
    def test_service_keys_stay_strings(self, name, fixed_date):
        project = _project({
            "id": "p",
            "components": {name: {}},
            "resources": {"9": {"type": "redis", "image": "redis"}},
            "topology": {"7": {"1": {"target": name, "type": "http"}}},
        })
        services = yaml.safe_load(_render(project, fixed_date))["services"]
        assert all(isinstance(key, str) for key in services)
        assert name in services
        assert "9" in services

    def test_tricky_environment_values_are_quoted(self, fixed_date):
        project = _project({
            "id": "p",
            "resources": {"db": {"type": "postgres", "image": "pg", "environment": {"DSN": "a: b #c"}}},
        })
        services = yaml.safe_load(_render(project, fixed_date))["services"]
        assert services["db"]["environment"] == ["DSN=a: b #c"]


class TestComposeDeterminism:
    def test_identical_apart_from_date(self, sample_raw, fixed_date):
        first = generate_compose(read_project(sample_raw).project, SOURCE).files[0].content
        second = generate_compose(read_project(sample_raw).project, SOURCE).files[0].content
        strip = lambda text: [ln for ln in text.splitlines() if not ln.startswith("# Date:")]  # noqa: E731
        assert strip(first) == strip(second)

    def test_fixed_date_is_byte_identical(self, sample_project, fixed_date):
        assert _render(sample_project, fixed_date) == _render(sample_project, fixed_date)


class TestComposePreconditions:
    def test_resource_without_image(self, fixed_date):
        project = _project({"id": "p", "resources": {"db": {"type": "postgres"}}})
        result = generate_compose(project, SOURCE, generated_at=fixed_date)
        assert not result.ok
        assert result.files == []
        [err] = result.errors
        assert err.kind is ErrorKind.PRECONDITION
        assert err.message == "Image name is required for: db"

    def test_every_missing_image_reported(self):
        project = _project({"id": "p", "resources": {"b": {"type": "x"}, "a": {"type": "x"}}})
        errors = check_compose(project)
        assert [e.message for e in errors] == [
            "Image name is required for: a",
            "Image name is required for: b",
        ]

    def test_name_collision_rejected(self):
        project = _project({"id": "p", "components": {"my-app": {}, "my_app": {}}})
        result = generate_compose(project, SOURCE)
        assert not result.ok
        [err] = result.errors
        assert "myapp" in err.message
        assert "my-app" in err.message and "my_app" in err.message

    def test_collision_across_kinds(self):
        project = _project({
            "id": "p",
            "components": {"cache": {}},
            "resources": {"c-ache": {"type": "redis", "image": "redis"}},
        })
        assert not generate_compose(project, SOURCE).ok

    def test_empty_generated_name(self):
        project = _project({"id": "p", "components": {"-": {}}})
        result = generate_compose(project, SOURCE)
        assert not result.ok
        assert "empty service name" in result.errors[0].message

    def test_edge_names_ignored_without_edges(self):
        project = _project({
            "id": "p",
            "components": {"pmainxnginx": {}, "api": {}},
            "topology": {"main": {"x": {"target": "api", "type": "http"}}},
        })
        assert not generate_compose(project, SOURCE).ok
        assert generate_compose(project, SOURCE, include_edges=False).ok


class TestMappedResources:
    def _project(self):
        raw = {
            "id": "demo",
            "components": {"web": {}},
            "resources": {"db": {"type": "postgres"}},
            "endpoints": {"pg": {"target": "db", "type": "http", "port-mapping": "15432:5432"}},
        }
        dev = {
            "db": {
                "path": "resources/postgres",
                "tag-name": "Dev-Postgres",
                "environment": {"POSTGRES_PASSWORD": "dev"},
                "ports": ["5432:5432"],
                "links": ["web"],
            }
        }
        return _project(raw, dev)

    def test_mapping_replaces_resource(self, fixed_date):
        content = _render(self._project(), fixed_date)
        assert content.endswith(textwrap.dedent("""\
              db:
                image: demo/dev_postgres
                restart: always
                labels:
                  source.path: "resources/postgres"
                  project.artefact: "true"
                environment:
                  - POSTGRES_PASSWORD=dev
                ports:
                  - "5432:5432"
                  - "15432:5432"
                links:
                  - web
        """))

    def test_mapping_satisfies_image_requirement(self):
        assert check_compose(self._project()) == []


class TestYamlScalar:
    @pytest.mark.parametrize("text, expected", [
        ("postgres:16", "postgres:16"),
        ("LOG_LEVEL=info", "LOG_LEVEL=info"),
        ("true", '"true"'),
        ("123", '"123"'),
        ("22:22", '"22:22"'),
        ("", '""'),
        ("- item", '"- item"'),
        ("a: b", '"a: b"'),
    ])
    def test_quoting(self, text, expected):
        assert yaml_scalar(text) == expected

    def test_round_trip_is_a_string(self):
        for text in ("true", "1.5", "null", "~", "x #y", "@at"):
            assert yaml.safe_load(f"v: {yaml_scalar(text)}")["v"] == text
