"""
Shared test fixtures and configuration.
"""

import textwrap
from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from topoform.core.config.reader import read_project
from topoform.core.models import Project

FIXED_DATE = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

SAMPLE_CONFIG = textwrap.dedent("""\
    id: demo
    components:
      webapp:
        path: src/web
      api:
        path: src/api
        environment:
          LOG_LEVEL: info
          WORKERS: 4
        exposed-ports:
          - "8080:8080"
    resources:
      db:
        type: postgres
        image: postgres:16
        environment:
          POSTGRES_DB: demo
        exposed-ports:
          - "5432"
    topology:
      main:
        public-api:
          target: api
          type: http
        secure-www:
          target: webapp
          type: HTTPS
    endpoints:
      public:
        target: webapp
        type: https
        port-mapping: "443:8443"
""")


@pytest.fixture
def project_root() -> Path:
    """Return the repository root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fixed_date() -> datetime:
    """A constant generation timestamp."""
    return FIXED_DATE


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write the sample topoform.yml into a temp directory."""
    path = tmp_path / "topoform.yml"
    path.write_text(SAMPLE_CONFIG)
    return path


@pytest.fixture
def sample_raw() -> dict:
    """The sample config as a parsed mapping."""
    return yaml.safe_load(SAMPLE_CONFIG)


@pytest.fixture
def sample_project(sample_raw: dict) -> Project:
    """The sample config read into a Project."""
    result = read_project(sample_raw)
    assert result.ok, result.errors
    return result.project
