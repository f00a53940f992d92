"""
Tests for logging setup — level resolution and handlers.
"""

import logging
from pathlib import Path

import pytest

from topoform.core.observability.logging_config import (
    ENV_LOG_LEVEL,
    level_for_flags,
    parse_level,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestLevelResolution:
    def test_flags_win(self):
        env = {ENV_LOG_LEVEL: "INFO"}
        assert level_for_flags(debug=True, environ=env) == "DEBUG"
        assert level_for_flags(verbose=True, environ=env) == "INFO"
        assert level_for_flags(quiet=True, environ=env) == "ERROR"

    def test_debug_beats_quiet(self):
        assert level_for_flags(debug=True, quiet=True, environ={}) == "DEBUG"

    def test_environment(self):
        assert level_for_flags(environ={ENV_LOG_LEVEL: "error"}) == "error"

    def test_default(self):
        assert level_for_flags(environ={}) == "WARNING"

    @pytest.mark.parametrize("name, expected", [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        (" error ", logging.ERROR),
        ("nonsense", logging.WARNING),
        ("", logging.WARNING),
        (None, logging.WARNING),
    ])
    def test_parse_level(self, name, expected):
        assert parse_level(name) == expected


class TestSetupLogging:
    def test_console_only(self, restore_root_logger):
        root = setup_logging("INFO")
        assert root is restore_root_logger
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO

    def test_repeat_calls_do_not_stack(self, restore_root_logger):
        setup_logging("WARNING")
        setup_logging("WARNING")
        assert len(logging.getLogger().handlers) == 1

    def test_file_handler(self, restore_root_logger, tmp_path: Path):
        log_file = tmp_path / "topoform.log"
        root = setup_logging("ERROR", log_file=str(log_file), log_file_level="DEBUG")
        assert root.level == logging.DEBUG
        logging.getLogger("topoform.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()
