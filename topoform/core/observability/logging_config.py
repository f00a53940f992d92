"""
Logging setup for the topoform CLI.

main.py calls ``configure_from_cli()`` once per invocation; library code
only ever does ``logger = logging.getLogger(__name__)`` and never
configures handlers itself.

Level precedence:
    --debug / --verbose / --quiet  >  TOPOFORM_LOG_LEVEL  >  WARNING

A second, usually more detailed, log can be sent to a file with
TOPOFORM_LOG_FILE (and TOPOFORM_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LOG_LEVEL = "TOPOFORM_LOG_LEVEL"
ENV_LOG_FILE = "TOPOFORM_LOG_FILE"
ENV_LOG_FILE_LEVEL = "TOPOFORM_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "WARNING"

# ── Formats, by console level ───────────────────────────────────

_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
# WARNING and above: the message is all a user needs
_CONSOLE_PLAIN = ("%(message)s", None)

_FILE_FORMAT = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%Y-%m-%d %H:%M:%S")


def level_for_flags(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(ENV_LOG_LEVEL, DEFAULT_LEVEL)


def parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING


def _console_formatter(numeric_level: int) -> logging.Formatter:
    for threshold in sorted(_CONSOLE_FORMATS):
        if numeric_level <= threshold:
            fmt, datefmt = _CONSOLE_FORMATS[threshold]
            return logging.Formatter(fmt, datefmt=datefmt)
    fmt, datefmt = _CONSOLE_PLAIN
    return logging.Formatter(fmt, datefmt=datefmt)


def setup_logging(
    level: str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> logging.Logger:
    """Replace the root logger's handlers with a stderr handler (and optionally a file).

    Args:
        level: Console level name.
        log_file: Optional path of a log file to append to.
        log_file_level: Level for the file; defaults to ``level``.

    Returns:
        The configured root logger.
    """
    console_level = parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT[0], datefmt=_FILE_FORMAT[1]))
        root.addHandler(fh)
        root_level = min(root_level, file_level)

    # root must let through whatever the most verbose handler wants
    root.setLevel(root_level)

    # a closed stderr (e.g. after a CliRunner invocation) must not break generation
    logging.raiseExceptions = False
    return root


def configure_from_cli(*, debug: bool, verbose: bool, quiet: bool) -> logging.Logger:
    """Entry point for main.py: flags + TOPOFORM_* environment."""
    return setup_logging(
        level=level_for_flags(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )
