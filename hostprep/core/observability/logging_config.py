"""
Logging configuration — central setup for the CLI.

Called once at startup by main.py. Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Levels are resolved by ``resolve_level`` in precedence order:
    --debug  >  --verbose  >  --quiet  >  HOSTPREP_LOG_LEVEL  >  WARNING

A file log (HOSTPREP_LOG_FILE, HOSTPREP_LOG_FILE_LEVEL) is worth
keeping on provisioning runs: installer output is long and the
terminal report only shows the summary.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

LEVEL_ENV = "HOSTPREP_LOG_LEVEL"
FILE_ENV = "HOSTPREP_LOG_FILE"
FILE_LEVEL_ENV = "HOSTPREP_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

# Console formats by the most verbose level they apply to.
# Action threads and verifier workers are named, so DEBUG shows them.
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (
        logging.DEBUG,
        "%(asctime)s %(levelname)-5s %(threadName)s %(name)s:%(lineno)d  %(message)s",
        "%H:%M:%S",
    ),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
]
_FMT_CONSOLE_DEFAULT = "%(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(threadName)s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV, "WARNING")


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_FMT_CONSOLE_DEFAULT)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Level for the log file; defaults to ``level``.
        stream: Console stream. Defaults to stderr so stdout carries
            only the report and ``--json`` output.
    """
    console_level = _parse_level(level)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(handler)
        # Root must pass records down to the more verbose of the two
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    # A closed console stream must not crash a provisioning run
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name to its numeric constant (WARNING if unknown)."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
