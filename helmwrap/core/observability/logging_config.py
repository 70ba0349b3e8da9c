"""
Logging configuration — set up once by the CLI entry point.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config.  Levels are resolved in precedence order:

    --debug  >  --verbose  >  --quiet  >  HELMWRAP_LOG_LEVEL  >  WARNING

Helm output echoed by verbose commands is logged at INFO by
``helmwrap.adapters.shell.command``; below DEBUG the console format is the
bare message so multi-line tables stay readable.

Optional file output via HELMWRAP_LOG_FILE / HELMWRAP_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV_VAR = "HELMWRAP_LOG_LEVEL"
FILE_ENV_VAR = "HELMWRAP_LOG_FILE"
FILE_LEVEL_ENV_VAR = "HELMWRAP_LOG_FILE_LEVEL"

_FMT_CONSOLE = "%(message)s"
_FMT_CONSOLE_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s — %(message)s"
_DATEFMT = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV_VAR, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure Python logging for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file (default: $HELMWRAP_LOG_FILE).
        log_file_level: Level for the log file (default:
            $HELMWRAP_LOG_FILE_LEVEL, then ``level``).
    """
    numeric_level = _parse_level(level)
    log_file = log_file or os.environ.get(FILE_ENV_VAR) or None
    log_file_level = log_file_level or os.environ.get(FILE_LEVEL_ENV_VAR) or None

    fmt = _FMT_CONSOLE_DEBUG if numeric_level <= logging.DEBUG else _FMT_CONSOLE
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=_DATEFMT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
