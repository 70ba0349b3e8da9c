"""
PATH resolution — the search path handed to every external command.

The inherited PATH is extended with the helmwrap binary directory, the
directory of a secondary build tool when it is installed, and any
caller-supplied directories.  Lookups that fail contribute nothing.

The result is passed to the child process through ``env=``; the
process-wide ``os.environ`` is never modified.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "HELMWRAP_HOME"
DEFAULT_HOME_DIR = ".helmwrap"
SECONDARY_TOOL = "mvn"


def home_dir() -> Path:
    """Return the helmwrap home directory (``$HELMWRAP_HOME`` or ``~/.helmwrap``)."""
    override = os.environ.get(HOME_ENV_VAR, "")
    if override:
        return Path(override)
    return Path.home() / DEFAULT_HOME_DIR


def binary_location() -> str:
    """Directory where helmwrap keeps downloaded tool binaries."""
    try:
        return str(home_dir() / "bin")
    except RuntimeError as e:
        # Path.home() fails when no home directory can be determined
        logger.debug("Cannot resolve binary location: %s", e)
        return ""


def secondary_binary_location(tool: str = SECONDARY_TOOL) -> str:
    """Directory containing ``tool`` on the current PATH, or ``""``."""
    found = shutil.which(tool)
    if not found:
        return ""
    return str(Path(found).parent)


def path_with_binary(*paths: str, base_path: str | None = None) -> str:
    """Build an augmented PATH value.

    Args:
        *paths: Extra directories appended last, in order.
        base_path: Starting value (default: the current ``PATH``).

    Returns:
        ``os.pathsep``-joined search path.
    """
    if base_path is None:
        base_path = os.environ.get("PATH", "")

    entries = [base_path, binary_location(), secondary_binary_location(), *paths]
    return os.pathsep.join(e for e in entries if e)


def command_env(*paths: str) -> dict[str, str]:
    """Copy of the current environment with PATH replaced by the augmented value."""
    env = os.environ.copy()
    env["PATH"] = path_with_binary(*paths)
    return env
