"""
Filesystem helpers — existence checks and glob lookups.

"Does not exist" is a normal negative answer.  Any other failure while
checking (permissions, I/O errors) propagates as ``OSError`` so callers
can tell the two apart.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

logger = logging.getLogger(__name__)


def file_exists(path: str | Path) -> bool:
    """Whether ``path`` exists and is a regular file.

    Raises:
        OSError: The check itself failed.
    """
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    return stat.S_ISREG(st.st_mode)


def glob_files(root: str | Path, pattern: str) -> list[str]:
    """Sorted paths under ``root`` matching ``pattern``, relative to ``root``.

    Returned paths use ``/`` separators regardless of platform.
    """
    base = Path(root)
    matches = sorted(p.relative_to(base).as_posix() for p in base.glob(pattern))
    logger.debug("glob %s in %s → %d matches", pattern, base, len(matches))
    return matches


def remove_file(path: str | Path) -> bool:
    """Delete ``path`` if it exists. Returns True when a file was removed."""
    if not file_exists(path):
        return False
    Path(path).unlink(missing_ok=True)
    return True
