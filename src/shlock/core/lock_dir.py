"""Lock directory selection.

Picks the first writable directory from an ordered candidate list. The
choice is made once per process and reused for every later lookup.
"""

import functools
import logging
import os
from pathlib import Path

from ..errors import LockDirectoryError

logger = logging.getLogger(__name__)


def _is_writable_dir(path: Path) -> bool:
    return path.is_dir() and os.access(path, os.W_OK | os.X_OK)


def _prepare_candidate(path: Path) -> bool:
    """Return True if path is usable, creating it when only its parent exists."""
    if _is_writable_dir(path):
        return True
    if path.exists() or not _is_writable_dir(path.parent):
        return False
    try:
        path.mkdir()
    except FileExistsError:
        # Another process created it first
        pass
    except OSError as e:
        logger.debug(f"Cannot create lock directory {path}: {e}")
        return False
    return _is_writable_dir(path)


@functools.cache
def select_lock_dir(candidates: tuple[Path, ...]) -> Path:
    """Return the first writable lock directory among candidates.

    Args:
        candidates: Directories in preference order

    Returns:
        The selected directory

    Raises:
        LockDirectoryError: If no candidate is writable or creatable
    """
    for candidate in candidates:
        if _prepare_candidate(candidate):
            logger.debug(f"Using lock directory {candidate}")
            return candidate
        logger.debug(f"Lock directory candidate not writable: {candidate}")

    tried = ", ".join(str(c) for c in candidates) or "(none)"
    raise LockDirectoryError(f"No writable lock directory (tried: {tried})")
