"""Stale lock detection and reclamation.

A lock artifact is stale when it is older than the configured threshold
and its ownership record is missing, unreadable, or names a process that
no longer exists. Stale artifacts are removed so the next acquisition
starts from a fresh file.

Evaluation happens once before each acquisition attempt, never while a
caller is blocked waiting for the kernel lock.
"""

import contextlib
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum

from ..errors import LockDirectoryError
from ..models import LockFiles
from .liveness import Liveness, probe_process

logger = logging.getLogger(__name__)


class Staleness(str, Enum):
    """Outcome of a staleness evaluation."""

    STALE = "stale"
    NOT_STALE = "not_stale"


def read_owner_pid(files: LockFiles) -> int | None:
    """Read the PID recorded in the ownership record.

    Returns:
        The recorded PID, or None if the record is missing or unparsable

    Raises:
        LockDirectoryError: If the record exists but cannot be read
    """
    try:
        content = files.pid_path.read_text()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise LockDirectoryError(f"Cannot read ownership record {files.pid_path}: {e}") from e

    try:
        return int(content.strip())
    except ValueError:
        return None


def _artifact_age(files: LockFiles, now: datetime) -> timedelta | None:
    try:
        mtime = files.lock_path.stat().st_mtime
    except FileNotFoundError:
        return None
    except OSError as e:
        raise LockDirectoryError(f"Cannot stat lock file {files.lock_path}: {e}") from e
    # Aware UTC times; naive local times shift by an hour across DST changes
    return now - datetime.fromtimestamp(mtime, tz=timezone.utc)


def is_stale(files: LockFiles, threshold: timedelta, now: datetime | None = None) -> bool:
    """Decide whether the lock artifact should be reclaimed, without removing anything."""
    age = _artifact_age(files, now or datetime.now(timezone.utc))
    if age is None or age <= threshold:
        return False

    pid = read_owner_pid(files)
    if pid is None:
        # Missing or garbage record: nobody to validate
        return True

    return probe_process(pid) is Liveness.DEAD


def reclaim(files: LockFiles) -> None:
    """Remove the lock artifact and ownership record.

    A file already removed by a concurrent evaluator is not an error.
    """
    for path in (files.lock_path, files.pid_path):
        try:
            with contextlib.suppress(FileNotFoundError):
                path.unlink()
        except OSError as e:
            raise LockDirectoryError(f"Cannot remove stale lock file {path}: {e}") from e


def evaluate_staleness(
    files: LockFiles, threshold: timedelta, now: datetime | None = None
) -> Staleness:
    """Evaluate the lock for staleness and reclaim it if stale.

    Args:
        files: Lock artifact paths
        threshold: Maximum age before an unowned artifact is considered stale
        now: Current time as an aware datetime (defaults to now, in UTC)

    Returns:
        Staleness.STALE if the artifacts were removed, Staleness.NOT_STALE otherwise
    """
    if not is_stale(files, threshold, now):
        return Staleness.NOT_STALE

    logger.info(f"Removing stale lock '{files.name}' ({files.lock_path})")
    reclaim(files)
    return Staleness.STALE
