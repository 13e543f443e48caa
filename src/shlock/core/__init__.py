"""Core locking logic for shlock.

- lock_dir: lock directory selection
- liveness: process existence probing
- staleness: stale lock detection and reclamation
- lock_manager: kernel lock acquisition and locked command execution
"""

from .liveness import Liveness, probe_process
from .lock_dir import select_lock_dir
from .lock_manager import (
    acquire_and_run,
    derive_lock_name,
    hold_lock,
    remove_owner_record,
    validate_lock_name,
    write_owner_record,
)
from .staleness import Staleness, evaluate_staleness, is_stale, read_owner_pid, reclaim

__all__ = [
    "Liveness",
    "Staleness",
    "acquire_and_run",
    "derive_lock_name",
    "evaluate_staleness",
    "hold_lock",
    "is_stale",
    "probe_process",
    "read_owner_pid",
    "reclaim",
    "remove_owner_record",
    "select_lock_dir",
    "validate_lock_name",
    "write_owner_record",
]
