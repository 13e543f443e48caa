"""Constants for shlock."""

import tempfile
from pathlib import Path

# Candidate lock directories, in preference order
DEFAULT_LOCK_DIRS = (
    Path("/run/lock"),
    Path("/var/lock"),
    Path(tempfile.gettempdir()) / "shlock",
)

LOCK_SUFFIX = ".lock"
PID_SUFFIX = ".pid"

DEFAULT_MAX_AGE_HOURS = 24
DEFAULT_POLL_INTERVAL = 0.05  # seconds between LOCK_NB attempts under --timeout

# Environment overrides
LOCK_DIR_ENV = "SHLOCK_LOCK_DIR"
CONFIG_ENV = "SHLOCK_CONFIG"
