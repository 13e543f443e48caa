"""Process liveness probing."""

import os
from enum import Enum


class Liveness(str, Enum):
    """Whether a process currently exists."""

    ALIVE = "alive"
    DEAD = "dead"


def probe_process(pid: int) -> Liveness:
    """Check whether a process with the given PID exists.

    Sends signal 0, which performs the existence and permission checks
    without delivering anything to the target.
    """
    if pid <= 0:
        # 0 and negative values address process groups, not a single process
        return Liveness.DEAD
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return Liveness.DEAD
    except PermissionError:
        # Exists but belongs to another user
        return Liveness.ALIVE
    except OverflowError:
        return Liveness.DEAD
    return Liveness.ALIVE
