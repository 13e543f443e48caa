"""Lock file layout and lock request models."""

from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..constants import (
    DEFAULT_LOCK_DIRS,
    DEFAULT_MAX_AGE_HOURS,
    DEFAULT_POLL_INTERVAL,
    LOCK_SUFFIX,
    PID_SUFFIX,
)
from .policy import NonBlocking, WaitPolicy


class LockFiles(BaseModel):
    """Paths of the artifacts backing one named lock.

    Attributes:
        name: Lock name shared by all cooperating callers.
        directory: Lock directory holding the artifacts.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Lock name")
    directory: Path = Field(description="Directory holding the lock artifacts")

    @property
    def lock_path(self) -> Path:
        """Lock artifact: flock target, reused across acquisitions."""
        return self.directory / f"{self.name}{LOCK_SUFFIX}"

    @property
    def pid_path(self) -> Path:
        """Ownership record: PID of the current holder."""
        return self.directory / f"{self.name}{PID_SUFFIX}"


class LockRequest(BaseModel):
    """Everything the lock core needs for one invocation."""

    name: str = Field(description="Lock name (may be empty until validated)")
    command: list[str] = Field(description="Command and arguments to run while holding the lock")
    wait_policy: WaitPolicy = Field(default_factory=NonBlocking)
    stale_after: timedelta = Field(
        default=timedelta(hours=DEFAULT_MAX_AGE_HOURS),
        description="Age after which an unowned lock artifact is reclaimed",
    )
    lock_dirs: tuple[Path, ...] = Field(default=DEFAULT_LOCK_DIRS)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
