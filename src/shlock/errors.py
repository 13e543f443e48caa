"""Error taxonomy for shlock.

Every error carries the process exit code it maps to, so callers can
branch on "did not run" (1, 2) versus "ran and failed" (3).
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    LOCK_UNAVAILABLE = 1
    INVALID_ARGUMENTS = 2
    COMMAND_FAILED = 3


class ShlockError(Exception):
    """Base exception for shlock errors."""

    exit_code: int = ExitCode.LOCK_UNAVAILABLE


class InvalidArgumentsError(ShlockError):
    """Raised for malformed options, or a missing or empty lock name."""

    exit_code = ExitCode.INVALID_ARGUMENTS


class LockHeldError(ShlockError):
    """Raised when a non-blocking attempt finds the lock taken."""

    def __init__(self, message: str, holder_pid: int | None = None) -> None:
        super().__init__(message)
        self.holder_pid = holder_pid


class LockTimeoutError(LockHeldError):
    """Raised when a bounded wait expires before the lock is acquired."""


class LockDirectoryError(ShlockError):
    """Raised for lock directory or lock file I/O failures unrelated to contention."""


class CommandFailedError(ShlockError):
    """Raised when the locked command exits non-zero."""

    exit_code = ExitCode.COMMAND_FAILED

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class CommandNotStartedError(CommandFailedError):
    """Raised when the locked command could not be started at all."""
