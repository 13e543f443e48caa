"""Lock manager for exclusive command execution.

Provides flock-based mutual exclusion per lock name, with an advisory
PID file recording the current holder. The kernel lock alone decides who
wins; the PID file only feeds stale lock detection and diagnostics.

Files per lock name, inside the selected lock directory:
- <name>.lock: flock target, kept across acquisitions
- <name>.pid: holder PID, present only while the lock is held
"""

import contextlib
import errno
import fcntl
import logging
import os
import signal
import threading
import time
from collections.abc import Iterator
from pathlib import Path
from types import FrameType

from ..errors import (
    CommandFailedError,
    InvalidArgumentsError,
    LockDirectoryError,
    LockHeldError,
    LockTimeoutError,
    ShlockError,
)
from ..models import Bounded, ExitOutcome, Indefinite, LockFiles, LockRequest, WaitPolicy
from ..services import run_command
from .lock_dir import select_lock_dir
from .staleness import evaluate_staleness, read_owner_pid

logger = logging.getLogger(__name__)

LOCK_FILE_MODE = 0o666  # narrowed by umask
HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGHUP, signal.SIGINT)


class HolderInterrupted(Exception):
    """Raised inside the holder when a termination signal arrives."""

    def __init__(self, signum: int) -> None:
        super().__init__(signal.Signals(signum).name)
        self.signum = signum


def _handle_signal(signum: int, frame: FrameType | None) -> None:
    raise HolderInterrupted(signum)


@contextlib.contextmanager
def _signals_raise() -> Iterator[None]:
    """Turn termination signals into HolderInterrupted for the duration of the block."""
    if threading.current_thread() is not threading.main_thread():
        # Handlers can only be installed from the main thread
        yield
        return

    previous = {signum: signal.signal(signum, _handle_signal) for signum in HANDLED_SIGNALS}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def derive_lock_name(command: list[str]) -> str:
    """Derive a lock name from the base name of the command path."""
    if not command:
        return ""
    return Path(command[0]).name


def validate_lock_name(name: str) -> str:
    """Check a lock name before it is used to build file paths.

    Raises:
        InvalidArgumentsError: If the name is empty or would escape the lock directory
    """
    if not name:
        raise InvalidArgumentsError("Lock name is required and must not be empty")
    if "/" in name or name in (".", ".."):
        raise InvalidArgumentsError(f"Invalid lock name: {name!r}")
    return name


def write_owner_record(files: LockFiles) -> None:
    """Record the current process as lock holder, overwriting any prior content."""
    try:
        files.pid_path.write_text(f"{os.getpid()}\n")
    except OSError as e:
        raise LockDirectoryError(f"Cannot write ownership record {files.pid_path}: {e}") from e


def remove_owner_record(files: LockFiles) -> None:
    """Remove the ownership record if present."""
    try:
        files.pid_path.unlink(missing_ok=True)
    except OSError as e:
        raise LockDirectoryError(f"Cannot remove ownership record {files.pid_path}: {e}") from e


def _open_lock_file(files: LockFiles) -> int:
    try:
        return os.open(files.lock_path, os.O_RDWR | os.O_CREAT | os.O_CLOEXEC, LOCK_FILE_MODE)
    except OSError as e:
        raise LockDirectoryError(f"Cannot open lock file {files.lock_path}: {e}") from e


def _try_flock(fd: int, blocking: bool) -> bool:
    """Attempt an exclusive flock.

    Returns:
        True if acquired, False if another descriptor holds it (non-blocking only)
    """
    flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
    try:
        fcntl.flock(fd, flags)
    except OSError as e:
        if e.errno in (errno.EWOULDBLOCK, errno.EAGAIN):
            return False
        raise LockDirectoryError(f"Cannot lock file descriptor {fd}: {e}") from e
    return True


class _WaitExpired(Exception):
    """Raised by the SIGALRM handler when a bounded wait runs out."""


def _expire_wait(signum: int, frame: FrameType | None) -> None:
    raise _WaitExpired()


def _flock_until(fd: int, seconds: float) -> bool:
    """Block in flock for at most seconds, interrupted by an interval timer.

    Waiting in the kernel keeps a bounded waiter in the same queue as
    indefinite waiters. Must be called from the main thread.
    """
    previous = signal.signal(signal.SIGALRM, _expire_wait)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        return _try_flock(fd, blocking=True)
    except _WaitExpired:
        return False
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def _acquire(fd: int, policy: WaitPolicy, deadline: float | None, poll_interval: float) -> bool:
    if isinstance(policy, Indefinite):
        return _try_flock(fd, blocking=True)
    if deadline is None:
        return _try_flock(fd, blocking=False)

    # Bounded wait: at least one attempt, even with a zero timeout
    if _try_flock(fd, blocking=False):
        return True
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        return False
    if threading.current_thread() is threading.main_thread():
        return _flock_until(fd, remaining)

    # Timers are main-thread only; poll instead
    while True:
        if _try_flock(fd, blocking=False):
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        time.sleep(min(poll_interval, remaining))


def _is_current_file(fd: int, path: Path) -> bool:
    """Check that fd still refers to the file at path (not a reclaimed, unlinked copy)."""
    held = os.fstat(fd)
    try:
        current = path.stat()
    except FileNotFoundError:
        return False
    return (held.st_dev, held.st_ino) == (current.st_dev, current.st_ino)


def _unavailable(files: LockFiles, policy: WaitPolicy) -> LockHeldError:
    holder: int | None = None
    with contextlib.suppress(LockDirectoryError):
        holder = read_owner_pid(files)
    holder_info = f" (PID {holder})" if holder is not None else ""

    if isinstance(policy, Bounded):
        return LockTimeoutError(
            f"Timeout after {policy.seconds:g}s waiting for lock '{files.name}'{holder_info}",
            holder_pid=holder,
        )
    return LockHeldError(f"Lock '{files.name}' is already held{holder_info}", holder_pid=holder)


@contextlib.contextmanager
def hold_lock(
    files: LockFiles, policy: WaitPolicy, poll_interval: float = 0.05
) -> Iterator[int]:
    """Acquire the kernel lock on the lock artifact according to the wait policy.

    Yields the locked descriptor; the lock is released when it is closed on exit.

    Raises:
        LockHeldError: Lock taken and policy is non-blocking
        LockTimeoutError: Lock still taken when a bounded wait expired
        LockDirectoryError: Lock file could not be opened or locked
    """
    deadline = time.monotonic() + policy.seconds if isinstance(policy, Bounded) else None

    while True:
        fd = _open_lock_file(files)
        try:
            acquired = _acquire(fd, policy, deadline, poll_interval)
            if acquired and _is_current_file(fd, files.lock_path):
                break
        except BaseException:
            os.close(fd)
            raise
        os.close(fd)
        if not acquired:
            raise _unavailable(files, policy)
        # Lock file was reclaimed and recreated while we waited; lock the new one
        logger.debug(f"Lock file {files.lock_path} replaced during acquisition, retrying")

    try:
        # Artifact age measures time since the last acquisition
        os.utime(fd)
        logger.debug(f"Acquired lock '{files.name}' ({files.lock_path})")
        yield fd
    finally:
        os.close(fd)
        logger.debug(f"Released lock '{files.name}'")


def _describe_status(returncode: int) -> str:
    if returncode < 0:
        try:
            return f"Command terminated by {signal.Signals(-returncode).name}"
        except ValueError:
            return f"Command terminated by signal {-returncode}"
    return f"Command exited with status {returncode}"


def _run_locked(request: LockRequest) -> int:
    name = validate_lock_name(request.name)
    if not request.command:
        raise InvalidArgumentsError("Missing COMMAND to run")

    files = LockFiles(name=name, directory=select_lock_dir(request.lock_dirs))
    evaluate_staleness(files, request.stale_after)

    with _signals_raise(), hold_lock(files, request.wait_policy, request.poll_interval):
        try:
            write_owner_record(files)
            returncode = run_command(request.command)
        finally:
            remove_owner_record(files)

    if returncode != 0:
        raise CommandFailedError(_describe_status(returncode), returncode=returncode)
    return returncode


def acquire_and_run(request: LockRequest) -> ExitOutcome:
    """Run a command while holding the named lock.

    Args:
        request: Lock name, command, wait policy and staleness threshold

    Returns:
        ExitOutcome with the shlock exit code and an operator-facing message
    """
    try:
        returncode = _run_locked(request)
    except HolderInterrupted as e:
        return ExitOutcome(
            exit_code=128 + e.signum,
            message=f"Interrupted by {e}; lock '{request.name}' released",
        )
    except LockHeldError as e:
        return ExitOutcome(exit_code=e.exit_code, message=str(e), holder_pid=e.holder_pid)
    except CommandFailedError as e:
        return ExitOutcome(exit_code=e.exit_code, message=str(e), returncode=e.returncode)
    except ShlockError as e:
        return ExitOutcome(exit_code=e.exit_code, message=str(e))
    return ExitOutcome(returncode=returncode)
