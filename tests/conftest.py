"""Shared test fixtures for shlock tests."""

import fcntl
import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from shlock.core import select_lock_dir
from shlock.models import LockFiles


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep tests away from real config files and the process-wide lock dir cache."""
    monkeypatch.setenv("SHLOCK_CONFIG", str(tmp_path / "no-such-config.toml"))
    monkeypatch.delenv("SHLOCK_LOCK_DIR", raising=False)
    select_lock_dir.cache_clear()
    yield
    select_lock_dir.cache_clear()


@pytest.fixture
def lock_dir(tmp_path: Path) -> Path:
    """Create temporary lock directory."""
    d = tmp_path / "lock"
    d.mkdir()
    return d


@pytest.fixture
def files(lock_dir: Path) -> LockFiles:
    """Lock artifact paths for a lock named 'job'."""
    return LockFiles(name="job", directory=lock_dir)


class LockHolder:
    """Holds the kernel lock on a file through its own open file description.

    flock locks belong to the open file description, so this conflicts with
    any other open() of the same file, even within the same process.
    """

    def __init__(self, path: Path) -> None:
        self.fd: int | None = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
        fcntl.flock(self.fd, fcntl.LOCK_EX)

    def release(self) -> None:
        if self.fd is not None:
            os.close(self.fd)
            self.fd = None


@pytest.fixture
def held_lock(files: LockFiles) -> Generator[LockHolder, None, None]:
    """Hold the kernel lock for 'job' for the duration of the test."""
    holder = LockHolder(files.lock_path)
    try:
        yield holder
    finally:
        holder.release()


@pytest.fixture
def make_old() -> Callable[[Path, float], None]:
    """Return a helper that moves a file's mtime the given seconds into the past."""

    def _make_old(path: Path, seconds: float) -> None:
        past = os.stat(path).st_mtime - seconds
        os.utime(path, (past, past))

    return _make_old
