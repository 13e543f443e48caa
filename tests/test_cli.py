"""CLI integration tests for shlock."""

from collections.abc import Callable
from pathlib import Path
from unittest import mock

import pytest
from typer.testing import CliRunner

from shlock.cli import app
from shlock.core import reclaim
from shlock.models import LockFiles

from .conftest import LockHolder


class TestVersionCommand:
    """Tests for --version flag."""

    def test_version_shows_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "shlock 1.0.0" in result.output

    def test_version_short_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "shlock" in result.output


class TestHelpCommand:
    """Tests for --help flag."""

    @pytest.mark.parametrize("flag", ["--help", "-h"])
    def test_help_lists_options(self, runner: CliRunner, flag: str) -> None:
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert "--max-age" in result.output
        assert "--wait" in result.output
        assert "--timeout" in result.output

    def test_help_without_separator(self, runner: CliRunner) -> None:
        """--help wins over the missing separator check."""
        result = runner.invoke(app, ["job", "--help"])
        assert result.exit_code == 0


class TestArgumentErrors:
    """Invalid invocations exit with 2 before touching the lock directory."""

    def test_no_arguments(self, runner: CliRunner) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 2

    def test_missing_separator(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["--lock-dir", str(lock_dir), "job"])
        assert result.exit_code == 2
        assert "separator" in result.output
        assert list(lock_dir.iterdir()) == []

    def test_command_without_separator(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["--lock-dir", str(lock_dir), "job", "echo", "test"])
        assert result.exit_code == 2
        assert list(lock_dir.iterdir()) == []

    def test_missing_command(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["--lock-dir", str(lock_dir), "job", "--"])
        assert result.exit_code == 2
        assert "COMMAND" in result.output

    def test_empty_lock_name(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["--lock-dir", str(lock_dir), "", "--", "true"])
        assert result.exit_code == 2
        assert "required" in result.output
        assert list(lock_dir.iterdir()) == []

    def test_empty_derived_lock_name(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["--lock-dir", str(lock_dir), "--", ""])
        assert result.exit_code == 2
        assert list(lock_dir.iterdir()) == []

    @pytest.mark.parametrize("option", ["--invalid-option", "-x"])
    def test_unknown_option(self, runner: CliRunner, option: str) -> None:
        result = runner.invoke(app, [option, "job", "--", "true"])
        assert result.exit_code == 2

    @pytest.mark.parametrize("value", ["abc", "", "-5", "12.5"])
    def test_invalid_max_age(self, runner: CliRunner, value: str) -> None:
        result = runner.invoke(app, ["--max-age", value, "job", "--", "true"])
        assert result.exit_code == 2

    def test_invalid_max_age_message(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--max-age", "xyz", "job", "--", "true"])
        assert result.exit_code == 2
        assert "numeric" in result.output

    def test_max_age_missing_value(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--max-age", "--", "job", "--", "true"])
        assert result.exit_code == 2

    @pytest.mark.parametrize("value", ["abc", "", "-1"])
    def test_invalid_timeout(self, runner: CliRunner, value: str) -> None:
        result = runner.invoke(app, ["--wait", "--timeout", value, "job", "--", "true"])
        assert result.exit_code == 2


class TestRun:
    """Tests for running commands under the lock."""

    def test_runs_command(self, runner: CliRunner, lock_dir: Path, tmp_path: Path) -> None:
        marker = tmp_path / "ran"
        result = runner.invoke(
            app, ["--lock-dir", str(lock_dir), "job", "--", "touch", str(marker)]
        )
        assert result.exit_code == 0
        assert marker.exists()
        assert (lock_dir / "job.lock").exists()
        assert not (lock_dir / "job.pid").exists()

    def test_lock_name_derived_from_command(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["--lock-dir", str(lock_dir), "--", "/bin/true"])
        assert result.exit_code == 0
        assert (lock_dir / "true.lock").exists()

    def test_options_after_lock_name(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["job", "--lock-dir", str(lock_dir), "-w", "--", "true"])
        assert result.exit_code == 0

    def test_command_options_not_parsed(self, runner: CliRunner, lock_dir: Path) -> None:
        """Arguments after -- belong to the command, even if they look like options."""
        result = runner.invoke(
            app, ["--lock-dir", str(lock_dir), "job", "--", "sh", "-c", "exit 0", "--wait"]
        )
        assert result.exit_code == 0

    def test_command_failure_exit_3(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(
            app, ["--lock-dir", str(lock_dir), "job", "--", "sh", "-c", "exit 42"]
        )
        assert result.exit_code == 3
        assert "status 42" in result.output

    def test_command_not_found_exit_3(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(
            app, ["--lock-dir", str(lock_dir), "job", "--", "/nonexistent/command"]
        )
        assert result.exit_code == 3
        assert "not found" in result.output

    def test_empty_command_exit_3(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["--lock-dir", str(lock_dir), "job", "--", ""])
        assert result.exit_code == 3

    def test_lock_dir_from_env(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(app, ["job", "--", "true"], env={"SHLOCK_LOCK_DIR": str(lock_dir)})
        assert result.exit_code == 0
        assert (lock_dir / "job.lock").exists()

    def test_large_timeout_accepted(self, runner: CliRunner, lock_dir: Path) -> None:
        result = runner.invoke(
            app, ["--lock-dir", str(lock_dir), "--wait", "--timeout", "999999", "job", "--", "true"]
        )
        assert result.exit_code == 0

    def test_quiet_and_verbose_accepted(self, runner: CliRunner, lock_dir: Path) -> None:
        for flags in (["-q"], ["-v"], ["-vv"], ["--no-color"]):
            result = runner.invoke(app, [*flags, "--lock-dir", str(lock_dir), "j", "--", "true"])
            assert result.exit_code == 0


class TestContention:
    """Tests for a lock held by someone else."""

    def test_held_lock_exit_1(
        self, runner: CliRunner, files: LockFiles, held_lock: LockHolder
    ) -> None:
        files.pid_path.write_text("4321\n")
        result = runner.invoke(app, ["--lock-dir", str(files.directory), "job", "--", "true"])
        assert result.exit_code == 1
        assert "job" in result.output
        assert "PID 4321" in result.output

    def test_timeout_exit_1(
        self, runner: CliRunner, files: LockFiles, held_lock: LockHolder
    ) -> None:
        result = runner.invoke(
            app, ["--lock-dir", str(files.directory), "--timeout", "1", "job", "--", "true"]
        )
        assert result.exit_code == 1
        assert "Timeout" in result.output

    def test_zero_timeout_returns_quickly(
        self, runner: CliRunner, files: LockFiles, held_lock: LockHolder
    ) -> None:
        result = runner.invoke(
            app,
            ["--lock-dir", str(files.directory), "--wait", "--timeout", "0", "job", "--", "true"],
        )
        assert result.exit_code == 1


class TestStaleLocks:
    """Tests for --max-age."""

    def test_custom_max_age_reclaims(
        self, runner: CliRunner, files: LockFiles, make_old: Callable
    ) -> None:
        files.lock_path.touch()
        make_old(files.lock_path, 13 * 3600)
        files.pid_path.write_text("garbage\n")

        with mock.patch("shlock.core.staleness.reclaim", wraps=reclaim) as spy:
            result = runner.invoke(
                app, ["--lock-dir", str(files.directory), "--max-age", "12", "job", "--", "true"]
            )
        assert result.exit_code == 0
        spy.assert_called_once()
        assert files.lock_path.exists()
        assert not files.pid_path.exists()

    def test_default_max_age_keeps_younger_lock(
        self, runner: CliRunner, files: LockFiles, make_old: Callable
    ) -> None:
        files.lock_path.touch()
        make_old(files.lock_path, 13 * 3600)
        files.pid_path.write_text("garbage\n")

        with mock.patch("shlock.core.staleness.reclaim", wraps=reclaim) as spy:
            result = runner.invoke(app, ["--lock-dir", str(files.directory), "job", "--", "true"])
        assert result.exit_code == 0
        spy.assert_not_called()
        # Not reclaimed, but the successful run still removes the record it overwrote
        assert not files.pid_path.exists()


class TestConfig:
    """Tests for config file handling in the CLI."""

    def test_lock_dirs_from_config(self, runner: CliRunner, lock_dir: Path, tmp_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text(f'lock_dirs = ["{lock_dir}"]\n')
        result = runner.invoke(app, ["--config", str(config), "job", "--", "true"])
        assert result.exit_code == 0
        assert (lock_dir / "job.lock").exists()

    def test_lock_dir_option_overrides_config(
        self, runner: CliRunner, lock_dir: Path, tmp_path: Path
    ) -> None:
        other = tmp_path / "other"
        other.mkdir()
        config = tmp_path / "config.toml"
        config.write_text(f'lock_dirs = ["{other}"]\n')
        result = runner.invoke(
            app, ["--config", str(config), "--lock-dir", str(lock_dir), "job", "--", "true"]
        )
        assert result.exit_code == 0
        assert (lock_dir / "job.lock").exists()
        assert not (other / "job.lock").exists()

    def test_invalid_config_exit_2(self, runner: CliRunner, lock_dir: Path, tmp_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text("max_age_hours = -3\n")
        result = runner.invoke(
            app, ["--config", str(config), "--lock-dir", str(lock_dir), "job", "--", "true"]
        )
        assert result.exit_code == 2
        assert "Invalid config file" in result.output
