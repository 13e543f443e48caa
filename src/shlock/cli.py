"""shlock CLI: run a command under a named exclusive lock.

Usage: shlock [OPTIONS] [LOCKNAME] -- COMMAND [ARGS...]
"""

import sys
from datetime import timedelta
from pathlib import Path
from typing import Annotated

import click
import typer
from typer.core import TyperCommand

from shlock import __version__

from .config import load_config
from .constants import CONFIG_ENV, LOCK_DIR_ENV
from .core import acquire_and_run, derive_lock_name
from .errors import ExitCode, ShlockError
from .logging import configure_logging
from .models import LockRequest, resolve_wait_policy
from .output import OutputContext

COMMAND_META_KEY = "shlock.command"


class SeparatorCommand(TyperCommand):
    """Click command that treats everything after the first '--' as the command to run.

    The tail is stored in ctx.meta and never parsed for options. When no
    separator is present the stored value is None.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if "--" in args:
            index = args.index("--")
            ctx.meta[COMMAND_META_KEY] = args[index + 1 :]
            args = args[:index]
        else:
            ctx.meta[COMMAND_META_KEY] = None
        return super().parse_args(ctx, args)


def _non_negative_int(value: str) -> int:
    """Parse a non-negative integer option value."""
    if not value.isdigit():
        raise typer.BadParameter(f"{value!r} is not a non-negative numeric value")
    return int(value)


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"shlock {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="shlock",
    help="Run a command while holding a named exclusive lock",
    add_completion=False,
)


@app.command(
    cls=SeparatorCommand,
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=(
        "Exit codes: 0 success, 1 lock held or timed out, "
        "2 invalid arguments, 3 command failed or could not start."
    ),
)
def run(
    ctx: typer.Context,
    lockname: Annotated[
        str | None,
        typer.Argument(
            metavar="[LOCKNAME] -- COMMAND [ARGS...]",
            help="Lock name (defaults to the base name of COMMAND)",
            show_default=False,
        ),
    ] = None,
    max_age: Annotated[
        int | None,
        typer.Option(
            "--max-age",
            parser=_non_negative_int,
            metavar="HOURS",
            help="Remove a lock older than HOURS whose holder is gone [default: 24]",
        ),
    ] = None,
    wait: Annotated[
        bool,
        typer.Option("--wait", "-w", help="Wait for the lock instead of failing immediately"),
    ] = False,
    timeout: Annotated[
        int | None,
        typer.Option(
            "--timeout",
            "-t",
            parser=_non_negative_int,
            metavar="SECONDS",
            help="Wait at most SECONDS for the lock (implies --wait)",
        ),
    ] = None,
    lock_dir: Annotated[
        Path | None,
        typer.Option(
            "--lock-dir",
            envvar=LOCK_DIR_ENV,
            help="Directory for lock files (overrides the configured candidates)",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", envvar=CONFIG_ENV, help="Path to config.toml"),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress non-error output"),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option("--no-color", help="Disable colored output"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Run COMMAND while holding the lock LOCKNAME.

    At most one command per lock name runs at a time on this host. Without
    --wait or --timeout, shlock fails immediately if the lock is taken.
    """
    console = configure_logging(
        verbosity=verbose, quiet=quiet, no_color=no_color, stream=sys.stderr
    )
    out = OutputContext(console=console)

    command = ctx.meta.get(COMMAND_META_KEY)
    if command is None:
        out.error("Missing '--' separator before COMMAND")
        raise typer.Exit(ExitCode.INVALID_ARGUMENTS)
    if not command:
        out.error("Missing COMMAND after '--'")
        raise typer.Exit(ExitCode.INVALID_ARGUMENTS)

    try:
        config = load_config(config_path)
    except ShlockError as e:
        out.error(str(e))
        raise typer.Exit(e.exit_code) from None

    request = LockRequest(
        name=derive_lock_name(command) if lockname is None else lockname,
        command=command,
        wait_policy=resolve_wait_policy(wait=wait, timeout=timeout),
        stale_after=timedelta(hours=max_age) if max_age is not None else config.stale_after,
        lock_dirs=(lock_dir,) if lock_dir is not None else tuple(config.lock_dirs),
        poll_interval=config.poll_interval,
    )

    outcome = acquire_and_run(request)
    if outcome.message:
        out.error(outcome.message)
    raise typer.Exit(outcome.exit_code)


def main() -> None:
    """Console script entry point."""
    app()
