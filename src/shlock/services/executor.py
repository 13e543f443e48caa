"""Child command execution for shlock.

The child inherits shlock's standard streams, environment and working
directory untouched; its output is never captured or interpreted.
"""

import logging
import os
import shutil
import subprocess

from ..errors import CommandNotStartedError

logger = logging.getLogger(__name__)


def resolve_executable(program: str) -> str:
    """Resolve a program name to an executable path.

    Names containing a path separator are used as given; bare names are
    looked up on PATH.

    Raises:
        CommandNotStartedError: If the program is empty, missing or not executable
    """
    if not program:
        raise CommandNotStartedError("Cannot run an empty command")

    if os.sep in program:
        if not os.path.isfile(program):
            raise CommandNotStartedError(f"Command not found: {program}")
        if not os.access(program, os.X_OK):
            raise CommandNotStartedError(f"Command not executable: {program}")
        return program

    resolved = shutil.which(program)
    if resolved is None:
        raise CommandNotStartedError(f"Command not found: {program}")
    return resolved


def run_command(argv: list[str]) -> int:
    """Run a command to completion and return its exit status.

    Args:
        argv: Program followed by its arguments

    Returns:
        Exit status of the child; negative if it was killed by a signal

    Raises:
        CommandNotStartedError: If the command could not be started
    """
    if not argv:
        raise CommandNotStartedError("No command given")

    executable = resolve_executable(argv[0])
    logger.debug(f"Running command: {' '.join(argv)}")

    try:
        result = subprocess.run(argv, executable=executable, check=False)
    except OSError as e:
        raise CommandNotStartedError(f"Cannot execute {argv[0]}: {e.strerror or e}") from e

    logger.debug(f"Command exited with status {result.returncode}")
    return result.returncode
