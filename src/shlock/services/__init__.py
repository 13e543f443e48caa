"""External process services for shlock."""

from .executor import resolve_executable, run_command

__all__ = ["resolve_executable", "run_command"]
