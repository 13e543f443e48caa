"""Result of a locked command invocation."""

from pydantic import BaseModel, Field

from ..errors import ExitCode


class ExitOutcome(BaseModel):
    """Final outcome of ``acquire_and_run``.

    Attributes:
        exit_code: Process exit code for shlock itself.
        message: Diagnostic for the operator, None on success.
        returncode: Exit status of the child, if it ran.
        holder_pid: PID of the contending holder, if known.
    """

    exit_code: int = Field(default=ExitCode.SUCCESS)
    message: str | None = None
    returncode: int | None = None
    holder_pid: int | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS
