"""Wait policy variants for lock acquisition.

A policy is picked once at the CLI boundary and passed to the lock core
unchanged, so "wait and timeout both given" never has to be resolved deeper
down.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class NonBlocking(BaseModel):
    """Fail immediately if the lock is taken."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["non_blocking"] = "non_blocking"


class Indefinite(BaseModel):
    """Block until the lock is acquired."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["indefinite"] = "indefinite"


class Bounded(BaseModel):
    """Block for at most ``seconds``, then fail."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bounded"] = "bounded"
    seconds: float = Field(ge=0, description="Maximum time to wait for the lock")


WaitPolicy = Annotated[NonBlocking | Indefinite | Bounded, Field(discriminator="kind")]


def resolve_wait_policy(wait: bool = False, timeout: float | None = None) -> WaitPolicy:
    """Build a wait policy from the --wait and --timeout options.

    A timeout always takes precedence and implies waiting, even without --wait.
    """
    if timeout is not None:
        return Bounded(seconds=timeout)
    if wait:
        return Indefinite()
    return NonBlocking()
