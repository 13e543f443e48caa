"""Pydantic data models for shlock.

- Lock artifact layout and requests (LockFiles, LockRequest)
- Wait policies (NonBlocking, Indefinite, Bounded)
- Invocation outcome (ExitOutcome)
"""

from .lock import LockFiles, LockRequest
from .outcome import ExitOutcome
from .policy import Bounded, Indefinite, NonBlocking, WaitPolicy, resolve_wait_policy

__all__ = [
    "Bounded",
    "ExitOutcome",
    "Indefinite",
    "LockFiles",
    "LockRequest",
    "NonBlocking",
    "WaitPolicy",
    "resolve_wait_policy",
]
