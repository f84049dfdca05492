"""Explicit success/failure values.

Release steps return ``Ok(value)`` or ``Err(error)`` instead of raising, so
the orchestrator can decide at each transition whether to roll back:

    match vcs.push(repo, branch):
        case Ok(_):
            ...
        case Err(error):
            return self._rollback(error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
