"""Error types for the release flow.

Every step returns one of these inside an ``Err``. Errors produced at or after
branch creation make the orchestrator roll back before handing the error back
to the caller unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass


class _Pretty:
    __slots__ = ()

    message: str
    hint: str | None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


@dataclass(frozen=True, slots=True)
class MalformedTagError(_Pretty):
    """An explicitly supplied tag does not follow ``vX.Y.Z[-<label><n>]``."""

    tag: str
    message: str
    hint: str | None = "expected vMAJOR.MINOR.PATCH or vMAJOR.MINOR.PATCH-rcN"


@dataclass(frozen=True, slots=True)
class VersionComputationError(_Pretty):
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class DuplicateReleaseError(_Pretty):
    """A remote release branch or open review request already exists."""

    branch: str
    message: str
    hint: str | None = "Close/delete the existing PR and branch, then re-run."


@dataclass(frozen=True, slots=True)
class HookExecutionError(_Pretty):
    """The pre-release hook failed.

    Attributes:
        hook: Human-readable hook description (path or strategy name)
        returncode: Exit status (-1 if it never ran)
        output: Captured stdout/stderr
    """

    hook: str
    message: str
    returncode: int = 1
    output: str = ""
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ChangelogGenerationError(_Pretty):
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class VcsOperationError(_Pretty):
    """A git operation (branch, checkout, commit, push, tags) failed."""

    command: str
    message: str
    returncode: int = 1
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ReviewGatewayError(_Pretty):
    """The hosting platform rejected or could not serve a request."""

    message: str
    hint: str | None = None


ReleaseError = (
    MalformedTagError
    | VersionComputationError
    | DuplicateReleaseError
    | HookExecutionError
    | ChangelogGenerationError
    | VcsOperationError
    | ReviewGatewayError
)
