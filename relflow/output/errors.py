"""Error presentation for release failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relflow.core.errors import ErrorCode
from relflow.output.console import Style
from relflow.release.errors import (
    ChangelogGenerationError,
    DuplicateReleaseError,
    HookExecutionError,
    MalformedTagError,
    ReleaseError,
    ReviewGatewayError,
    VcsOperationError,
    VersionComputationError,
)

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    match error:
        case HookExecutionError(hook=hook, message=message, output=output):
            console.error(f"{message} [{hook}]")
            for line in output.splitlines()[-20:]:
                console.print(f"  {line}", Style.DIM)
        case VcsOperationError(command=command, message=message, returncode=rc):
            console.error(f"{message} (git {command}, exit {rc})")
        case _:
            console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    match error:
        case MalformedTagError() | DuplicateReleaseError():
            return int(ErrorCode.USER_ERROR)
        case VersionComputationError() | HookExecutionError() | ChangelogGenerationError():
            return int(ErrorCode.RELEASE_ERROR)
        case VcsOperationError(command=command):
            if command in ("push", "fetch", "ls-remote"):
                return int(ErrorCode.NETWORK_ERROR)
            return int(ErrorCode.RELEASE_ERROR)
        case ReviewGatewayError():
            return int(ErrorCode.NETWORK_ERROR)
    return int(ErrorCode.RELEASE_ERROR)
