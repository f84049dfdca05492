"""Process exit codes for relflow commands."""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes returned by the CLI.

    Values are part of the command-line contract and must stay stable:
    - 0: Success
    - 1: User error (bad bump, duplicate release, malformed tag)
    - 2: Environment error (preflight failed, missing tools)
    - 3: Release step error (hook, changelog, commit, branch)
    - 4: Network error (push, hosting platform)
    - 5: I/O error (config unreadable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
