"""Subprocess execution with Result-based error handling.

Every external tool relflow drives (git, gh, git-cliff, go, release hooks)
goes through :func:`run`, which captures output and turns failures,
timeouts and missing executables into a :class:`ProcessError`.

Usage:
    result = run(["git", "status", "--porcelain"], cwd=repo_root)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from relflow.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A subprocess that could not be started or exited non-zero.

    Attributes:
        command: The command that was executed.
        returncode: Exit code (-1 when the process never ran or timed out).
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"

    @property
    def output(self) -> str:
        """Combined stderr/stdout, stripped, for error hints."""
        parts = [self.stderr.strip(), self.stdout.strip()]
        return "\n".join(p for p in parts if p)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout or a ProcessError.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (inherits the current env if None).
        timeout: Maximum seconds to wait (None for no limit).
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)
