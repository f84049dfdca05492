"""Git command-line adapter for the release flow.

:class:`GitGateway` implements the ``VcsGateway`` contract by shelling out to
``git -C <root>``. Every method takes the :class:`RepositoryHandle` it acts
on and returns a Result; nothing here raises for a failed git command.

Usage:
    git = GitGateway()
    repo = RepositoryHandle(Path("/path/to/repo"))

    match git.current_branch(repo):
        case Ok(branch):
            print(f"Branch: {branch}")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass

from relflow.core.result import Err, Ok, Result
from relflow.platform.process import ProcessError
from relflow.platform.process import run as run_process
from relflow.release.contracts import RepositoryHandle
from relflow.release.errors import VcsOperationError
from relflow.release.timeouts import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS

__all__ = [
    "GitGateway",
    "StatusEntry",
    "parse_status_entries",
]

_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "ls-remote"})

# `git ls-remote --exit-code` exits 2 when no ref matched.
_LS_REMOTE_NO_MATCH = 2


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single ``git status --porcelain=v1`` line.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: Path as printed by git (``old -> new`` for renames)
    """

    xy: str
    path: str

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"

    @property
    def current_path(self) -> str:
        """Path in the working tree (the destination of a rename)."""
        if " -> " in self.path:
            return self.path.split(" -> ", 1)[1]
        return self.path


def parse_status_entries(output: str) -> tuple[StatusEntry, ...]:
    entries: list[StatusEntry] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        path = line[3:]
        if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
            path = path[1:-1]
        entries.append(StatusEntry(xy=line[:2], path=path))
    return tuple(entries)


def _vcs_error(command: str, error: ProcessError, fallback: str) -> VcsOperationError:
    return VcsOperationError(
        command=command,
        message=f"git {command} failed",
        returncode=error.returncode,
        hint=error.output or fallback,
    )


class GitGateway:
    """``VcsGateway`` backed by the git executable."""

    def current_branch(self, repo: RepositoryHandle) -> Result[str, VcsOperationError]:
        result = self._run(repo, ["rev-parse", "--abbrev-ref", "HEAD"])
        if isinstance(result, Err):
            return Err(_vcs_error("rev-parse", result.error, "not a git repository?"))
        branch = result.value.strip()
        if branch == "HEAD":
            return Err(
                VcsOperationError(
                    command="rev-parse",
                    message="repository is in detached HEAD state",
                    hint="Check out a branch first.",
                )
            )
        return Ok(branch)

    def is_clean(self, repo: RepositoryHandle) -> Result[bool, VcsOperationError]:
        result = self._run(repo, ["status", "--porcelain"])
        if isinstance(result, Err):
            return Err(_vcs_error("status", result.error, "git status failed"))
        return Ok(result.value.strip() == "")

    def tags(self, repo: RepositoryHandle) -> Result[frozenset[str], VcsOperationError]:
        result = self._run(repo, ["tag", "--list"])
        if isinstance(result, Err):
            return Err(_vcs_error("tag", result.error, "failed to list tags"))
        return Ok(frozenset(t.strip() for t in result.value.splitlines() if t.strip()))

    def fetch_tags(self, repo: RepositoryHandle) -> Result[None, VcsOperationError]:
        result = self._run(repo, ["fetch", "--tags", "--quiet", repo.remote])
        if isinstance(result, Err):
            return Err(_vcs_error("fetch", result.error, f"failed to fetch tags from {repo.remote}"))
        return Ok(None)

    def create_branch(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]:
        result = self._run(repo, ["checkout", "-b", name])
        if isinstance(result, Err):
            return Err(_vcs_error("checkout -b", result.error, f"failed to create branch: {name}"))
        return Ok(None)

    def checkout(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]:
        result = self._run(repo, ["checkout", name])
        if isinstance(result, Err):
            return Err(_vcs_error("checkout", result.error, f"failed to check out: {name}"))
        return Ok(None)

    def delete_local_branch(
        self, repo: RepositoryHandle, name: str
    ) -> Result[None, VcsOperationError]:
        result = self._run(repo, ["branch", "-D", name])
        if isinstance(result, Err):
            return Err(_vcs_error("branch -D", result.error, f"failed to delete branch: {name}"))
        return Ok(None)

    def remote_branch_exists(
        self, repo: RepositoryHandle, name: str
    ) -> Result[bool, VcsOperationError]:
        result = self._run(repo, ["ls-remote", "--exit-code", repo.remote, f"refs/heads/{name}"])
        if isinstance(result, Ok):
            return Ok(True)
        if result.error.returncode == _LS_REMOTE_NO_MATCH:
            return Ok(False)
        return Err(_vcs_error("ls-remote", result.error, f"cannot query remote {repo.remote}"))

    def commit_all(
        self, repo: RepositoryHandle, message: str, *, allow_empty: bool
    ) -> Result[None, VcsOperationError]:
        add = self._run(repo, ["add", "--all"])
        if isinstance(add, Err):
            return Err(_vcs_error("add", add.error, "git add failed"))

        cmd = ["commit", "-m", message]
        if allow_empty:
            cmd.insert(1, "--allow-empty")
        commit = self._run(repo, cmd)
        if isinstance(commit, Err):
            return Err(
                _vcs_error(
                    "commit",
                    commit.error,
                    "Configure git user.name/user.email, then retry.",
                )
            )
        return Ok(None)

    def push(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]:
        result = self._run(repo, ["push", repo.remote, name])
        if isinstance(result, Err):
            return Err(_vcs_error("push", result.error, f"failed to push {name} to {repo.remote}"))
        return Ok(None)

    def changed_paths(self, repo: RepositoryHandle) -> Result[frozenset[str], VcsOperationError]:
        result = self._run(repo, ["status", "--porcelain=v1", "--untracked-files=all"])
        if isinstance(result, Err):
            return Err(_vcs_error("status", result.error, "git status failed"))
        return Ok(frozenset(e.current_path for e in parse_status_entries(result.value)))

    def _run(self, repo: RepositoryHandle, args: list[str]) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        timeout = (
            GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(repo.root), *args], cwd=repo.root, timeout=timeout)
