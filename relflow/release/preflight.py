"""Environment validation before a release.

Every check runs, and all failures are reported together so the maintainer
can fix everything in one pass instead of discovering problems one by one.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from relflow.core.config import ReleaseConfig
from relflow.core.result import Err
from relflow.platform.http import HttpClient
from relflow.release.contracts import RepositoryHandle, VcsGateway
from relflow.release.review import read_gitea_token

ToolLookup = Callable[[str], str | None]

_TOOL_HINTS = {
    "git": "see https://git-scm.com/downloads",
    "gh": "see https://cli.github.com",
    "git-cliff": "see https://git-cliff.org/docs/installation",
}


class CheckStatus(Enum):
    OK = auto()
    ERROR = auto()


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Result of a single preflight check.

    Attributes:
        name: Short identifier for what was checked (e.g., "branch", "gh")
        status: Whether the check passed
        message: Human-readable result message
        hint: Optional fix command or URL
    """

    name: str
    status: CheckStatus
    message: str
    hint: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status == CheckStatus.ERROR

    @classmethod
    def success(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.OK, message=message)

    @classmethod
    def error(cls, name: str, message: str, hint: str | None = None) -> CheckResult:
        return cls(name=name, status=CheckStatus.ERROR, message=message, hint=hint)


def failures(results: list[CheckResult]) -> list[CheckResult]:
    return [r for r in results if r.is_error]


class Preflight:
    def __init__(
        self,
        *,
        vcs: VcsGateway,
        repo: RepositoryHandle,
        config: ReleaseConfig,
        http: HttpClient | None = None,
        which: ToolLookup = shutil.which,
    ) -> None:
        self._vcs = vcs
        self._repo = repo
        self._config = config
        self._http = http
        self._which = which

    def required_tools(self) -> list[str]:
        tools = ["git", "git-cliff"]
        if self._config.platform == "github":
            tools.append("gh")
        return tools

    def validate(self) -> list[CheckResult]:
        """Run every check; never stops at the first failure."""
        results = [self._check_branch(), self._check_clean_worktree()]
        results += [self._check_tool(tool) for tool in self.required_tools()]
        if self._config.platform == "gitea":
            results.append(self._check_gitea_repo())
            results.append(self._check_gitea_token())
            results.append(self._check_gitea_reachable())
        return results

    def _check_branch(self) -> CheckResult:
        base = self._config.base_branch
        current = self._vcs.current_branch(self._repo)
        if isinstance(current, Err):
            return CheckResult.error("branch", current.error.message, current.error.hint)
        if current.value != base:
            return CheckResult.error(
                "branch",
                f"Must be on '{base}' branch (currently on: '{current.value}')",
                f"git checkout {base}",
            )
        return CheckResult.success("branch", f"on {base}")

    def _check_clean_worktree(self) -> CheckResult:
        clean = self._vcs.is_clean(self._repo)
        if isinstance(clean, Err):
            return CheckResult.error("worktree", clean.error.message, clean.error.hint)
        if not clean.value:
            return CheckResult.error(
                "worktree",
                "Working tree is not clean",
                "commit or stash your changes first",
            )
        return CheckResult.success("worktree", "clean")

    def _check_tool(self, tool: str) -> CheckResult:
        path = self._which(tool)
        if path is None:
            return CheckResult.error(tool, f"'{tool}' is not installed", _TOOL_HINTS.get(tool))
        return CheckResult.success(tool, path)

    def _check_gitea_repo(self) -> CheckResult:
        if not self._config.gitea.repo:
            return CheckResult.error(
                "gitea-repo",
                "gitea.repo is not configured",
                'set [gitea] repo = "owner/name" in .relflow.toml',
            )
        return CheckResult.success("gitea-repo", self._config.gitea.repo)

    def _check_gitea_token(self) -> CheckResult:
        env = self._config.gitea.token_env
        if read_gitea_token(self._config.gitea) is None:
            return CheckResult.error(
                "gitea-token",
                f"{env} is not set and ~/.config/gitea/token does not exist",
                f"export {env} or store your token in ~/.config/gitea/token",
            )
        return CheckResult.success("gitea-token", "found")

    def _check_gitea_reachable(self) -> CheckResult:
        host = self._config.gitea.host
        url = f"https://{host}/api/swagger"
        if self._http is None:
            return CheckResult.error("gitea-host", f"no HTTP client to reach {url}")
        result = self._http.request("GET", url)
        if isinstance(result, Err):
            return CheckResult.error(
                "gitea-host",
                f"Cannot reach https://{host}",
                "check your network or set GITEA_HOST",
            )
        return CheckResult.success("gitea-host", f"https://{host} reachable")
