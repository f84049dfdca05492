"""Pre-release hook protocol.

A hook runs on the freshly created release branch, before the changelog and
the release commit. Whatever it leaves in the working tree is committed with
the release. The external form of the protocol is a process invoked as
``<hook> <bump> <tag>`` where exit code 0 means success.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from relflow.core.config import ReleaseConfig
from relflow.core.result import Err, Ok, Result
from relflow.output.console import ConsoleProtocol, Style
from relflow.platform.process import run as run_process
from relflow.release.contracts import HookResult, ReleaseHook, RepositoryHandle, VcsGateway
from relflow.release.errors import HookExecutionError
from relflow.release.version import BumpKind, Version

GO_MODULE_HOOK = "go-module"

# Looked up, in order, when no hook is configured.
DEFAULT_HOOK_PATHS = (
    Path("scripts/hooks/pre-release.sh"),
    Path("scripts/hooks/pre-release.py"),
    Path("scripts/hooks/pre-release"),
)


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


@dataclass(frozen=True, slots=True)
class ExecutableHook:
    """Runs ``<path> <bump> <tag>`` in the repository root."""

    path: Path
    cwd: Path

    @property
    def name(self) -> str:
        return str(self.path)

    def run(self, bump: BumpKind, version: Version) -> Result[str, HookExecutionError]:
        result = run_process([str(self.path), str(bump), version.to_tag()], cwd=self.cwd)
        if isinstance(result, Err):
            e = result.error
            return Err(
                HookExecutionError(
                    hook=self.name,
                    message=f"pre-release hook failed (exit {e.returncode})",
                    returncode=e.returncode,
                    output=e.output,
                    hint=e.stderr.strip().splitlines()[-1] if e.stderr.strip() else None,
                )
            )
        return Ok(result.value.strip())


def resolve_hook(
    config: ReleaseConfig, repo_root: Path
) -> Result[ReleaseHook | None, HookExecutionError]:
    """Pick the hook for this repository.

    ``hook = "go-module"`` selects the built-in Go module-path hook; any other
    value is a path (relative to the repository root) to an executable. With
    no setting, the first executable in :data:`DEFAULT_HOOK_PATHS` is used,
    and a repository without one simply has no hook.
    """
    if config.hook == GO_MODULE_HOOK:
        from relflow.release.go_module import GoModuleHook

        return Ok(GoModuleHook(root=repo_root))

    if config.hook is not None:
        path = Path(config.hook)
        if not path.is_absolute():
            path = repo_root / path
        if not _is_executable(path):
            return Err(
                HookExecutionError(
                    hook=config.hook,
                    message=f"configured hook is not an executable file: {path}",
                    returncode=-1,
                    hint="chmod +x the hook or fix `hook` in the relflow config",
                )
            )
        return Ok(ExecutableHook(path=path, cwd=repo_root))

    for candidate in DEFAULT_HOOK_PATHS:
        path = repo_root / candidate
        if _is_executable(path):
            return Ok(ExecutableHook(path=path, cwd=repo_root))
    return Ok(None)


class HookRunner:
    """Runs the configured hook and reports which files it touched."""

    def __init__(
        self,
        *,
        vcs: VcsGateway,
        repo: RepositoryHandle,
        console: ConsoleProtocol,
    ) -> None:
        self._vcs = vcs
        self._repo = repo
        self._console = console

    def run(
        self,
        hook: ReleaseHook | None,
        bump: BumpKind,
        version: Version,
    ) -> Result[HookResult, HookExecutionError]:
        if hook is None:
            self._console.print("no pre-release hook configured, skipping", Style.DIM)
            return Ok(HookResult(ran=False))

        before = self._snapshot()
        self._console.print(f"{hook.name} {bump} {version.to_tag()}", Style.DIM)
        result = hook.run(bump, version)
        if isinstance(result, Err):
            return result

        if result.value:
            for line in result.value.splitlines():
                self._console.print(f"  {line}", Style.DIM)

        modified = self._snapshot() - before
        return Ok(HookResult(ran=True, files_modified=modified))

    def _snapshot(self) -> frozenset[str]:
        # Informational only: a status failure must not fail the release.
        result = self._vcs.changed_paths(self._repo)
        if isinstance(result, Err):
            self._console.warning(f"could not list changed files: {result.error.pretty()}")
            return frozenset()
        return result.value
