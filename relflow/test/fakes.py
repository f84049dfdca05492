"""In-memory collaborators for release tests.

Each fake records the calls it receives and can be told to fail a given
operation, so tests can inject a failure at any state of the release.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from relflow.core.result import Err, Ok, Result
from relflow.release.contracts import RepositoryHandle
from relflow.release.errors import (
    ChangelogGenerationError,
    HookExecutionError,
    ReviewGatewayError,
    VcsOperationError,
)
from relflow.release.version import BumpKind, Version

REPO = RepositoryHandle(root=Path("/work/repo"), remote="origin")


def _vcs_fail(command: str) -> Err[VcsOperationError]:
    return Err(VcsOperationError(command=command, message=f"git {command} failed"))


@dataclass
class FakeVcs:
    """A single-remote repository held in memory."""

    tag_set: set[str] = field(default_factory=set)
    branch: str = "main"
    local_branches: set[str] = field(default_factory=lambda: {"main"})
    remote_branches: set[str] = field(default_factory=set)
    dirty: set[str] = field(default_factory=set)
    commits: list[tuple[str, str, bool]] = field(default_factory=list)
    fail_on: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def _record(self, name: str) -> bool:
        # Injected failures fire once, so rollback can use the same operation.
        self.calls.append(name)
        if name in self.fail_on:
            self.fail_on.discard(name)
            return True
        return False

    def current_branch(self, repo: RepositoryHandle) -> Result[str, VcsOperationError]:
        if self._record("current_branch"):
            return _vcs_fail("rev-parse")
        return Ok(self.branch)

    def is_clean(self, repo: RepositoryHandle) -> Result[bool, VcsOperationError]:
        if self._record("is_clean"):
            return _vcs_fail("status")
        return Ok(not self.dirty)

    def tags(self, repo: RepositoryHandle) -> Result[frozenset[str], VcsOperationError]:
        if self._record("tags"):
            return _vcs_fail("tag")
        return Ok(frozenset(self.tag_set))

    def fetch_tags(self, repo: RepositoryHandle) -> Result[None, VcsOperationError]:
        if self._record("fetch_tags"):
            return _vcs_fail("fetch")
        return Ok(None)

    def create_branch(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]:
        if self._record("create_branch"):
            return _vcs_fail("checkout -b")
        self.local_branches.add(name)
        self.branch = name
        return Ok(None)

    def checkout(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]:
        if self._record("checkout"):
            return _vcs_fail("checkout")
        self.branch = name
        return Ok(None)

    def delete_local_branch(
        self, repo: RepositoryHandle, name: str
    ) -> Result[None, VcsOperationError]:
        if self._record("delete_local_branch"):
            return _vcs_fail("branch -D")
        self.local_branches.discard(name)
        return Ok(None)

    def remote_branch_exists(
        self, repo: RepositoryHandle, name: str
    ) -> Result[bool, VcsOperationError]:
        if self._record("remote_branch_exists"):
            return _vcs_fail("ls-remote")
        return Ok(name in self.remote_branches)

    def commit_all(
        self, repo: RepositoryHandle, message: str, *, allow_empty: bool
    ) -> Result[None, VcsOperationError]:
        if self._record("commit_all"):
            return _vcs_fail("commit")
        self.commits.append((self.branch, message, allow_empty))
        self.dirty.clear()
        return Ok(None)

    def push(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]:
        if self._record("push"):
            return _vcs_fail("push")
        self.remote_branches.add(name)
        return Ok(None)

    def changed_paths(self, repo: RepositoryHandle) -> Result[frozenset[str], VcsOperationError]:
        if self._record("changed_paths"):
            return _vcs_fail("status")
        return Ok(frozenset(self.dirty))


@dataclass
class FakeChangelog:
    vcs: FakeVcs
    path: str = "CHANGELOG.md"
    fail: bool = False
    tags: list[str] = field(default_factory=list)

    def generate(self, tag: str) -> Result[str, ChangelogGenerationError]:
        self.tags.append(tag)
        if self.fail:
            return Err(ChangelogGenerationError(message="git-cliff failed (exit 1)"))
        self.vcs.dirty.add(self.path)
        return Ok(f"## {tag}\n")


@dataclass
class FakeReview:
    open_heads: set[str] = field(default_factory=set)
    labels: set[str] = field(default_factory=set)
    opened: list[dict[str, object]] = field(default_factory=list)
    fail_on: set[str] = field(default_factory=set)

    def has_open_pull_request(self, head: str) -> Result[bool, ReviewGatewayError]:
        if "has_open_pull_request" in self.fail_on:
            return Err(ReviewGatewayError(message="gh pr list failed"))
        return Ok(head in self.open_heads)

    def ensure_label(
        self, *, name: str, description: str, color: str
    ) -> Result[None, ReviewGatewayError]:
        if "ensure_label" in self.fail_on:
            return Err(ReviewGatewayError(message="label create failed"))
        self.labels.add(name)
        return Ok(None)

    def open_pull_request(
        self,
        *,
        title: str,
        body: str,
        base: str,
        head: str,
        labels: tuple[str, ...],
    ) -> Result[str, ReviewGatewayError]:
        if "open_pull_request" in self.fail_on:
            return Err(ReviewGatewayError(message="gh pr create failed"))
        self.opened.append(
            {"title": title, "body": body, "base": base, "head": head, "labels": labels}
        )
        self.open_heads.add(head)
        return Ok(f"https://example.test/pulls/{len(self.opened)}")


@dataclass
class FakeHook:
    vcs: FakeVcs
    touches: tuple[str, ...] = ()
    returncode: int = 0
    calls: list[tuple[BumpKind, str]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return "fake-hook"

    def run(self, bump: BumpKind, version: Version) -> Result[str, HookExecutionError]:
        self.calls.append((bump, version.to_tag()))
        if self.returncode != 0:
            return Err(
                HookExecutionError(
                    hook=self.name,
                    message=f"pre-release hook failed (exit {self.returncode})",
                    returncode=self.returncode,
                    output="boom",
                )
            )
        self.vcs.dirty.update(self.touches)
        return Ok("")
