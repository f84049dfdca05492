"""Contracts between the release orchestrator and its collaborators.

The orchestrator only ever talks to these protocols. Concrete adapters live in
``relflow.git`` (git CLI), ``relflow.release.changelog`` (git-cliff) and
``relflow.release.review`` (gh CLI / Gitea API); tests substitute in-memory
fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from relflow.core.result import Result
from relflow.release.errors import (
    ChangelogGenerationError,
    HookExecutionError,
    ReviewGatewayError,
    VcsOperationError,
)
from relflow.release.version import BumpKind, Version


@dataclass(frozen=True, slots=True)
class RepositoryHandle:
    """The working copy a release runs against.

    Passed to every VCS call so no operation depends on the process working
    directory.
    """

    root: Path
    remote: str = "origin"


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """One release attempt as requested by the caller."""

    bump: BumpKind
    prerelease: bool = False
    # Explicit tag that bypasses version computation.
    tag_override: str | None = None


def _no_paths() -> frozenset[str]:
    return frozenset()


@dataclass(frozen=True, slots=True)
class HookResult:
    ran: bool
    files_modified: frozenset[str] = field(default_factory=_no_paths)


class VcsGateway(Protocol):
    def current_branch(self, repo: RepositoryHandle) -> Result[str, VcsOperationError]: ...

    def is_clean(self, repo: RepositoryHandle) -> Result[bool, VcsOperationError]: ...

    def tags(self, repo: RepositoryHandle) -> Result[frozenset[str], VcsOperationError]: ...

    def fetch_tags(self, repo: RepositoryHandle) -> Result[None, VcsOperationError]: ...

    def create_branch(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]: ...

    def checkout(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]: ...

    def delete_local_branch(
        self, repo: RepositoryHandle, name: str
    ) -> Result[None, VcsOperationError]: ...

    def remote_branch_exists(
        self, repo: RepositoryHandle, name: str
    ) -> Result[bool, VcsOperationError]: ...

    def commit_all(
        self, repo: RepositoryHandle, message: str, *, allow_empty: bool
    ) -> Result[None, VcsOperationError]: ...

    def push(self, repo: RepositoryHandle, name: str) -> Result[None, VcsOperationError]: ...

    def changed_paths(self, repo: RepositoryHandle) -> Result[frozenset[str], VcsOperationError]:
        """Paths that differ from HEAD, including untracked files."""
        ...


class ChangelogClient(Protocol):
    def generate(self, tag: str) -> Result[str, ChangelogGenerationError]:
        """Produce the changelog text for ``tag`` and write it into the working tree."""
        ...


class ReviewGateway(Protocol):
    def open_pull_request(
        self,
        *,
        title: str,
        body: str,
        base: str,
        head: str,
        labels: tuple[str, ...],
    ) -> Result[str, ReviewGatewayError]:
        """Open a review request and return its URL."""
        ...

    def has_open_pull_request(self, head: str) -> Result[bool, ReviewGatewayError]: ...

    def ensure_label(
        self, *, name: str, description: str, color: str
    ) -> Result[None, ReviewGatewayError]:
        """Create the label unless it already exists."""
        ...


class ReleaseHook(Protocol):
    """A project-specific step run on the release branch before the commit."""

    @property
    def name(self) -> str: ...

    def run(self, bump: BumpKind, version: Version) -> Result[str, HookExecutionError]:
        """Run the hook; Ok carries output worth showing to the user."""
        ...
