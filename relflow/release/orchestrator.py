"""Release state machine.

One attempt walks these states in order::

    init -> version_computed -> branch_created -> hook_run
         -> changelog_generated -> committed -> pushed -> review_opened -> cleaned

Each state has a handler performing the transition to the next one. A failure
before ``branch_created`` is returned as is. A failure at or after it first
rolls back (checkout the base branch, force-delete the local release branch)
and then returns the original error. Rollback problems are printed as
warnings and never replace that error.

A failure after ``pushed`` leaves the pushed branch on the remote; the
duplicate-release guard refuses to re-run until it is removed by hand.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from enum import StrEnum

from relflow.core.config import ReleaseConfig
from relflow.core.result import Err, Ok, Result
from relflow.output.console import ConsoleProtocol, Style
from relflow.release.contracts import (
    ChangelogClient,
    HookResult,
    ReleaseHook,
    ReleaseRequest,
    RepositoryHandle,
    ReviewGateway,
    VcsGateway,
)
from relflow.release.errors import (
    DuplicateReleaseError,
    ReleaseError,
    VersionComputationError,
)
from relflow.release.hooks import HookRunner
from relflow.release.version import (
    Version,
    latest_version,
    release_branch_name,
    release_commit_message,
    resolve_version,
)


class ReleaseState(StrEnum):
    INIT = "init"
    VERSION_COMPUTED = "version_computed"
    BRANCH_CREATED = "branch_created"
    HOOK_RUN = "hook_run"
    CHANGELOG_GENERATED = "changelog_generated"
    COMMITTED = "committed"
    PUSHED = "pushed"
    REVIEW_OPENED = "review_opened"
    CLEANED = "cleaned"
    ROLLING_BACK = "rolling_back"
    ROLLED_BACK = "rolled_back"


_FORWARD = (
    ReleaseState.INIT,
    ReleaseState.VERSION_COMPUTED,
    ReleaseState.BRANCH_CREATED,
    ReleaseState.HOOK_RUN,
    ReleaseState.CHANGELOG_GENERATED,
    ReleaseState.COMMITTED,
    ReleaseState.PUSHED,
    ReleaseState.REVIEW_OPENED,
    ReleaseState.CLEANED,
)


def owns_branch(state: ReleaseState) -> bool:
    """True once a local release branch may exist and must be rolled back."""
    return state in _FORWARD and _FORWARD.index(state) >= _FORWARD.index(
        ReleaseState.BRANCH_CREATED
    )


@dataclass(frozen=True, slots=True)
class _Session:
    state: ReleaseState
    request: ReleaseRequest
    version: Version | None = None
    hook: HookResult | None = None
    pr_url: str | None = None

    @property
    def tag(self) -> str:
        assert self.version is not None
        return self.version.to_tag()

    @property
    def branch(self) -> str:
        assert self.version is not None
        return release_branch_name(self.version)


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    tag: str
    branch: str
    pr_url: str
    hook: HookResult
    states: tuple[ReleaseState, ...]


_Handler = Callable[[_Session], Result[_Session, ReleaseError]]


class ReleaseOrchestrator:
    """Runs one release attempt against a working copy.

    Attributes:
        states: Every state entered by the last :meth:`run`, in order,
            including ``rolling_back``/``rolled_back`` on failure.
    """

    def __init__(
        self,
        *,
        repo: RepositoryHandle,
        config: ReleaseConfig,
        vcs: VcsGateway,
        changelog: ChangelogClient,
        review: ReviewGateway,
        hook: ReleaseHook | None,
        console: ConsoleProtocol,
    ) -> None:
        self._repo = repo
        self._config = config
        self._vcs = vcs
        self._changelog = changelog
        self._review = review
        self._hook = hook
        self._console = console
        self._hook_runner = HookRunner(vcs=vcs, repo=repo, console=console)
        self.states: list[ReleaseState] = []

    @property
    def base_branch(self) -> str:
        return self._config.base_branch

    def run(self, request: ReleaseRequest) -> Result[ReleaseOutcome, ReleaseError]:
        self.states = [ReleaseState.INIT]
        handlers: Mapping[ReleaseState, _Handler] = {
            ReleaseState.INIT: self._compute_version,
            ReleaseState.VERSION_COMPUTED: self._create_branch,
            ReleaseState.BRANCH_CREATED: self._run_hook,
            ReleaseState.HOOK_RUN: self._generate_changelog,
            ReleaseState.CHANGELOG_GENERATED: self._commit,
            ReleaseState.COMMITTED: self._push,
            ReleaseState.PUSHED: self._open_review,
            ReleaseState.REVIEW_OPENED: self._clean_up,
        }

        session = _Session(state=ReleaseState.INIT, request=request)
        while session.state != ReleaseState.CLEANED:
            outcome = handlers[session.state](session)
            if isinstance(outcome, Err):
                if owns_branch(session.state):
                    self._rollback(session)
                return outcome
            session = outcome.value
            self.states.append(session.state)

        assert session.version is not None and session.hook is not None
        assert session.pr_url is not None
        return Ok(
            ReleaseOutcome(
                tag=session.tag,
                branch=session.branch,
                pr_url=session.pr_url,
                hook=session.hook,
                states=tuple(self.states),
            )
        )

    # -- transitions ----------------------------------------------------------

    def _compute_version(self, session: _Session) -> Result[_Session, ReleaseError]:
        request = session.request
        self._console.header("Computing next version")
        self._console.print(f"bump type : {request.bump}", Style.DIM)
        self._console.print(f"rc suffix : {'yes' if request.prerelease else '<none>'}", Style.DIM)

        # Rollback and cleanup return to the base branch, so a run must start there.
        current = self._vcs.current_branch(self._repo)
        if isinstance(current, Err):
            return current
        if current.value != self.base_branch:
            return Err(
                VersionComputationError(
                    message=(
                        f"releases must start from '{self.base_branch}' "
                        f"(currently on '{current.value}')"
                    ),
                    hint=f"git checkout {self.base_branch}",
                )
            )

        fetched = self._vcs.fetch_tags(self._repo)
        if isinstance(fetched, Err):
            return fetched
        tags = self._vcs.tags(self._repo)
        if isinstance(tags, Err):
            return Err(VersionComputationError(message="failed to list tags", hint=tags.error.hint))

        latest = latest_version(tags.value)
        self._console.print(
            f"latest tag: {latest.to_tag() if latest else '<none>'}", Style.DIM
        )

        resolved = resolve_version(
            tags.value,
            request.bump,
            prerelease=request.prerelease,
            label=self._config.prerelease_label,
            override=request.tag_override,
        )
        if isinstance(resolved, Err):
            return resolved

        next_session = replace(session, state=ReleaseState.VERSION_COMPUTED, version=resolved.value)
        self._console.success(f"next version  : {next_session.tag}")
        self._console.success(f"release branch: {next_session.branch}")
        return Ok(next_session)

    def _create_branch(self, session: _Session) -> Result[_Session, ReleaseError]:
        branch = session.branch
        self._console.header("Checking for existing release")

        remote = self._vcs.remote_branch_exists(self._repo, branch)
        if isinstance(remote, Err):
            return remote
        if remote.value:
            return Err(
                DuplicateReleaseError(
                    branch=branch,
                    message=f"Remote branch '{branch}' already exists.",
                )
            )

        open_pr = self._review.has_open_pull_request(branch)
        if isinstance(open_pr, Err):
            return open_pr
        if open_pr.value:
            return Err(
                DuplicateReleaseError(
                    branch=branch,
                    message=f"An open PR for '{branch}' already exists.",
                    hint="Close it and delete the remote branch, then re-run.",
                )
            )
        self._console.success("no existing release branch or PR found")

        self._console.header("Creating release branch")
        created = self._vcs.create_branch(self._repo, branch)
        if isinstance(created, Err):
            return created
        self._console.success(f"on branch {branch}")
        return Ok(replace(session, state=ReleaseState.BRANCH_CREATED))

    def _run_hook(self, session: _Session) -> Result[_Session, ReleaseError]:
        assert session.version is not None
        self._console.header("Pre-release hook")
        result = self._hook_runner.run(self._hook, session.request.bump, session.version)
        if isinstance(result, Err):
            return result
        if result.value.ran:
            changed = len(result.value.files_modified)
            self._console.success(f"hook completed ({changed} file(s) changed)")
        return Ok(replace(session, state=ReleaseState.HOOK_RUN, hook=result.value))

    def _generate_changelog(self, session: _Session) -> Result[_Session, ReleaseError]:
        self._console.header(f"Generating {self._config.changelog_path}")
        self._console.print(f"tag: {session.tag}", Style.DIM)
        result = self._changelog.generate(session.tag)
        if isinstance(result, Err):
            return result
        self._console.success(f"{self._config.changelog_path} written")
        return Ok(replace(session, state=ReleaseState.CHANGELOG_GENERATED))

    def _commit(self, session: _Session) -> Result[_Session, ReleaseError]:
        assert session.version is not None
        message = release_commit_message(session.version)
        self._console.header("Committing")
        self._console.print(f"git commit --allow-empty -m {message!r}", Style.DIM)
        result = self._vcs.commit_all(self._repo, message, allow_empty=True)
        if isinstance(result, Err):
            return result
        return Ok(replace(session, state=ReleaseState.COMMITTED))

    def _push(self, session: _Session) -> Result[_Session, ReleaseError]:
        self._console.header("Pushing")
        self._console.print(f"pushing {session.branch} to {self._repo.remote}...", Style.DIM)
        result = self._vcs.push(self._repo, session.branch)
        if isinstance(result, Err):
            return result
        self._console.success("branch pushed")
        return Ok(replace(session, state=ReleaseState.PUSHED))

    def _open_review(self, session: _Session) -> Result[_Session, ReleaseError]:
        assert session.version is not None
        label = self._config.label
        self._console.header(f"Ensuring '{label.name}' label exists")
        ensured = self._review.ensure_label(
            name=label.name, description=label.description, color=label.color
        )
        if isinstance(ensured, Err):
            return ensured

        self._console.header("Opening PR")
        opened = self._review.open_pull_request(
            title=release_commit_message(session.version),
            body=self._config.pr_body,
            base=self.base_branch,
            head=session.branch,
            labels=(label.name,),
        )
        if isinstance(opened, Err):
            return opened
        self._console.success(f"PR opened: {opened.value}")
        return Ok(replace(session, state=ReleaseState.REVIEW_OPENED, pr_url=opened.value))

    def _clean_up(self, session: _Session) -> Result[_Session, ReleaseError]:
        self._console.header("Cleaning up")
        checked_out = self._vcs.checkout(self._repo, self.base_branch)
        if isinstance(checked_out, Err):
            return checked_out
        deleted = self._vcs.delete_local_branch(self._repo, session.branch)
        if isinstance(deleted, Err):
            return deleted
        self._console.print(f"returned to {self.base_branch}, local branch deleted", Style.DIM)
        return Ok(replace(session, state=ReleaseState.CLEANED))

    # -- rollback -------------------------------------------------------------

    def _rollback(self, session: _Session) -> None:
        self.states.append(ReleaseState.ROLLING_BACK)
        branch = session.branch
        self._console.error(f"release failed, cleaning up branch '{branch}'")

        checked_out = self._vcs.checkout(self._repo, self.base_branch)
        if isinstance(checked_out, Err):
            self._console.warning(
                f"could not return to '{self.base_branch}': {checked_out.error.pretty()}"
            )

        deleted = self._vcs.delete_local_branch(self._repo, branch)
        if isinstance(deleted, Err):
            self._console.warning(f"could not delete '{branch}': {deleted.error.pretty()}")

        if isinstance(checked_out, Ok):
            self._console.print(f"working copy returned to '{self.base_branch}'", Style.DIM)
            clean = self._vcs.is_clean(self._repo)
            if isinstance(clean, Ok) and not clean.value:
                self._console.warning("uncommitted changes from the failed release remain")

        if session.state in (ReleaseState.PUSHED, ReleaseState.REVIEW_OPENED):
            self._console.warning(
                f"'{branch}' was already pushed to {self._repo.remote}; "
                "delete it (and any PR) before re-running"
            )
        self.states.append(ReleaseState.ROLLED_BACK)
