"""Tests for release preflight validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from relflow.core.config import GiteaConfig, ReleaseConfig
from relflow.platform.http import HttpError, MockHttpClient
from relflow.release.preflight import CheckResult, CheckStatus, Preflight, failures
from relflow.test.fakes import REPO, FakeVcs


def _all_tools(tool: str) -> str | None:
    return f"/usr/bin/{tool}"


def _no_tools(tool: str) -> str | None:
    return None


class TestCheckResult:
    def test_success(self) -> None:
        r = CheckResult.success("git", "/usr/bin/git")
        assert r.status == CheckStatus.OK
        assert not r.is_error

    def test_error(self) -> None:
        r = CheckResult.error("gh", "missing", "see https://cli.github.com")
        assert r.is_error
        assert r.hint == "see https://cli.github.com"


class TestPreflightGithub:
    def test_all_good(self) -> None:
        preflight = Preflight(vcs=FakeVcs(), repo=REPO, config=ReleaseConfig(), which=_all_tools)
        results = preflight.validate()
        assert failures(results) == []
        assert [r.name for r in results] == ["branch", "worktree", "git", "git-cliff", "gh"]

    def test_reports_every_problem_together(self) -> None:
        vcs = FakeVcs(branch="feature/x", dirty={"a.txt"})
        results = Preflight(vcs=vcs, repo=REPO, config=ReleaseConfig(), which=_no_tools).validate()

        names = [r.name for r in failures(results)]
        assert names == ["branch", "worktree", "git", "git-cliff", "gh"]
        branch = failures(results)[0]
        assert "currently on: 'feature/x'" in branch.message
        assert branch.hint == "git checkout main"

    def test_custom_base_branch(self) -> None:
        vcs = FakeVcs(branch="trunk")
        config = ReleaseConfig(base_branch="trunk")
        results = Preflight(vcs=vcs, repo=REPO, config=config, which=_all_tools).validate()
        assert failures(results) == []

    def test_branch_lookup_failure(self) -> None:
        vcs = FakeVcs(fail_on={"current_branch"})
        preflight = Preflight(vcs=vcs, repo=REPO, config=ReleaseConfig(), which=_all_tools)
        results = preflight.validate()
        assert [r.name for r in failures(results)] == ["branch"]


class TestPreflightGitea:
    CONFIG = ReleaseConfig(
        platform="gitea", gitea=GiteaConfig(host="git.example.org", repo="acme/widget")
    )

    @pytest.fixture(autouse=True)
    def _isolated_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.delenv("GITEA_TOKEN", raising=False)

    def test_gh_not_required(self) -> None:
        preflight = Preflight(vcs=FakeVcs(), repo=REPO, config=self.CONFIG, which=_all_tools)
        assert preflight.required_tools() == ["git", "git-cliff"]

    def test_all_good(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITEA_TOKEN", "secret")
        http = MockHttpClient()
        http.set_response("GET", "https://git.example.org/api/swagger", {})

        results = Preflight(
            vcs=FakeVcs(), repo=REPO, config=self.CONFIG, http=http, which=_all_tools
        ).validate()

        assert failures(results) == []
        assert {"gitea-repo", "gitea-token", "gitea-host"} <= {r.name for r in results}

    def test_missing_token_and_unreachable_host(self) -> None:
        http = MockHttpClient()
        http.set_response(
            "GET",
            "https://git.example.org/api/swagger",
            HttpError(url="https://git.example.org/api/swagger", status=0, message="refused"),
        )

        results = Preflight(
            vcs=FakeVcs(), repo=REPO, config=self.CONFIG, http=http, which=_all_tools
        ).validate()

        assert [r.name for r in failures(results)] == ["gitea-token", "gitea-host"]

    def test_missing_repo(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITEA_TOKEN", "secret")
        http = MockHttpClient()
        http.set_response("GET", "https://codeberg.org/api/swagger", {})
        config = ReleaseConfig(platform="gitea")

        results = Preflight(
            vcs=FakeVcs(), repo=REPO, config=config, http=http, which=_all_tools
        ).validate()

        assert [r.name for r in failures(results)] == ["gitea-repo"]
