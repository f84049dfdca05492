"""Tests for pre-release hook resolution and execution."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from relflow.core.config import ReleaseConfig
from relflow.core.result import Err, Ok
from relflow.output.console import MockConsole
from relflow.release.go_module import GoModuleHook
from relflow.release.hooks import ExecutableHook, HookRunner, resolve_hook
from relflow.release.version import BumpKind, Version
from relflow.test.fakes import REPO, FakeHook, FakeVcs

pytestmark = pytest.mark.skipif(os.name == "nt", reason="shell hooks need a POSIX shell")


def _write_hook(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class TestResolveHook:
    def test_no_hook(self, tmp_path: Path) -> None:
        assert resolve_hook(ReleaseConfig(), tmp_path) == Ok(None)

    def test_discovers_default_script(self, tmp_path: Path) -> None:
        script = _write_hook(tmp_path / "scripts/hooks/pre-release.sh", "exit 0")
        result = resolve_hook(ReleaseConfig(), tmp_path)
        assert result == Ok(ExecutableHook(path=script, cwd=tmp_path))

    def test_ignores_non_executable_default(self, tmp_path: Path) -> None:
        script = tmp_path / "scripts/hooks/pre-release.sh"
        script.parent.mkdir(parents=True)
        script.write_text("#!/bin/sh\n", encoding="utf-8")
        assert resolve_hook(ReleaseConfig(), tmp_path) == Ok(None)

    def test_configured_path(self, tmp_path: Path) -> None:
        script = _write_hook(tmp_path / "tools/bump.sh", "exit 0")
        result = resolve_hook(ReleaseConfig(hook="tools/bump.sh"), tmp_path)
        assert isinstance(result, Ok)
        assert isinstance(result.value, ExecutableHook)
        assert result.value.path == script

    def test_configured_path_missing(self, tmp_path: Path) -> None:
        result = resolve_hook(ReleaseConfig(hook="tools/missing.sh"), tmp_path)
        assert isinstance(result, Err)
        assert "not an executable file" in result.error.message

    def test_go_module_strategy(self, tmp_path: Path) -> None:
        result = resolve_hook(ReleaseConfig(hook="go-module"), tmp_path)
        assert isinstance(result, Ok)
        assert isinstance(result.value, GoModuleHook)
        assert result.value.root == tmp_path


class TestExecutableHook:
    def test_receives_bump_and_tag(self, tmp_path: Path) -> None:
        script = _write_hook(tmp_path / "hook.sh", 'echo "$1 $2" > args.txt\necho done')
        hook = ExecutableHook(path=script, cwd=tmp_path)

        result = hook.run(BumpKind.MAJOR, Version(3, 0, 0))

        assert result == Ok("done")
        assert (tmp_path / "args.txt").read_text(encoding="utf-8").strip() == "major v3.0.0"

    def test_non_zero_exit(self, tmp_path: Path) -> None:
        script = _write_hook(tmp_path / "hook.sh", "echo 'go.mod is broken' >&2\nexit 4")
        hook = ExecutableHook(path=script, cwd=tmp_path)

        result = hook.run(BumpKind.PATCH, Version(1, 0, 1))

        assert isinstance(result, Err)
        assert result.error.returncode == 4
        assert result.error.message == "pre-release hook failed (exit 4)"
        assert "go.mod is broken" in result.error.output
        assert result.error.hint == "go.mod is broken"


class TestHookRunner:
    def test_no_hook_is_skipped(self) -> None:
        vcs = FakeVcs()
        runner = HookRunner(vcs=vcs, repo=REPO, console=MockConsole())
        result = runner.run(None, BumpKind.PATCH, Version(1, 0, 0))
        assert isinstance(result, Ok)
        assert result.value.ran is False
        assert "changed_paths" not in vcs.calls

    def test_reports_only_new_changes(self) -> None:
        vcs = FakeVcs(dirty={"README.md"})
        hook = FakeHook(vcs, touches=("go.mod", "main.go"))
        runner = HookRunner(vcs=vcs, repo=REPO, console=MockConsole())

        result = runner.run(hook, BumpKind.MAJOR, Version(2, 0, 0))

        assert isinstance(result, Ok)
        assert result.value.ran is True
        assert result.value.files_modified == frozenset({"go.mod", "main.go"})

    def test_failure_propagates(self) -> None:
        vcs = FakeVcs()
        hook = FakeHook(vcs, returncode=2)
        runner = HookRunner(vcs=vcs, repo=REPO, console=MockConsole())

        result = runner.run(hook, BumpKind.PATCH, Version(1, 0, 1))

        assert isinstance(result, Err)
        assert result.error.returncode == 2

    def test_status_failure_is_only_a_warning(self) -> None:
        vcs = FakeVcs(fail_on={"changed_paths"})
        hook = FakeHook(vcs, touches=("go.mod",))
        console = MockConsole()
        runner = HookRunner(vcs=vcs, repo=REPO, console=console)

        result = runner.run(hook, BumpKind.PATCH, Version(1, 0, 1))

        assert isinstance(result, Ok)
        assert result.value.files_modified == frozenset({"go.mod"})
        assert console.has_warning()
