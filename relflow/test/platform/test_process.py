"""Tests for relflow.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from relflow.core.result import Err, Ok
from relflow.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(("git", "push"), 1, "", "rejected")
        assert str(error) == "git push failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(("gh", "pr", "create", "--title", "x"), 1, "", "")
        assert str(error) == "gh pr create ... failed (exit 1)"

    def test_output_combines_streams(self) -> None:
        error = ProcessError(("x",), 1, " out \n", "err\n")
        assert error.output == "err\nout"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert result.value.strip() == "hello"

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            cwd=tmp_path,
        )
        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert result.error.stderr == "bad"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run(["relflow-no-such-tool-xyz"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr
