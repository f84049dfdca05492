"""Tests for relflow.output.console module."""

from __future__ import annotations

import pytest

from relflow.output.console import MockConsole, RichConsole, Style


class TestMockConsole:
    def test_records_styled_messages(self) -> None:
        console = MockConsole()
        console.header("Pushing")
        console.success("branch pushed")
        console.warning("dirty tree")
        console.error("push failed")
        console.info("note")
        console.print("git push origin release/v1.2.4", Style.DIM)
        console.newline()

        assert console.messages == [
            "Pushing",
            "OK branch pushed",
            "warning: dirty tree",
            "error: push failed",
            "info: note",
            "git push origin release/v1.2.4",
            "",
        ]
        assert console.has_error()
        assert console.has_warning()

    def test_find(self) -> None:
        console = MockConsole()
        console.print("a release/v1.2.4 b")
        console.print("other")
        assert [o.message for o in console.find("release/")] == ["a release/v1.2.4 b"]

    def test_text(self) -> None:
        console = MockConsole()
        console.print("one")
        console.print("two")
        assert console.text == "one\ntwo"


class TestRichConsole:
    def test_writes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.success("done [not markup]")
        console.print("plain")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "OK done [not markup]" in captured.err
        assert "plain" in captured.err


def test_style_str() -> None:
    assert str(Style.HEADER) == "header"
