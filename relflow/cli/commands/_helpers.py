"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from relflow.output.console import Style
from relflow.release.preflight import CheckResult

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol


def print_check_results(results: list[CheckResult], console: ConsoleProtocol) -> None:
    for result in results:
        if result.is_error:
            console.error(f"{result.name}: {result.message}")
            if result.hint:
                console.print(f"  hint: {result.hint}", Style.DIM)
        else:
            console.print(f"  {result.name}: {result.message}", Style.DIM)


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)
