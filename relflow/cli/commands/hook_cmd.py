from __future__ import annotations

from pathlib import Path

import typer

from relflow.cli.commands._helpers import exit_with_code
from relflow.cli.context import detect_repo_root
from relflow.core.errors import ErrorCode
from relflow.core.result import Err
from relflow.output.console import RichConsole, Style
from relflow.output.errors import print_release_error
from relflow.release.go_module import GoModuleHook
from relflow.release.version import BumpKind, parse_version_override

hook_app = typer.Typer(add_completion=False, no_args_is_help=True, help="Built-in pre-release hooks.")


@hook_app.command("go-module")
def go_module(
    bump: BumpKind = typer.Argument(..., help="patch | minor | major"),
    tag: str = typer.Argument(..., help="Release tag, e.g. v3.0.0"),
    tidy: bool = typer.Option(True, "--tidy/--no-tidy", help="Run go mod tidy afterwards."),
) -> None:
    """Rewrite the Go module path for a major release (<bump> <tag> hook protocol)."""
    console = RichConsole()
    version = parse_version_override(tag)
    if isinstance(version, Err):
        print_release_error(version.error, console)
        exit_with_code(int(ErrorCode.USER_ERROR))

    root = detect_repo_root(Path.cwd()) or Path.cwd()
    console.header("Rewriting Go module path")
    result = GoModuleHook(root=root, tidy=tidy).run(bump, version.value)
    if isinstance(result, Err):
        print_release_error(result.error, console)
        exit_with_code(int(ErrorCode.RELEASE_ERROR))
    for line in result.value.splitlines():
        console.print(line, Style.DIM)
    console.success("module path hook completed")
