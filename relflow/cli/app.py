from __future__ import annotations

import os
from pathlib import Path

import typer

from relflow import __version__
from relflow.cli.commands.hook_cmd import hook_app
from relflow.cli.commands.next_version_cmd import next_version
from relflow.cli.commands.preflight_cmd import preflight
from relflow.cli.commands.release_cmd import release
from relflow.cli.context import REPO_ENV
from relflow.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(release)
app.command("next-version")(next_version)
app.command()(preflight)

# Sub-apps
app.add_typer(hook_app, name="hook")


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository to release (defaults to the current directory).",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if repo is not None:
        try:
            root = repo.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --repo: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir():
            typer.echo(f"error: --repo '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[REPO_ENV] = str(root)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def main() -> None:
    app()
