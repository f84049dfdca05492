from __future__ import annotations

import typer

from relflow.cli.commands._helpers import exit_with_code
from relflow.cli.context import build_context
from relflow.core.errors import ErrorCode
from relflow.core.result import Err
from relflow.output.console import Style
from relflow.release.version import BumpKind, latest_version, next_version as compute_next


def next_version(
    bump: BumpKind = typer.Argument(..., help="patch | minor | major"),
    rc: bool = typer.Option(False, "--rc", envvar="RC", help="Append an -rcN suffix."),
    fetch: bool = typer.Option(True, "--fetch/--no-fetch", help="Fetch remote tags first."),
) -> None:
    """Print the next version (without the leading v) to stdout."""
    ctx = build_context()
    console = ctx.console

    if fetch:
        fetched = ctx.vcs.fetch_tags(ctx.repo)
        if isinstance(fetched, Err):
            console.error(fetched.error.message)
            exit_with_code(int(ErrorCode.NETWORK_ERROR))

    tags = ctx.vcs.tags(ctx.repo)
    if isinstance(tags, Err):
        console.error(tags.error.message)
        exit_with_code(int(ErrorCode.RELEASE_ERROR))

    latest = latest_version(tags.value)
    console.print(f"latest tag: {latest.to_tag() if latest else '<none>'}", Style.DIM)
    version = compute_next(tags.value, bump, prerelease=rc, label=ctx.config.prerelease_label)
    console.success(f"next version: {version.to_tag()}")
    typer.echo(str(version))
