from __future__ import annotations

from pathlib import Path

import typer

from relflow.cli.commands._helpers import exit_with_code, print_check_results
from relflow.cli.context import CLIContext, build_context
from relflow.core.errors import ErrorCode
from relflow.core.result import Err, Ok, Result
from relflow.output.console import Style
from relflow.output.errors import print_release_error, release_error_exit_code
from relflow.platform.http import RealHttpClient
from relflow.release.changelog import GitCliffChangelog
from relflow.release.contracts import ReleaseRequest, ReviewGateway
from relflow.release.hooks import resolve_hook
from relflow.release.orchestrator import ReleaseOrchestrator
from relflow.release.preflight import Preflight, failures
from relflow.release.review import GhReviewGateway, GiteaReviewGateway, read_gitea_token
from relflow.release.timeouts import HTTP_TIMEOUT_SECONDS
from relflow.release.version import BumpKind


def build_review_gateway(ctx: CLIContext) -> Result[ReviewGateway, str]:
    if ctx.config.platform == "github":
        return Ok(GhReviewGateway(ctx.repo.root))

    gitea = ctx.config.gitea
    token = read_gitea_token(gitea)
    if token is None:
        return Err(f"{gitea.token_env} is not set and ~/.config/gitea/token does not exist")
    if not gitea.repo:
        return Err("gitea.repo is not configured")
    return Ok(
        GiteaReviewGateway(
            config=gitea, token=token, http=RealHttpClient(timeout=HTTP_TIMEOUT_SECONDS)
        )
    )


def run_preflight(ctx: CLIContext) -> bool:
    ctx.console.header("Preflight checks")
    results = Preflight(
        vcs=ctx.vcs,
        repo=ctx.repo,
        config=ctx.config,
        http=RealHttpClient(timeout=HTTP_TIMEOUT_SECONDS),
    ).validate()
    failed = failures(results)
    print_check_results(results, ctx.console)
    if failed:
        ctx.console.error(f"pre-flight checks failed ({len(failed)} problem(s))")
        return False
    ctx.console.success("all pre-flight checks passed")
    return True


def release(
    bump: BumpKind = typer.Argument(..., help="patch | minor | major"),
    rc: bool = typer.Option(
        False, "--rc", envvar="RC", help="Cut a release candidate (-rcN suffix)."
    ),
    tag: str | None = typer.Option(
        None, "--tag", help="Use this exact tag instead of computing one."
    ),
    skip_preflight: bool = typer.Option(
        False, "--skip-preflight", help="Do not validate the environment first."
    ),
) -> None:
    """Cut a release branch, commit the changelog and open a release PR."""
    ctx = build_context()
    console = ctx.console

    if not skip_preflight and not run_preflight(ctx):
        exit_with_code(int(ErrorCode.ENV_ERROR))

    hook = resolve_hook(ctx.config, ctx.repo.root)
    if isinstance(hook, Err):
        print_release_error(hook.error, console)
        exit_with_code(int(ErrorCode.ENV_ERROR))

    review = build_review_gateway(ctx)
    if isinstance(review, Err):
        console.error(review.error)
        exit_with_code(int(ErrorCode.ENV_ERROR))

    cliff_config = Path(ctx.config.cliff_config)
    orchestrator = ReleaseOrchestrator(
        repo=ctx.repo,
        config=ctx.config,
        vcs=ctx.vcs,
        changelog=GitCliffChangelog(
            repo_root=ctx.repo.root,
            output=ctx.repo.root / ctx.config.changelog_path,
            config=cliff_config if cliff_config.is_absolute() else ctx.repo.root / cliff_config,
        ),
        review=review.value,
        hook=hook.value,
        console=console,
    )

    result = orchestrator.run(ReleaseRequest(bump=bump, prerelease=rc, tag_override=tag))
    if isinstance(result, Err):
        print_release_error(result.error, console)
        exit_with_code(release_error_exit_code(result.error))

    outcome = result.value
    console.newline()
    console.print("━" * 40, Style.SUCCESS)
    console.success(f"Release PR ready: {outcome.tag}")
    console.print(f"  {outcome.pr_url}", Style.BOLD)
    console.print("━" * 40, Style.SUCCESS)
