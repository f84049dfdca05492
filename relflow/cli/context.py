from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relflow.core.config import ReleaseConfig, load_config
from relflow.core.errors import ErrorCode
from relflow.core.result import Err
from relflow.git.repository import GitGateway
from relflow.output.console import ConsoleProtocol, RichConsole
from relflow.platform.process import run as run_process
from relflow.release.contracts import RepositoryHandle, VcsGateway

REPO_ENV = "RELFLOW_REPO"


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo: RepositoryHandle
    config: ReleaseConfig
    vcs: VcsGateway
    console: ConsoleProtocol


def detect_repo_root(start: Path) -> Path | None:
    result = run_process(["git", "rev-parse", "--show-toplevel"], cwd=start)
    if isinstance(result, Err):
        return None
    root = result.value.strip()
    return Path(root) if root else None


def build_context() -> CLIContext:
    start = Path(os.environ.get(REPO_ENV) or Path.cwd())
    root = detect_repo_root(start)
    if root is None:
        typer.echo(f"error: not inside a git repository: {start}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config_result = load_config(root)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))
    config = config_result.value

    return CLIContext(
        repo=RepositoryHandle(root=root, remote=config.remote),
        config=config,
        vcs=GitGateway(),
        console=RichConsole(),
    )
