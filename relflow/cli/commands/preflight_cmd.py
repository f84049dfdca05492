from __future__ import annotations

from relflow.cli.commands._helpers import exit_with_code
from relflow.cli.commands.release_cmd import run_preflight
from relflow.cli.context import build_context
from relflow.core.errors import ErrorCode


def preflight() -> None:
    """Validate the environment and report every problem found."""
    ctx = build_context()
    if not run_preflight(ctx):
        exit_with_code(int(ErrorCode.ENV_ERROR))
