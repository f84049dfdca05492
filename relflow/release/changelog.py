from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relflow.core.result import Err, Ok, Result
from relflow.platform.process import run as run_process
from relflow.release.errors import ChangelogGenerationError
from relflow.release.timeouts import CHANGELOG_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class GitCliffChangelog:
    """``ChangelogClient`` that renders the changelog with git-cliff.

    The whole history is rendered as if ``tag`` already existed and the result
    replaces ``output`` in the working tree, so it lands in the release commit.
    """

    repo_root: Path
    output: Path
    config: Path | None = None

    def command(self, tag: str) -> list[str]:
        cmd = ["git-cliff"]
        if self.config is not None and self.config.is_file():
            cmd += ["--config", str(self.config)]
        cmd += ["--tag", tag]
        return cmd

    def generate(self, tag: str) -> Result[str, ChangelogGenerationError]:
        result = run_process(self.command(tag), cwd=self.repo_root, timeout=CHANGELOG_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            e = result.error
            return Err(
                ChangelogGenerationError(
                    message=f"git-cliff failed (exit {e.returncode})",
                    hint=e.output or "see https://git-cliff.org/docs/installation",
                )
            )

        text = result.value
        try:
            self.output.parent.mkdir(parents=True, exist_ok=True)
            self.output.write_text(text, encoding="utf-8")
        except OSError as e:
            return Err(
                ChangelogGenerationError(
                    message=f"failed to write {self.output}: {e}",
                )
            )
        return Ok(text)
