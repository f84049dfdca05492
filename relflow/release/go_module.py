"""Go module-path hook.

Go modules at major version 2 and above carry the major version in their
module path (``example.com/repo/v3``). A major release therefore has to
rewrite ``go.mod`` and every internal import before it is tagged. Patch and
minor releases need no changes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from relflow.core.result import Err, Ok, Result
from relflow.platform.process import run as run_process
from relflow.release.errors import HookExecutionError
from relflow.release.timeouts import GO_TIDY_TIMEOUT_SECONDS
from relflow.release.version import BumpKind, Version

_MODULE_RE = re.compile(r'^module[ \t]+"?([^\s"]+)"?[ \t]*$', re.MULTILINE)
_MAJOR_SUFFIX_RE = re.compile(r"/v(\d+)$")

_HOOK_NAME = "go-module"


@dataclass(frozen=True, slots=True)
class ModulePath:
    path: str

    @property
    def major(self) -> int:
        """Major version encoded in the path; no suffix means 1."""
        m = _MAJOR_SUFFIX_RE.search(self.path)
        return int(m.group(1)) if m else 1

    def next_major(self) -> ModulePath:
        m = _MAJOR_SUFFIX_RE.search(self.path)
        stem = self.path[: m.start()] if m else self.path
        return ModulePath(f"{stem}/v{self.major + 1}")


def read_module_path(go_mod_text: str) -> ModulePath | None:
    m = _MODULE_RE.search(go_mod_text)
    if m is None:
        return None
    return ModulePath(m.group(1))


def rewrite_references(text: str, old: str, new: str) -> str:
    """Replace ``old`` as a whole module path (not as a prefix of a longer path segment)."""
    pattern = re.compile(re.escape(old) + r"(?![\w.\-])")
    return pattern.sub(new, text)


def _go_sources(root: Path) -> list[Path]:
    files: list[Path] = []
    for path in sorted(root.rglob("*.go")):
        rel = path.relative_to(root)
        if "vendor" in rel.parts or any(part.startswith(".") for part in rel.parts):
            continue
        files.append(path)
    return files


def _fail(message: str, *, hint: str | None = None, output: str = "") -> Err[HookExecutionError]:
    return Err(HookExecutionError(hook=_HOOK_NAME, message=message, output=output, hint=hint))


@dataclass(frozen=True, slots=True)
class GoModuleHook:
    root: Path
    tidy: bool = True

    @property
    def name(self) -> str:
        return _HOOK_NAME

    def run(self, bump: BumpKind, version: Version) -> Result[str, HookExecutionError]:
        if bump != BumpKind.MAJOR:
            return Ok(f"{bump} release: no module path changes needed")

        go_mod = self.root / "go.mod"
        try:
            go_mod_text = go_mod.read_text(encoding="utf-8")
        except FileNotFoundError:
            return _fail(f"go.mod not found at {go_mod}")
        except (OSError, UnicodeDecodeError) as e:
            return _fail(f"cannot read {go_mod}: {e}")

        current = read_module_path(go_mod_text)
        if current is None:
            return _fail(f"no module directive in {go_mod}")
        target = current.next_major()

        updated = _MODULE_RE.sub(f"module {target.path}", go_mod_text, count=1)
        count = 0
        try:
            go_mod.write_text(updated, encoding="utf-8")
            for source in _go_sources(self.root):
                text = source.read_text(encoding="utf-8")
                rewritten = rewrite_references(text, current.path, target.path)
                if rewritten != text:
                    source.write_text(rewritten, encoding="utf-8")
                    count += 1
        except (OSError, UnicodeDecodeError) as e:
            return _fail(f"failed to rewrite import paths: {e}")

        lines = [
            f"module {current.path} -> {target.path}",
            f"updated {count} .go file(s)",
        ]

        if self.tidy:
            tidy = run_process(["go", "mod", "tidy"], cwd=self.root, timeout=GO_TIDY_TIMEOUT_SECONDS)
            if isinstance(tidy, Err):
                return _fail(
                    "go mod tidy failed",
                    hint="Fix the module graph by hand, then re-run the release.",
                    output=tidy.error.output,
                )
            lines.append("go mod tidy passed")

        return Ok("\n".join(lines))
