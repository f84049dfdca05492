from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from functools import total_ordering

from relflow.core.result import Err, Ok, Result
from relflow.release.errors import MalformedTagError

# v<MAJOR>.<MINOR>.<PATCH>[-<label><number>]
_TAG_RE = re.compile(
    r"^v(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)(?:-([A-Za-z]+)([1-9]\d*))?$"
)

DEFAULT_PRERELEASE_LABEL = "rc"
KNOWN_PRERELEASE_LABELS = frozenset({"rc", "alpha", "beta", "preview", "dev"})


class BumpKind(StrEnum):
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


@dataclass(frozen=True, slots=True)
class Prerelease:
    label: str
    number: int

    def __str__(self) -> str:
        return f"{self.label}{self.number}"


@total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    """A semantic version with an optional ``<label><number>`` pre-release.

    Ordering compares the numeric triple first; a pre-release sorts below the
    same triple without one, and pre-releases of the same triple compare by
    number.
    """

    major: int
    minor: int
    patch: int
    prerelease: Prerelease | None = None

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(f"version fields must be non-negative: {self.core}")
        if self.prerelease is not None and self.prerelease.number < 1:
            raise ValueError(f"pre-release number must be positive: {self.prerelease}")

    @property
    def core(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def __str__(self) -> str:
        if self.prerelease is None:
            return self.core
        return f"{self.core}-{self.prerelease}"

    def to_tag(self) -> str:
        return f"v{self}"

    def release(self) -> Version:
        """This version with any pre-release suffix dropped."""
        return Version(self.major, self.minor, self.patch)

    def bump(self, kind: BumpKind) -> Version:
        """Bump the numeric triple; the pre-release suffix is discarded."""
        match kind:
            case BumpKind.MAJOR:
                return Version(self.major + 1, 0, 0)
            case BumpKind.MINOR:
                return Version(self.major, self.minor + 1, 0)
            case BumpKind.PATCH:
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def with_prerelease(self, label: str, number: int) -> Version:
        return Version(self.major, self.minor, self.patch, Prerelease(label, number))

    def _sort_key(self) -> tuple[int, int, int, int, int, str]:
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, 1, 0, "")
        return (self.major, self.minor, self.patch, 0, self.prerelease.number, self.prerelease.label)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()


ZERO = Version(0, 0, 0)


def parse_tag(tag: str) -> Version | None:
    """Parse ``vX.Y.Z`` or ``vX.Y.Z-<label><n>``; None for anything else."""
    m = _TAG_RE.match(tag.strip())
    if m is None:
        return None
    prerelease = None
    if m.group(4) is not None:
        prerelease = Prerelease(m.group(4), int(m.group(5)))
    return Version(int(m.group(1)), int(m.group(2)), int(m.group(3)), prerelease)


def parse_version_override(text: str) -> Result[Version, MalformedTagError]:
    """Parse a user-supplied tag; the leading ``v`` is optional."""
    raw = text.strip()
    candidate = raw if raw.startswith("v") else f"v{raw}"
    parsed = parse_tag(candidate)
    if parsed is None:
        return Err(MalformedTagError(tag=raw, message=f"malformed release tag: {raw!r}"))
    return Ok(parsed)


def latest_version(tags: Iterable[str], *, stable_only: bool = False) -> Version | None:
    """Highest parseable tag, or None when no tag matches."""
    versions = [v for v in (parse_tag(t) for t in tags) if v is not None]
    if stable_only:
        versions = [v for v in versions if not v.is_prerelease]
    return max(versions, default=None)


def next_version(
    tags: Iterable[str],
    bump: BumpKind,
    *,
    prerelease: bool = False,
    label: str = DEFAULT_PRERELEASE_LABEL,
) -> Version:
    """Compute the version the next release should carry.

    The numeric base is the highest stable tag, so a pending ``v1.2.4-rc1``
    does not push a patch bump to ``1.2.5``. Without any stable tag the latest
    pre-release's release triple is the base, and ``0.0.0`` only when no tag
    parses at all. When a pre-release is requested and the most recent tag
    overall is itself a pre-release with a known label, its counter continues
    under that label; otherwise numbering starts at 1 with ``label``.
    """
    snapshot = tuple(tags)
    latest = latest_version(snapshot)
    base = latest_version(snapshot, stable_only=True) or (latest.release() if latest else ZERO)
    target = base.bump(bump)
    if not prerelease:
        return target

    known = KNOWN_PRERELEASE_LABELS | {label}
    if latest is not None and latest.prerelease is not None and latest.prerelease.label in known:
        return target.with_prerelease(latest.prerelease.label, latest.prerelease.number + 1)
    return target.with_prerelease(label, 1)


def resolve_version(
    tags: Iterable[str],
    bump: BumpKind,
    *,
    prerelease: bool = False,
    label: str = DEFAULT_PRERELEASE_LABEL,
    override: str | None = None,
) -> Result[Version, MalformedTagError]:
    """Resolve the release version, honouring an explicit tag when given.

    Naturally occurring tags that do not parse are skipped; only a malformed
    ``override`` is an error.
    """
    if override is not None:
        return parse_version_override(override)
    return Ok(next_version(tags, bump, prerelease=prerelease, label=label))


def release_branch_name(version: Version) -> str:
    return f"release/{version.to_tag()}"


def release_commit_message(version: Version) -> str:
    return f"chore(release): {version.to_tag()}"
