"""Typed release configuration.

Settings are read from ``[tool.relflow]`` in ``pyproject.toml`` and from a
``.relflow.toml`` file at the repository root. When both exist the dedicated
file wins key by key. A repository with neither gets the defaults below.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "GiteaConfig",
    "HostingPlatform",
    "LabelConfig",
    "ReleaseConfig",
    "load_config",
]

CONFIG_FILE_NAME = ".relflow.toml"

DEFAULT_BASE_BRANCH = "main"
DEFAULT_REMOTE = "origin"
DEFAULT_PRERELEASE_LABEL = "rc"
DEFAULT_CHANGELOG_PATH = "CHANGELOG.md"
DEFAULT_CLIFF_CONFIG = ".cliff.toml"
DEFAULT_PR_BODY = "_Release notes will be posted by CI shortly..._"
DEFAULT_GITEA_HOST = "codeberg.org"
DEFAULT_GITEA_TOKEN_ENV = "GITEA_TOKEN"

HostingPlatform = Literal["github", "gitea"]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Configuration could not be read or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class LabelConfig:
    """Label attached to every release review request."""

    name: str = "release"
    description: str = "Release PR"
    color: str = "0075ca"


@dataclass(frozen=True, slots=True)
class GiteaConfig:
    """Gitea instance used when ``platform = "gitea"``.

    Attributes:
        host: Hostname without scheme (``GITEA_HOST`` overrides it)
        repo: ``owner/name`` slug on the instance
        token_env: Environment variable holding the API token
    """

    host: str = DEFAULT_GITEA_HOST
    repo: str | None = None
    token_env: str = DEFAULT_GITEA_TOKEN_ENV

    @property
    def api_url(self) -> str:
        return f"https://{self.host}/api/v1"


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Everything the release flow needs to know about a repository."""

    base_branch: str = DEFAULT_BASE_BRANCH
    remote: str = DEFAULT_REMOTE
    prerelease_label: str = DEFAULT_PRERELEASE_LABEL
    # "go-module", a path to an executable, or None for auto-discovery.
    hook: str | None = None
    changelog_path: str = DEFAULT_CHANGELOG_PATH
    cliff_config: str = DEFAULT_CLIFF_CONFIG
    platform: HostingPlatform = "github"
    pr_body: str = DEFAULT_PR_BODY
    label: LabelConfig = field(default_factory=LabelConfig)
    gitea: GiteaConfig = field(default_factory=GiteaConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseConfig:
        """Create a config from a parsed TOML table.

        Raises:
            ValueError: ``platform`` or ``prerelease_label`` is invalid.
        """
        label: StrDict = get_table(data, "label") or {}
        gitea: StrDict = get_table(data, "gitea") or {}

        platform = get_str(data, "platform") or "github"
        if platform not in ("github", "gitea"):
            raise ValueError(f"platform must be 'github' or 'gitea' (got: {platform!r})")

        prerelease_label = get_str(data, "prerelease_label") or DEFAULT_PRERELEASE_LABEL
        if not prerelease_label.isalpha() or not prerelease_label.isascii():
            raise ValueError(f"prerelease_label must be ASCII letters (got: {prerelease_label!r})")

        return cls(
            base_branch=get_str(data, "base_branch") or DEFAULT_BASE_BRANCH,
            remote=get_str(data, "remote") or DEFAULT_REMOTE,
            prerelease_label=prerelease_label,
            hook=get_str(data, "hook"),
            changelog_path=get_str(data, "changelog_path") or DEFAULT_CHANGELOG_PATH,
            cliff_config=get_str(data, "cliff_config") or DEFAULT_CLIFF_CONFIG,
            platform="gitea" if platform == "gitea" else "github",
            pr_body=get_str(data, "pr_body") or DEFAULT_PR_BODY,
            label=LabelConfig(
                name=get_str(label, "name") or "release",
                description=get_str(label, "description") or "Release PR",
                color=(get_str(label, "color") or "0075ca").lstrip("#"),
            ),
            gitea=GiteaConfig(
                host=os.environ.get("GITEA_HOST") or get_str(gitea, "host") or DEFAULT_GITEA_HOST,
                repo=get_str(gitea, "repo"),
                token_env=get_str(gitea, "token_env") or DEFAULT_GITEA_TOKEN_ENV,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def _pyproject_table(path: Path) -> Result[StrDict, ConfigError]:
    if not path.is_file():
        return Ok({})
    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed
    tool = get_table(parsed.value, "tool") or {}
    return Ok(get_table(tool, "relflow") or {})


def load_config(repo_root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load the release configuration for the repository at ``repo_root``.

    Returns:
        Ok(ReleaseConfig) on success (defaults when nothing is configured),
        Err(ConfigError) when a present file cannot be parsed.
    """
    merged: StrDict = {}

    from_pyproject = _pyproject_table(repo_root / "pyproject.toml")
    if isinstance(from_pyproject, Err):
        return from_pyproject
    merged.update(from_pyproject.value)

    dedicated = repo_root / CONFIG_FILE_NAME
    if dedicated.is_file():
        parsed = _parse_toml(dedicated)
        if isinstance(parsed, Err):
            return parsed
        merged.update(parsed.value)

    try:
        return Ok(ReleaseConfig.from_dict(merged))
    except ValueError as e:
        source = dedicated if dedicated.is_file() else repo_root / "pyproject.toml"
        return Err(ConfigError(f"Invalid config: {e}", path=source))
