"""Hosting-platform adapters implementing ``ReviewGateway``.

- GhReviewGateway: GitHub through the ``gh`` CLI
- GiteaReviewGateway: Gitea/Forgejo through the REST API

Only idempotent reads are retried, and only on transient network failures.
Creating a label or a pull request is attempted exactly once.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from time import sleep

from relflow.core.config import GiteaConfig
from relflow.core.result import Err, Ok, Result
from relflow.core.structured import as_obj_list, as_str_dict, get_str, get_table
from relflow.platform.http import HttpClient
from relflow.platform.process import ProcessError
from relflow.platform.process import run as run_process
from relflow.release.errors import ReviewGatewayError
from relflow.release.timeouts import GH_TIMEOUT_SECONDS

GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

GITEA_TOKEN_FILE = Path("~/.config/gitea/token")
GITEA_PAGE_SIZE = 50


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "network is unreachable",
        "http 429",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


class GhReviewGateway:
    """GitHub pull requests and labels via ``gh``, run from the repository root."""

    def __init__(self, repo_root: Path, *, retry_attempts: int = GH_READ_RETRY_ATTEMPTS) -> None:
        self._root = repo_root
        self._retry_attempts = max(1, retry_attempts)

    def _gh(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(["gh", *args], cwd=self._root, timeout=GH_TIMEOUT_SECONDS)

    def _gh_read(self, args: list[str]) -> Result[str, ProcessError]:
        result = self._gh(args)
        for attempt in range(1, self._retry_attempts):
            if isinstance(result, Ok) or not _is_transient_gh_error(result.error):
                break
            sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
            result = self._gh(args)
        return result

    def has_open_pull_request(self, head: str) -> Result[bool, ReviewGatewayError]:
        result = self._gh_read(
            ["pr", "list", "--head", head, "--state", "open", "--json", "number"]
        )
        if isinstance(result, Err):
            return Err(
                ReviewGatewayError(
                    message=f"failed to list open pull requests for {head}",
                    hint=result.error.output or "Run: gh auth login",
                )
            )
        try:
            obj: object = json.loads(result.value or "[]")
        except json.JSONDecodeError as e:
            return Err(ReviewGatewayError(message=f"invalid JSON from gh pr list: {e}"))
        items = as_obj_list(obj)
        if items is None:
            return Err(ReviewGatewayError(message="unexpected payload from gh pr list"))
        return Ok(len(items) > 0)

    def ensure_label(
        self, *, name: str, description: str, color: str
    ) -> Result[None, ReviewGatewayError]:
        result = self._gh(
            ["label", "create", name, "--description", description, "--color", color]
        )
        if isinstance(result, Err):
            if "already exists" in result.error.output.lower():
                return Ok(None)
            return Err(
                ReviewGatewayError(
                    message=f"failed to create label: {name}",
                    hint=result.error.output or None,
                )
            )
        return Ok(None)

    def open_pull_request(
        self,
        *,
        title: str,
        body: str,
        base: str,
        head: str,
        labels: tuple[str, ...],
    ) -> Result[str, ReviewGatewayError]:
        cmd = ["pr", "create", "--title", title, "--body", body, "--base", base, "--head", head]
        for label in labels:
            cmd += ["--label", label]
        result = self._gh(cmd)
        if isinstance(result, Err):
            return Err(
                ReviewGatewayError(
                    message=f"failed to open pull request for {head}",
                    hint=result.error.output or None,
                )
            )
        lines = [ln.strip() for ln in result.value.splitlines() if ln.strip()]
        if not lines:
            return Err(ReviewGatewayError(message="gh pr create returned no URL"))
        return Ok(lines[-1])


def read_gitea_token(config: GiteaConfig) -> str | None:
    """Token from the configured environment variable, else ``~/.config/gitea/token``."""
    token = os.environ.get(config.token_env, "").strip()
    if token:
        return token
    path = GITEA_TOKEN_FILE.expanduser()
    try:
        token = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return token or None


class GiteaReviewGateway:
    """Gitea pull requests and labels via ``/api/v1``."""

    def __init__(self, *, config: GiteaConfig, token: str, http: HttpClient) -> None:
        if not config.repo:
            raise ValueError("gitea.repo must be set to owner/name")
        self._config = config
        self._http = http
        self._headers = {"Authorization": f"token {token}"}
        self._base = f"{config.api_url}/repos/{config.repo}"

    def _list_all(self, path: str, what: str) -> Result[list[object], ReviewGatewayError]:
        """GET every page of a list endpoint; a short page ends the listing."""
        sep = "&" if "?" in path else "?"
        items: list[object] = []
        page = 1
        while True:
            result = self._http.request_json(
                "GET",
                f"{self._base}/{path}{sep}limit={GITEA_PAGE_SIZE}&page={page}",
                headers=self._headers,
            )
            if isinstance(result, Err):
                return Err(
                    ReviewGatewayError(message=f"failed to list {what}", hint=str(result.error))
                )
            batch = as_obj_list(result.value)
            if batch is None:
                return Err(ReviewGatewayError(message=f"unexpected payload from Gitea {what} API"))
            items.extend(batch)
            if len(batch) < GITEA_PAGE_SIZE:
                return Ok(items)
            page += 1

    def _labels(self) -> Result[dict[str, int], ReviewGatewayError]:
        result = self._list_all("labels", "labels")
        if isinstance(result, Err):
            return result
        out: dict[str, int] = {}
        for item in result.value:
            d = as_str_dict(item)
            if d is None:
                continue
            name = get_str(d, "name")
            label_id = d.get("id")
            if name is not None and isinstance(label_id, int):
                out[name] = label_id
        return Ok(out)

    def has_open_pull_request(self, head: str) -> Result[bool, ReviewGatewayError]:
        result = self._list_all("pulls?state=open", "pulls")
        if isinstance(result, Err):
            return result
        for item in result.value:
            d = as_str_dict(item)
            head_tbl = get_table(d, "head") if d is not None else None
            if head_tbl is not None and get_str(head_tbl, "ref") == head:
                return Ok(True)
        return Ok(False)

    def ensure_label(
        self, *, name: str, description: str, color: str
    ) -> Result[None, ReviewGatewayError]:
        labels = self._labels()
        if isinstance(labels, Err):
            return labels
        if name in labels.value:
            return Ok(None)

        created = self._http.request_json(
            "POST",
            f"{self._base}/labels",
            headers=self._headers,
            payload={"name": name, "description": description, "color": f"#{color}"},
        )
        if isinstance(created, Err):
            # 409: created concurrently by someone else.
            if created.error.status == 409:
                return Ok(None)
            return Err(
                ReviewGatewayError(message=f"failed to create label: {name}", hint=str(created.error))
            )
        return Ok(None)

    def open_pull_request(
        self,
        *,
        title: str,
        body: str,
        base: str,
        head: str,
        labels: tuple[str, ...],
    ) -> Result[str, ReviewGatewayError]:
        known = self._labels()
        if isinstance(known, Err):
            return known
        missing = [name for name in labels if name not in known.value]
        if missing:
            return Err(
                ReviewGatewayError(
                    message=f"label not found: {', '.join(missing)}",
                    hint="create it first or fix the configured release label",
                )
            )
        label_ids = [known.value[name] for name in labels]

        result = self._http.request_json(
            "POST",
            f"{self._base}/pulls",
            headers=self._headers,
            payload={
                "title": title,
                "body": body,
                "base": base,
                "head": head,
                "labels": label_ids,
            },
        )
        if isinstance(result, Err):
            return Err(
                ReviewGatewayError(
                    message=f"failed to open pull request for {head}",
                    hint=str(result.error),
                )
            )
        data = as_str_dict(result.value)
        url = get_str(data, "html_url") if data is not None else None
        if url is None:
            return Err(ReviewGatewayError(message="Gitea returned no pull request URL"))
        return Ok(url)

