"""HTTP client abstraction for hosting-platform APIs.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from relflow import __version__
from relflow.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[bytes, HttpError]:
        """Send a request; ``payload`` is sent as a JSON body when given."""
        ...

    def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[object, HttpError]:
        """Send a request and decode the JSON response body."""
        ...


class RealHttpClient:
    """HTTP client using urllib with system certificates."""

    def __init__(self, timeout: float = 30.0, user_agent: str = f"relflow/{__version__}") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[bytes, HttpError]:
        all_headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        all_headers.update(headers or {})
        data: bytes | None = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            all_headers["Content-Type"] = "application/json"

        try:
            req = urllib.request.Request(url, data=data, headers=all_headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[object, HttpError]:
        result = self.request(method, url, headers=headers, payload=payload)
        if isinstance(result, Err):
            return result
        try:
            obj: object = json.loads(result.value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        return Ok(obj)


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_response("GET", "https://host/api/v1/version", {"version": "1.21"})
        result = client.request_json("GET", "https://host/api/v1/version")
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], object | HttpError] = {}
        self.calls: list[tuple[str, str, object | None]] = []

    def set_response(self, method: str, url: str, response: object | HttpError) -> None:
        self._responses[(method, url)] = response

    def _lookup(self, method: str, url: str, payload: object | None) -> Result[object, HttpError]:
        self.calls.append((method, url, payload))
        key = (method, url)
        if key not in self._responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._responses[key]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[bytes, HttpError]:
        result = self._lookup(method, url, payload)
        if isinstance(result, Err):
            return result
        return Ok(json.dumps(result.value).encode("utf-8"))

    def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[object, HttpError]:
        return self._lookup(method, url, payload)
