"""Authenticated HTTP access to SensorThings-style servers.

Everything that touches the network goes through a ``Fetcher``. The engine
only ever calls ``get(url, credentials)``; tests swap in an in-memory fake.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests

from .errors import RequestFailed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
MAX_ERROR_BODY = 500


@dataclass(frozen=True)
class Credentials:
    username: str = ""
    password: str = ""

    def is_empty(self) -> bool:
        return not (self.username or self.password)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one GET: status line plus the body, parsed if it was JSON."""

    status: int
    ok: bool
    reason: str = ""
    body: Any = None
    is_json: bool = False


class Fetcher(Protocol):
    def get(self, url: str, credentials: Optional[Credentials] = None) -> FetchResult:
        ...


def basic_auth_header(credentials: Credentials) -> str:
    """Build a Basic ``Authorization`` value.

    Latin-1 is what most servers expect; characters outside it fall back to
    UTF-8 so that any password can still be sent.
    """
    raw = f"{credentials.username}:{credentials.password}"
    try:
        encoded = raw.encode("latin-1")
    except UnicodeEncodeError:
        encoded = raw.encode("utf-8")
    return "Basic " + base64.b64encode(encoded).decode("ascii")


def build_headers(credentials: Optional[Credentials]) -> Dict[str, str]:
    headers = {"Accept": "application/json"}
    if credentials is not None and not credentials.is_empty():
        headers["Authorization"] = basic_auth_header(credentials)
    return headers


class RequestsFetcher:
    """Fetcher backed by a shared ``requests.Session``."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()

    def get(self, url: str, credentials: Optional[Credentials] = None) -> FetchResult:
        logger.debug("GET %s", url)
        try:
            resp = self._session.get(url, headers=build_headers(credentials), timeout=self.timeout)
        except requests.RequestException as e:
            raise RequestFailed(f"Request to {url} failed: {e}") from e

        logger.debug("GET %s -> %s %s", url, resp.status_code, resp.reason)
        try:
            body: Any = resp.json()
            is_json = True
        except ValueError:
            body = resp.text
            is_json = False
        return FetchResult(
            status=resp.status_code,
            ok=resp.ok,
            reason=resp.reason or "",
            body=body,
            is_json=is_json,
        )

    def close(self) -> None:
        self._session.close()


def _body_text(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        text = body
    else:
        text = json.dumps(body)
    text = text.strip()
    if len(text) > MAX_ERROR_BODY:
        text = text[:MAX_ERROR_BODY - 3] + "..."
    return text


def read_json(result: FetchResult, url: str) -> Any:
    """Return the decoded JSON body or raise ``RequestFailed``."""
    if not result.ok:
        text = _body_text(result.body)
        message = f"HTTP {result.status} {result.reason}".rstrip() + f" for {url}"
        if text:
            message += f": {text}"
        raise RequestFailed(message, status=result.status, body=text or None)
    if not result.is_json:
        text = _body_text(result.body)
        raise RequestFailed(
            f"Response from {url} is not valid JSON", status=result.status, body=text or None
        )
    return result.body
