from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from stalib.clients import Credentials, FetchResult
from stalib.errors import RequestFailed

BASE = "http://h/v1/"

ROOT = {
    "value": [
        {"name": "Things", "url": "http://h/v1/Things"},
        {"name": "Datastreams", "url": "http://h/v1/Datastreams"},
    ]
}


class FakeFetcher:
    """In-memory fetcher: url -> JSON body, (status, body) tuple or exception."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[Tuple[str, Optional[Credentials]]] = []
        self.hooks: Dict[str, Callable[[], None]] = {}

    def get(self, url: str, credentials: Optional[Credentials] = None) -> FetchResult:
        self.calls.append((url, credentials))
        hook = self.hooks.pop(url, None)
        if hook is not None:
            hook()
        if url not in self.routes:
            return FetchResult(status=404, ok=False, reason="Not Found", body="no route", is_json=False)
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            status, body = route
            return FetchResult(
                status=status,
                ok=200 <= status < 300,
                reason={401: "Unauthorized", 500: "Internal Server Error"}.get(status, ""),
                body=body,
                is_json=not isinstance(body, str),
            )
        return FetchResult(status=200, ok=True, reason="OK", body=route, is_json=True)

    @property
    def urls(self) -> List[str]:
        return [url for url, _ in self.calls]


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher({BASE: ROOT})


@pytest.fixture
def unreachable() -> RequestFailed:
    return RequestFailed("Request to http://h/v1/ failed: Connection refused")
