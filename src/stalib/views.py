"""Classification of fetched resources into collection or entity views."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .clients import Credentials, Fetcher, read_json
from .errors import FetchError, RequestFailed
from .links import resolve

logger = logging.getLogger(__name__)

VALUE_KEY = "value"
NEXT_LINK_KEY = "@iot.nextLink"
COUNT_KEY = "@iot.count"


@dataclass(frozen=True)
class Collection:
    items: Tuple[Any, ...] = ()
    next_link: Optional[str] = None
    total_count: Optional[int] = None


@dataclass(frozen=True)
class SingleEntity:
    entity: Dict[str, Any]


@dataclass(frozen=True)
class Malformed:
    reason: str


View = Union[Collection, SingleEntity]


def _total_count(count: Any) -> Optional[int]:
    """Whole, finite numbers only; anything else counts as unknown."""
    if isinstance(count, bool):
        return None
    if isinstance(count, int):
        return count
    if isinstance(count, float) and count.is_integer():
        return int(count)
    return None


def detect_view(body: Any, base: str) -> Union[Collection, SingleEntity, Malformed]:
    if not isinstance(body, dict):
        return Malformed(f"expected a JSON object, got {type(body).__name__}")

    items = body.get(VALUE_KEY)
    if not isinstance(items, list):
        return SingleEntity(entity=body)

    next_link = body.get(NEXT_LINK_KEY)
    count = body.get(COUNT_KEY)
    return Collection(
        items=tuple(items),
        next_link=resolve(next_link, base) if isinstance(next_link, str) and next_link else None,
        total_count=_total_count(count),
    )


def load(
    url: str,
    base: str,
    credentials: Optional[Credentials],
    fetcher: Fetcher,
) -> View:
    """Fetch ``url`` (relative to ``base``) and classify the response."""
    target = resolve(url, base)
    try:
        body = read_json(fetcher.get(target, credentials), target)
    except RequestFailed as e:
        raise FetchError(e.message, status=e.status, body=e.body) from e

    view = detect_view(body, base)
    if isinstance(view, Malformed):
        raise FetchError(f"Unexpected response from {target}: {view.reason}")
    if isinstance(view, Collection):
        logger.info(
            "Loaded collection %s: %d items, count=%s, next=%s",
            target, len(view.items), view.total_count, bool(view.next_link),
        )
    else:
        logger.info("Loaded entity %s (%d fields)", target, len(view.entity))
    return view
