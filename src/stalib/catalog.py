"""Service root loading: turns ``GET <base>`` into a list of entity sets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .clients import Credentials, Fetcher, read_json
from .errors import ConnectFailed, EmptyCatalog, RequestFailed
from .links import ensure_trailing_slash, resolve

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://airquality-frost.k8s.ilt-dms.tno.nl/v1.1/"


@dataclass(frozen=True)
class Connection:
    base_url: str = ""
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class EntitySetDescriptor:
    name: str
    url: str
    description: Optional[str] = None


def _entry_to_descriptor(entry: Any, base: str) -> Optional[EntitySetDescriptor]:
    if not isinstance(entry, dict):
        return None
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        return None

    ref = None
    for key in ("url", "href"):
        candidate = entry.get(key)
        if isinstance(candidate, str) and candidate.strip():
            ref = candidate.strip()
            break
    if ref is None:
        ref = base + name

    description = entry.get("description")
    return EntitySetDescriptor(
        name=name,
        url=resolve(ref, base),
        description=description if isinstance(description, str) and description.strip() else None,
    )


def parse_catalog(body: Any, base: str) -> List[EntitySetDescriptor]:
    """Extract entity sets from a service root body.

    Entries without a usable name are dropped; the whole catalog only fails
    when nothing survives.
    """
    entries = body.get("value") if isinstance(body, dict) else None
    if not isinstance(entries, list) or not entries:
        raise EmptyCatalog(f"Service root at {base or '<no url>'} lists no entity sets")

    sets: List[EntitySetDescriptor] = []
    for entry in entries:
        descriptor = _entry_to_descriptor(entry, base)
        if descriptor is None:
            logger.debug("Dropping catalog entry without a usable name: %r", entry)
            continue
        sets.append(descriptor)

    if not sets:
        raise EmptyCatalog(f"Service root at {base} has no usable entity sets")
    return sets


def normalize_base(raw_url: str) -> str:
    return ensure_trailing_slash(raw_url) or DEFAULT_SERVER_URL


def connect(
    raw_url: str,
    credentials: Optional[Credentials],
    fetcher: Fetcher,
) -> Tuple[Connection, List[EntitySetDescriptor]]:
    """Load the service root and return the new connection with its entity sets.

    Raises ``ConnectFailed`` for transport or decoding problems and
    ``EmptyCatalog`` when the root has nothing to browse.
    """
    base = normalize_base(raw_url)
    logger.info("Connecting to %s", base)
    try:
        body = read_json(fetcher.get(base, credentials), base)
    except RequestFailed as e:
        raise ConnectFailed(e.message, status=e.status, body=e.body) from e

    sets = parse_catalog(body, base)
    logger.info("Found %d entity sets at %s", len(sets), base)
    return Connection(base_url=base, credentials=credentials), sets
