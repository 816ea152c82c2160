"""Per-field classification of entity payloads."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Mapping, Optional, Tuple

NAVIGATION_LINK_SUFFIX = "@iot.navigationLink"
SELF_LINK_KEY = "@iot.selfLink"
ID_KEYS = ("@iot.id", "id", "ID", "Id")
PLACEHOLDER = "—"

_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


class FieldKind(Enum):
    """How a field is presented."""
    NAVIGATION = "link"
    SELF = "self"
    PRIMITIVE = "value"
    NESTED = "nested"


@dataclass(frozen=True)
class FieldClassification:
    kind: FieldKind
    label: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_explorable(self) -> bool:
        return self.kind in (FieldKind.NAVIGATION, FieldKind.SELF)


def link_label(key: str) -> str:
    """Human label for a navigation-link key: ``ObservedProperty@iot.navigationLink`` -> ``Observed Property``."""
    stem = key[: -len(NAVIGATION_LINK_SUFFIX)] if key.endswith(NAVIGATION_LINK_SUFFIX) else key
    stem = _CASE_BOUNDARY.sub(r"\1 \2", stem)
    stem = stem.replace("_", " ").strip()
    return stem or "Related"


def classify(key: str, value: Any) -> FieldClassification:
    if key.endswith(NAVIGATION_LINK_SUFFIX) and isinstance(value, str):
        return FieldClassification(FieldKind.NAVIGATION, label=link_label(key), url=value)
    if key == SELF_LINK_KEY and isinstance(value, str):
        return FieldClassification(FieldKind.SELF, url=value)
    if isinstance(value, (dict, list)):
        return FieldClassification(FieldKind.NESTED)
    return FieldClassification(FieldKind.PRIMITIVE)


def format_primitive(value: Any) -> str:
    if value is None:
        return PLACEHOLDER
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def summarize_nested(value: Any, limit: int = 80) -> str:
    """Compact one-line JSON dump, cut to ``limit`` characters (0 = no limit)."""
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    if limit > 0 and len(text) > limit:
        text = text[: max(limit - 3, 0)] + "..."
    return text


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def title_for(entity: Any, fallback: str) -> str:
    """Pick a display title: name, then an id field, then description."""
    if not isinstance(entity, Mapping):
        return fallback

    name = entity.get("name")
    if not _is_blank(name):
        return name.strip()

    for key in ID_KEYS:
        ident = entity.get(key)
        if isinstance(ident, bool):
            continue
        if isinstance(ident, (int, float)) or not _is_blank(ident):
            return f"{key} {ident}"

    description = entity.get("description")
    if not _is_blank(description):
        return description.strip()
    return fallback


def iter_fields(entity: Mapping[str, Any]) -> Iterator[Tuple[str, Any, FieldClassification]]:
    for key, value in entity.items():
        yield key, value, classify(key, value)


def navigation_links(entity: Any) -> List[Tuple[str, str, str]]:
    """Return ``(key, label, url)`` for every navigation link on an entity."""
    if not isinstance(entity, Mapping):
        return []
    return [
        (key, c.label or "Related", c.url or "")
        for key, _, c in iter_fields(entity)
        if c.kind is FieldKind.NAVIGATION
    ]


def self_link(entity: Any) -> Optional[str]:
    if not isinstance(entity, Mapping):
        return None
    value = entity.get(SELF_LINK_KEY)
    return value if isinstance(value, str) and value else None


def display_id(entity: Any) -> str:
    if not isinstance(entity, Mapping):
        return PLACEHOLDER
    return format_primitive(entity.get("@iot.id"))


def find_navigation_link(entity: Any, name: str) -> Optional[Tuple[str, str]]:
    """Find a link by key, key stem or label, ignoring case and spaces.

    Returns ``(label, url)`` or ``None``.
    """
    wanted = name.replace(" ", "").lower()
    for key, label, url in navigation_links(entity):
        stem = key[: -len(NAVIGATION_LINK_SUFFIX)]
        if wanted in (key.lower(), stem.lower(), label.replace(" ", "").lower()):
            return label, url
    return None
