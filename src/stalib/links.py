"""Relative link resolution against the current service base."""

from __future__ import annotations

from urllib.parse import urljoin


def resolve(url: str, base: str) -> str:
    """Resolve ``url`` against ``base`` using RFC 3986 rules.

    Empty input comes back unchanged, as does anything urllib refuses to
    parse: a link that cannot be resolved is still worth trying as-is.
    """
    if not url:
        return url
    try:
        return urljoin(base, url)
    except ValueError:
        return url


def ensure_trailing_slash(url: str) -> str:
    url = (url or "").strip()
    if not url:
        return ""
    return url if url.endswith("/") else url + "/"
