"""Breadcrumb trail transitions.

The trail is an immutable tuple; every function returns a new tuple and
leaves its input alone, so a failed load can simply keep the old one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Breadcrumb:
    """One step in the trail: a display label and the absolute URL it shows."""

    label: str
    url: str


NavigationStack = Tuple[Breadcrumb, ...]

EMPTY: NavigationStack = ()


def opened(url: str, label: str) -> NavigationStack:
    """Start a new trail at an entity set root."""
    return (Breadcrumb(label=label, url=url),)


def followed(stack: NavigationStack, url: str, label: str) -> NavigationStack:
    """Descend one level."""
    return stack + (Breadcrumb(label=label, url=url),)


def can_paginate(stack: NavigationStack, link: Optional[str]) -> bool:
    return bool(stack) and bool(link)


def paginated(stack: NavigationStack, url: str) -> NavigationStack:
    """Swap the last crumb's URL for the next page, keeping its label and the depth."""
    last = stack[-1]
    return stack[:-1] + (Breadcrumb(label=last.label, url=url),)


def can_revisit(stack: NavigationStack, index: int) -> bool:
    """Only earlier crumbs can be revisited; the last one is already on screen."""
    return 0 <= index < len(stack) - 1


def revisited(stack: NavigationStack, index: int) -> NavigationStack:
    """Drop everything after ``index``."""
    return stack[:index] + (stack[index],)


def current(stack: NavigationStack) -> Optional[Breadcrumb]:
    return stack[-1] if stack else None


def breadcrumb_text(stack: NavigationStack, separator: str = " > ") -> str:
    """Generate breadcrumb string for the trail."""
    return separator.join(crumb.label for crumb in stack) if stack else "stactl"
