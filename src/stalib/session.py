"""Browsing session: one explicitly owned state plus the events that change it.

``BrowserSession.apply`` is the only way state moves. Each event fetches
first and commits afterwards; errors are recorded on the state instead of
being raised. Events may run on worker threads: a fence per state pair makes
sure only the most recently issued fetch gets to commit.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Tuple, Union

from . import catalog, navigation, views
from .catalog import Connection, EntitySetDescriptor
from .clients import Credentials, Fetcher, RequestsFetcher
from .errors import BrowserError
from .links import resolve
from .navigation import NavigationStack
from .views import View

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrowserState:
    connection: Connection = field(default_factory=Connection)
    entity_sets: Tuple[EntitySetDescriptor, ...] = ()
    stack: NavigationStack = navigation.EMPTY
    view: Optional[View] = None
    root_error: Optional[BrowserError] = None
    content_error: Optional[BrowserError] = None

    @property
    def base_url(self) -> str:
        return self.connection.base_url

    @property
    def current(self) -> Optional[navigation.Breadcrumb]:
        return navigation.current(self.stack)


@dataclass(frozen=True)
class Connect:
    url: str = ""
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class Open:
    url: str
    label: str


@dataclass(frozen=True)
class Follow:
    url: str
    label: str


@dataclass(frozen=True)
class Paginate:
    link: Optional[str]


@dataclass(frozen=True)
class Revisit:
    index: int


@dataclass(frozen=True)
class Refresh:
    pass


Event = Union[Connect, Open, Follow, Paginate, Revisit, Refresh]


class _Fence:
    """Monotonic token counter; only the newest token may commit."""

    def __init__(self) -> None:
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest


class BrowserSession:
    def __init__(self, fetcher: Optional[Fetcher] = None, state: Optional[BrowserState] = None) -> None:
        self.fetcher: Fetcher = fetcher or RequestsFetcher()
        self._state = state or BrowserState()
        self._lock = threading.Lock()
        self._catalog_fence = _Fence()
        self._nav_fence = _Fence()

    @property
    def state(self) -> BrowserState:
        return self._state

    def apply(self, event: Event) -> BrowserState:
        """Apply one event and return the state afterwards."""
        if isinstance(event, Connect):
            return self._connect(event)
        if isinstance(event, Open):
            return self._navigate(
                event.url, lambda stack, url: navigation.opened(url, event.label)
            )
        if isinstance(event, Follow):
            return self._navigate(
                event.url, lambda stack, url: navigation.followed(stack, url, event.label)
            )
        if isinstance(event, Paginate):
            if not navigation.can_paginate(self._state.stack, event.link):
                return self._state
            return self._navigate(event.link or "", navigation.paginated)
        if isinstance(event, Revisit):
            stack = self._state.stack
            if not navigation.can_revisit(stack, event.index):
                return self._state
            index = event.index
            return self._navigate(
                stack[index].url, lambda s, url: navigation.revisited(s, index)
            )
        if isinstance(event, Refresh):
            crumb = self._state.current
            if crumb is None:
                return self._state
            return self._navigate(crumb.url, lambda stack, url: stack)
        raise TypeError(f"Unknown event: {event!r}")

    # convenience wrappers

    def connect(self, url: str = "", credentials: Optional[Credentials] = None) -> BrowserState:
        return self.apply(Connect(url, credentials))

    def open(self, url: str, label: str) -> BrowserState:
        return self.apply(Open(url, label))

    def follow(self, url: str, label: str) -> BrowserState:
        return self.apply(Follow(url, label))

    def paginate(self, link: Optional[str]) -> BrowserState:
        return self.apply(Paginate(link))

    def revisit(self, index: int) -> BrowserState:
        return self.apply(Revisit(index))

    def refresh(self) -> BrowserState:
        return self.apply(Refresh())

    def _connect(self, event: Connect) -> BrowserState:
        with self._lock:
            token = self._catalog_fence.issue()
            # Navigation issued before this connect must not land afterwards.
            self._nav_fence.issue()

        try:
            connection, sets = catalog.connect(event.url, event.credentials, self.fetcher)
        except BrowserError as e:
            logger.warning("Connect to %s failed: %s", event.url or catalog.DEFAULT_SERVER_URL, e)
            failed = BrowserState(
                connection=Connection(
                    base_url=catalog.normalize_base(event.url), credentials=event.credentials
                ),
                root_error=e,
            )
            return self._commit(self._catalog_fence, token, lambda _: failed, reset_navigation=True)

        connected = BrowserState(connection=connection, entity_sets=tuple(sets))
        return self._commit(self._catalog_fence, token, lambda _: connected, reset_navigation=True)

    def _navigate(
        self,
        url: str,
        transition: Callable[[NavigationStack, str], NavigationStack],
    ) -> BrowserState:
        with self._lock:
            token = self._nav_fence.issue()
            connection = self._state.connection

        target = resolve(url, connection.base_url)
        try:
            view = views.load(target, connection.base_url, connection.credentials, self.fetcher)
        except BrowserError as e:
            logger.warning("Loading %s failed: %s", target, e)
            return self._commit(
                self._nav_fence, token, lambda state: replace(state, content_error=e)
            )

        return self._commit(
            self._nav_fence,
            token,
            lambda state: replace(
                state,
                stack=transition(state.stack, target),
                view=view,
                content_error=None,
            ),
        )

    def _commit(
        self,
        fence: _Fence,
        token: int,
        update: Callable[[BrowserState], BrowserState],
        reset_navigation: bool = False,
    ) -> BrowserState:
        with self._lock:
            if not fence.is_current(token):
                logger.debug("Discarding superseded response (token %d)", token)
                return self._state
            self._state = update(self._state)
            if reset_navigation:
                # Navigation issued against the replaced connection is stale too.
                self._nav_fence.issue()
            return self._state
