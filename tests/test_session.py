from __future__ import annotations

import threading

import pytest

from stalib.catalog import Connection
from stalib.clients import Credentials
from stalib.errors import ConnectFailed, EmptyCatalog, FetchError
from stalib.navigation import Breadcrumb
from stalib.session import (
    BrowserSession,
    BrowserState,
    Connect,
    Follow,
    Open,
    Paginate,
    Refresh,
    Revisit,
)
from stalib.views import Collection, SingleEntity

from conftest import BASE, ROOT, FakeFetcher


def page(*names, next_link=None):
    body = {"value": [{"name": n} for n in names]}
    if next_link:
        body["@iot.nextLink"] = next_link
    return body


@pytest.fixture
def routes():
    return {
        BASE: ROOT,
        "http://h/v1/u1": page("a", "b", next_link="u1?skip=2"),
        "http://h/v1/u2": {"@iot.id": 2, "name": "two"},
        "http://h/v1/u3": page("c"),
        "http://h/v1/u1?skip=2": page("c"),
    }


@pytest.fixture
def session(routes):
    s = BrowserSession(fetcher=FakeFetcher(routes))
    s.connect(BASE)
    return s


def crumbs(state: BrowserState):
    return [(c.label, c.url) for c in state.stack]


def test_connect_success(fetcher):
    session = BrowserSession(fetcher=fetcher)
    creds = Credentials("alice", "pw")
    state = session.apply(Connect(BASE, creds))
    assert state.connection == Connection(base_url=BASE, credentials=creds)
    assert [s.name for s in state.entity_sets] == ["Things", "Datastreams"]
    assert state.stack == ()
    assert state.view is None
    assert state.root_error is None


def test_open_follow_paginate(session):
    session.apply(Open("u1", "L1"))
    session.apply(Follow("u2", "L2"))
    state = session.apply(Paginate("u3"))
    assert crumbs(state) == [("L1", "http://h/v1/u1"), ("L2", "http://h/v1/u3")]
    assert isinstance(state.view, Collection)
    assert state.view.items == ({"name": "c"},)


def test_open_replaces_trail(session):
    session.open("u1", "L1")
    session.follow("u2", "L2")
    state = session.open("u3", "L3")
    assert crumbs(state) == [("L3", "http://h/v1/u3")]


def test_follow_renders_entity(session):
    session.open("u1", "L1")
    state = session.follow("u2", "two")
    assert isinstance(state.view, SingleEntity)
    assert state.view.entity["name"] == "two"
    assert state.current == Breadcrumb("two", "http://h/v1/u2")


def test_paginate_uses_resolved_next_link(session):
    state = session.open("u1", "L1")
    state = session.paginate(state.view.next_link)
    assert crumbs(state) == [("L1", "http://h/v1/u1?skip=2")]


def test_paginate_noops(session):
    before = session.paginate("u3")
    assert before.stack == ()
    assert session.fetcher.urls == [BASE]

    state = session.open("u1", "L1")
    assert session.paginate("") is state
    assert session.paginate(None) is state


def test_revisit_truncates_and_refetches(session):
    session.open("u1", "L1")
    session.follow("u2", "L2")
    session.follow("u3", "L3")
    calls = len(session.fetcher.calls)

    state = session.apply(Revisit(1))

    assert crumbs(state) == [("L1", "http://h/v1/u1"), ("L2", "http://h/v1/u2")]
    assert isinstance(state.view, SingleEntity)
    assert session.fetcher.urls[calls:] == ["http://h/v1/u2"]


def test_revisit_noops(session):
    session.open("u1", "L1")
    state = session.follow("u2", "L2")
    calls = len(session.fetcher.calls)
    assert session.revisit(1) is state
    assert session.revisit(7) is state
    assert session.revisit(-1) is state
    assert len(session.fetcher.calls) == calls


def test_refresh_reloads_current(session):
    session.open("u1", "L1")
    session.fetcher.routes["http://h/v1/u1"] = page("fresh")
    state = session.apply(Refresh())
    assert crumbs(state) == [("L1", "http://h/v1/u1")]
    assert state.view.items == ({"name": "fresh"},)


def test_refresh_without_trail_is_noop(session):
    state = session.state
    assert session.refresh() is state


def test_failed_navigation_keeps_prior_state(session):
    session.open("u1", "L1")
    good = session.follow("u2", "L2")
    session.fetcher.routes["http://h/v1/secret"] = (401, "denied")

    state = session.follow("secret", "Secret")

    assert state.stack == good.stack
    assert state.view == good.view
    assert isinstance(state.content_error, FetchError)
    assert "401" in str(state.content_error)

    state = session.revisit(0)
    assert state.content_error is None
    assert crumbs(state) == [("L1", "http://h/v1/u1")]


def test_failed_paginate_keeps_url(session):
    session.open("u1", "L1")
    state = session.paginate("missing")
    assert crumbs(state) == [("L1", "http://h/v1/u1")]
    assert "404" in str(state.content_error)


def test_reconnect_clears_navigation(session, routes):
    session.open("u1", "L1")
    state = session.connect(BASE)
    assert state.stack == ()
    assert state.view is None
    assert len(state.entity_sets) == 2


def test_failed_connect_clears_catalog_but_keeps_base(session):
    session.open("u1", "L1")
    session.fetcher.routes["http://other/v1/"] = (401, "who are you")

    state = session.connect("http://other/v1")

    assert state.connection.base_url == "http://other/v1/"
    assert state.entity_sets == ()
    assert state.stack == ()
    assert state.view is None
    assert isinstance(state.root_error, ConnectFailed)
    assert "401" in str(state.root_error)


def test_empty_catalog_is_reported(session):
    session.fetcher.routes["http://empty/"] = {"value": []}
    state = session.connect("http://empty/")
    assert isinstance(state.root_error, EmptyCatalog)
    assert state.entity_sets == ()


def test_superseded_navigation_is_discarded(session):
    # While u1 is in flight, a newer Open for u3 is issued and lands first.
    session.fetcher.hooks["http://h/v1/u1"] = lambda: session.open("u3", "L3")

    state = session.open("u1", "L1")

    assert crumbs(state) == [("L3", "http://h/v1/u3")]
    assert crumbs(session.state) == [("L3", "http://h/v1/u3")]


def test_navigation_started_before_reconnect_is_discarded(session):
    session.fetcher.hooks["http://h/v1/u1"] = lambda: session.connect(BASE)

    state = session.open("u1", "L1")

    assert state.stack == ()
    assert state.view is None


def test_superseded_connect_is_discarded(session):
    session.fetcher.routes["http://old/"] = {"value": [{"name": "Old"}]}
    session.fetcher.hooks["http://old/"] = lambda: session.connect(BASE)

    state = session.connect("http://old/")

    assert state.connection.base_url == BASE
    assert [s.name for s in state.entity_sets] == ["Things", "Datastreams"]


def test_unknown_event_is_rejected(session):
    with pytest.raises(TypeError):
        session.apply("open")


def gate(fetcher: FakeFetcher, url: str):
    """Hold the next fetch of ``url`` until ``release`` is set."""
    started, release = threading.Event(), threading.Event()

    def hook():
        started.set()
        assert release.wait(5)

    fetcher.hooks[url] = hook
    return started, release


def start(func, *args):
    outcome = {}

    def run():
        try:
            outcome["state"] = func(*args)
        except Exception as e:  # surfaced by the assertions below
            outcome["error"] = e

    thread = threading.Thread(target=run)
    thread.start()
    return thread, outcome


@pytest.mark.parametrize(
    "event, url",
    [
        (Paginate("u3"), "http://h/v1/u3"),
        (Follow("u3", "L3"), "http://h/v1/u3"),
        (Revisit(0), "http://h/v1/u1"),
    ],
)
def test_navigation_issued_during_connect_is_discarded(session, event, url):
    session.open("u1", "L1")
    session.follow("u2", "L2")
    connect_started, release_connect = gate(session.fetcher, BASE)
    nav_started, release_nav = gate(session.fetcher, url)

    connecting, connected = start(session.connect, BASE)
    assert connect_started.wait(5)
    navigating, navigated = start(session.apply, event)
    assert nav_started.wait(5)

    release_connect.set()
    connecting.join(5)
    assert session.state.stack == ()

    release_nav.set()
    navigating.join(5)

    assert "error" not in connected
    assert "error" not in navigated
    state = session.state
    assert state.stack == ()
    assert state.view is None
    assert [s.name for s in state.entity_sets] == ["Things", "Datastreams"]


def test_navigation_landing_after_reconnect_is_discarded(session):
    session.open("u1", "L1")
    nav_started, release_nav = gate(session.fetcher, "http://h/v1/u2")

    navigating, navigated = start(session.follow, "u2", "L2")
    assert nav_started.wait(5)
    session.connect(BASE)
    release_nav.set()
    navigating.join(5)

    assert "error" not in navigated
    assert session.state.stack == ()
    assert session.state.view is None


def test_navigation_after_connect_commits_still_lands(session):
    session.open("u1", "L1")
    session.connect(BASE)
    state = session.open("u3", "L3")
    assert crumbs(state) == [("L3", "http://h/v1/u3")]
