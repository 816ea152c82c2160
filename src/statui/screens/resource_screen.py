"""Resource screen: the current collection page or entity, under its breadcrumb trail."""

import logging
from typing import Any, Dict, List

from textual.binding import Binding

from stalib import fields
from stalib.session import BrowserState
from stalib.views import Collection, SingleEntity

from .base_screen import BrowseScreen

logger = logging.getLogger(__name__)


def breadcrumb_line(state: BrowserState) -> str:
    return " > ".join(f"[{i}] {crumb.label}" for i, crumb in enumerate(state.stack))


def collection_rows(view: Collection) -> List[Dict[str, Any]]:
    rows = []
    for i, item in enumerate(view.items):
        title = fields.title_for(item, f"Item {i}")
        link = fields.self_link(item)
        rows.append({
            "#": i,
            "TITLE": title,
            "ID": fields.display_id(item),
            "LINKS": ", ".join(label for _, label, _ in fields.navigation_links(item)),
            "_action": "follow" if link else None,
            "_url": link,
            "_label": title,
        })
    return rows


def entity_rows(entity: Dict[str, Any]) -> List[Dict[str, Any]]:
    rows = []
    for key, value, c in fields.iter_fields(entity):
        if c.kind is fields.FieldKind.NAVIGATION:
            shown, label = c.url, c.label
        elif c.kind is fields.FieldKind.SELF:
            shown, label = c.url, fields.title_for(entity, "Self")
        elif c.kind is fields.FieldKind.NESTED:
            shown, label = fields.summarize_nested(value, 0), None
        else:
            shown, label = fields.format_primitive(value), None
        rows.append({
            "FIELD": key,
            "KIND": c.kind.value,
            "VALUE": shown,
            "_action": "follow" if c.is_explorable else None,
            "_url": c.url,
            "_label": label,
        })
    return rows


class ResourceScreen(BrowseScreen):
    """Screen for a collection page or a single entity."""

    BINDINGS = BrowseScreen.BINDINGS + [
        Binding("n", "next_page", "Next page"),
        Binding("r", "refresh", "Refresh"),
    ]

    def __init__(self):
        super().__init__(heading="")

    def render_state(self, state: BrowserState) -> None:
        """Show the view of the last breadcrumb."""
        self.set_heading(breadcrumb_line(state) or "Nothing open")
        view = state.view
        status = []

        if isinstance(view, Collection):
            self.set_rows(["#", "TITLE", "ID", "LINKS"], collection_rows(view))
            status.append(f"{len(view.items)} items")
            if view.total_count is not None:
                status.append(f"{view.total_count} total")
            if view.next_link:
                status.append("n: next page")
        elif isinstance(view, SingleEntity):
            self.set_rows(["FIELD", "KIND", "VALUE"], entity_rows(view.entity))
            status.append(f"{len(view.entity)} fields")

        if state.content_error is not None:
            status.append(f"Error: {state.content_error}")
        self.set_status(" | ".join(status))

    def action_next_page(self) -> None:
        view = self.app.session.state.view
        if isinstance(view, Collection) and view.next_link:
            self.app.paginate(view.next_link)
        else:
            self.app.show_notification("No next page")

    def action_refresh(self) -> None:
        logger.info("Refreshing current view")
        self.app.refresh_view()
