"""Entity set screen: the server's catalog of browsable collections."""

import logging

from stalib.session import BrowserState

from .base_screen import BrowseScreen

logger = logging.getLogger(__name__)


class EntitySetsScreen(BrowseScreen):
    """Screen for listing and opening entity sets."""

    def __init__(self):
        super().__init__(heading="Entity sets")

    def render_state(self, state: BrowserState) -> None:
        """Show the entity sets of the current connection."""
        self.set_heading(f"Entity sets - {state.base_url or 'not connected'}")

        if state.root_error is not None:
            logger.error(f"Connect failed: {state.root_error}")
            self.set_status(f"Error: {state.root_error}  (:connect to retry)")
            self.set_rows(["ERROR"], [{"ERROR": str(state.root_error)}])
            return

        if not state.entity_sets:
            self.set_status("Connecting...")
            self.set_rows(["NAME"], [])
            return

        columns = ["NAME", "URL", "DESCRIPTION"]
        rows = []
        for entity_set in state.entity_sets:
            rows.append({
                "NAME": entity_set.name,
                "URL": entity_set.url,
                "DESCRIPTION": entity_set.description or "",
                "_action": "open",
                "_url": entity_set.url,
                "_label": entity_set.name,
            })

        self.set_rows(columns, rows)
        self.set_status(f"{len(rows)} entity sets")
        logger.info(f"Loaded {len(rows)} entity sets")
