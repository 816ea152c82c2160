"""Shared layout for the browsing screens: heading, status line, filter box and table."""

from typing import Any, Dict, List, Optional

from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Static

from stalib.session import BrowserState

from ..widgets.data_table import FilterableDataTable
from ..widgets.search_input import SearchInput


class BrowseScreen(Screen):
    """A table of rows drawn from the session state, filterable from the input box."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
        ("q", "quit", "Quit"),
        ("/", "focus_search", "Filter"),
        (":", "focus_command", "Command"),
    ]

    class RowActivated(Message):
        """A row was chosen with Enter; ``row`` carries its hidden ``_`` keys."""

        def __init__(self, row: Dict[str, Any]) -> None:
            super().__init__()
            self.row = row

    class BackRequested(Message):
        pass

    def __init__(self, heading: str = "", **kwargs):
        super().__init__(**kwargs)
        self.heading = heading

    @property
    def table(self) -> FilterableDataTable:
        return self.query_one("#data-table", FilterableDataTable)

    @property
    def search_box(self) -> SearchInput:
        return self.query_one("#search-input", SearchInput)

    def compose(self):
        with Vertical():
            yield Header()
            yield Static(self.heading, id="screen-title")
            yield Static("", id="status")
            yield SearchInput(id="search-input")
            yield FilterableDataTable(id="data-table")
            yield Footer()

    def on_mount(self) -> None:
        self.table.focus()
        self.render_state(self.app.session.state)

    def on_search_input_filter_changed(self, event: SearchInput.FilterChanged) -> None:
        self.table.set_filter(event.filter_text)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        row: Optional[Dict[str, Any]] = self.table.get_selected_row()
        if row:
            self.post_message(self.RowActivated(row))

    def action_go_back(self) -> None:
        """Escape clears and leaves the filter box before it navigates back."""
        if self.search_box.has_focus:
            self.search_box.value = ""
            self.table.focus()
            return
        self.post_message(self.BackRequested())

    def action_quit(self) -> None:
        self.app.exit()

    def action_focus_search(self) -> None:
        self.search_box.focus()

    def action_focus_command(self) -> None:
        box = self.search_box
        box.value = ":"
        box.focus()
        box.cursor_position = 1

    def set_heading(self, heading: str) -> None:
        self.heading = heading
        self.query_one("#screen-title", Static).update(heading)

    def set_status(self, text: str) -> None:
        self.query_one("#status", Static).update(text)

    def set_rows(self, columns: List[str], rows: List[Dict[str, Any]]) -> None:
        self.table.set_data(columns, rows)

    def render_state(self, state: BrowserState) -> None:
        """Redraw from the session state. Override in subclasses."""
        raise NotImplementedError("Subclasses must implement render_state()")
