"""Filterable data table widget for TUI."""

from typing import Any, Dict, List, Optional

from textual.reactive import reactive
from textual.widgets import DataTable

MAX_CELL_WIDTH = 60


def _cell(value: Any) -> str:
    text = "" if value is None else str(value)
    if len(text) > MAX_CELL_WIDTH:
        text = text[: MAX_CELL_WIDTH - 3] + "..."
    return text


class FilterableDataTable(DataTable):
    """Data table with built-in filtering.

    Rows are dicts; keys starting with ``_`` are carried along for selection
    but neither displayed nor searched.
    """

    filter_text: reactive[str] = reactive("")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._column_keys: List[str] = []
        self._all_rows: List[Dict[str, Any]] = []
        self._filtered_rows: List[Dict[str, Any]] = []
        self.cursor_type = "row"

    def set_data(self, columns: List[str], rows: List[Dict[str, Any]]) -> None:
        """Replace columns and rows."""
        self._column_keys = list(columns)
        self._all_rows = list(rows)
        self.clear(columns=True)
        for col in columns:
            self.add_column(col, key=col)
        self.apply_filter()

    def _matches(self, row: Dict[str, Any], needle: str) -> bool:
        return any(needle in str(row.get(key, "")).lower() for key in self._column_keys)

    def apply_filter(self) -> None:
        """Apply current filter to the data."""
        if not self.filter_text:
            self._filtered_rows = list(self._all_rows)
        else:
            needle = self.filter_text.lower()
            self._filtered_rows = [row for row in self._all_rows if self._matches(row, needle)]

        self.clear(columns=False)
        for row in self._filtered_rows:
            self.add_row(*(_cell(row.get(key)) for key in self._column_keys))

    def set_filter(self, filter_text: str) -> None:
        """Set filter text and refresh display."""
        self.filter_text = filter_text
        self.apply_filter()

    def get_selected_row(self) -> Optional[Dict[str, Any]]:
        """Get the currently selected row data."""
        row_index = self.cursor_row
        if row_index < 0 or row_index >= len(self._filtered_rows):
            return None
        return self._filtered_rows[row_index]
