"""Input widget for filtering data and entering ':' commands."""

from textual.message import Message
from textual.widgets import Input


class SearchInput(Input):
    """Filters the table as you type; a line starting with ':' is a command."""

    class FilterChanged(Message):
        """Message sent when filter text changes."""

        def __init__(self, filter_text: str) -> None:
            super().__init__()
            self.filter_text = filter_text

    class CommandSubmitted(Message):
        """Message sent when a ':' command is entered."""

        def __init__(self, command: str) -> None:
            super().__init__()
            self.command = command

    def __init__(self, **kwargs):
        super().__init__(placeholder="Type to filter, ':' for commands...", **kwargs)

    def on_input_changed(self, event: Input.Changed) -> None:
        # Command text is not a filter; keep the table unfiltered while typing it.
        text = "" if event.value.startswith(":") else event.value
        self.post_message(self.FilterChanged(text))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.value.startswith(":"):
            self.post_message(self.CommandSubmitted(event.value))
            self.value = ""
