"""Main TUI application: one browsing session driven by thread workers."""

import functools
import logging
import os
import tempfile
from typing import Optional

from textual.app import App
from textual.worker import Worker, WorkerState

from stalib import clients, fields, navigation
from stalib.config import Server
from stalib.session import (
    BrowserSession,
    Connect,
    Event,
    Follow,
    Open,
    Paginate,
    Refresh,
    Revisit,
)
from stalib.views import Collection, SingleEntity

from .command_parser import CommandParser, CommandType, ParsedCommand
from .screens.base_screen import BrowseScreen
from .screens.entity_sets_screen import EntitySetsScreen
from .screens.resource_screen import ResourceScreen
from .widgets.search_input import SearchInput


logger = logging.getLogger(__name__)


def crumb_refusal(stack: navigation.NavigationStack, index: int) -> Optional[str]:
    """Why ':crumb INDEX' cannot revisit, or None when it can."""
    if navigation.can_revisit(stack, index):
        return None
    if stack and index == len(stack) - 1:
        return f"Breadcrumb {index} is already current"
    return f"No breadcrumb {index} (trail has {len(stack)})"


class BrowserApp(App):
    """Main TUI application for SensorThings API exploration."""

    TITLE = "stactl TUI"
    SUB_TITLE = "SensorThings API Browser"

    CSS = """
    Screen {
        layout: vertical;
    }

    Header {
        dock: top;
    }

    Footer {
        dock: bottom;
    }

    #screen-title {
        text-style: bold;
    }

    #status {
        color: $text-muted;
    }
    """

    def __init__(self, server: Server, session: Optional[BrowserSession] = None):
        super().__init__()
        self.server = server
        self.session = session or BrowserSession()
        self.command_parser = CommandParser()

    def on_mount(self) -> None:
        """Start on the entity set list and connect."""
        self.push_screen(EntitySetsScreen())
        self.connect_server(self.server.url)

    def show_error_dialog(self, title: str, message: str) -> None:
        self.bell()
        self.notify(message, title=title, severity="error")
        logger.error(f"{title}: {message}")

    def show_notification(self, message: str) -> None:
        """Show a notification message."""
        self.sub_title = f"SensorThings API Browser - {message}"
        logger.info(f"Notification: {message}")

    # Session events. Each runs on its own thread worker; the session's
    # fencing makes the most recently issued one win.

    def submit_event(self, event: Event) -> None:
        name = type(event).__name__.lower()
        self.show_notification(f"Loading ({name})...")
        self.run_worker(
            functools.partial(self.session.apply, event),
            name=name,
            group="session",
            thread=True,
        )

    def connect_server(self, url: str) -> None:
        if isinstance(self.screen, ResourceScreen):
            self.pop_screen()
        self.submit_event(Connect(url, self.server.credentials()))

    def paginate(self, link: str) -> None:
        self.submit_event(Paginate(link))

    def refresh_view(self) -> None:
        self.submit_event(Refresh())

    def go_back(self) -> None:
        depth = len(self.session.state.stack)
        if isinstance(self.screen, ResourceScreen) and depth > 1:
            self.submit_event(Revisit(depth - 2))
        elif isinstance(self.screen, ResourceScreen):
            self.pop_screen()
        else:
            self.show_notification("Already at the entity sets")

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Redraw from the latest session state once a worker finishes."""
        if event.worker.group != "session":
            return
        if event.state == WorkerState.ERROR:
            self.show_error_dialog("Unexpected Error", f"{event.worker.name} failed: {event.worker.error}")
            return
        if event.state != WorkerState.SUCCESS:
            return

        state = self.session.state
        if event.worker.name == "open" and state.stack and not isinstance(self.screen, ResourceScreen):
            # The new screen renders itself on mount.
            self.push_screen(ResourceScreen())
        elif isinstance(self.screen, ResourceScreen) and not state.stack:
            self.pop_screen()
        elif isinstance(self.screen, BrowseScreen):
            self.screen.render_state(state)

        error = state.content_error or state.root_error
        if error is not None:
            self.bell()
            self.show_notification(f"Error: {error}")
        else:
            self.show_notification(state.current.label if state.current else state.base_url)

    # Messages from screens

    def on_browse_screen_row_activated(self, message: BrowseScreen.RowActivated) -> None:
        """Handle item selection from list screens."""
        item = message.row
        url = item.get("_url")
        if not url or not item.get("_action"):
            self.show_notification("Nothing to open here")
            return

        label = item.get("_label") or url
        logger.info(f"Selected {item['_action']}: {label} -> {url}")
        if item["_action"] == "open":
            self.submit_event(Open(url, label))
        else:
            self.submit_event(Follow(url, label))

    def on_browse_screen_back_requested(self, message: BrowseScreen.BackRequested) -> None:
        """Handle go back from list screens."""
        logger.info("Going back")
        self.go_back()

    def on_search_input_command_submitted(self, message: SearchInput.CommandSubmitted) -> None:
        parsed = self.command_parser.parse(message.command)
        if parsed.error:
            self.show_error_dialog("Command Error", parsed.error)
            return
        self.execute_command(parsed)

    def execute_command(self, command: ParsedCommand) -> None:
        state = self.session.state
        kind = command.command_type
        arg = command.argument

        if kind is CommandType.QUIT:
            self.exit()
        elif kind is CommandType.HELP:
            self.notify(self.command_parser.get_help_text(), title="Help", timeout=15)
        elif kind is CommandType.CONNECT:
            self.connect_server(arg or state.base_url or self.server.url)
        elif kind is CommandType.OPEN:
            wanted = (arg or "").lower()
            match = next((s for s in state.entity_sets if s.name.lower() == wanted), None)
            if match is None:
                self.show_error_dialog("Command Error", f"No entity set named '{arg}'")
            else:
                self.submit_event(Open(match.url, match.name))
        elif kind is CommandType.FOLLOW:
            self._follow_named(arg or "")
        elif kind is CommandType.NEXT:
            view = state.view
            if isinstance(view, Collection) and view.next_link:
                self.paginate(view.next_link)
            else:
                self.show_notification("No next page")
        elif kind is CommandType.BACK:
            self.go_back()
        elif kind is CommandType.CRUMB:
            index = int(arg or "0")
            refusal = crumb_refusal(state.stack, index)
            if refusal:
                self.show_notification(refusal)
            else:
                self.submit_event(Revisit(index))
        elif kind is CommandType.REFRESH:
            if state.stack and isinstance(self.screen, ResourceScreen):
                self.refresh_view()
            else:
                self.connect_server(state.base_url or self.server.url)

    def _follow_named(self, name: str) -> None:
        view = self.session.state.view
        if isinstance(view, Collection) and name.isdigit():
            index = int(name)
            if index < len(view.items):
                item = view.items[index]
                link = fields.self_link(item)
                if link:
                    self.submit_event(Follow(link, fields.title_for(item, f"Item {index}")))
                    return
            self.show_error_dialog("Command Error", f"Item {name} has no link to follow")
            return

        if isinstance(view, SingleEntity):
            match = fields.find_navigation_link(view.entity, name)
            if match is not None:
                label, url = match
                self.submit_event(Follow(url, label))
                return

        self.show_error_dialog("Command Error", f"No navigation link '{name}'")


def run_tui(server: Server) -> None:
    """Entry point for running the TUI."""
    # Log to a file only; the terminal belongs to the TUI.
    log_file = os.path.join(tempfile.gettempdir(), "statui_debug.log")
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.FileHandler(log_file, mode='w')
        ],
        force=True,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logger.info(f"Starting TUI for {server.url}, debug log at: {log_file}")

    session = BrowserSession(fetcher=clients.RequestsFetcher(timeout=server.timeout))
    app = BrowserApp(server, session=session)
    app.run()
