"""Parse vim-style commands for the TUI."""

import shlex
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class CommandType(Enum):
    """Types of commands supported in TUI."""
    CONNECT = "connect"
    OPEN = "open"
    FOLLOW = "follow"
    NEXT = "next"
    BACK = "back"
    CRUMB = "crumb"
    REFRESH = "refresh"
    QUIT = "quit"
    HELP = "help"
    UNKNOWN = "unknown"


@dataclass
class ParsedCommand:
    """Result of parsing a command string."""
    command_type: CommandType
    args: List[str]
    raw_input: str
    error: Optional[str] = None

    @property
    def argument(self) -> Optional[str]:
        return self.args[0] if self.args else None


class CommandParser:
    """Parser for vim-style TUI commands."""

    # Command aliases mapping
    ALIASES = {
        "c": "connect",
        "o": "open",
        "f": "follow",
        "n": "next",
        "b": "back",
        "g": "crumb",
        "r": "refresh",
        "q": "quit",
        "?": "help",
    }

    NAMED = (CommandType.OPEN, CommandType.FOLLOW)
    BARE = (CommandType.NEXT, CommandType.BACK, CommandType.REFRESH, CommandType.QUIT, CommandType.HELP)

    def _unknown(self, input_text: str, error: str, args: Optional[List[str]] = None) -> ParsedCommand:
        return ParsedCommand(
            command_type=CommandType.UNKNOWN,
            args=args or [],
            raw_input=input_text,
            error=error,
        )

    def parse(self, input_text: str) -> ParsedCommand:
        """Parse command input and return parsed command."""
        input_text = input_text.strip()

        if not input_text:
            return self._unknown(input_text, "Empty command")

        # Must start with : for command mode
        if not input_text.startswith(":"):
            return self._unknown(input_text, "Commands must start with ':'")

        command_line = input_text[1:].strip()
        if not command_line:
            return self._unknown(input_text, "No command after ':'")

        # Quoted arguments keep their spaces: :follow "Observed Property"
        try:
            parts = shlex.split(command_line)
        except ValueError as e:
            return self._unknown(input_text, f"Invalid command syntax: {e}")

        if not parts:
            return self._unknown(input_text, "No command specified")

        command = parts[0].lower()
        args = parts[1:]
        resolved_command = self.ALIASES.get(command, command)

        try:
            command_type = CommandType(resolved_command)
        except ValueError:
            return self._unknown(input_text, f"Unknown command: {command}", args)
        if command_type is CommandType.UNKNOWN:
            return self._unknown(input_text, f"Unknown command: {command}", args)

        return ParsedCommand(
            command_type=command_type,
            args=args,
            raw_input=input_text,
            error=self._validate_command_args(command_type, args),
        )

    def _validate_command_args(self, command_type: CommandType, args: List[str]) -> Optional[str]:
        """Validate arguments for specific command types."""
        if command_type in self.NAMED:
            if not args:
                return f"{command_type.value} command requires a name argument"
            if len(args) > 1:
                return f"{command_type.value} command accepts only one argument (quote names with spaces)"

        elif command_type is CommandType.CRUMB:
            if len(args) != 1:
                return "crumb command requires exactly one index argument"
            if not args[0].isdigit():
                return f"crumb index must be a non-negative number, got '{args[0]}'"

        elif command_type is CommandType.CONNECT:
            if len(args) > 1:
                return "connect command accepts at most one URL"

        elif command_type in self.BARE:
            if args:
                return f"{command_type.value} command does not accept arguments"

        return None

    def get_help_text(self) -> str:
        """Get help text for all commands."""
        return """Command Mode Help:

:connect [url] (or :c)   - Reconnect, optionally to another server
:open <set> (or :o)      - Open an entity set
:follow <link> (or :f)   - Follow a navigation link, or an item index
:next (or :n)            - Next page of the current collection
:back (or :b)            - Back to the previous breadcrumb
:crumb <index> (or :g)   - Jump to a breadcrumb by index
:refresh (or :r)         - Reload the current view
:quit (or :q)            - Exit application
:help (or :?)            - Show this help

Search Mode:
Type directly (without :) to filter current view
Case-insensitive matching, real-time filtering

Navigation:
↑↓ - Navigate items
Enter - Open set / follow link
Esc - Go back/cancel
"""
