"""Error types and user-facing error formatting for stactl."""

from __future__ import annotations

from typing import Any, Optional


class BrowserError(RuntimeError):
    """Base error for everything that can go wrong talking to a server."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    def __str__(self) -> str:
        return self.message


class RequestFailed(BrowserError):
    """Transport-level failure: network error, non-2xx status or undecodable JSON."""


class ConnectFailed(BrowserError):
    """Loading the service root failed."""


class EmptyCatalog(BrowserError):
    """The service root loaded but yielded no usable entity sets."""


class FetchError(BrowserError):
    """Loading a navigated resource failed."""


def format_error_message(operation: str, error: Exception, context: dict[str, Any] | None = None) -> str:
    """Format a user-friendly error message based on the exception type and context."""
    error_str = str(error)
    context = context or {}
    status = getattr(error, "status", None)
    server = context.get("server", "the server")

    if isinstance(error, EmptyCatalog):
        return (
            f"{server} returned no usable entity sets. "
            f"Check that the URL points at the service root (e.g. .../v1.1/). "
            f"Original error: {error_str}"
        )

    if status in (401, 403):
        return (
            f"Authentication failed. Please check your username and password. "
            f"Original error: {error_str}"
        )

    if status == 404:
        target = context.get("target", "resource")
        return (
            f"'{target}' not found. "
            f"Use 'stactl sets list' to see available entity sets. "
            f"Original error: {error_str}"
        )

    lowered = error_str.lower()
    if "connection" in lowered or "timed out" in lowered or "timeout" in lowered:
        return (
            f"Failed to connect to {server}. "
            f"Please check that the service is running and reachable. "
            f"Original error: {error_str}"
        )

    if "not valid json" in lowered:
        return (
            f"The server did not answer with JSON. The URL may not be a SensorThings endpoint. "
            f"Original error: {error_str}"
        )

    return f"Failed to {operation}: {error_str}"


def suggest_troubleshooting_steps(operation: str, error: Exception) -> list[str]:
    """Suggest troubleshooting steps based on the operation and error."""
    error_str = str(error).lower()
    status = getattr(error, "status", None)
    suggestions = []

    if status in (401, 403):
        suggestions.extend([
            "Pass --username/--password or set them for the server in your config file",
            "Use ${VAR} in the config file to read the password from the environment",
            "Check that the account may read this endpoint",
        ])

    elif status == 404:
        suggestions.extend([
            "List available entity sets: stactl sets list",
            "Check the spelling of the entity set or path",
            "Make sure the server URL ends at the service root, not at a collection",
        ])

    elif "connection" in error_str or "timeout" in error_str or "timed out" in error_str:
        suggestions.extend([
            "Check the server URL: stactl servers show",
            "Verify the endpoint is reachable: curl -H 'Accept: application/json' <url>",
            "Raise the timeout for the server in your config file",
        ])

    elif isinstance(error, EmptyCatalog):
        suggestions.extend([
            "Open the service root in a browser and check for a 'value' array",
            "Check that the URL includes the API version segment (e.g. /v1.1/)",
        ])

    if not suggestions:
        suggestions.extend([
            "Check the logs with -v/--verbose flag for more details",
            "Verify your configuration file is correct",
            f"Retry the {operation} once the server is available",
        ])

    return suggestions


def format_config_error(error: Exception) -> str:
    """Format configuration-related error messages."""
    error_str = str(error)

    if "no config file found" in error_str.lower():
        return (
            "No configuration file found. Please either:\n"
            "  • Set STACTL_CONFIG=/path/to/config.yaml, or\n"
            "  • Create ~/.config/stactl/config.yaml, or\n"
            "  • Pass --url to talk to a server directly\n"
        )

    if "server not found" in error_str.lower():
        return (
            f"Server configuration error: {error_str}\n"
            "Check your config file and ensure the server is properly defined."
        )

    return f"Configuration error: {error_str}"
