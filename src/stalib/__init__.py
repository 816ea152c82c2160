"""Core library for the SensorThings browser.

Contains link resolution, catalog and view loading, field classification,
the navigation session, and configuration shared by the CLI and TUI.
"""

__all__ = [
    "catalog",
    "clients",
    "config",
    "errors",
    "fields",
    "links",
    "navigation",
    "session",
    "views",
]
