"""Shared utilities package for spotify-podcast-analytics"""

from .dates import add_years, as_date, date_params, format_date
from .debug_console import (
    DebugCapturingConsole,
    create_debug_console,
    setup_logging,
)

__all__ = [
    "add_years",
    "as_date",
    "date_params",
    "format_date",
    "DebugCapturingConsole",
    "create_debug_console",
    "setup_logging",
]
