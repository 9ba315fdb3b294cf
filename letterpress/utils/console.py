"""Centralised console management module"""

from io import StringIO
from typing import Optional

from rich.console import Console

_console: Optional[Console] = None


def get_console() -> Console:
    """Get the shared Console instance"""
    global _console

    if _console is None:
        _console = Console()

    return _console


def get_buffer_console(width: int = 120) -> tuple[Console, StringIO]:
    """Get a Console that writes to a buffer (used by tests and previews)"""
    buffer = StringIO()

    console = Console(
        file=buffer,
        force_terminal=False,
        width=width,
        legacy_windows=False,
    )

    return console, buffer

