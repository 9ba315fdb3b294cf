"""Transient user notifications (toasts)"""

from enum import Enum
from typing import Optional, Protocol

from rich.console import Console

from letterpress.utils.console import get_console


class NotificationVariant(Enum):
    SUCCESS = "success"
    DANGER = "danger"
    INFO = "info"


class Strings:
    """User-facing notification messages."""

    COPIED_TO_CLIPBOARD = "Copied to clipboard"
    SAVED_CHANGES = "Saved changes"
    CACHE_CLEARED = "Cache cleared"
    FAVOURITES_NOT_SAVED = "Failed to save favourites"
    TEMPLATE_NOT_SAVED = "Failed to save template"

    @staticmethod
    def favourite_toggled(name: str, is_favourite: bool) -> str:
        return f"Added “{name}” to favourites" if is_favourite else f"Removed “{name}” from favourites"


class Notifier(Protocol):
    """Anything that can show a short, non-blocking message."""

    def notify(self, message: str, variant: NotificationVariant = NotificationVariant.INFO) -> None:
        ...


class NullNotifier:
    """Drops every notification."""

    def notify(self, message: str, variant: NotificationVariant = NotificationVariant.INFO) -> None:
        return None


class ConsoleNotifier:
    """Prints notifications to the shared rich console."""

    STYLES = {
        NotificationVariant.SUCCESS: "green",
        NotificationVariant.DANGER: "red",
        NotificationVariant.INFO: "cyan",
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console

    def notify(self, message: str, variant: NotificationVariant = NotificationVariant.INFO) -> None:
        console = self.console or get_console()
        console.print(message, style=self.STYLES[variant], markup=False)
