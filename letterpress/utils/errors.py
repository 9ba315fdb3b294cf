"""Centralised error handling module."""

from enum import Enum
from typing import Any, Dict, Optional

from letterpress.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    BACKEND = "backend"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    SESSION = "session"
    UNKNOWN = "unknown"


## Custom Exceptions


class LetterpressError(Exception):
    """Base exception for all Letterpress errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise LetterpressError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Backend Errors


class BackendError(LetterpressError):
    """Base exception for persistence backend errors."""

    category = ErrorCategory.BACKEND
    user_message = "The storage backend reported an error"


class BackendReadError(BackendError):
    """Exception for failed backend reads."""

    user_message = "Failed to load saved data"


class BackendWriteError(BackendError):
    """Exception for failed backend writes."""

    user_message = "Failed to save changes"


class ImageResolutionError(BackendError):
    """Exception when a signature image cannot be resolved."""

    user_message = "Signature image not found"


## File System Errors


class FileSystemError(LetterpressError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


## Configuration Errors


class ConfigurationError(LetterpressError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class MissingConfigError(ConfigurationError):
    """Exception for missing configuration settings."""

    user_message = "Missing configuration settings"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


## Session Errors


class SessionError(LetterpressError):
    """Base exception for composer session misuse."""

    category = ErrorCategory.SESSION
    user_message = "The composer session is not usable"


class SessionNotLoadedError(SessionError):
    """Exception when the session is used before load() completed."""

    user_message = "The composer session has not been loaded"


## Error Handler


class ErrorHandler:
    """Centralised error handling and logging."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Handle errors with logging and user-friendly message."""
        if isinstance(error, LetterpressError):
            _get_logger().error(f"{context}: {error.message}", extra={"context": error.details})
            if log_traceback:
                _get_logger().exception(error)
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}")
            if log_traceback:
                _get_logger().exception(error)
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }


## Utility Functions


def format_error_message(error: Optional[Exception]) -> str:
    """Format an error message for display."""
    if isinstance(error, LetterpressError):
        return error.message
    else:
        return "An unexpected error occurred - check logs for details."
