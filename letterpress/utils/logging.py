"""Logging utility for Letterpress"""

import json
import logging
import re
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

from .paths import LOGS_DIR


## Custom JSON Formatter


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "event_type"):
            log_entry["event_type"] = record.event_type

        if hasattr(record, "context"):
            log_entry["context"] = record.context

        return json.dumps(log_entry)


## Log Masking


class SensitiveDataMasker:
    """Mask recipient names' e-mail addresses and secrets in log messages."""

    EMAIL_PATTERN = re.compile(
        r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})", re.IGNORECASE
    )

    SENSITIVE_FIELDS = {"password", "secret", "token", "api_key", "authorization"}

    def mask_string(self, text: str) -> str:
        if not text or not isinstance(text, str):
            return text

        return self.EMAIL_PATTERN.sub(lambda m: self._mask_email(m.group(0)), text)

    @staticmethod
    def _mask_email(email: str) -> str:
        """Mask an email address while preserving the first characters."""

        username, domain = email.split("@", 1)
        masked_username = username[0] + "***" if len(username) > 1 else "***"
        masked_domain = domain[0] + ("***" if len(domain) > 1 else "*")

        return f"{masked_username}@{masked_domain}"


class SensitiveDataFilter(logging.Filter):
    """Logging filter to mask sensitive data in log records."""

    def __init__(self):
        super().__init__()
        self.masker = SensitiveDataMasker()

    def filter(self, record) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.masker.mask_string(record.msg)

        for key in list(record.__dict__):
            if key.lower() in self.masker.SENSITIVE_FIELDS:
                setattr(record, key, "[REDACTED]")

        return True


## Main Log Manager


class LogManager:
    """Manages logging configuration and provides logger instances."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        file_logging: bool = False,
    ):
        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = log_dir or LOGS_DIR
        self.file_logging = file_logging
        self.root_logger = logging.getLogger("letterpress")
        self.root_logger.setLevel(logging.DEBUG)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Setup console and optional file handlers with sensitive data filtering."""

        from .errors import FileSystemError

        sensitive_filter = SensitiveDataFilter()

        self.root_logger.handlers.clear()

        console_handler = RichHandler(
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(max(self.log_level, logging.WARNING))
        console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        console_handler.addFilter(sensitive_filter)
        self.root_logger.addHandler(console_handler)

        if not self.file_logging:
            return

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            app_handler = RotatingFileHandler(
                self.log_dir / "app.log",
                maxBytes=5_242_880,
                backupCount=5,
                encoding="utf-8",
            )

        except OSError as e:
            raise FileSystemError(
                f"Failed to create app.log handler: {str(e)}"
            ) from e

        app_handler.setLevel(self.log_level)
        app_handler.setFormatter(JSONFormatter())
        app_handler.addFilter(sensitive_filter)
        self.root_logger.addHandler(app_handler)

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger under the letterpress hierarchy."""

        if name and not name.startswith("letterpress"):
            name = f"letterpress.{name}"

        return logging.getLogger(name or "letterpress")

    def log_event(self, event_type: str, message: str, level: str = "INFO", **extra):
        """Log an event with specific type and extra context."""

        extra_dict: Dict[str, Any] = {"event_type": event_type}
        if extra:
            extra_dict["context"] = extra

        try:
            log_level = getattr(logging, level.upper())
        except AttributeError as e:
            raise ValueError(f"Invalid logging level: {level}") from e

        self.root_logger.log(log_level, message, extra=extra_dict)


## Decorators for Logging


def log_call(func):
    """Decorator to log function calls and their duration."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("letterpress")
        func_name = f"{func.__module__}.{func.__qualname__}"
        logger.debug(f"-> Entering {func_name}")
        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Exiting {func_name} (Duration: {duration:.3f}s)")
            return result

        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.exception(f"<- Error in {func_name} after {duration:.3f}s: {e}")
            raise

    return wrapper


def async_log_call(func):
    """Async decorator to log function calls and their duration."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        logger = logging.getLogger("letterpress")
        func_name = f"{func.__module__}.{func.__qualname__}"
        logger.debug(f"-> Entering {func_name} (async)")
        start_time = datetime.now()

        try:
            result = await func(*args, **kwargs)
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Exiting {func_name} (Duration: {duration:.3f}s)")
            return result

        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.exception(f"<- Error in {func_name} after {duration:.3f}s: {e}")
            raise

    return wrapper


## Module-level LogManager Instance and Helper Functions

_log_manager: Optional[LogManager] = None


def init_logging(
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    file_logging: bool = False,
    force: bool = False,
) -> LogManager:
    """Initialise logging system and return LogManager instance.

    Later calls return the existing manager unless ``force`` rebuilds it.
    """

    global _log_manager

    if _log_manager is None or force:
        _log_manager = LogManager(log_level, log_dir=log_dir, file_logging=file_logging)

    return _log_manager


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""

    return init_logging().get_logger(name)


def log_event(event_type: str, message, **extra):
    """Log an event with specific type and extra context (module-level wrapper)."""

    if isinstance(message, dict):
        extra.update(message)
        message = f"Event: {event_type}"

    return init_logging().log_event(event_type, message, **extra)
