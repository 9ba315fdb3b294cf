"""Configuration manager for persistent settings stored as JSON."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import (
    ConfigurationError,
    FileSystemError,
    InvalidConfigError,
    LetterpressError,
    MissingConfigError,
)
from .logging import get_logger, log_call
from .paths import CONFIG_PATH, DEFAULT_DATA_ROOT

logger = get_logger(__name__)


class ComposerConfig(BaseModel):
    """Pydantic model for composition settings."""

    signature_image_width: int = Field(default=300, gt=0)  # in pixels
    font_family: str = "-apple-system, Segoe UI, Roboto, Arial, sans-serif"
    text_color: str = "#111827"


class SyncConfig(BaseModel):
    """Pydantic model for view-state synchronisation."""

    quiet_period_ms: int = Field(default=300, ge=0)


class LoggingConfig(BaseModel):
    """Pydantic model for logging settings."""

    log_level: str = "INFO"
    file_logging: bool = False


class StorageConfig(BaseModel):
    """Pydantic model for the data directory."""

    data_dir: str = str(DEFAULT_DATA_ROOT)


class AppConfig(BaseModel):
    """Pydantic model for overall application configuration."""

    version: str = "0.1.0"
    composer: ComposerConfig = Field(default_factory=ComposerConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


class ConfigManager:
    """Manages persistent application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.path = Path(config_path) if config_path else CONFIG_PATH
        self.config = self._load_or_create_config()
        logger.info(f"Configuration loaded from {self.path}")

    def _load_or_create_config(self) -> AppConfig:
        """Load configuration from file or create default if not present."""

        if not self.path.exists():
            logger.info("No config file found, creating default configuration.")
            config = AppConfig()
            self._save_config(config)
            return config

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = AppConfig(**data)
            logger.debug("Configuration successfully loaded and validated.")
            return config

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise InvalidConfigError(f"Configuration file is not valid JSON: {str(e)}") from e
        except (ValidationError, TypeError) as e:
            logger.error(f"Failed to validate config file: {e}")
            raise InvalidConfigError(f"Configuration data does not match expected schema: {str(e)}") from e
        except OSError as e:
            raise FileSystemError(f"Failed to read configuration file: {self.path}") from e

    def _save_config(self, config: Optional[AppConfig] = None):
        """Save the current configuration to file."""

        config = config or self.config

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)
            logger.debug("Configuration successfully saved.")
        except OSError as e:
            raise FileSystemError(f"Failed to write configuration file: {str(e)}") from e

    @log_call
    def get_config(self, key_path: str, default: Any = None) -> Any:
        """Retrieve a configuration value using a dot-separated key path."""

        obj: Any = self.config
        for key in key_path.split("."):
            if not hasattr(obj, key):
                return default
            obj = getattr(obj, key)
        return obj

    @log_call
    def set_config(self, key_path: str, value: Any, persist: bool = True):
        """Set a configuration value using dot-separated key path."""

        keys = key_path.split(".")
        obj: Any = self.config

        for key in keys[:-1]:
            if not hasattr(obj, key):
                raise MissingConfigError(f"Configuration path '{key_path}' is invalid: '{key}' not found")
            obj = getattr(obj, key)

        if not isinstance(obj, BaseModel) or keys[-1] not in type(obj).model_fields:
            raise MissingConfigError(f"Configuration key '{keys[-1]}' does not exist in path '{key_path}'")

        try:
            updated = obj.model_validate({**obj.model_dump(), keys[-1]: value})
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid value for '{key_path}': {str(e)}") from e

        setattr(obj, keys[-1], getattr(updated, keys[-1]))

        try:
            if persist:
                self._save_config()
        except LetterpressError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to set configuration key '{key_path}': {str(e)}") from e

        logger.info(f"Config key '{key_path}' updated.")

    @log_call
    def reset_to_defaults(self):
        """Reset configuration to default values."""

        logger.warning("Resetting configuration to default values.")
        self.config = AppConfig()
        self._save_config()
