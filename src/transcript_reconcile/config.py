"""Configuration loading and management for transcript-reconcile.

Settings live in ``config.json`` under the application home directory,
which is ``$TRANSCRIPT_RECONCILE_HOME`` or ``~/.transcript-reconcile``.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from transcript_reconcile.errors import ConfigurationError, NotFoundError, StorageError
from transcript_reconcile.logging import LogConfig, LogLevel
from transcript_reconcile.storage import atomic_write_json, read_json

HOME_ENV_VAR = "TRANSCRIPT_RECONCILE_HOME"


def get_app_home() -> Path:
    """Get the application home directory."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".transcript-reconcile"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_app_home() / "config.json"


class AppConfig(BaseModel):
    """Application settings."""

    # Where the smart dictionary is persisted
    dictionary_path: Path = Field(default_factory=lambda: get_app_home() / "dictionary.json")
    # quiet, normal, verbose or debug
    log_level: str = "normal"
    log_file: Path | None = None
    json_logs: bool = False

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        LogLevel.from_name(value)
        return value.strip().lower()

    def to_log_config(self) -> LogConfig:
        """Build the logging configuration these settings describe."""
        return LogConfig(
            level=LogLevel.from_name(self.log_level),
            log_file=self.log_file,
            json_format=self.json_logs,
        )


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a JSON file.

    Args:
        path: Config file; defaults to ``config.json`` in the app home

    Returns:
        AppConfig, with defaults if the file doesn't exist

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    path = path or get_config_path()
    try:
        data = read_json(path)
    except NotFoundError:
        return AppConfig()
    except StorageError as e:
        raise ConfigurationError(e.message, context=e.context) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Config must be a JSON object", context={"path": str(path)})

    try:
        return AppConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid config: {e.errors()[0]['msg']}",
            context={"path": str(path)},
        ) from e


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Save configuration with an atomic write.

    Args:
        config: Settings to save
        path: Target file; defaults to ``config.json`` in the app home

    Returns:
        Path to the saved config file
    """
    path = path or get_config_path()
    atomic_write_json(path, config.model_dump(mode="json"))
    return path
