"""Configuration service for FocusBloom.

ConfigService is the single source of truth for configuration. It handles:

- Loading and saving config.json under the platform config directory
- Environment overrides for deployment-specific API settings
- Dot-separated key access for the ``config`` commands
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from focusbloom.models.config_models import AppConfig
from focusbloom.utils.logger import get_logger

logger = get_logger("config")

# env var -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "FOCUSBLOOM_API_URL": ("api", "base_url"),
    "FOCUSBLOOM_API_TIMEOUT_MS": ("api", "timeout_ms"),
    "FOCUSBLOOM_RETRY_ATTEMPTS": ("api", "retry_attempts"),
    "FOCUSBLOOM_RETRY_DELAY_MS": ("api", "retry_delay_ms"),
    "FOCUSBLOOM_USE_MOCK_DATA": ("api", "use_mock_data"),
    "FOCUSBLOOM_ENABLE_LOGGING": ("api", "enable_logging"),
}


def apply_env_overrides(data: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Overlay FOCUSBLOOM_* environment variables onto raw config data."""
    environ = os.environ if environ is None else environ
    for var, (section, field) in ENV_OVERRIDES.items():
        if var in environ:
            data.setdefault(section, {})[field] = environ[var]
    return data


class ConfigService:
    """Service for loading, saving and editing the application configuration."""

    def __init__(self, config_dir: Path | None = None):
        self.config_dir = Path(config_dir or user_config_dir("focusbloom"))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir("focusbloom"))

        self.config_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def store_dir(self) -> Path:
        """Directory backing the local key-value store."""
        override = self.config.storage.data_dir
        if override:
            return Path(override)
        return self.data_dir / "store"

    def _read_file(self) -> dict[str, Any]:
        try:
            with open(self.config_path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("config file unreadable, using defaults: %s", e)
            return {}

    def load_config(self) -> AppConfig:
        """Load configuration from disk, then apply environment overrides."""
        data = apply_env_overrides(self._read_file())
        try:
            return AppConfig.model_validate(data)
        except ValidationError as e:
            logger.warning("invalid configuration, using defaults: %s", e)
            return AppConfig()

    def save_config(self) -> None:
        """Save the current configuration to disk."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self.config.model_dump_json(indent=4))
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, BaseModel):
                value = getattr(value, k, None)
            else:
                return None
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key.

        Raises:
            KeyError: If the key does not name an existing setting
            ValueError: If the value fails validation
        """
        keys = key.split(".")
        config_dict = self.config.model_dump()

        current = config_dict
        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                raise KeyError(f"Unknown config key: {key}")
            current = current[k]
        if keys[-1] not in current:
            raise KeyError(f"Unknown config key: {key}")

        current[keys[-1]] = value

        try:
            self._config = AppConfig.model_validate(config_dict)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {key}: {e}") from e
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset configuration, or a single key, to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            return

        default_value: Any = AppConfig()
        for k in key.split("."):
            if not isinstance(default_value, BaseModel) or k not in type(default_value).model_fields:
                raise KeyError(f"Unknown config key: {key}")
            default_value = getattr(default_value, k)
        if isinstance(default_value, BaseModel):
            default_value = default_value.model_dump()
        self.set(key, default_value)


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get the shared config service instance."""
    return ConfigService()
