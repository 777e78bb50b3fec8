"""Configuration management for the Datafinder client."""

from __future__ import annotations

import logging
import os
import tomllib
from copy import deepcopy
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, Field, ValidationError

from datafinder.api.errors import ConfigurationError
from datafinder.api.types import DEFAULT_BASE_URL, DEFAULT_RETRIES, DatafinderSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(os.environ.get("DATAFINDER_HOME", Path.home() / ".datafinder"))
CONFIG_FILENAME = "config.toml"

# environment variable -> config field
ENV_OVERRIDES: dict[str, str] = {
    "DATAFINDER_API_KEY": "api_key",
    "DATAFINDER_RETRIES": "retries",
    "DATAFINDER_BASE_URL": "base_url",
    "DATAFINDER_TIMEOUT": "timeout_seconds",
    "DATAFINDER_DEBUG": "debug",
}


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"", "0", "false", "no"}


class DatafinderConfig(BaseModel):
    """Persisted Datafinder client settings."""

    config_version: int = 1
    api_key: str | None = None
    retries: int = Field(default=DEFAULT_RETRIES, ge=1)
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = Field(default=30.0, gt=0)
    debug: bool = False
    stop_on_success: bool = True


class ConfigManager:
    """Loads, merges and persists Datafinder configuration."""

    def __init__(
        self,
        config_dir: Path | None = None,
        override_config_path: Path | None = None,
    ) -> None:
        self.config_dir = config_dir or DEFAULT_CONFIG_DIR
        self.config_path = self.config_dir / CONFIG_FILENAME
        self.override_config_path = override_config_path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load(self, *, use_env: bool = True) -> DatafinderConfig:
        """Return the merged configuration: file, override file, then environment."""

        data = self._read_config_dict(self.config_path)
        if self.override_config_path:
            if not self.override_config_path.exists():
                raise ConfigurationError(f"Config file not found: {self.override_config_path}")
            data = self._merge_dicts(data, self._read_config_dict(self.override_config_path))
        if use_env:
            data = self._merge_dicts(data, self._env_overrides())
        try:
            return DatafinderConfig(**data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    def save(self, config: DatafinderConfig) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(tomli_w.dumps(config.model_dump(exclude_none=True)))
        logger.debug("Saved Datafinder configuration to %s", self.config_path)

    def update(self, **updates: object) -> DatafinderConfig:
        """Apply ``updates`` to the persisted file, ignoring environment overrides."""

        current = self._read_config_dict(self.config_path)
        current.update({key: value for key, value in updates.items() if value is not None})
        try:
            config = DatafinderConfig(**current)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
        self.save(config)
        return config

    def settings(self, config: DatafinderConfig | None = None, **overrides: Any) -> DatafinderSettings:
        """Build client settings from ``config`` (loaded when omitted) plus explicit overrides."""

        config = config or self.load()
        values: dict[str, Any] = {
            "api_key": config.api_key,
            "retries": config.retries,
            "base_url": config.base_url,
            "timeout_seconds": config.timeout_seconds,
            "debug": config.debug,
            "stop_on_success": config.stop_on_success,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        if not values["api_key"]:
            raise ConfigurationError(
                "Datafinder API key required; pass --api-key, set DATAFINDER_API_KEY "
                f"or add api_key to {self.config_path}"
            )
        return DatafinderSettings(**values)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _env_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for env_name, field in ENV_OVERRIDES.items():
            if env_name not in os.environ:
                continue
            if field == "debug":
                overrides[field] = env_flag(env_name)
            else:
                overrides[field] = os.environ[env_name]
        return overrides

    def _read_config_dict(self, path: Path | None) -> dict[str, Any]:
        if path is None:
            return {}
        if not path.exists():
            return {}
        try:
            return tomllib.loads(path.read_text())
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigurationError(f"Failed to load config from {path}: {exc}") from exc

    def _merge_dicts(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        result = deepcopy(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG_DIR",
    "ENV_OVERRIDES",
    "ConfigManager",
    "ConfigurationError",
    "DatafinderConfig",
    "env_flag",
]
