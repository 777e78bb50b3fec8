"""Configuration and diagnostics services for the Datafinder client."""

from .config import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG_DIR,
    ConfigManager,
    DatafinderConfig,
    env_flag,
)
from .logs import LogBuffer, LogEntry

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG_DIR",
    "ConfigManager",
    "DatafinderConfig",
    "env_flag",
    "LogBuffer",
    "LogEntry",
]
