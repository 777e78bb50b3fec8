"""Python client for the Datafinder marketing data append API."""

from .api import (
    DEFAULT_BASE_URL,
    AppendResult,
    ConfigurationError,
    DatafinderClient,
    DatafinderError,
    DatafinderSettings,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_BASE_URL",
    "AppendResult",
    "ConfigurationError",
    "DatafinderClient",
    "DatafinderError",
    "DatafinderSettings",
    "__version__",
]
