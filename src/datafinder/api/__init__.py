"""Datafinder API client package.

This namespace hosts the high-level `DatafinderClient` along with its
settings and result types (`types.py`), request/response helpers
(`transport.py`) and error classes (`errors.py`).
"""

from .client import DatafinderClient
from .errors import ConfigurationError, DatafinderError
from .types import DEFAULT_BASE_URL, AppendResult, DatafinderSettings

__all__ = [
    "DatafinderClient",
    "DatafinderError",
    "ConfigurationError",
    "AppendResult",
    "DatafinderSettings",
    "DEFAULT_BASE_URL",
]
