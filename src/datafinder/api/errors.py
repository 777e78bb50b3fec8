"""Datafinder client errors."""

from __future__ import annotations


class DatafinderError(RuntimeError):
    """Base class for errors raised by the Datafinder client."""


class ConfigurationError(DatafinderError):
    """Raised when client settings or configuration files are invalid."""


__all__ = ["DatafinderError", "ConfigurationError"]
