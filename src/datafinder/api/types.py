"""Shared Datafinder client types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from .errors import ConfigurationError

DEFAULT_BASE_URL = "http://api.datafinder.com/qdf.php"
DEFAULT_RETRIES = 5

ErrorKind = Literal["transport", "protocol", "remote"]
SleepFn = Callable[[float], None]
JitterFn = Callable[[int, int], int]


def validate_api_key(api_key: object) -> str:
    if not isinstance(api_key, str) or not api_key.strip():
        raise ConfigurationError("Datafinder API key is required")
    return api_key


def validate_retries(retries: object) -> int:
    # bool is an int subclass; True is not a retry count
    if isinstance(retries, bool) or not isinstance(retries, int) or retries < 1:
        raise ConfigurationError(f"retries must be a positive integer, got {retries!r}")
    return retries


def validate_base_url(base_url: object) -> str:
    if not isinstance(base_url, str) or not base_url.strip():
        raise ConfigurationError("base_url must be a non-empty string")
    return base_url


@dataclass(slots=True)
class DatafinderSettings:
    """Runtime configuration for the Datafinder client."""

    api_key: str
    retries: int = DEFAULT_RETRIES
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 30.0
    debug: bool = False
    stop_on_success: bool = True

    def __post_init__(self) -> None:
        validate_api_key(self.api_key)
        validate_retries(self.retries)
        validate_base_url(self.base_url)
        if self.timeout_seconds <= 0:
            raise ConfigurationError("timeout_seconds must be greater than zero")


@dataclass(slots=True)
class AppendResult:
    """Outcome of one append call.

    ``data`` holds the decoded response object on success and is ``None`` on
    failure, in which case ``error`` and ``kind`` describe what went wrong.
    Truthiness follows ``ok``, so an empty ``{}`` payload still counts as a
    successful lookup.
    """

    data: dict[str, Any] | None
    error: str = ""
    kind: ErrorKind | None = None
    status_code: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.data is not None

    def __bool__(self) -> bool:
        return self.ok

    def __getitem__(self, key: str) -> Any:
        if self.data is None:
            raise KeyError(key)
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(key, default)

    @property
    def num_results(self) -> int:
        value = self.get("num-results", 0)
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @property
    def results(self) -> Any:
        return self.get("results")


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_RETRIES",
    "AppendResult",
    "DatafinderSettings",
    "ErrorKind",
    "JitterFn",
    "SleepFn",
    "validate_api_key",
    "validate_base_url",
    "validate_retries",
]
