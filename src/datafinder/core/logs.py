"""In-memory diagnostics buffer for Datafinder requests."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Deque, Literal

LogCategory = Literal["request", "response", "retry", "error", "system"]
LogSeverity = Literal["debug", "info", "warning", "error"]

VALID_CATEGORIES: set[str] = {"request", "response", "retry", "error", "system"}
VALID_SEVERITIES: set[str] = {"debug", "info", "warning", "error"}

MIN_SECRET_LENGTH = 9

_API_KEY_PATTERN = re.compile(r"(?<![A-Za-z0-9_])k2=([^&\s#\"']+)")


def _mask_secret(token: str) -> str:
    if len(token) < MIN_SECRET_LENGTH:
        return "****"
    return f"{token[:2]}…{token[-2:]}"


@dataclass(slots=True)
class LogEntry:
    """Represents a single diagnostic entry."""

    timestamp: datetime
    category: LogCategory
    severity: LogSeverity
    message: str

    def as_dict(self) -> dict[str, str]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "category": self.category,
            "severity": self.severity,
            "message": self.message,
        }


class LogBuffer:
    """Fixed-size FIFO buffer of request diagnostics with API key redaction."""

    def __init__(
        self,
        *,
        max_entries: int = 200,
        redaction_enabled: bool = True,
    ) -> None:
        self.max_entries = max(max_entries, 1)
        self._redaction_enabled = redaction_enabled
        self._entries: Deque[LogEntry] = deque(maxlen=self.max_entries)
        self._subscribers: list[Callable[[LogEntry], None]] = []
        self._secrets: set[str] = set()

    def add_secret(self, secret: str) -> None:
        if secret and len(secret) >= MIN_SECRET_LENGTH:
            self._secrets.add(secret)

    def redact(self, text: str) -> str:
        if not self._redaction_enabled:
            return text

        def _replace(match: re.Match[str]) -> str:
            return f"k2={_mask_secret(match.group(1))}"

        redacted = _API_KEY_PATTERN.sub(_replace, text)
        for secret in sorted(self._secrets, key=len, reverse=True):
            redacted = redacted.replace(secret, _mask_secret(secret))
        return redacted

    def record(self, category: str, message: str, *, severity: str = "info") -> LogEntry:
        normalized_category = category.lower()
        if normalized_category not in VALID_CATEGORIES:
            normalized_category = "system"
        normalized_severity = severity.lower()
        if normalized_severity not in VALID_SEVERITIES:
            normalized_severity = "info"
        entry = LogEntry(
            timestamp=datetime.now(UTC),
            category=normalized_category,  # type: ignore[arg-type]
            severity=normalized_severity,  # type: ignore[arg-type]
            message=self.redact(message),
        )
        self._entries.append(entry)
        for callback in list(self._subscribers):
            callback(entry)
        return entry

    def recent(self, *, category: str | None = None, limit: int = 50) -> list[LogEntry]:
        if category is None:
            return list(self._entries)[-limit:] if limit > 0 else []
        normalized_category = category.lower()
        if normalized_category not in VALID_CATEGORIES:
            normalized_category = "system"
        filtered = [entry for entry in self._entries if entry.category == normalized_category]
        return filtered[-limit:] if limit > 0 else []

    def latest(self) -> LogEntry | None:
        if not self._entries:
            return None
        return self._entries[-1]

    def clear(self) -> None:
        self._entries.clear()

    def subscribe(self, callback: Callable[[LogEntry], None]) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEntry], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["LogBuffer", "LogEntry", "LogCategory", "LogSeverity", "VALID_CATEGORIES", "VALID_SEVERITIES"]
