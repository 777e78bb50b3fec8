"""HTTP transport helpers for the Datafinder client."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

import httpx

API_KEY_PARAM = "k2"
SUCCESS_STATUS_CODES = frozenset({200, 201})

_API_KEY_PATTERN = re.compile(rf"(?<![A-Za-z0-9_]){API_KEY_PARAM}=[^&\s#]*")


def with_api_key(params: Mapping[str, Any], api_key: str) -> dict[str, str]:
    """Return a copy of ``params`` carrying ``k2`` unless the caller set one."""
    query = {str(key): "" if value is None else str(value) for key, value in params.items()}
    if not query.get(API_KEY_PARAM):
        query[API_KEY_PARAM] = api_key
    return query


def build_url(base_url: str, params: Mapping[str, str]) -> str:
    url = httpx.URL(base_url)
    return str(url.copy_merge_params(dict(params)))


def build_headers() -> dict[str, str]:
    return {"Content-Type": "application/json"}


def encode_body(data: Mapping[str, Any] | None) -> bytes:
    return json.dumps(dict(data or {}), separators=(",", ":")).encode("utf-8")


def parse_payload(content: bytes) -> object:
    """Decode a response body; raises ``ValueError`` when it is not JSON."""
    return json.loads(content.decode("utf-8", errors="replace"))


def compose_error(status_code: int, payload: object) -> str:
    message = f"Received error code {status_code} from the server instead of expected 200/201"
    if isinstance(payload, dict) and payload.get("message"):
        message += f"\nError message from server: {payload['message']}"
        if payload.get("error_code"):
            message += f" ({payload['error_code']})"
    return message


def redact_url(url: str) -> str:
    return _API_KEY_PATTERN.sub(f"{API_KEY_PARAM}=****", url)


__all__ = [
    "API_KEY_PARAM",
    "SUCCESS_STATUS_CODES",
    "with_api_key",
    "build_url",
    "build_headers",
    "encode_body",
    "parse_payload",
    "compose_error",
    "redact_url",
]
