"""Concrete Datafinder client implementation."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Mapping
from typing import Any

import httpx

from datafinder.core.logs import LogBuffer

from .transport import (
    SUCCESS_STATUS_CODES,
    build_headers,
    build_url,
    compose_error,
    encode_body,
    parse_payload,
    redact_url,
    with_api_key,
)
from .types import (
    AppendResult,
    DatafinderSettings,
    ErrorKind,
    JitterFn,
    SleepFn,
    validate_api_key,
    validate_base_url,
    validate_retries,
)

logger = logging.getLogger(__name__)


class DatafinderClient:
    """Blocking client for the Datafinder append API with retry and backoff.

    One client is meant to serve one caller at a time: ``error_message()``
    reports the outcome of the most recent call on this instance. Code that
    shares a client between threads should read ``AppendResult.error``
    instead.
    """

    def __init__(
        self,
        settings: DatafinderSettings,
        *,
        client: httpx.Client | None = None,
        sleep: SleepFn | None = None,
        jitter: JitterFn | None = None,
        diagnostics: LogBuffer | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=settings.timeout_seconds)
        self._sleep = sleep or time.sleep
        self._jitter = jitter or random.randint
        self.diagnostics = diagnostics or LogBuffer()
        self.diagnostics.add_secret(settings.api_key)
        self._last_error = ""

    @classmethod
    def from_api_key(cls, api_key: str, **kwargs: Any) -> DatafinderClient:
        """Build a client from an API key plus optional settings fields."""
        client_kwargs = {
            name: kwargs.pop(name) for name in ("client", "sleep", "jitter", "diagnostics") if name in kwargs
        }
        return cls(DatafinderSettings(api_key=api_key, **kwargs), **client_kwargs)

    # ------------------------------------------------------------------
    # Settings accessors
    # ------------------------------------------------------------------
    @property
    def settings(self) -> DatafinderSettings:
        return self._settings

    @property
    def api_key(self) -> str:
        return self._settings.api_key

    @api_key.setter
    def api_key(self, value: str) -> None:
        self._settings.api_key = validate_api_key(value)
        self.diagnostics.add_secret(value)

    @property
    def retries(self) -> int:
        return self._settings.retries

    @retries.setter
    def retries(self, value: int) -> None:
        self._settings.retries = validate_retries(value)

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._settings.base_url = validate_base_url(value)

    def error_message(self) -> str:
        """Return the explanation of the last failure, or ``""`` after a success."""
        return self._last_error

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def append_email(self, data: Mapping[str, Any]) -> AppendResult:
        """Look up an email address for a partial customer record.

        ``data`` carries the vendor's field names (``d_first``, ``d_last``,
        ``d_fulladdr``, ``d_city``, ``d_state``, ``d_zip``...) and is passed
        through unchanged apart from ``service``, which is forced to
        ``email``. The caller's mapping is not modified.
        """
        fields = dict(data)
        fields["service"] = "email"
        return self.transaction(fields, {})

    def transaction(
        self,
        query_params: Mapping[str, Any],
        body: Mapping[str, Any] | None = None,
    ) -> AppendResult:
        """POST ``body`` as JSON to the base URL with ``query_params`` in the query string."""

        params = with_api_key(query_params, self._settings.api_key)
        url = build_url(self._settings.base_url, params)
        headers = build_headers()
        content = encode_body(body)
        retries = self._settings.retries

        if self._settings.debug:
            logger.debug("Datafinder POST %s body=%s", redact_url(url), content.decode("utf-8"))
            self.diagnostics.record("request", f"POST {url} body={content.decode('utf-8')}", severity="debug")

        response: httpx.Response | None = None
        transport_error: Exception | None = None
        attempts = 0

        for attempt in range(1, retries + 1):
            attempts = attempt
            try:
                response = self._client.post(url, content=content, headers=headers)
                transport_error = None
            except httpx.HTTPError as exc:  # noqa: PERF203
                response = None
                transport_error = exc
                self.diagnostics.record(
                    "retry",
                    f"Attempt {attempt}/{retries} failed: {type(exc).__name__}: {exc}",
                    severity="warning",
                )
                if attempt < retries:
                    sleep_for = self._jitter(1, 3) * attempt
                    logger.warning(
                        "Datafinder request failed (%s); retrying in %ss (attempt %s/%s)",
                        type(exc).__name__,
                        sleep_for,
                        attempt,
                        retries,
                    )
                    self._sleep(sleep_for)
                else:
                    logger.warning("Datafinder request failed (%s) on final attempt %s", type(exc).__name__, attempt)
                continue
            if self._settings.stop_on_success:
                break

        return self.process_response(response, attempts=attempts, transport_error=transport_error)

    def process_response(
        self,
        response: object,
        *,
        attempts: int = 1,
        transport_error: Exception | None = None,
    ) -> AppendResult:
        """Classify an HTTP response into a success payload or a failure."""

        if response is None and transport_error is not None:
            suffix = "s" if attempts != 1 else ""
            return self._fail(
                f"Transport failure after {attempts} attempt{suffix}: {transport_error}",
                kind="transport",
                attempts=attempts,
            )
        if not isinstance(response, httpx.Response):
            return self._fail(
                f"Unknown response {response!r} from the HTTP client instead of a response object",
                kind="protocol",
                attempts=attempts,
            )

        status_code = response.status_code
        if self._settings.debug:
            raw = response.text
            logger.debug("Datafinder response %s: %s", status_code, raw)
            self.diagnostics.record("response", f"{status_code} {raw}", severity="debug")

        payload: object
        try:
            payload = parse_payload(response.content)
        except ValueError as exc:
            logger.warning("Cannot parse Datafinder response content %r (%s). Is this JSON?", response.text, exc)
            payload = {}

        if status_code not in SUCCESS_STATUS_CODES:
            return self._fail(
                compose_error(status_code, payload),
                kind="remote",
                attempts=attempts,
                status_code=status_code,
            )

        if not isinstance(payload, dict):
            payload = {"results": payload}
        self._last_error = ""
        return AppendResult(data=payload, status_code=status_code, attempts=attempts)

    def close(self) -> None:
        """Dispose the underlying HTTP client if owned by this instance."""

        if self._owns_client:
            self._client.close()

    def __enter__(self) -> DatafinderClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _fail(
        self,
        message: str,
        *,
        kind: ErrorKind,
        attempts: int,
        status_code: int | None = None,
    ) -> AppendResult:
        logger.error("Datafinder request failed: %s", message)
        self.diagnostics.record("error", message, severity="error")
        self._last_error = message
        return AppendResult(
            data=None,
            error=message,
            kind=kind,
            status_code=status_code,
            attempts=attempts,
        )


__all__ = ["DatafinderClient"]
