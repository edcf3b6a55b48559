"""Synchronous HTTP transport for the Notion API.

One call to :meth:`NotionTransport.request` is one logical remote call:

1. Refuse to start without a token (:class:`NotionSyncCredentialError`).
2. Send the request with auth and version headers.
3. On ``2xx`` return the decoded JSON object (``{}`` for an empty body).
4. On ``429`` sleep for ``Retry-After`` (default 1s) and reissue, up to
   ``retry_max_attempts`` attempts in total.
5. On any other status raise a typed :class:`NotionSyncRemoteError` whose
   message and body carry no credential.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any

import httpx

from notionsync.config import NotionSyncConfig
from notionsync.errors import (
    NotionSyncAuthError,
    NotionSyncCredentialError,
    NotionSyncDecodeError,
    NotionSyncNetworkError,
    NotionSyncNotFoundError,
    NotionSyncPermissionError,
    NotionSyncRateLimitError,
    NotionSyncRemoteError,
    NotionSyncServerError,
    NotionSyncValidationError,
)
from notionsync.observability import DebugLog, NoopMetricsHook, get_logger
from notionsync.utils.redact import redact, sanitize_message

from .retries import compute_retry_delay, parse_retry_after, should_retry

log = get_logger("notionsync.transport")

_BODY_PREVIEW = 2000

_STATUS_ERRORS: dict[int, type[NotionSyncRemoteError]] = {
    400: NotionSyncValidationError,
    401: NotionSyncAuthError,
    403: NotionSyncPermissionError,
    404: NotionSyncNotFoundError,
    429: NotionSyncRateLimitError,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error_class(status: int) -> type[NotionSyncRemoteError]:
    if status in _STATUS_ERRORS:
        return _STATUS_ERRORS[status]
    if status >= 500:
        return NotionSyncServerError
    return NotionSyncValidationError


def _raise_for_status(
    response: httpx.Response,
    method: str,
    path: str,
    token: str | None,
    context: dict[str, Any] | None = None,
) -> None:
    """Raise the typed remote error for a non-2xx *response*.

    The body is sanitized before it is attached to the error so that the
    raw token never reaches a message, a log line or a traceback.
    """
    status = response.status_code
    body = sanitize_message(response.text[:_BODY_PREVIEW], token)
    try:
        decoded = response.json()
    except ValueError:
        decoded = None

    detail = body
    notion_code = ""
    if isinstance(decoded, dict):
        detail = sanitize_message(str(decoded.get("message", body)), token)
        notion_code = str(decoded.get("code", ""))

    ctx: dict[str, Any] = {
        "status_code": status,
        "method": method,
        "path": path,
        "notion_code": notion_code,
        "body": body,
    }
    if context:
        ctx.update(context)

    error_cls = _error_class(status)
    raise error_cls(
        message=f"{method} {path} failed with status {status}: {detail}",
        status=status,
        body=body,
        context=ctx,
    )


def _decode_body(response: httpx.Response, method: str, path: str) -> dict:
    """Decode a successful response, treating an empty body as ``{}``."""
    if response.status_code == 204 or not response.content:
        return {}
    try:
        decoded = response.json()
    except ValueError as exc:
        raise NotionSyncDecodeError(
            message=f"{method} {path} returned a body that is not valid JSON",
            context={"method": method, "path": path, "status_code": response.status_code},
            cause=exc,
        ) from exc
    if not isinstance(decoded, dict):
        raise NotionSyncDecodeError(
            message=(
                f"{method} {path} returned JSON of type "
                f"{type(decoded).__name__}, expected an object"
            ),
            context={"method": method, "path": path, "status_code": response.status_code},
        )
    return decoded


def _dump_payload(
    method: str,
    path: str,
    payload: dict | None,
    response: httpx.Response,
    token: str | None = None,
) -> None:
    """Write a redacted request/response dump to stderr."""
    try:
        response_body: Any = response.json()
    except ValueError:
        response_body = response.text[:1000]

    dump: dict[str, Any] = {"method": method, "path": path}
    if payload is not None:
        dump["request_body"] = payload
    dump["response_status"] = response.status_code
    dump["response_body"] = response_body
    print(_json.dumps(redact(dump, token), indent=2, default=str), file=sys.stderr)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class NotionTransport:
    """HTTP transport with auth, rate-limit retry and error classification.

    Parameters
    ----------
    config:
        A :class:`NotionSyncConfig` controlling timeouts, retries and
        headers.
    debug_log:
        Receives one timing entry per logical call when ``config.debug``
        is set. A fresh :class:`DebugLog` is created when omitted.
    """

    def __init__(self, config: NotionSyncConfig, debug_log: DebugLog | None = None) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self.debug_log = debug_log if debug_log is not None else DebugLog()

        proxy: httpx.URL | str | None = config.http_proxy
        self._client = httpx.Client(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Notion-Version": config.notion_version,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=proxy,
        )

    # -- public API --------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        start_cursor: str | None = None,
    ) -> dict:
        """Perform one logical call against the API.

        Parameters
        ----------
        method:
            ``GET``, ``POST``, ``PATCH`` or ``DELETE``.
        path:
            API path relative to ``base_url`` (e.g. ``/pages``).
        json:
            Optional JSON body.
        params:
            Optional query parameters.
        start_cursor:
            Pagination cursor from a previous response's ``next_cursor``.
            Sent as a query parameter for ``GET`` and in the body otherwise.

        Returns
        -------
        dict
            The decoded response object, ``{}`` for an empty body.

        Raises
        ------
        NotionSyncCredentialError
            When no token is configured. No request is sent.
        NotionSyncRateLimitError
            When every attempt was answered with 429.
        NotionSyncRemoteError
            For any other non-2xx status (typed subclass per status).
        NotionSyncDecodeError
            When a 2xx body is not a JSON object.
        NotionSyncNetworkError
            On timeout or connection failure.
        """
        if not self._config.token:
            raise NotionSyncCredentialError()

        method = method.upper()
        if start_cursor is not None:
            if method == "GET":
                params = {**(params or {}), "start_cursor": start_cursor}
            else:
                json = {**(json or {}), "start_cursor": start_cursor}

        t0 = time.monotonic()
        try:
            return self._send(method, path, json, params)
        finally:
            if self._config.debug:
                elapsed_ms = (time.monotonic() - t0) * 1000
                self.debug_log.record(f"{method} request to {path}", elapsed_ms)

    def _send(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None,
        params: dict[str, Any] | None,
    ) -> dict:
        max_attempts = self._config.retry_max_attempts
        token = self._config.token
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if params is not None:
            kwargs["params"] = params

        attempt = 0
        while True:
            t0 = time.monotonic()
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                self._metrics.increment(
                    "notionsync.requests_total",
                    tags={"method": method, "status": "error"},
                )
                reason = sanitize_message(str(exc), token)
                log.warning(
                    "Request network error",
                    extra={"extra_fields": {
                        "op": "request", "method": method, "path": path, "error": reason,
                    }},
                )
                raise NotionSyncNetworkError(
                    message=f"Network error on {method} {path}: {reason}",
                    context={"method": method, "path": path},
                    cause=exc,
                ) from exc
            elapsed_ms = (time.monotonic() - t0) * 1000
            status = response.status_code

            self._metrics.increment(
                "notionsync.requests_total",
                tags={"method": method, "status": str(status)},
            )
            self._metrics.timing(
                "notionsync.request_duration_ms",
                elapsed_ms,
                tags={"method": method, "status": str(status)},
            )
            if self._config.debug:
                _dump_payload(method, path, json, response, token=token)

            if 200 <= status < 300:
                return _decode_body(response, method, path)

            if not should_retry(status, attempt, max_attempts):
                ctx = {"attempts": attempt + 1} if status == 429 else None
                if status == 429:
                    log.error(
                        "Rate limit retries exhausted",
                        extra={"extra_fields": {
                            "op": "request", "method": method, "path": path,
                            "attempts": attempt + 1,
                        }},
                    )
                _raise_for_status(response, method, path, token, ctx)

            retry_after = parse_retry_after(response)
            delay = compute_retry_delay(
                retry_after,
                default=self._config.retry_default_delay,
                maximum=self._config.retry_max_delay,
            )
            self._metrics.increment(
                "notionsync.rate_limited_total",
                tags={"method": method},
            )
            self._metrics.increment(
                "notionsync.retries_total",
                tags={"method": method, "reason": "rate_limited"},
            )
            log.warning(
                "Rate limited by Notion API",
                extra={"extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "status_code": status,
                    "retry_after": retry_after,
                    "delay": delay,
                    "attempt": attempt + 1,
                }},
            )
            time.sleep(delay)
            attempt += 1

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> NotionTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
