"""Error hierarchy for notionsync.

Every public error class inherits from :class:`NotionSyncError`. Each carries
a machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict and an optional
``cause`` (chained exception).

Messages and context values produced by the transport are sanitized before
construction: no error raised by this package ever contains the raw bearer
token.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    CREDENTIAL_MISSING = "CREDENTIAL_MISSING"
    CONFIG_MISSING = "CONFIG_MISSING"
    REMOTE_ERROR = "REMOTE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    ALREADY_SYNCING = "ALREADY_SYNCING"
    TOO_SOON = "TOO_SOON"
    SYNC_CONFLICT = "SYNC_CONFLICT"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionSyncError(Exception):
    """Base exception for all notionsync errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Local precondition errors
# ---------------------------------------------------------------------------

class NotionSyncCredentialError(NotionSyncError):
    """No bearer token is configured; no request was attempted."""

    def __init__(self, message: str = "Notion token is not configured") -> None:
        super().__init__(code=ErrorCode.CREDENTIAL_MISSING, message=message)


class NotionSyncConfigError(NotionSyncError):
    """A required configuration value is missing.

    Context keys: ``field``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code=ErrorCode.CONFIG_MISSING, message=message, context=context)


# ---------------------------------------------------------------------------
# Remote errors
# ---------------------------------------------------------------------------

class NotionSyncRemoteError(NotionSyncError):
    """The remote API answered with a non-2xx status.

    ``status`` is the HTTP status code and ``body`` the response text with
    every credential occurrence redacted.

    Context keys: ``status_code``, ``method``, ``path``, ``body``.
    """

    default_code: str = ErrorCode.REMOTE_ERROR

    def __init__(
        self,
        message: str,
        status: int,
        body: str = "",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str | None = None,
    ) -> None:
        self.status = status
        self.body = body
        super().__init__(
            code=code or self.default_code,
            message=message,
            context=context,
            cause=cause,
        )


class NotionSyncValidationError(NotionSyncRemoteError):
    """400 (or another unclassified 4xx): the request payload was rejected."""

    default_code = ErrorCode.VALIDATION_ERROR


class NotionSyncAuthError(NotionSyncRemoteError):
    """401: the integration token is invalid or expired."""

    default_code = ErrorCode.AUTH_ERROR


class NotionSyncPermissionError(NotionSyncRemoteError):
    """403: the integration lacks access to the resource."""

    default_code = ErrorCode.PERMISSION_ERROR


class NotionSyncNotFoundError(NotionSyncRemoteError):
    """404: the requested resource does not exist."""

    default_code = ErrorCode.NOT_FOUND


class NotionSyncServerError(NotionSyncRemoteError):
    """5xx: the remote failed while handling the request."""

    default_code = ErrorCode.SERVER_ERROR


class NotionSyncRateLimitError(NotionSyncRemoteError):
    """429 persisted after every retry attempt was used.

    Context keys: ``attempts``, ``retry_after_seconds``.
    """

    default_code = ErrorCode.RATE_LIMITED


class NotionSyncNetworkError(NotionSyncError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``method``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NotionSyncDecodeError(NotionSyncError):
    """A 2xx response body could not be decoded as a JSON object.

    Context keys: ``method``, ``path``, ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DECODE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Sync guard errors
# ---------------------------------------------------------------------------

class NotionSyncAlreadySyncingError(NotionSyncError):
    """A sync for the same page is already running.

    Context keys: ``page_id``.
    """

    def __init__(self, page_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_SYNCING,
            message=f"Sync already in progress for page {page_id}",
            context={"page_id": page_id},
        )


class NotionSyncTooSoonError(NotionSyncError):
    """The previous sync of the page started inside the debounce window.

    Context keys: ``page_id``, ``remaining_ms``.
    """

    def __init__(self, page_id: str, remaining_ms: int) -> None:
        self.remaining_ms = remaining_ms
        super().__init__(
            code=ErrorCode.TOO_SOON,
            message=f"Sync requested too soon for page {page_id}; retry in {remaining_ms}ms",
            context={"page_id": page_id, "remaining_ms": remaining_ms},
        )


class NotionSyncConflictError(NotionSyncError):
    """The page was edited remotely after the local copy was loaded and the
    configured conflict policy is ``"raise"``.

    Context keys: ``page_id``, ``expected``, ``actual``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code=ErrorCode.SYNC_CONFLICT, message=message, context=context)
