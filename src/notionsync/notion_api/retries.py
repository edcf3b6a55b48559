"""Retry decision and delay computation for rate-limited requests.

Only HTTP 429 is retried. Server errors and network failures surface
immediately; the caller decides whether to try again.
"""

from __future__ import annotations

import httpx

RATE_LIMIT_STATUS = 429


def parse_retry_after(response: httpx.Response) -> float | None:
    """Return the ``Retry-After`` header in seconds, or ``None``.

    Only the delta-seconds form is understood; an HTTP-date, an empty value
    or a negative number yields ``None``.
    """
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        value = float(raw)
    except (ValueError, TypeError):
        return None
    if value < 0:
        return None
    return value


def should_retry(status_code: int, attempt: int, max_attempts: int) -> bool:
    """Decide whether a response warrants another attempt.

    Parameters
    ----------
    status_code:
        HTTP status of the response just received.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Total attempts allowed, including the first request.

    Returns
    -------
    bool
        ``True`` only for a 429 with attempts remaining.
    """
    if status_code != RATE_LIMIT_STATUS:
        return False
    return attempt + 1 < max_attempts


def compute_retry_delay(
    retry_after: float | None,
    default: float = 1.0,
    maximum: float = 60.0,
) -> float:
    """Seconds to sleep before reissuing a rate-limited request.

    The server hint wins when present; *default* applies otherwise. The
    result is capped at *maximum*.

    Examples
    --------
    >>> compute_retry_delay(None)
    1.0
    >>> compute_retry_delay(120.0, maximum=60.0)
    60.0
    """
    delay = default if retry_after is None else retry_after
    return min(delay, maximum)
