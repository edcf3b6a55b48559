"""Metrics hook protocol and its no-op default.

Emitted metric names:

* ``notionsync.requests_total``       -- counter, tagged ``method``/``status``
* ``notionsync.rate_limited_total``   -- counter
* ``notionsync.retries_total``        -- counter
* ``notionsync.request_duration_ms``  -- timing
* ``notionsync.diff_ops_total``       -- counter, tagged ``op_type``
* ``notionsync.sync_total``           -- counter, tagged ``status``
* ``notionsync.sync_duration_ms``     -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Anything with ``increment`` and ``timing`` can receive metrics.

    Tags are string-to-string dicts; backends map them to labels as they
    see fit.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        ...


class NoopMetricsHook:
    """Discards every data point; used when no hook is configured."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
