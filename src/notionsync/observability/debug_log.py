"""Caller-visible timing log.

The transport appends one entry per remote call when ``debug`` is enabled,
and the sync orchestrator appends phase timings. The orchestrator clears the
log at the start of every sync so a caller can inspect the most recent run.
"""

from __future__ import annotations

import threading


class DebugLog:
    """Append-only list of human-readable timing lines."""

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._lock = threading.Lock()

    def record(self, label: str, elapsed_ms: float) -> None:
        self.append(f"{label} took: {elapsed_ms:.0f}ms")

    def append(self, message: str) -> None:
        with self._lock:
            self._entries.append(message)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def entries(self) -> list[str]:
        """Return a snapshot copy of the current entries."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
