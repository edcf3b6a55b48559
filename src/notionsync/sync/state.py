"""Per-page sync state table.

Each :class:`SyncOrchestrator` owns (or is handed) one table, so independent
orchestrators never share state. The table guards the check-then-set of the
entry guards with a lock, making the ``AlreadySyncing`` and debounce checks
safe when several threads sync different or identical pages.
"""

from __future__ import annotations

import math
import threading

from notionsync.errors import NotionSyncAlreadySyncingError, NotionSyncTooSoonError
from notionsync.models import SyncState


class SyncStateTable:
    """Map of page id to :class:`SyncState`, created lazily on first use."""

    def __init__(self) -> None:
        self._states: dict[str, SyncState] = {}
        self._lock = threading.Lock()

    def get(self, page_id: str) -> SyncState:
        """Return a copy of the state for *page_id*."""
        with self._lock:
            state = self._states.get(page_id)
            if state is None:
                return SyncState()
            return SyncState(in_progress=state.in_progress, last_sync_time=state.last_sync_time)

    def acquire(self, page_id: str, now: float, debounce_ms: int) -> None:
        """Move *page_id* from Idle to InProgress or raise.

        Parameters
        ----------
        page_id:
            The document being synced.
        now:
            Current monotonic time in seconds.
        debounce_ms:
            Minimum gap between two sync starts on the same page.

        Raises
        ------
        NotionSyncAlreadySyncingError
            The page is already InProgress.
        NotionSyncTooSoonError
            The previous sync started less than *debounce_ms* ago.
        """
        with self._lock:
            state = self._states.setdefault(page_id, SyncState())
            if state.in_progress:
                raise NotionSyncAlreadySyncingError(page_id)
            if state.last_sync_time is not None:
                elapsed_ms = (now - state.last_sync_time) * 1000
                if elapsed_ms < debounce_ms:
                    remaining = max(1, math.ceil(debounce_ms - elapsed_ms))
                    raise NotionSyncTooSoonError(page_id, remaining)
            state.in_progress = True
            state.last_sync_time = now

    def release(self, page_id: str) -> None:
        """Return *page_id* to Idle."""
        with self._lock:
            state = self._states.get(page_id)
            if state is not None:
                state.in_progress = False

    def __contains__(self, page_id: object) -> bool:
        with self._lock:
            return page_id in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
