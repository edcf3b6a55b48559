"""notionsync.sync -- the debounced, per-page sync pipeline."""

from __future__ import annotations

from .orchestrator import SyncOrchestrator
from .state import SyncStateTable

__all__ = ["SyncOrchestrator", "SyncStateTable"]
