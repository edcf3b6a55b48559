"""notionsync: keep Notion pages in sync with local Markdown.

Public re-exports
-----------------

* **Client:** :class:`NotionSyncClient`
* **Configuration:** :class:`NotionSyncConfig`
* **Errors:** Every :class:`NotionSyncError` subclass and :class:`ErrorCode`
* **Models:** Blocks, diff operations, page metadata and sync results
* **Engine pieces:** :class:`SyncOrchestrator`, :class:`DiffPlanner`,
  :func:`comparable`

Usage::

    from notionsync import NotionSyncClient

    client = NotionSyncClient(token="secret_xxx", database_id="<db>")
    loaded = client.load_page("<page_id>")
    result = client.sync_page("<page_id>", loaded.lines + ["New paragraph"])
"""

from __future__ import annotations

# ── Client ──────────────────────────────────────────────────────────────
from notionsync.client import NotionSyncClient

# ── Configuration ───────────────────────────────────────────────────────
from notionsync.config import NotionSyncConfig

# ── Engine ──────────────────────────────────────────────────────────────
from notionsync.diff import DiffPlanner, comparable, compute_diff_operations

# ── Errors ──────────────────────────────────────────────────────────────
from notionsync.errors import (
    ErrorCode,
    NotionSyncAlreadySyncingError,
    NotionSyncAuthError,
    NotionSyncConfigError,
    NotionSyncConflictError,
    NotionSyncCredentialError,
    NotionSyncDecodeError,
    NotionSyncError,
    NotionSyncNetworkError,
    NotionSyncNotFoundError,
    NotionSyncPermissionError,
    NotionSyncRateLimitError,
    NotionSyncRemoteError,
    NotionSyncServerError,
    NotionSyncTooSoonError,
    NotionSyncValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from notionsync.models import (
    Block,
    BlockDelete,
    BlockInsert,
    BlockType,
    BlockUpdate,
    ConversionWarning,
    DiffOperations,
    DiffOpType,
    LoadedPage,
    OperationFailure,
    PageMetadata,
    SyncResult,
    SyncStatus,
)
from notionsync.sync import SyncOrchestrator, SyncStateTable

__all__ = [
    # Client
    "NotionSyncClient",
    # Configuration
    "NotionSyncConfig",
    # Engine
    "DiffPlanner",
    "SyncOrchestrator",
    "SyncStateTable",
    "comparable",
    "compute_diff_operations",
    # Errors
    "ErrorCode",
    "NotionSyncAlreadySyncingError",
    "NotionSyncAuthError",
    "NotionSyncConfigError",
    "NotionSyncConflictError",
    "NotionSyncCredentialError",
    "NotionSyncDecodeError",
    "NotionSyncError",
    "NotionSyncNetworkError",
    "NotionSyncNotFoundError",
    "NotionSyncPermissionError",
    "NotionSyncRateLimitError",
    "NotionSyncRemoteError",
    "NotionSyncServerError",
    "NotionSyncTooSoonError",
    "NotionSyncValidationError",
    # Models
    "Block",
    "BlockDelete",
    "BlockInsert",
    "BlockType",
    "BlockUpdate",
    "ConversionWarning",
    "DiffOpType",
    "DiffOperations",
    "LoadedPage",
    "OperationFailure",
    "PageMetadata",
    "SyncResult",
    "SyncStatus",
]

__version__ = "0.1.0"
