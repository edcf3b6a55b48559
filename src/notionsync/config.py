"""Configuration for notionsync.

:class:`NotionSyncConfig` is a plain dataclass that captures every tuneable
knob of the sync engine. An instance is shared by the transport, the block
store and the sync orchestrator.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Literal

ENV_TOKEN = "NOTION_TOKEN"
ENV_DATABASE_ID = "NOTION_DATABASE_ID"


@dataclass
class NotionSyncConfig:
    """Complete configuration for a notionsync client.

    Parameters
    ----------
    token:
        Notion integration token. Never logged. An empty token makes every
        request fail with :class:`~notionsync.errors.NotionSyncCredentialError`.
    database_id:
        Collection used by page listing, search and creation.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
    base_url:
        API root URL. Override for proxy or testing environments.
    page_size:
        Default ``page_size`` for collection queries.
    sync_debounce_ms:
        Minimum time between two sync attempts on the same page.
    debug:
        Record per-call timings into the debug log and dump redacted
        payloads to *stderr*.
    retry_max_attempts:
        Total attempts for a request answered with HTTP 429.
    retry_default_delay:
        Seconds to wait after a 429 that carries no ``Retry-After`` header.
    retry_max_delay:
        Upper cap (seconds) on a server-provided retry hint.
    timeout_seconds:
        HTTP timeout per attempt.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    max_pagination_requests:
        Safety cap on requests issued by a single collection listing.
    progress_every:
        Emit a progress notification every N listing requests.
    max_block_depth:
        Deepest level of nested children fetched by the block store.
    insert_chunk_size:
        Maximum number of blocks sent in one append request.
    on_conflict:
        ``"ignore"`` keeps last-writer-wins. ``"raise"`` makes a sync fail
        when the page changed remotely since the caller's base edit time.
    metrics:
        Optional :class:`~notionsync.observability.metrics.MetricsHook`.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    database_id: str | None = None

    notion_version: str = "2022-06-28"

    base_url: str = "https://api.notion.com/v1"

    page_size: int = 10

    # ── Sync ────────────────────────────────────────────────────────────
    sync_debounce_ms: int = 1000

    insert_chunk_size: int = 100

    on_conflict: Literal["ignore", "raise"] = "ignore"

    debug: bool = False

    # ── Retry ───────────────────────────────────────────────────────────
    retry_max_attempts: int = 3

    retry_default_delay: float = 1.0

    retry_max_delay: float = 60.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 10.0

    http_proxy: str | None = None

    # ── Listing ─────────────────────────────────────────────────────────
    max_pagination_requests: int = 100

    progress_every: int = 5

    max_block_depth: int = 16

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.page_size < 1 or self.page_size > 100:
            raise ValueError(f"page_size must be between 1 and 100, got {self.page_size}")
        if self.sync_debounce_ms < 0:
            raise ValueError(f"sync_debounce_ms must be >= 0, got {self.sync_debounce_ms}")
        if self.insert_chunk_size < 1 or self.insert_chunk_size > 100:
            raise ValueError(
                f"insert_chunk_size must be between 1 and 100, got {self.insert_chunk_size}"
            )
        if self.on_conflict not in ("ignore", "raise"):
            raise ValueError(f"on_conflict must be 'ignore' or 'raise', got {self.on_conflict!r}")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_default_delay < 0:
            raise ValueError(f"retry_default_delay must be >= 0, got {self.retry_default_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.max_pagination_requests < 1:
            raise ValueError(
                f"max_pagination_requests must be >= 1, got {self.max_pagination_requests}"
            )
        if self.progress_every < 1:
            raise ValueError(f"progress_every must be >= 1, got {self.progress_every}")
        if self.max_block_depth < 0:
            raise ValueError(f"max_block_depth must be >= 0, got {self.max_block_depth}")

    @classmethod
    def from_env(cls, **overrides: Any) -> NotionSyncConfig:
        """Build a config from ``NOTION_TOKEN`` and ``NOTION_DATABASE_ID``.

        Keyword arguments take precedence over the environment.
        """
        values: dict[str, Any] = {
            "token": os.environ.get(ENV_TOKEN, ""),
            "database_id": os.environ.get(ENV_DATABASE_ID) or None,
        }
        values.update(overrides)
        return cls(**values)

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionSyncConfig({', '.join(parts)})"
