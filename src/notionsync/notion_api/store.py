"""Paginated reads and page CRUD on top of :class:`BlockAPI` / :class:`PageAPI`.

Listing is failure-tolerant: a page of results that fails is retried exactly
once, and if the retry fails too the listing stops for that container and
returns what it already has. Only credential errors propagate, since no
request can succeed without a token.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from notionsync.config import NotionSyncConfig
from notionsync.errors import (
    NotionSyncDecodeError,
    NotionSyncError,
    NotionSyncNetworkError,
    NotionSyncRemoteError,
)
from notionsync.models import Block, PageMetadata
from notionsync.observability import get_logger

from .blocks import BlockAPI
from .pages import PageAPI, title_property

log = get_logger("notionsync.store")

ProgressCallback = Callable[[int, int], None]
"""Called as ``progress(requests_made, pages_so_far)``."""

_RECOVERABLE = (NotionSyncRemoteError, NotionSyncNetworkError, NotionSyncDecodeError)


def _is_removed(item: dict[str, Any]) -> bool:
    return bool(item.get("in_trash") or item.get("archived"))


@dataclass
class _Frame:
    """Traversal state for one container's paginated children."""

    container_id: str
    depth: int
    cursor: str | None = None
    requests: int = 0
    exhausted: bool = False
    pending: deque = field(default_factory=deque)


class BlockStore:
    """Read whole documents and collections, and manage pages.

    Parameters
    ----------
    blocks:
        Wrapper for the Blocks API.
    pages:
        Wrapper for the Pages and Databases APIs.
    config:
        Supplies page sizes, the pagination cap, the progress interval and
        the nesting depth bound.
    """

    def __init__(self, blocks: BlockAPI, pages: PageAPI, config: NotionSyncConfig) -> None:
        self._blocks = blocks
        self._pages = pages
        self._config = config
        self.last_errors: list[NotionSyncError] = []

    # -- helpers -----------------------------------------------------------

    def _with_one_retry(self, what: str, call: Callable[[], dict[str, Any]]) -> dict[str, Any] | None:
        """Run *call*, retrying once. Returns ``None`` when both tries fail."""
        try:
            return call()
        except _RECOVERABLE as exc:
            log.warning(
                f"Fetching {what} failed, retrying once",
                extra={"extra_fields": {"op": "fetch", "target": what, "error": exc.message}},
            )
        try:
            return call()
        except _RECOVERABLE as exc:
            log.error(
                f"Fetching {what} failed twice, giving up on it",
                extra={"extra_fields": {"op": "fetch", "target": what, "error": exc.message}},
            )
            self.last_errors.append(exc)
            return None

    # -- blocks ------------------------------------------------------------

    def fetch_all_blocks(self, container_id: str) -> list[Block]:
        """Return every live block under *container_id*, nested ones inlined.

        Each block with children is followed immediately by its descendants,
        depth first, in document order. Trashed and archived blocks are
        dropped. Nesting deeper than ``config.max_block_depth`` is not
        fetched.

        Failures are local: a children page that fails twice ends that
        container's listing, but blocks gathered elsewhere are still
        returned. The errors are kept in :attr:`last_errors`.
        """
        self.last_errors = []
        max_depth = self._config.max_block_depth
        max_requests = self._config.max_pagination_requests
        out: list[Block] = []
        stack: list[_Frame] = [_Frame(container_id, depth=0)]

        while stack:
            frame = stack[-1]
            if not frame.pending:
                if frame.exhausted:
                    stack.pop()
                    continue
                if frame.requests >= max_requests:
                    log.warning(
                        "Pagination limit reached while fetching blocks",
                        extra={"extra_fields": {
                            "op": "fetch_all_blocks",
                            "container_id": frame.container_id,
                            "requests": frame.requests,
                        }},
                    )
                    stack.pop()
                    continue
                data = self._with_one_retry(
                    f"children of {frame.container_id}",
                    lambda f=frame: self._blocks.list_children(f.container_id, start_cursor=f.cursor),
                )
                frame.requests += 1
                if data is None:
                    stack.pop()
                    continue
                frame.pending.extend(
                    item for item in data.get("results") or [] if not _is_removed(item)
                )
                next_cursor = data.get("next_cursor")
                if data.get("has_more") and next_cursor:
                    frame.cursor = next_cursor
                else:
                    frame.exhausted = True
                continue

            block = Block.from_api(frame.pending.popleft())
            if frame.depth > 0:
                block.parent_id = frame.container_id
            out.append(block)
            if block.has_children and block.id:
                if frame.depth >= max_depth:
                    log.warning(
                        "Maximum nesting depth reached, children not fetched",
                        extra={"extra_fields": {
                            "op": "fetch_all_blocks",
                            "block_id": block.id,
                            "max_depth": max_depth,
                        }},
                    )
                else:
                    stack.append(_Frame(block.id, depth=frame.depth + 1))

        return out

    # -- pages -------------------------------------------------------------

    def fetch_all_pages(
        self,
        database_id: str,
        page_size: int | None = None,
        progress: ProgressCallback | None = None,
        filter: dict[str, Any] | None = None,
    ) -> list[PageMetadata]:
        """Return metadata for every page in a collection.

        Parameters
        ----------
        database_id:
            The collection to query.
        page_size:
            Results per request; defaults to ``config.page_size``.
        progress:
            Called every ``config.progress_every`` requests.
        filter:
            Optional query filter object.

        Returns
        -------
        list[PageMetadata]
            Pages in the order the remote returned them. The listing stops
            after ``config.max_pagination_requests`` requests even if the
            remote reports more.
        """
        self.last_errors = []
        size = page_size or self._config.page_size
        max_requests = self._config.max_pagination_requests
        every = self._config.progress_every
        pages: list[PageMetadata] = []
        cursor: str | None = None
        requests = 0

        while True:
            data = self._with_one_retry(
                f"pages of {database_id}",
                lambda c=cursor: self._pages.query_database(
                    database_id, page_size=size, start_cursor=c, filter=filter,
                ),
            )
            requests += 1
            if data is None:
                break

            pages.extend(
                PageMetadata.from_api(item)
                for item in data.get("results") or []
                if not _is_removed(item)
            )

            if requests % every == 0:
                log.info(
                    f"Fetching pages... ({requests} requests)",
                    extra={"extra_fields": {
                        "op": "fetch_all_pages", "requests": requests, "pages": len(pages),
                    }},
                )
                if progress is not None:
                    progress(requests, len(pages))

            next_cursor = data.get("next_cursor")
            if not (data.get("has_more") and next_cursor):
                break
            if requests >= max_requests:
                log.warning(
                    "Pagination limit reached. Some pages may not be shown.",
                    extra={"extra_fields": {
                        "op": "fetch_all_pages", "database_id": database_id, "requests": requests,
                    }},
                )
                break
            cursor = next_cursor

        return pages

    def retrieve_page(self, page_id: str) -> PageMetadata:
        return PageMetadata.from_api(self._pages.retrieve(page_id))

    def create_page(self, database_id: str, title: str) -> PageMetadata:
        """Create an empty page in *database_id* with the given title."""
        data = self._pages.create(
            parent={"database_id": database_id},
            properties=title_property(title),
        )
        return PageMetadata.from_api(data)

    def archive_page(self, page_id: str) -> None:
        """Delete a page by setting its archive flag."""
        self._pages.update(page_id, archived=True)
