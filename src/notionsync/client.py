"""Synchronous notionsync client.

:class:`NotionSyncClient` wires the transport, the API wrappers, the block
store, the converter and the sync orchestrator together behind one object.

Usage::

    from notionsync import NotionSyncClient

    with NotionSyncClient(token="secret_xxx", database_id="<db>") as client:
        page = client.create_page("Meeting notes")
        loaded = client.load_page(page.id)
        lines = loaded.lines + ["", "- follow up with design"]
        result = client.sync_page(page.id, lines)
        print(result.status, result.inserts)
"""

from __future__ import annotations

from typing import Any

from notionsync.config import NotionSyncConfig
from notionsync.converter.blocks_to_md import BlocksToMarkdownRenderer
from notionsync.converter.md_to_blocks import MarkdownToBlocksConverter
from notionsync.errors import NotionSyncConfigError
from notionsync.models import TITLE_PROPERTY, LoadedPage, PageMetadata, SyncResult
from notionsync.notion_api.blocks import BlockAPI
from notionsync.notion_api.pages import PageAPI
from notionsync.notion_api.store import BlockStore, ProgressCallback
from notionsync.notion_api.transport import NotionTransport
from notionsync.observability import DebugLog, get_logger
from notionsync.sync.orchestrator import SyncOrchestrator
from notionsync.sync.state import SyncStateTable

log = get_logger("notionsync.client")


class NotionSyncClient:
    """Browse the pages of a collection and keep them in sync with local text.

    Parameters
    ----------
    token:
        Integration token. Falls back to ``NOTION_TOKEN`` when omitted.
    config:
        A complete configuration. When given, *token* and *kwargs* must be
        omitted.
    **kwargs:
        Forwarded to :meth:`NotionSyncConfig.from_env`.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        config: NotionSyncConfig | None = None,
        **kwargs: Any,
    ) -> None:
        if config is None:
            if token is not None:
                kwargs["token"] = token
            config = NotionSyncConfig.from_env(**kwargs)
        elif token is not None or kwargs:
            raise ValueError("pass either config or token/keyword options, not both")
        self._config = config
        self.debug_log = DebugLog()
        self._transport = NotionTransport(config, debug_log=self.debug_log)
        self._blocks = BlockAPI(self._transport)
        self._pages = PageAPI(self._transport)
        self._store = BlockStore(self._blocks, self._pages, config)
        self._converter = MarkdownToBlocksConverter()
        self._renderer = BlocksToMarkdownRenderer()
        self._orchestrator = SyncOrchestrator(
            self._store,
            self._blocks,
            config,
            parser=self._converter.convert_lines,
            states=SyncStateTable(),
            debug_log=self.debug_log,
        )

    @property
    def config(self) -> NotionSyncConfig:
        return self._config

    def _database(self, database_id: str | None) -> str:
        resolved = database_id or self._config.database_id
        if not resolved:
            raise NotionSyncConfigError(
                "No database configured; set NOTION_DATABASE_ID or pass database_id",
                context={"field": "database_id"},
            )
        return resolved

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def get_page(self, page_id: str) -> PageMetadata:
        return self._store.retrieve_page(page_id)

    def list_pages(
        self,
        database_id: str | None = None,
        page_size: int | None = None,
        sort: bool = True,
        progress: ProgressCallback | None = None,
    ) -> list[PageMetadata]:
        """Return every page of the collection.

        Parameters
        ----------
        database_id:
            Defaults to ``config.database_id``.
        page_size:
            Results per request; defaults to ``config.page_size``.
        sort:
            Sort by title, case-insensitively.
        progress:
            Forwarded to :meth:`BlockStore.fetch_all_pages`.

        Raises
        ------
        NotionSyncConfigError
            No database id is available.
        """
        pages = self._store.fetch_all_pages(
            self._database(database_id), page_size=page_size, progress=progress,
        )
        if sort:
            pages.sort(key=lambda p: p.title.lower())
        return pages

    def search_pages(self, query: str, database_id: str | None = None) -> list[PageMetadata]:
        """Return the pages whose title contains *query*."""
        pages = self._store.fetch_all_pages(
            self._database(database_id),
            filter={"property": TITLE_PROPERTY, "rich_text": {"contains": query}},
        )
        pages.sort(key=lambda p: p.title.lower())
        return pages

    def create_page(self, title: str, database_id: str | None = None) -> PageMetadata:
        """Create an empty page titled *title* in the collection.

        Raises
        ------
        ValueError
            *title* is empty or blank.
        NotionSyncConfigError
            No database id is available.
        """
        if not title or not title.strip():
            raise ValueError("page title must not be empty")
        page = self._store.create_page(self._database(database_id), title)
        log.info(
            "Page created",
            extra={"extra_fields": {"op": "create_page", "page_id": page.id}},
        )
        return page

    def archive_page(self, page_id: str) -> None:
        self._store.archive_page(page_id)
        log.info(
            "Page archived",
            extra={"extra_fields": {"op": "archive_page", "page_id": page_id}},
        )

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def load_page(self, page_id: str) -> LoadedPage:
        """Fetch a page's metadata and blocks and render them to Markdown.

        Raises
        ------
        NotionSyncError
            Some children could not be read. A partial copy is never
            returned, since syncing it back would delete the missing blocks.
        """
        metadata = self._store.retrieve_page(page_id)
        blocks = self._store.fetch_all_blocks(page_id)
        if self._store.last_errors:
            raise self._store.last_errors[-1]
        return LoadedPage(
            metadata=metadata,
            blocks=blocks,
            lines=self._renderer.render_lines(blocks),
        )

    def sync_page(
        self,
        page_id: str,
        lines: list[str],
        base_last_edited: str | None = None,
    ) -> SyncResult:
        """Make the page's content match *lines*.

        See :meth:`SyncOrchestrator.sync` for outcomes and errors.
        """
        return self._orchestrator.sync(page_id, lines, base_last_edited=base_last_edited)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> NotionSyncClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
