"""notionsync.notion_api -- Notion API transport, endpoint wrappers and reads.

* :mod:`.retries` -- Retry decision and ``Retry-After`` handling.
* :mod:`.transport` -- HTTP transport with auth, retries and error mapping.
* :mod:`.blocks` -- Block API wrapper.
* :mod:`.pages` -- Page and collection API wrapper.
* :mod:`.store` -- Paginated, failure-tolerant reads and page CRUD.
"""

from __future__ import annotations

from .blocks import BlockAPI, extract_block_ids
from .pages import PageAPI
from .retries import compute_retry_delay, parse_retry_after, should_retry
from .store import BlockStore
from .transport import NotionTransport

__all__ = [
    "BlockAPI",
    "BlockStore",
    "NotionTransport",
    "PageAPI",
    "compute_retry_delay",
    "extract_block_ids",
    "parse_retry_after",
    "should_retry",
]
