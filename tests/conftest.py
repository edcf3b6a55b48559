"""Shared test fixtures for the notionsync test suite."""

from __future__ import annotations

import itertools
from typing import Any

import pytest

from notionsync.config import NotionSyncConfig
from notionsync.converter.blocks_to_md import BlocksToMarkdownRenderer
from notionsync.converter.md_to_blocks import MarkdownToBlocksConverter
from notionsync.errors import NotionSyncNotFoundError
from notionsync.models import Block


class SimulatedRemote:
    """In-memory stand-in for :class:`BlockAPI` over a single page.

    Blocks are kept in document order with nested children right after
    their parent. Implements the remote's positioning rules:
    ``append_children`` places the new blocks inside the given container,
    right after ``after`` (and its subtree) or at the end of the container
    when ``after`` is ``None``. Deleting a block removes its subtree. Every
    call is recorded in :attr:`calls`.
    """

    def __init__(self, blocks: list[Block] | None = None, page_id: str = "page-1") -> None:
        self.page_id = page_id
        self._ids = itertools.count(1)
        self.blocks: list[dict[str, Any]] = []
        self.parents: dict[str, str | None] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_on: set[tuple[str, str | None]] = set()
        for block in blocks or []:
            self.blocks.append(self._stored(block.to_api(), None))

    def _stored(self, data: dict[str, Any], parent: str | None) -> dict[str, Any]:
        stored = dict(data)
        stored["id"] = f"r{next(self._ids)}"
        self.parents[stored["id"]] = parent
        return stored

    def _index(self, block_id: str) -> int:
        for index, item in enumerate(self.blocks):
            if item["id"] == block_id:
                return index
        raise NotionSyncNotFoundError(f"block {block_id} not found", status=404)

    def _within(self, block_id: str, ancestor: str | None) -> bool:
        parent = self.parents.get(block_id)
        while parent is not None:
            if parent == ancestor:
                return True
            parent = self.parents.get(parent)
        return ancestor is None

    def _subtree_end(self, block_id: str | None) -> int:
        """Index just past *block_id* and its descendants (the page when ``None``)."""
        if block_id is None:
            return len(self.blocks)
        end = self._index(block_id) + 1
        while end < len(self.blocks) and self._within(self.blocks[end]["id"], block_id):
            end += 1
        return end

    def _check(self, op: str, target: str | None) -> None:
        if (op, target) in self.fail_on:
            raise NotionSyncNotFoundError(f"{op} on {target} rejected", status=404)

    def add_child(self, parent_id: str, block: Block) -> str:
        """Seed *block* as the last child of *parent_id*; return its id."""
        stored = self._stored(block.to_api(), parent_id)
        self.blocks.insert(self._subtree_end(parent_id), stored)
        return stored["id"]

    def current(self) -> list[Block]:
        result = []
        for item in self.blocks:
            block = Block.from_api(item)
            block.parent_id = self.parents[item["id"]]
            result.append(block)
        return result

    # -- BlockAPI surface --------------------------------------------------

    def list_children(self, block_id: str, start_cursor: str | None = None,
                      page_size: int = 100) -> dict[str, Any]:
        self.calls.append(("list_children", block_id))
        container = None if block_id == self.page_id else block_id
        children = [item for item in self.blocks if self.parents[item["id"]] == container]
        start = int(start_cursor or 0)
        window = children[start:start + page_size]
        more = start + page_size < len(children)
        results = []
        for item in window:
            listed = dict(item)
            listed["has_children"] = any(p == item["id"] for p in self.parents.values())
            results.append(listed)
        return {
            "results": results,
            "has_more": more,
            "next_cursor": str(start + page_size) if more else None,
        }

    def update(self, block_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", block_id))
        self._check("update", block_id)
        item = self.blocks[self._index(block_id)]
        (block_type, content), = payload.items()
        item["type"] = block_type
        item[block_type] = content
        return dict(item)

    def delete(self, block_id: str) -> dict[str, Any]:
        self.calls.append(("delete", block_id))
        self._check("delete", block_id)
        start, end = self._index(block_id), self._subtree_end(block_id)
        for item in self.blocks[start:end]:
            del self.parents[item["id"]]
        del self.blocks[start:end]
        return {}

    def append_children(self, block_id: str, children: list[dict[str, Any]],
                        after: str | None = None) -> dict[str, Any]:
        self.calls.append(("append_children", after))
        self._check("append_children", after)
        container = None if block_id == self.page_id else block_id
        if after is not None and self.parents.get(after, "") != container:
            raise NotionSyncNotFoundError(f"block {after} is not a child of {block_id}", status=404)
        created = [self._stored(child, container) for child in children]
        position = self._subtree_end(after if after is not None else container)
        self.blocks[position:position] = created
        return {"object": "list", "results": [dict(item) for item in created]}


@pytest.fixture
def config() -> NotionSyncConfig:
    """Default test configuration with a dummy token and no debounce."""
    return NotionSyncConfig(token="test-token-1234", sync_debounce_ms=0)


@pytest.fixture
def converter() -> MarkdownToBlocksConverter:
    return MarkdownToBlocksConverter()


@pytest.fixture
def renderer() -> BlocksToMarkdownRenderer:
    return BlocksToMarkdownRenderer()


@pytest.fixture
def simulated_remote() -> type[SimulatedRemote]:
    """The :class:`SimulatedRemote` class, for tests that seed their own page."""
    return SimulatedRemote
