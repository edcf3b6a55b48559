"""Unit tests for the BlockAPI and PageAPI endpoint wrappers."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from notionsync.notion_api.blocks import BlockAPI, extract_block_ids
from notionsync.notion_api.pages import PageAPI, title_property


@pytest.fixture
def transport():
    mock = MagicMock()
    mock.request.return_value = {}
    return mock


class TestBlockAPI:
    def test_list_children(self, transport):
        BlockAPI(transport).list_children("page-1", start_cursor="c3")
        transport.request.assert_called_once_with(
            "GET",
            "/blocks/page-1/children",
            params={"page_size": 100},
            start_cursor="c3",
        )

    def test_update(self, transport):
        payload = {"paragraph": {"rich_text": []}}
        BlockAPI(transport).update("b1", payload)
        transport.request.assert_called_once_with("PATCH", "/blocks/b1", json=payload)

    def test_delete(self, transport):
        BlockAPI(transport).delete("b1")
        transport.request.assert_called_once_with("DELETE", "/blocks/b1")

    def test_append_without_anchor(self, transport):
        children = [{"type": "paragraph", "paragraph": {"rich_text": []}}]
        BlockAPI(transport).append_children("page-1", children)
        transport.request.assert_called_once_with(
            "PATCH", "/blocks/page-1/children", json={"children": children}
        )

    def test_append_after_anchor(self, transport):
        BlockAPI(transport).append_children("page-1", [], after="b7")
        body = transport.request.call_args.kwargs["json"]
        assert body == {"children": [], "after": "b7"}


class TestExtractBlockIds:
    def test_ids_in_order(self):
        response = {"results": [{"id": "a"}, {"id": "b"}, {"object": "block"}]}
        assert extract_block_ids(response) == ["a", "b"]

    def test_empty_response(self):
        assert extract_block_ids({}) == []


class TestPageAPI:
    def test_create(self, transport):
        PageAPI(transport).create({"database_id": "db"}, title_property("Notes"))
        transport.request.assert_called_once_with(
            "POST",
            "/pages",
            json={
                "parent": {"database_id": "db"},
                "properties": {"Name": {"title": [{"text": {"content": "Notes"}}]}},
            },
        )

    def test_create_with_children(self, transport):
        PageAPI(transport).create({"database_id": "db"}, {}, children=[{"type": "divider"}])
        assert transport.request.call_args.kwargs["json"]["children"] == [{"type": "divider"}]

    def test_retrieve(self, transport):
        PageAPI(transport).retrieve("p1")
        transport.request.assert_called_once_with("GET", "/pages/p1")

    def test_archive(self, transport):
        PageAPI(transport).update("p1", archived=True)
        transport.request.assert_called_once_with("PATCH", "/pages/p1", json={"archived": True})

    def test_query_database(self, transport):
        PageAPI(transport).query_database("db", page_size=25, start_cursor="c1", filter={"x": 1})
        transport.request.assert_called_once_with(
            "POST",
            "/databases/db/query",
            json={"page_size": 25, "filter": {"x": 1}},
            start_cursor="c1",
        )

    def test_title_property_custom_name(self):
        assert title_property("T", name="Title") == {"Title": {"title": [{"text": {"content": "T"}}]}}
