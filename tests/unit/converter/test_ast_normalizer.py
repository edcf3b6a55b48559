"""Tests for ASTNormalizer token mapping."""

from __future__ import annotations

import pytest

from notionsync.converter.ast_normalizer import ASTNormalizer


@pytest.fixture
def parse():
    return ASTNormalizer().parse


def test_blank_lines_are_dropped(parse):
    tokens = parse("a\n\n\n\nb")
    assert [t["type"] for t in tokens] == ["paragraph", "paragraph"]


def test_heading_keeps_level(parse):
    (token,) = parse("## Title")
    assert token["type"] == "heading"
    assert token["attrs"]["level"] == 2


def test_code_loses_trailing_newline(parse):
    (token,) = parse("```js\nlet a = 1\n```")
    assert token == {"type": "block_code", "attrs": {"info": "js"}, "raw": "let a = 1"}


def test_tight_list_text_becomes_paragraph(parse):
    (token,) = parse("- item")
    (item,) = token["children"]
    assert item["type"] == "list_item"
    assert item["children"][0]["type"] == "paragraph"


def test_task_items(parse):
    (token,) = parse("- [x] done")
    (item,) = token["children"]
    assert item["type"] == "task_list_item"
    assert item["attrs"]["checked"] is True


def test_html_block_keeps_raw(parse):
    (token,) = parse("<!-- notion:toggle -->")
    assert token["type"] == "html_block"
    assert "notion:toggle" in token["raw"]


def test_inline_types(parse):
    (token,) = parse("**b** *i* ~~s~~ `c` [l](https://x.io)")
    types = [child["type"] for child in token["children"]]
    for expected in ("strong", "emphasis", "strikethrough", "codespan", "link"):
        assert expected in types


def test_soft_break(parse):
    (token,) = parse("a\nb")
    assert [c["type"] for c in token["children"]] == ["text", "softbreak", "text"]
