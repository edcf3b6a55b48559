"""Canonical content strings used as the diff engine's equality oracle.

Two blocks are identical iff :func:`comparable` returns the same string for
both. The string depends only on the block's type and payload, never on its
id or position::

    paragraph:**bold** text
    to_do:checked:buy milk
    code:python:print(1)
    image:https://example.com/a.png:a caption
    callout:

Types outside the supported set always canonicalize to ``type + ":"``, so
unsupported remote blocks compare equal to their local placeholders.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit, urlunsplit

from notionsync.converter.inline_renderer import render_rich_text
from notionsync.models import SUPPORTED_BLOCK_TYPES, Block, BlockType


def image_source(payload: dict[str, Any]) -> str:
    """The image URL without query string or fragment.

    Hosted-file URLs are re-signed on every read, so only the stable part of
    the URL takes part in comparisons.
    """
    kind = payload.get("type")
    source = payload.get(kind) if isinstance(kind, str) else None
    if not isinstance(source, dict):
        source = payload.get("external") or payload.get("file") or {}
    url = str(source.get("url") or "") if isinstance(source, dict) else ""
    if not url:
        return ""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _spans(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    spans = payload.get(key)
    if not isinstance(spans, list):
        return []
    return [s for s in spans if isinstance(s, dict)]


def _content(block_type: str, payload: dict[str, Any]) -> str:
    text = render_rich_text(_spans(payload, "rich_text"))

    if block_type == BlockType.TO_DO:
        state = "checked" if payload.get("checked") else "unchecked"
        return f"{state}:{text}"
    if block_type == BlockType.CODE:
        return f"{payload.get('language') or ''}:{text}"
    if block_type == BlockType.IMAGE:
        caption = render_rich_text(_spans(payload, "caption"))
        return f"{image_source(payload)}:{caption}"
    return text


def comparable(block: Block) -> str:
    """Return the canonical string of *block*.

    Pure and total: a missing or malformed payload yields ``type + ":"``
    rather than raising.

    Examples
    --------
    >>> comparable(Block("paragraph", {"rich_text": [{"text": {"content": "hi"}}]}))
    'paragraph:hi'
    >>> comparable(Block("to_do", {}))
    'to_do:'
    """
    block_type = block.type
    payload = block.payload if isinstance(block.payload, dict) else {}
    if block_type not in SUPPORTED_BLOCK_TYPES or not payload:
        return f"{block_type}:"
    return f"{block_type}:{_content(block_type, payload)}"
