"""Parse Markdown with mistune and normalize the token tree.

mistune v3's AST renderer produces a few internal token types; this module
maps them onto a small canonical set so the block builder only deals with:

Block tokens:
    heading, paragraph, block_quote, list, list_item, task_list_item,
    block_code, thematic_break, html_block

Inline tokens:
    text, strong, emphasis, codespan, strikethrough, link, image,
    softbreak, linebreak, html_inline

Bare URLs are deliberately not autolinked: a URL typed as plain text stays
plain text, so it compares equal to the remote copy on the next sync.
"""

from __future__ import annotations

import mistune

# mistune name -> canonical name, for the few tokens that differ.
_RENAMES: dict[str, str] = {
    "block_html": "html_block",
    "block_text": "paragraph",
    "inline_html": "html_inline",
    "raw": "text",
}

_CONTAINERS: frozenset[str] = frozenset({
    "heading", "paragraph", "block_quote", "list", "list_item",
    "task_list_item", "strong", "emphasis", "strikethrough", "link", "image",
})

# Leaves carrying their source text in "raw".
_LEAVES: frozenset[str] = frozenset({
    "block_code", "html_block", "text", "codespan", "html_inline",
})

# Leaves with nothing to carry.
_MARKERS: frozenset[str] = frozenset({"thematic_break", "softbreak", "linebreak"})

# Leaves whose mistune attrs are kept.
_LEAF_ATTRS: frozenset[str] = frozenset({"block_code", "html_block", "thematic_break"})


def _canonical(token: dict) -> str | None:
    kind = token.get("type", "")
    kind = _RENAMES.get(kind, kind)
    if kind in _CONTAINERS or kind in _LEAVES or kind in _MARKERS:
        return kind
    return None


def _normalize(tokens: list[dict]) -> list[dict]:
    out: list[dict] = []
    for token in tokens:
        kind = _canonical(token)
        # blank_line and anything the block builder cannot use
        if kind is None:
            continue
        node: dict = {"type": kind}
        attrs = token.get("attrs")
        if attrs and (kind in _CONTAINERS or kind in _LEAF_ATTRS):
            node["attrs"] = dict(attrs)
        if kind in _LEAVES:
            raw = token.get("raw", "")
            # mistune keeps the newline before the closing fence
            if kind == "block_code" and raw.endswith("\n"):
                raw = raw[:-1]
            node["raw"] = raw
        elif kind in _CONTAINERS and token.get("children"):
            node["children"] = _normalize(token["children"])
        out.append(node)
    return out


class ASTNormalizer:
    """Parse Markdown and return canonical AST tokens."""

    def __init__(self) -> None:
        self._parser = mistune.create_markdown(
            renderer="ast",
            plugins=["strikethrough", "task_lists"],
        )

    def parse(self, markdown: str) -> list[dict]:
        tokens = self._parser(markdown)
        if isinstance(tokens, str):
            return []
        return _normalize(tokens)
