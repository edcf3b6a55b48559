"""Block list to Markdown renderer.

The inverse of :class:`MarkdownToBlocksConverter`: rendering a page's blocks
and parsing the result back yields blocks with the same comparable strings,
so an unedited document syncs as all no-ops.

Layout rules:

- headings, paragraphs, code and images are followed by one blank line
- consecutive list items (bulleted, numbered, to-do) are written without
  blank lines; a nested item is indented under its parent when the parent
  is a list item too
- blocks outside the closed set, and empty paragraphs, become
  ``<!-- notion:TYPE -->`` markers that parse back as placeholders
"""

from __future__ import annotations

import re

from notionsync.models import SUPPORTED_BLOCK_TYPES, Block, BlockType

from .block_builder import DEFAULT_LANGUAGE
from .inline_renderer import markdown_escape, plain_text, render_rich_text

_LIST_TYPES: frozenset[str] = frozenset({
    BlockType.BULLETED_LIST_ITEM.value,
    BlockType.NUMBERED_LIST_ITEM.value,
    BlockType.TO_DO.value,
})

# Characters that would open a block construct at the start of a line.
_LINE_START_RE = re.compile(r"^([ \t]*)([#>+=<-])", re.MULTILINE)
_LINE_START_ORDERED_RE = re.compile(r"^([ \t]*\d+)([.)])", re.MULTILINE)
_BACKTICK_RUN_RE = re.compile(r"`+")


def placeholder_marker(block_type: str) -> str:
    return f"<!-- notion:{block_type} -->"


def escape_block_starts(text: str) -> str:
    """Backslash-escape characters that would start a heading, list,
    quote, setext underline or HTML block at the start of any line."""
    text = _LINE_START_RE.sub(r"\1\\\2", text)
    return _LINE_START_ORDERED_RE.sub(r"\1\\\2", text)


def _code_fence(code: str) -> str:
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    return "`" * max(3, longest + 1)


def _image_url(url: str) -> str:
    if any(ch in url for ch in "() <>"):
        return f"<{url.replace('<', '%3C').replace('>', '%3E')}>"
    return url


class BlocksToMarkdownRenderer:
    """Render flat block lists (as returned by the block store) to Markdown."""

    def render(self, blocks: list[Block]) -> str:
        return "\n".join(self.render_lines(blocks))

    def render_lines(self, blocks: list[Block]) -> list[str]:
        """Render *blocks* to Markdown lines, without trailing newlines."""
        lines: list[str] = []
        # block id -> indentation of that list item's children
        indents: dict[str, str] = {}
        numbers: dict[str | None, int] = {}
        top_list_type: str | None = None
        in_list = False

        for block in blocks:
            if block.type in _LIST_TYPES and not block.placeholder and block.payload:
                parent_indent = indents.get(block.parent_id) if block.parent_id else None
                key = block.parent_id if parent_indent is not None else None
                if parent_indent is None:
                    parent_indent = ""
                    if in_list and top_list_type != block.type:
                        lines.append("")
                        numbers.clear()
                    top_list_type = block.type

                if block.type == BlockType.NUMBERED_LIST_ITEM:
                    number = numbers.get(key, 0) + 1
                    numbers[key] = number
                    marker = f"{number}. "
                else:
                    numbers.pop(key, None)
                    marker = "- "
                text = escape_block_starts(render_rich_text(block.payload.get("rich_text") or []))
                if block.type == BlockType.TO_DO:
                    text = ("[x] " if block.payload.get("checked") else "[ ] ") + text

                continuation = parent_indent + " " * len(marker)
                first, *rest = text.split("\n")
                lines.append(f"{parent_indent}{marker}{first}".rstrip())
                lines.extend(f"{continuation}{line}" for line in rest)
                if block.id:
                    indents[block.id] = continuation
                in_list = True
                continue

            if in_list:
                lines.append("")
                indents.clear()
                numbers.clear()
                top_list_type = None
                in_list = False
            lines.extend(self._render_block(block))
            lines.append("")

        while lines and not lines[-1]:
            lines.pop()
        return lines

    # ------------------------------------------------------------------
    # Block type renderers
    # ------------------------------------------------------------------

    def _render_block(self, block: Block) -> list[str]:
        if block.placeholder or block.type not in SUPPORTED_BLOCK_TYPES or not block.payload:
            return [placeholder_marker(block.type)]
        if block.type.startswith("heading_"):
            return [self._render_heading(block)]
        if block.type == BlockType.CODE:
            return self._render_code(block)
        if block.type == BlockType.IMAGE:
            return [self._render_image(block)]
        return self._render_paragraph(block)

    def _render_heading(self, block: Block) -> str:
        level = int(block.type[-1])
        text = render_rich_text(block.payload.get("rich_text") or []).replace("\n", " ")
        # A trailing run of "#" would be read as a closing sequence
        if text.endswith("#"):
            text = text[:-1] + "\\#"
        return f"{'#' * level} {text}".rstrip()

    def _render_paragraph(self, block: Block) -> list[str]:
        spans = block.payload.get("rich_text") or []
        if not plain_text(spans):
            return [placeholder_marker(block.type)]
        return escape_block_starts(render_rich_text(spans)).split("\n")

    def _render_code(self, block: Block) -> list[str]:
        language = block.payload.get("language") or ""
        if language == DEFAULT_LANGUAGE:
            language = ""
        code = plain_text(block.payload.get("rich_text") or [])
        fence = _code_fence(code)
        return [f"{fence}{language}", *code.split("\n"), fence]

    def _render_image(self, block: Block) -> str:
        payload = block.payload
        kind = payload.get("type")
        source = payload.get(kind) if isinstance(kind, str) else None
        url = str(source.get("url") or "") if isinstance(source, dict) else ""
        if not url:
            return placeholder_marker(block.type)
        caption = markdown_escape(plain_text(payload.get("caption") or []).replace("\n", " "))
        return f"![{caption}]({_image_url(url)})"
