"""Markdown ↔ block conversion.

Public API:

- :class:`MarkdownToBlocksConverter`: Markdown lines -> desired blocks.
- :class:`BlocksToMarkdownRenderer`: blocks -> Markdown lines.
- :func:`render_rich_text`: rich_text array -> inline Markdown, shared with
  the diff engine's comparable strings.
"""

from notionsync.converter.ast_normalizer import ASTNormalizer
from notionsync.converter.block_builder import build_blocks, normalize_language
from notionsync.converter.blocks_to_md import BlocksToMarkdownRenderer
from notionsync.converter.inline_renderer import plain_text, render_rich_text
from notionsync.converter.md_to_blocks import MarkdownToBlocksConverter
from notionsync.converter.rich_text import build_rich_text, split_rich_text

__all__ = [
    "ASTNormalizer",
    "BlocksToMarkdownRenderer",
    "MarkdownToBlocksConverter",
    "build_blocks",
    "build_rich_text",
    "normalize_language",
    "plain_text",
    "render_rich_text",
    "split_rich_text",
]
