"""Markdown-to-block conversion pipeline.

:class:`MarkdownToBlocksConverter` runs two stages:

1. **Parse and normalize**: mistune parses the text, :class:`ASTNormalizer`
   maps token types to canonical names.
2. **Build**: :func:`build_blocks` turns the tokens into :class:`Block`
   objects and collects :class:`ConversionWarning` along the way.
"""

from __future__ import annotations

from notionsync.converter.ast_normalizer import ASTNormalizer
from notionsync.converter.block_builder import build_blocks
from notionsync.models import Block, ConversionWarning
from notionsync.observability import get_logger

log = get_logger("notionsync.converter")


class MarkdownToBlocksConverter:
    """Convert Markdown text to desired blocks.

    Warnings from the latest call are kept in :attr:`last_warnings`.

    Examples
    --------
    >>> blocks = MarkdownToBlocksConverter().convert("# Hello\\n\\nWorld")
    >>> [b.type for b in blocks]
    ['heading_1', 'paragraph']
    """

    def __init__(self) -> None:
        self._normalizer = ASTNormalizer()
        self.last_warnings: list[ConversionWarning] = []

    def convert(self, markdown: str) -> list[Block]:
        tokens = self._normalizer.parse(markdown)
        blocks, warnings = build_blocks(tokens)
        self.last_warnings = warnings
        for warning in warnings:
            log.debug(
                warning.message,
                extra={"extra_fields": {"code": warning.code, **warning.context}},
            )
        return blocks

    def convert_lines(self, lines: list[str]) -> list[Block]:
        """Convert a document given as a list of lines (no trailing newlines)."""
        return self.convert("\n".join(lines))
