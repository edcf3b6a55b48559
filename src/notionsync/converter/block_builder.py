"""Convert normalized AST tokens to :class:`Block` objects.

Only the closed block set is produced:

- heading (levels 1-3 map to heading_1/2/3; deeper levels clamp to heading_3)
- paragraph -> paragraph with rich_text
- list -> bulleted_list_item / numbered_list_item, nested items flattened
  after their parent
- task_list_item -> to_do with checked state
- block_code -> code with a normalized language
- paragraph holding a single image -> external image, alt text as caption
- html_block ``<!-- notion:TYPE -->`` -> opaque placeholder of TYPE

Block quotes contribute their children, thematic breaks and other HTML are
skipped; each of these records a :class:`ConversionWarning`.
"""

from __future__ import annotations

import re
from collections.abc import Callable as _Callable

from notionsync.converter.rich_text import (
    build_rich_text,
    extract_text,
    plain_segment,
    split_rich_text,
)
from notionsync.models import Block, BlockType, ConversionWarning

# ---------------------------------------------------------------------------
# Code language mapping
# ---------------------------------------------------------------------------

_NOTION_LANGUAGES: frozenset[str] = frozenset({
    "abap", "arduino", "bash", "basic", "c", "clojure", "coffeescript",
    "c++", "c#", "css", "dart", "diff", "docker", "elixir", "elm",
    "erlang", "flow", "fortran", "f#", "gherkin", "glsl", "go", "graphql",
    "groovy", "haskell", "html", "java", "javascript", "json", "julia",
    "kotlin", "latex", "less", "lisp", "livescript", "lua", "makefile",
    "markdown", "markup", "matlab", "mermaid", "nix", "objective-c",
    "ocaml", "pascal", "perl", "php", "plain text", "powershell",
    "prolog", "protobuf", "python", "r", "reason", "ruby", "rust",
    "sass", "scala", "scheme", "scss", "shell", "sql", "swift",
    "typescript", "vb.net", "verilog", "vhdl", "visual basic",
    "webassembly", "xml", "yaml", "java/c/c++/c#",
})

_LANGUAGE_ALIASES: dict[str, str] = {
    "py": "python",
    "js": "javascript",
    "ts": "typescript",
    "sh": "shell",
    "zsh": "shell",
    "rb": "ruby",
    "rs": "rust",
    "yml": "yaml",
    "md": "markdown",
    "cs": "c#",
    "cpp": "c++",
    "objc": "objective-c",
    "dockerfile": "docker",
    "make": "makefile",
    "tex": "latex",
    "jsx": "javascript",
    "tsx": "typescript",
    "golang": "go",
    "kt": "kotlin",
    "ps1": "powershell",
    "text": "plain text",
    "txt": "plain text",
}

DEFAULT_LANGUAGE = "plain text"


def normalize_language(info: str | None) -> str:
    """Map a code fence info string to a remote language name."""
    if not info:
        return DEFAULT_LANGUAGE
    lang = info.strip().lower()
    # Multi-word names such as "visual basic" must match whole
    if lang in _NOTION_LANGUAGES:
        return lang
    lang = lang.split()[0] if lang else DEFAULT_LANGUAGE
    if lang in _NOTION_LANGUAGES:
        return lang
    if lang in _LANGUAGE_ALIASES:
        return _LANGUAGE_ALIASES[lang]
    # "python3" -> "python"
    stripped = re.sub(r"\d+$", "", lang)
    if stripped in _NOTION_LANGUAGES:
        return stripped
    return _LANGUAGE_ALIASES.get(stripped, DEFAULT_LANGUAGE)


PLACEHOLDER_RE = re.compile(r"^\s*<!--\s*notion:([a-z0-9_]+)\s*-->\s*$")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_blocks(tokens: list[dict]) -> tuple[list[Block], list[ConversionWarning]]:
    """Convert normalized AST tokens to blocks.

    Parameters
    ----------
    tokens:
        Canonical AST tokens from :class:`ASTNormalizer`.

    Returns
    -------
    tuple[list[Block], list[ConversionWarning]]
        (blocks, warnings). Blocks are flat and in document order.
    """
    ctx = _BuildContext()
    _process_tokens(tokens, ctx)
    return ctx.blocks, ctx.warnings


class _BuildContext:
    """Mutable accumulator for the block building pass."""

    __slots__ = ("blocks", "warnings")

    def __init__(self) -> None:
        self.blocks: list[Block] = []
        self.warnings: list[ConversionWarning] = []

    def add_block(self, block: Block) -> None:
        self.blocks.append(block)

    def add_warning(self, code: str, message: str, **context: object) -> None:
        self.warnings.append(ConversionWarning(
            code=code, message=message, context=dict(context),
        ))


# ---------------------------------------------------------------------------
# Token dispatch
# ---------------------------------------------------------------------------

def _process_tokens(tokens: list[dict], ctx: _BuildContext) -> None:
    for token in tokens:
        _process_token(token, ctx)


def _process_token(token: dict, ctx: _BuildContext) -> None:
    token_type = token.get("type", "")
    handler = _BLOCK_HANDLERS.get(token_type)
    if handler is not None:
        handler(token, ctx)
    elif token_type:
        ctx.add_warning(
            "UNKNOWN_TOKEN",
            f"Unknown token type '{token_type}' was skipped.",
        )


# ---------------------------------------------------------------------------
# Block builders
# ---------------------------------------------------------------------------

def _text_payload(children: list[dict]) -> dict:
    return {"rich_text": split_rich_text(build_rich_text(children)), "color": "default"}


def _build_heading(token: dict, ctx: _BuildContext) -> None:
    level = min(max(int(token.get("attrs", {}).get("level", 1)), 1), 3)
    ctx.add_block(Block(f"heading_{level}", _text_payload(token.get("children", []))))


def _build_paragraph(token: dict, ctx: _BuildContext) -> None:
    """Build a paragraph, or an image block for a lone image."""
    children = token.get("children", [])

    if len(children) == 1 and children[0].get("type") == "image":
        _build_image_block(children[0], ctx)
        return

    payload = _text_payload(children)
    # No empty paragraphs
    if payload["rich_text"]:
        ctx.add_block(Block(BlockType.PARAGRAPH.value, payload))


def _build_block_quote(token: dict, ctx: _BuildContext) -> None:
    ctx.add_warning(
        "BLOCK_QUOTE_FLATTENED",
        "Block quote is not supported; its content was kept as plain blocks.",
    )
    _process_tokens(token.get("children", []), ctx)


def _build_list(token: dict, ctx: _BuildContext) -> None:
    """Emit one block per item; nested items follow their parent item."""
    ordered = bool(token.get("attrs", {}).get("ordered", False))
    for item in token.get("children", []):
        item_type = item.get("type", "")
        if item_type == "task_list_item":
            checked = bool(item.get("attrs", {}).get("checked", False))
            _build_item(item, BlockType.TO_DO.value, ctx, checked=checked)
        elif item_type == "list_item":
            block_type = (
                BlockType.NUMBERED_LIST_ITEM if ordered else BlockType.BULLETED_LIST_ITEM
            ).value
            _build_item(item, block_type, ctx)


def _build_item(
    token: dict,
    block_type: str,
    ctx: _BuildContext,
    checked: bool | None = None,
) -> None:
    inline: list[dict] = []
    nested: list[dict] = []
    for child in token.get("children", []):
        if child.get("type") == "paragraph" and not nested:
            if inline:
                inline.append({"type": "softbreak"})
            inline.extend(child.get("children", []))
        else:
            nested.append(child)

    payload = _text_payload(inline)
    if checked is not None:
        payload["checked"] = checked
    ctx.add_block(Block(block_type, payload))
    _process_tokens(nested, ctx)


def _build_code_block(token: dict, ctx: _BuildContext) -> None:
    info = token.get("attrs", {}).get("info")
    ctx.add_block(Block(BlockType.CODE.value, {
        "rich_text": plain_segment(token.get("raw", "")),
        "language": normalize_language(info),
    }))


def _build_image_block(token: dict, ctx: _BuildContext) -> None:
    url = token.get("attrs", {}).get("url", "")
    if not url:
        ctx.add_warning("IMAGE_SKIPPED", "Image without a source was skipped.")
        return
    alt_text = extract_text(token.get("children", []))
    ctx.add_block(Block(BlockType.IMAGE.value, {
        "type": "external",
        "external": {"url": url},
        "caption": plain_segment(alt_text),
    }))


def _skip_thematic_break(token: dict, ctx: _BuildContext) -> None:
    ctx.add_warning("DIVIDER_SKIPPED", "Thematic break was skipped.")


def _handle_html_block(token: dict, ctx: _BuildContext) -> None:
    """Turn a ``notion:TYPE`` marker into a placeholder; skip other HTML.

    ``notion:paragraph`` marks an empty paragraph, which the remote accepts,
    so it becomes a real block rather than a placeholder.
    """
    raw = token.get("raw", "")
    match = PLACEHOLDER_RE.match(raw)
    if match:
        block_type = match.group(1)
        if block_type == BlockType.PARAGRAPH:
            ctx.add_block(Block(block_type, {"rich_text": []}))
        else:
            ctx.add_block(Block(block_type, {}, placeholder=True))
        return
    ctx.add_warning(
        "HTML_BLOCK_SKIPPED",
        "HTML block was skipped.",
        raw=raw[:200],
    )


# ---------------------------------------------------------------------------
# Block handler dispatch table
# ---------------------------------------------------------------------------

_BlockHandler = _Callable[[dict, _BuildContext], None]

_BLOCK_HANDLERS: dict[str, _BlockHandler] = {
    "heading": _build_heading,
    "paragraph": _build_paragraph,
    "block_quote": _build_block_quote,
    "list": _build_list,
    "block_code": _build_code_block,
    "thematic_break": _skip_thematic_break,
    "html_block": _handle_html_block,
}
