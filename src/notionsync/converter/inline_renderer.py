"""Inline rendering: rich_text arrays to Markdown strings.

The same rendering feeds both the Markdown renderer and the diff engine's
comparable strings, so it must be deterministic: two span lists that differ
in any style flag or link always render differently, and two span lists
that only differ in how the text is cut into spans render identically.

Annotation order, innermost first::

    code -> bold -> italic -> strikethrough -> link
"""

from __future__ import annotations

import re
from typing import Any

_ESCAPE_RE = re.compile(r"([\\`*_~\[\]])")


def markdown_escape(text: str, context: str = "inline") -> str:
    """Escape characters that would start inline Markdown syntax.

    Parameters
    ----------
    text:
        The raw text.
    context:
        ``"inline"`` escapes ``\\ ` * _ ~ [ ]``; ``"code"`` returns *text*
        unchanged; ``"url"`` percent-encodes parentheses.
    """
    if context == "code":
        return text
    if context == "url":
        return text.replace("(", "%28").replace(")", "%29")
    return _ESCAPE_RE.sub(r"\\\1", text)


def segment_text(segment: dict[str, Any]) -> str:
    """Plain text of one span.

    Locally built spans carry ``text.content``; remote spans also carry
    ``plain_text``, which is the only text for mentions and equations.
    """
    text = segment.get("text")
    if isinstance(text, dict) and "content" in text:
        return str(text.get("content") or "")
    return str(segment.get("plain_text") or "")


def segment_link(segment: dict[str, Any]) -> str | None:
    text = segment.get("text")
    if isinstance(text, dict):
        link = text.get("link")
        if isinstance(link, dict) and link.get("url"):
            return str(link["url"])
    href = segment.get("href")
    return str(href) if href else None


def _style_key(segment: dict[str, Any]) -> tuple:
    annotations = segment.get("annotations") or {}
    return (
        bool(annotations.get("code")),
        bool(annotations.get("bold")),
        bool(annotations.get("italic")),
        bool(annotations.get("strikethrough")),
        segment_link(segment),
    )


def merge_segments(segments: list[dict[str, Any]]) -> list[tuple[tuple, str]]:
    """Collapse adjacent spans with identical style into ``(style, text)`` runs."""
    runs: list[tuple[tuple, str]] = []
    for seg in segments or []:
        text = segment_text(seg)
        if not text:
            continue
        key = _style_key(seg)
        if runs and runs[-1][0] == key:
            runs[-1] = (key, runs[-1][1] + text)
        else:
            runs.append((key, text))
    return runs


def render_rich_text(segments: list[dict[str, Any]]) -> str:
    """Render a rich_text array to a Markdown string.

    Examples
    --------
    >>> render_rich_text([{"text": {"content": "hi"}, "annotations": {"bold": True}}])
    '**hi**'
    """
    parts: list[str] = []
    for (code, bold, italic, strike, link), text in merge_segments(segments):
        if code:
            fence = "``" if "`" in text else "`"
            pad = " " if text.startswith("`") or text.endswith("`") else ""
            out = f"{fence}{pad}{text}{pad}{fence}"
        else:
            out = markdown_escape(text)
        if bold:
            out = f"**{out}**"
        if italic:
            out = f"*{out}*"
        if strike:
            out = f"~~{out}~~"
        if link:
            out = f"[{out}]({markdown_escape(link, 'url')})"
        parts.append(out)
    return "".join(parts)


def plain_text(segments: list[dict[str, Any]]) -> str:
    """Concatenated text of *segments* with no markup."""
    return "".join(segment_text(seg) for seg in segments or [])
