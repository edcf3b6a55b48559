"""Build rich_text arrays from normalized inline tokens.

A text span looks like::

    {
        "type": "text",
        "text": {"content": "hello", "link": {"url": "https://..."}},
        "annotations": {"bold": true, "italic": false, "strikethrough": false,
                        "underline": false, "code": false, "color": "default"}
    }

``link`` is present only for linked text and ``annotations`` only when a
flag is set.
"""

from __future__ import annotations

from notionsync.utils.limits import RICH_TEXT_LIMIT, split_string


def _default_annotations() -> dict:
    return {
        "bold": False,
        "italic": False,
        "strikethrough": False,
        "underline": False,
        "code": False,
        "color": "default",
    }


def _with_flag(base: dict, flag: str) -> dict:
    merged = dict(base)
    merged[flag] = True
    return merged


_WRAPPER_FLAGS: dict[str, str] = {
    "strong": "bold",
    "emphasis": "italic",
    "strikethrough": "strikethrough",
}


def build_rich_text(
    children: list[dict],
    *,
    annotations: dict | None = None,
    link: str | None = None,
) -> list[dict]:
    """Convert inline tokens to a rich_text array.

    Parameters
    ----------
    children:
        Normalized inline tokens.
    annotations:
        Flags inherited from enclosing ``strong``/``emphasis`` nodes.
    link:
        URL inherited from an enclosing ``link`` node.

    Returns
    -------
    list[dict]
        Text spans in order. Inline images degrade to ``alt`` text and raw
        inline HTML is kept as literal text.
    """
    if annotations is None:
        annotations = _default_annotations()

    segments: list[dict] = []
    for token in children:
        token_type = token.get("type", "")

        if token_type in ("text", "html_inline"):
            raw = token.get("raw", "")
            if raw:
                segments.append(_make_text_segment(raw, annotations, link))

        elif token_type in _WRAPPER_FLAGS:
            segments.extend(build_rich_text(
                token.get("children", []),
                annotations=_with_flag(annotations, _WRAPPER_FLAGS[token_type]),
                link=link,
            ))

        elif token_type == "codespan":
            raw = token.get("raw", "")
            if raw:
                segments.append(_make_text_segment(raw, _with_flag(annotations, "code"), link))

        elif token_type == "link":
            url = token.get("attrs", {}).get("url", "") or None
            segments.extend(build_rich_text(
                token.get("children", []), annotations=annotations, link=url,
            ))

        elif token_type == "image":
            alt = extract_text(token.get("children", []))
            text = alt or token.get("attrs", {}).get("url", "")
            if text:
                segments.append(_make_text_segment(text, annotations, link))

        elif token_type in ("softbreak", "linebreak"):
            segments.append(_make_text_segment("\n", annotations, link))

    return segments


def split_rich_text(segments: list[dict], limit: int = RICH_TEXT_LIMIT) -> list[dict]:
    """Split spans longer than *limit* characters, keeping their style."""
    output: list[dict] = []
    for segment in segments:
        content = segment.get("text", {}).get("content", "")
        if len(content) <= limit:
            output.append(segment)
            continue
        for chunk in split_string(content, limit):
            output.append(_clone_text_segment(segment, chunk))
    return output


def plain_segment(content: str) -> list[dict]:
    """A rich_text array holding *content* unstyled, split at the limit."""
    return split_rich_text([_make_text_segment(content, _default_annotations())]) if content else []


def extract_text(children: list[dict]) -> str:
    """Recursively extract plain text from inline tokens."""
    parts: list[str] = []
    for token in children:
        if "children" in token:
            parts.append(extract_text(token["children"]))
        elif "raw" in token:
            parts.append(token["raw"])
    return "".join(parts)


def _make_text_segment(content: str, annotations: dict, link: str | None = None) -> dict:
    text: dict = {"content": content}
    if link:
        text["link"] = {"url": link}
    seg: dict = {"type": "text", "text": text}
    if any(annotations.get(k) for k in ("bold", "italic", "strikethrough", "underline", "code")):
        seg["annotations"] = dict(annotations)
    return seg


def _clone_text_segment(segment: dict, new_content: str) -> dict:
    text = dict(segment.get("text", {}))
    text["content"] = new_content
    new_seg: dict = {"type": "text", "text": text}
    if "annotations" in segment:
        new_seg["annotations"] = dict(segment["annotations"])
    return new_seg
