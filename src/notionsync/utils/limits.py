"""Size limits imposed by the remote API, and helpers that respect them.

* A single text span carries at most :data:`RICH_TEXT_LIMIT` characters.
* One append request carries at most :data:`APPEND_LIMIT` child blocks.
"""

from __future__ import annotations

from typing import TypeVar

T = TypeVar("T")

RICH_TEXT_LIMIT = 2000
APPEND_LIMIT = 100


def _check_size(size: int, name: str) -> None:
    if size < 1:
        raise ValueError(f"{name} must be >= 1, got {size}")


def chunk_children(blocks: list[T], size: int = APPEND_LIMIT) -> list[list[T]]:
    """Partition *blocks* into consecutive batches for append requests.

    An empty list gives ``[]``, not ``[[]]``, so callers never send an empty
    append.

    Examples
    --------
    >>> [len(c) for c in chunk_children(list(range(250)))]
    [100, 100, 50]
    """
    _check_size(size, "size")
    batches: list[list[T]] = []
    for start in range(0, len(blocks), size):
        batches.append(blocks[start:start + size])
    return batches


def split_string(text: str, limit: int = RICH_TEXT_LIMIT) -> list[str]:
    """Cut *text* into pieces of at most *limit* code points.

    Slicing a ``str`` never splits a character, so multi-byte text is safe.

    >>> split_string("hello world", 5)
    ['hello', ' worl', 'd']
    """
    _check_size(limit, "limit")
    pieces: list[str] = []
    while text:
        pieces.append(text[:limit])
        text = text[limit:]
    return pieces
