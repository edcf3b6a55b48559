"""Small helpers: API size limits and credential redaction."""

from .limits import APPEND_LIMIT, RICH_TEXT_LIMIT, chunk_children, split_string
from .redact import REDACTION_MARKER, redact, sanitize_message

__all__ = [
    "APPEND_LIMIT",
    "REDACTION_MARKER",
    "RICH_TEXT_LIMIT",
    "chunk_children",
    "redact",
    "sanitize_message",
    "split_string",
]
