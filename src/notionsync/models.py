"""Data models shared across notionsync.

All types are plain dataclasses. :class:`Block` is the only one with
behaviour beyond structural equality: it converts to and from the remote
block JSON shape.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """The closed set of block types the sync engine understands."""

    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    PARAGRAPH = "paragraph"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    CODE = "code"
    IMAGE = "image"


SUPPORTED_BLOCK_TYPES: frozenset[str] = frozenset(t.value for t in BlockType)


class DiffOpType(str, Enum):
    """Remote write operations emitted by the diff engine."""

    UPDATE = "update"
    """Same block type, content changed: PATCH the block in place."""

    DELETE = "delete"
    """An existing block with no counterpart in the desired sequence."""

    INSERT = "insert"
    """A batch of new blocks placed after an anchor."""


class SyncStatus(str, Enum):
    """Outcome of one sync invocation."""

    SUCCESS = "success"
    PARTIAL = "partial"
    """At least one operation failed; the others were still applied."""

    NOTHING_TO_SYNC = "nothing_to_sync"
    """The local content produced no blocks; no remote call was made."""


# ---------------------------------------------------------------------------
# Conversion warnings
# ---------------------------------------------------------------------------

@dataclass
class ConversionWarning:
    """A non-fatal issue met while converting markdown to blocks.

    Attributes
    ----------
    code:
        Machine-readable code, e.g. ``"HTML_BLOCK_SKIPPED"``.
    message:
        Human-readable description.
    context:
        Structured diagnostic data.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

@dataclass
class Block:
    """A typed unit of document content.

    Attributes
    ----------
    type:
        Block type tag, e.g. ``"paragraph"``. Types outside
        :class:`BlockType` are carried through untouched.
    payload:
        The type-specific object found under ``block[type]`` in the remote
        JSON (``rich_text``, ``checked``, ``language``, ``caption``...).
    id:
        Remote block id. ``None`` for freshly authored blocks.
    has_children:
        Whether the remote block declares nested children.
    placeholder:
        ``True`` for a block that stands in for remote content of an
        unsupported type. Placeholders are never sent to the remote.
    parent_id:
        For a nested block inlined by the block store, the id of the
        block that contains it. ``None`` for top-level blocks.
    """

    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    has_children: bool = False
    placeholder: bool = False
    parent_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Block:
        """Build a :class:`Block` from a remote block object."""
        block_type = str(data.get("type", ""))
        payload = data.get(block_type)
        if not isinstance(payload, dict):
            payload = {}
        return cls(
            type=block_type,
            payload=payload,
            id=data.get("id"),
            has_children=bool(data.get("has_children", False)),
        )

    def to_api(self) -> dict[str, Any]:
        """Return the creation payload for this block (no ``id``)."""
        return {
            "object": "block",
            "type": self.type,
            self.type: copy.deepcopy(self.payload),
        }

    @property
    def is_supported(self) -> bool:
        return self.type in SUPPORTED_BLOCK_TYPES


# ---------------------------------------------------------------------------
# Diff engine types
# ---------------------------------------------------------------------------

@dataclass
class BlockUpdate:
    """Replace the content of ``block_id`` in place with ``block``'s payload."""

    block_id: str
    block: Block


@dataclass
class BlockDelete:
    block_id: str


@dataclass
class BlockInsert:
    """Insert ``children`` in order immediately after ``after``.

    ``after`` is ``None`` for start-of-document. ``parent`` is the block
    whose children ``after`` belongs to, or ``None`` for the page itself.
    """

    children: list[Block]
    after: str | None = None
    parent: str | None = None


@dataclass
class DiffOperations:
    """Result of reconciling an existing sequence with a desired one."""

    updates: list[BlockUpdate] = field(default_factory=list)
    deletes: list[BlockDelete] = field(default_factory=list)
    inserts: list[BlockInsert] = field(default_factory=list)
    noops: int = 0

    @property
    def insert_count(self) -> int:
        """Total number of blocks across every insert batch."""
        return sum(len(batch.children) for batch in self.inserts)

    @property
    def is_empty(self) -> bool:
        return not (self.updates or self.deletes or self.inserts)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

DEFAULT_TITLE = "Untitled"
TITLE_PROPERTY = "Name"


def _title_from_properties(properties: dict[str, Any]) -> str:
    prop = properties.get(TITLE_PROPERTY)
    if not (isinstance(prop, dict) and prop.get("type", "title") == "title"):
        prop = next(
            (p for p in properties.values() if isinstance(p, dict) and p.get("type") == "title"),
            None,
        )
    if prop is None:
        return DEFAULT_TITLE
    parts: list[str] = []
    for segment in prop.get("title") or []:
        text = segment.get("plain_text")
        if text is None:
            text = (segment.get("text") or {}).get("content", "")
        parts.append(text)
    title = "".join(parts)
    return title or DEFAULT_TITLE


@dataclass(frozen=True)
class PageMetadata:
    """Identity and timestamps of a remote page, as fetched."""

    id: str
    title: str = DEFAULT_TITLE
    url: str = ""
    created_time: str = ""
    last_edited_time: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PageMetadata:
        return cls(
            id=str(data.get("id", "")),
            title=_title_from_properties(data.get("properties") or {}),
            url=str(data.get("url", "")),
            created_time=str(data.get("created_time", "")),
            last_edited_time=str(data.get("last_edited_time", "")),
        )


@dataclass
class LoadedPage:
    """A page ready for local editing.

    Attributes
    ----------
    metadata:
        The page's metadata at load time. Pass
        ``metadata.last_edited_time`` back as ``base_last_edited`` to enable
        conflict detection on sync.
    blocks:
        The flattened block sequence as fetched.
    lines:
        The markdown rendering of *blocks*.
    """

    metadata: PageMetadata
    blocks: list[Block]
    lines: list[str]


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

@dataclass
class SyncState:
    """Per-page sync bookkeeping. Lives only in process memory."""

    in_progress: bool = False
    last_sync_time: float | None = None


@dataclass
class OperationFailure:
    """One remote write that did not apply.

    Attributes
    ----------
    op_type:
        Which kind of operation failed.
    target:
        Block id for updates and deletes; the anchor id (or ``None``) for
        inserts.
    error_code:
        The :class:`~notionsync.errors.ErrorCode` of the failure.
    message:
        Sanitized error message.
    block_count:
        Number of blocks the failed operation carried.
    """

    op_type: DiffOpType
    target: str | None
    error_code: str
    message: str
    block_count: int = 1


@dataclass
class SyncResult:
    """Outcome of :meth:`SyncOrchestrator.sync`.

    ``strategy`` is ``"diff"`` when the planned operations were applied and
    ``"rewrite"`` when the page was cleared and rewritten.
    """

    page_id: str
    status: SyncStatus
    strategy: str = "diff"
    updates: int = 0
    deletes: int = 0
    inserts: int = 0
    noops: int = 0
    failures: list[OperationFailure] = field(default_factory=list)
    debug: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures
