"""Optimistic precondition for syncs.

A caller that remembers the page's ``last_edited_time`` from when its local
copy was loaded can ask the orchestrator to refuse the sync if the remote
page has been edited since.
"""

from __future__ import annotations

from datetime import datetime

from notionsync.errors import NotionSyncConflictError
from notionsync.models import PageMetadata


def parse_edited_time(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the API.

    Returns ``None`` for an empty or unparseable value.
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def detect_conflict(base_last_edited: str, current: PageMetadata) -> bool:
    """Return ``True`` if *current* was edited after *base_last_edited*.

    Timestamps are compared as instants when both parse and as strings
    otherwise.
    """
    base = parse_edited_time(base_last_edited)
    now = parse_edited_time(current.last_edited_time)
    if base is not None and now is not None:
        return base != now
    return base_last_edited != current.last_edited_time


def check_precondition(base_last_edited: str, current: PageMetadata) -> None:
    """Raise :class:`NotionSyncConflictError` when the page moved on."""
    if detect_conflict(base_last_edited, current):
        raise NotionSyncConflictError(
            message=(
                f"Page {current.id} was edited remotely at {current.last_edited_time}, "
                f"after the local copy was loaded ({base_last_edited})"
            ),
            context={
                "page_id": current.id,
                "expected": base_last_edited,
                "actual": current.last_edited_time,
            },
        )
