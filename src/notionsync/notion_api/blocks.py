"""Thin wrapper around the ``/blocks`` endpoints.

Every method is a single remote call; pagination across pages and nested
children is the block store's job.
"""

from __future__ import annotations

from typing import Any

from .transport import NotionTransport


def extract_block_ids(response: dict[str, Any]) -> list[str]:
    """Return the ``id`` of each block in an append-children response."""
    results = response.get("results", [])
    return [r["id"] for r in results if isinstance(r, dict) and "id" in r]


class BlockAPI:
    """Synchronous wrapper for the Blocks API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def list_children(
        self,
        block_id: str,
        start_cursor: str | None = None,
        page_size: int = 100,
    ) -> dict[str, Any]:
        """Fetch one page of children of a block or page.

        Returns
        -------
        dict
            The raw list response with ``results``, ``has_more`` and
            ``next_cursor``.
        """
        return self._transport.request(
            "GET",
            f"/blocks/{block_id}/children",
            params={"page_size": page_size},
            start_cursor=start_cursor,
        )

    def update(self, block_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Replace a block's content.

        Parameters
        ----------
        block_id:
            The block to update.
        payload:
            ``{block_type: {...}}``. Only the fields present are modified.
        """
        return self._transport.request("PATCH", f"/blocks/{block_id}", json=payload)

    def delete(self, block_id: str) -> dict[str, Any]:
        return self._transport.request("DELETE", f"/blocks/{block_id}")

    def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
    ) -> dict[str, Any]:
        """Insert child blocks into a parent block or page.

        Parameters
        ----------
        block_id:
            The parent block (or page).
        children:
            Block creation payloads, at most 100 per call.
        after:
            Existing child after which the new children are placed. When
            ``None`` they are appended at the end.

        Returns
        -------
        dict
            The API response; ``results`` lists the created blocks in order.
        """
        body: dict[str, Any] = {"children": children}
        if after is not None:
            body["after"] = after
        return self._transport.request(
            "PATCH", f"/blocks/{block_id}/children", json=body
        )
