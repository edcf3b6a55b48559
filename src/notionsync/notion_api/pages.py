"""Thin wrappers around the ``/pages`` and ``/databases`` endpoints."""

from __future__ import annotations

from typing import Any

from .transport import NotionTransport


def title_property(title: str, name: str = "Name") -> dict[str, Any]:
    """Properties object that sets the collection's title column."""
    return {name: {"title": [{"text": {"content": title}}]}}


class PageAPI:
    """Synchronous wrapper for the Pages and Databases APIs.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create a new page.

        Parameters
        ----------
        parent:
            Parent object, e.g. ``{"database_id": "..."}``.
        properties:
            Page properties; see :func:`title_property`.
        children:
            Optional initial content, at most 100 blocks.

        Returns
        -------
        dict
            The created page object.
        """
        body: dict[str, Any] = {
            "parent": parent,
            "properties": properties,
        }
        if children is not None:
            body["children"] = children
        return self._transport.request("POST", "/pages", json=body)

    def retrieve(self, page_id: str) -> dict[str, Any]:
        return self._transport.request("GET", f"/pages/{page_id}")

    def update(
        self,
        page_id: str,
        properties: dict[str, Any] | None = None,
        archived: bool | None = None,
    ) -> dict[str, Any]:
        """Update a page's properties or archive flag.

        ``archived=True`` is how pages are deleted.
        """
        body: dict[str, Any] = {}
        if properties is not None:
            body["properties"] = properties
        if archived is not None:
            body["archived"] = archived
        return self._transport.request("PATCH", f"/pages/{page_id}", json=body)

    def query_database(
        self,
        database_id: str,
        page_size: int = 10,
        start_cursor: str | None = None,
        filter: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Fetch one page of a collection query.

        Returns
        -------
        dict
            The raw list response with ``results``, ``has_more`` and
            ``next_cursor``.
        """
        body: dict[str, Any] = {"page_size": page_size}
        if filter is not None:
            body["filter"] = filter
        return self._transport.request(
            "POST",
            f"/databases/{database_id}/query",
            json=body,
            start_cursor=start_cursor,
        )
