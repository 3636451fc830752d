"""Database API wrappers for the Notion API.

Provides :class:`DatabaseAPI` (sync) and :class:`AsyncDatabaseAPI` (async)
around the ``/databases`` endpoints.  :meth:`DatabaseAPI.query` returns a
single result page; :meth:`DatabaseAPI.query_all` walks every page.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

from .cancel import CancelToken
from .transport import AsyncNotionTransport, NotionTransport


def _create_body(
    parent: dict[str, Any],
    title: list[dict[str, Any]],
    properties: dict[str, Any],
    icon: dict[str, Any] | None,
    cover: dict[str, Any] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "parent": parent,
        "title": title,
        "properties": properties,
    }
    if icon is not None:
        body["icon"] = icon
    if cover is not None:
        body["cover"] = cover
    return body


def _query_body(
    filter: dict[str, Any] | None,
    sorts: list[dict[str, Any]] | None,
    start_cursor: str | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if filter is not None:
        body["filter"] = filter
    if sorts is not None:
        body["sorts"] = sorts
    if start_cursor is not None:
        body["start_cursor"] = start_cursor
    if page_size is not None:
        body["page_size"] = page_size
    return body


class DatabaseAPI:
    """Synchronous wrapper for the Notion Databases API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(
        self,
        database_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Retrieve a database object, including its property schema."""
        return self._transport.request("GET", f"/databases/{database_id}", cancel=cancel)

    def create(
        self,
        parent: dict[str, Any],
        title: list[dict[str, Any]],
        properties: dict[str, Any],
        icon: dict[str, Any] | None = None,
        cover: dict[str, Any] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Create a database as a child of a page.

        Parameters
        ----------
        parent:
            ``{"type": "page_id", "page_id": "..."}``.
        title:
            Rich-text array for the database title.
        properties:
            Property schema, e.g. ``{"Name": {"title": {}}}``.
        icon, cover:
            Optional icon and cover objects.
        """
        return self._transport.request(
            "POST",
            "/databases",
            _create_body(parent, title, properties, icon, cover),
            cancel=cancel,
        )

    def query(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        start_cursor: str | None = None,
        page_size: int | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Query a database and return one page of results.

        Returns
        -------
        dict
            ``{"results": [...], "has_more": bool, "next_cursor": str | None}``.
        """
        return self._transport.request(
            "POST",
            f"/databases/{database_id}/query",
            _query_body(filter, sorts, start_cursor, page_size),
            cancel=cancel,
        )

    def query_all(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Iterate over every page matching the query, following cursors."""
        return self._transport.paginate(
            f"/databases/{database_id}/query",
            method="POST",
            body=_query_body(filter, sorts),
            cancel=cancel,
        )


class AsyncDatabaseAPI:
    """Asynchronous wrapper for the Notion Databases API.

    Mirrors :class:`DatabaseAPI` but all methods are coroutines, and
    :meth:`query_all` is an async iterator.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(
        self,
        database_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "GET", f"/databases/{database_id}", cancel=cancel,
        )

    async def create(
        self,
        parent: dict[str, Any],
        title: list[dict[str, Any]],
        properties: dict[str, Any],
        icon: dict[str, Any] | None = None,
        cover: dict[str, Any] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "POST",
            "/databases",
            _create_body(parent, title, properties, icon, cover),
            cancel=cancel,
        )

    async def query(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        start_cursor: str | None = None,
        page_size: int | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "POST",
            f"/databases/{database_id}/query",
            _query_body(filter, sorts, start_cursor, page_size),
            cancel=cancel,
        )

    def query_all(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Async-iterate over every page matching the query."""
        return self._transport.paginate(
            f"/databases/{database_id}/query",
            method="POST",
            body=_query_body(filter, sorts),
            cancel=cancel,
        )
