"""Page API wrappers for the Notion API.

Provides :class:`PageAPI` (sync) and :class:`AsyncPageAPI` (async) thin
wrappers around the ``/pages`` endpoints.  Both delegate every HTTP concern
(auth, retries, rate limits, cancellation) to the transport they are built
with.
"""

from __future__ import annotations

from typing import Any

from .cancel import CancelToken
from .transport import AsyncNotionTransport, NotionTransport


def _update_body(
    properties: dict[str, Any] | None,
    archived: bool | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if properties is not None:
        body["properties"] = properties
    if archived is not None:
        body["archived"] = archived
    return body


class PageAPI:
    """Synchronous wrapper for the Notion Pages API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance, typically shared with
        the other resource APIs.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Create a new page.

        Parameters
        ----------
        parent:
            Parent object, e.g. ``{"page_id": "..."}`` or
            ``{"database_id": "..."}``.
        properties:
            Page properties.  Under another page the minimal shape is
            ``{"title": [{"text": {"content": "Page title"}}]}``.
        children:
            Optional block objects to add as page content (at most 100).
        cancel:
            Optional cancel token for the call.

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
        return self._transport.request("POST", "/pages", body, cancel=cancel)

    def retrieve(
        self,
        page_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Retrieve a page by its ID (with or without hyphens)."""
        return self._transport.request("GET", f"/pages/{page_id}", cancel=cancel)

    def update(
        self,
        page_id: str,
        properties: dict[str, Any] | None = None,
        archived: bool | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Update a page's properties or archive status.

        Only the properties given are changed.  ``archived=True`` moves the
        page to the trash, ``archived=False`` restores it.
        """
        return self._transport.request(
            "PATCH", f"/pages/{page_id}", _update_body(properties, archived), cancel=cancel,
        )

    def retrieve_property(
        self,
        page_id: str,
        property_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Retrieve a single page property item.

        Returns either a ``property_item`` object or, for paginated
        properties such as ``relation`` and ``rich_text``, a ``list`` of
        property items.
        """
        return self._transport.request(
            "GET", f"/pages/{page_id}/properties/{property_id}", cancel=cancel,
        )

    def retrieve_all_properties(
        self,
        page_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, dict[str, Any]]:
        """Retrieve every property of a page, one call per property.

        Returns
        -------
        dict
            Property item responses keyed by the property *name* as it
            appears in the page object.
        """
        page = self.retrieve(page_id, cancel=cancel)
        result: dict[str, dict[str, Any]] = {}
        for name, prop in page.get("properties", {}).items():
            property_id = prop.get("id", name) if isinstance(prop, dict) else name
            result[name] = self.retrieve_property(page_id, property_id, cancel=cancel)
        return result


class AsyncPageAPI:
    """Asynchronous wrapper for the Notion Pages API.

    Mirrors :class:`PageAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Create a new page (async).

        See :meth:`PageAPI.create` for parameter documentation.
        """
        body: dict[str, Any] = {
            "parent": parent,
            "properties": properties,
        }
        if children is not None:
            body["children"] = children
        return await self._transport.request("POST", "/pages", body, cancel=cancel)

    async def retrieve(
        self,
        page_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request("GET", f"/pages/{page_id}", cancel=cancel)

    async def update(
        self,
        page_id: str,
        properties: dict[str, Any] | None = None,
        archived: bool | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "PATCH", f"/pages/{page_id}", _update_body(properties, archived), cancel=cancel,
        )

    async def retrieve_property(
        self,
        page_id: str,
        property_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "GET", f"/pages/{page_id}/properties/{property_id}", cancel=cancel,
        )

    async def retrieve_all_properties(
        self,
        page_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, dict[str, Any]]:
        """Retrieve every property of a page (async).

        Properties are fetched one after the other, never concurrently, so
        a page with many properties does not burst the rate limit.
        """
        page = await self.retrieve(page_id, cancel=cancel)
        result: dict[str, dict[str, Any]] = {}
        for name, prop in page.get("properties", {}).items():
            property_id = prop.get("id", name) if isinstance(prop, dict) else name
            result[name] = await self.retrieve_property(page_id, property_id, cancel=cancel)
        return result
