"""Search API wrapper and a fluent builder for search parameters.

Usage::

    params = (
        SearchBuilder()
        .query("roadmap")
        .filter_by_type("page")
        .sort_by("descending", "last_edited_time")
        .page_size(20)
        .build()
    )
    results = SearchAPI(transport).search(params)
"""

from __future__ import annotations

from typing import Any

from .cancel import CancelToken
from .transport import AsyncNotionTransport, NotionTransport

_OBJECT_TYPES = frozenset({"page", "database"})
_SORT_DIRECTIONS = frozenset({"ascending", "descending"})


class SearchBuilder:
    """Build the JSON body for ``POST /search``.

    Only the parts that were set end up in :meth:`build`'s result.
    """

    def __init__(self) -> None:
        self._params: dict[str, Any] = {}

    def query(self, text: str) -> SearchBuilder:
        self._params["query"] = text
        return self

    def filter_by_type(self, object_type: str) -> SearchBuilder:
        """Restrict results to ``"page"`` or ``"database"`` objects."""
        if object_type not in _OBJECT_TYPES:
            raise ValueError(
                f"object_type must be one of {sorted(_OBJECT_TYPES)}, got {object_type!r}"
            )
        self._params["filter"] = {"property": "object", "value": object_type}
        return self

    def sort_by(self, direction: str, timestamp: str = "last_edited_time") -> SearchBuilder:
        if direction not in _SORT_DIRECTIONS:
            raise ValueError(
                f"direction must be one of {sorted(_SORT_DIRECTIONS)}, got {direction!r}"
            )
        self._params["sort"] = {"direction": direction, "timestamp": timestamp}
        return self

    def page_size(self, size: int) -> SearchBuilder:
        if not 1 <= size <= 100:
            raise ValueError(f"page_size must be between 1 and 100, got {size}")
        self._params["page_size"] = size
        return self

    def start_cursor(self, cursor: str) -> SearchBuilder:
        self._params["start_cursor"] = cursor
        return self

    def build(self) -> dict[str, Any]:
        """Return a fresh copy of the accumulated parameters."""
        return {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in self._params.items()
        }


class SearchAPI:
    """Synchronous wrapper for ``POST /search``."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def search(
        self,
        params: dict[str, Any] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Run one search request and return one page of results.

        *params* is typically produced by :class:`SearchBuilder`.  An empty
        search returns every page and database shared with the integration.
        """
        return self._transport.request("POST", "/search", params or {}, cancel=cancel)


class AsyncSearchAPI:
    """Asynchronous wrapper for ``POST /search``."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def search(
        self,
        params: dict[str, Any] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request("POST", "/search", params or {}, cancel=cancel)
