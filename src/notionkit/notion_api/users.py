"""User API wrappers for the Notion API."""

from __future__ import annotations

from typing import Any

from .cancel import CancelToken
from .transport import AsyncNotionTransport, NotionTransport


def _list_params(start_cursor: str | None, page_size: int | None) -> dict[str, Any] | None:
    params: dict[str, Any] = {}
    if start_cursor is not None:
        params["start_cursor"] = start_cursor
    if page_size is not None:
        params["page_size"] = page_size
    return params or None


class UserAPI:
    """Synchronous wrapper for the Notion Users API."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(self, user_id: str, *, cancel: CancelToken | None = None) -> dict[str, Any]:
        return self._transport.request("GET", f"/users/{user_id}", cancel=cancel)

    def list(
        self,
        start_cursor: str | None = None,
        page_size: int | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """List workspace users, one page at a time."""
        return self._transport.request(
            "GET", "/users", params=_list_params(start_cursor, page_size), cancel=cancel,
        )

    def me(self, *, cancel: CancelToken | None = None) -> dict[str, Any]:
        """Retrieve the bot user that owns the integration token."""
        return self._transport.request("GET", "/users/me", cancel=cancel)


class AsyncUserAPI:
    """Asynchronous wrapper for the Notion Users API."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(
        self,
        user_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request("GET", f"/users/{user_id}", cancel=cancel)

    async def list(
        self,
        start_cursor: str | None = None,
        page_size: int | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "GET", "/users", params=_list_params(start_cursor, page_size), cancel=cancel,
        )

    async def me(self, *, cancel: CancelToken | None = None) -> dict[str, Any]:
        return await self._transport.request("GET", "/users/me", cancel=cancel)
