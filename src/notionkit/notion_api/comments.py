"""Comment API wrappers for the Notion API.

Comments are attached either to a page (starting a new discussion) or to an
existing discussion thread; :func:`_create_body` enforces that exactly one
of the two is given.
"""

from __future__ import annotations

from typing import Any

from .cancel import CancelToken
from .transport import AsyncNotionTransport, NotionTransport


def _list_params(
    block_id: str | None,
    start_cursor: str | None,
    page_size: int | None,
) -> dict[str, Any] | None:
    params: dict[str, Any] = {}
    if block_id is not None:
        params["block_id"] = block_id
    if start_cursor is not None:
        params["start_cursor"] = start_cursor
    if page_size is not None:
        params["page_size"] = page_size
    return params or None


def _create_body(
    rich_text: list[dict[str, Any]],
    parent_page_id: str | None,
    discussion_id: str | None,
) -> dict[str, Any]:
    if (parent_page_id is None) == (discussion_id is None):
        raise ValueError("exactly one of parent_page_id or discussion_id is required")
    body: dict[str, Any] = {"rich_text": rich_text}
    if parent_page_id is not None:
        body["parent"] = {"page_id": parent_page_id}
    else:
        body["discussion_id"] = discussion_id
    return body


class CommentAPI:
    """Synchronous wrapper for the Notion Comments API."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def list(
        self,
        block_id: str | None = None,
        start_cursor: str | None = None,
        page_size: int | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """List unresolved comments on a block or page."""
        return self._transport.request(
            "GET",
            "/comments",
            params=_list_params(block_id, start_cursor, page_size),
            cancel=cancel,
        )

    def create(
        self,
        rich_text: list[dict[str, Any]],
        parent_page_id: str | None = None,
        discussion_id: str | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Add a comment to a page or reply in a discussion thread.

        Raises
        ------
        ValueError
            Unless exactly one of *parent_page_id* and *discussion_id* is
            given.
        """
        return self._transport.request(
            "POST",
            "/comments",
            _create_body(rich_text, parent_page_id, discussion_id),
            cancel=cancel,
        )


class AsyncCommentAPI:
    """Asynchronous wrapper for the Notion Comments API."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def list(
        self,
        block_id: str | None = None,
        start_cursor: str | None = None,
        page_size: int | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "GET",
            "/comments",
            params=_list_params(block_id, start_cursor, page_size),
            cancel=cancel,
        )

    async def create(
        self,
        rich_text: list[dict[str, Any]],
        parent_page_id: str | None = None,
        discussion_id: str | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "POST",
            "/comments",
            _create_body(rich_text, parent_page_id, discussion_id),
            cancel=cancel,
        )
