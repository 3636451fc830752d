"""Block API wrappers for the Notion API.

Provides :class:`BlockAPI` (sync) and :class:`AsyncBlockAPI` (async) thin
wrappers around the ``/blocks`` endpoints.  ``get_children`` follows
pagination cursors so callers receive every child in one list.
"""

from __future__ import annotations

from typing import Any

from .cancel import CancelToken
from .transport import AsyncNotionTransport, NotionTransport

MAX_CHILDREN_PER_APPEND = 100


def extract_block_ids(response: dict[str, Any]) -> list[str]:
    """Extract block IDs from an ``append_children`` response.

    Parameters
    ----------
    response:
        The JSON dict returned by ``PATCH /blocks/{id}/children``.

    Returns
    -------
    list[str]
        The ``id`` of each block in ``results``, in order.
    """
    results = response.get("results", [])
    return [r["id"] for r in results if "id" in r]


def _append_body(children: list[dict[str, Any]], after: str | None) -> dict[str, Any]:
    if len(children) > MAX_CHILDREN_PER_APPEND:
        raise ValueError(
            f"at most {MAX_CHILDREN_PER_APPEND} children can be appended per call, "
            f"got {len(children)}"
        )
    body: dict[str, Any] = {"children": children}
    if after is not None:
        body["after"] = after
    return body


class BlockAPI:
    """Synchronous wrapper for the Notion Blocks API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(
        self,
        block_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Retrieve a single block by its ID."""
        return self._transport.request("GET", f"/blocks/{block_id}", cancel=cancel)

    def update(
        self,
        block_id: str,
        payload: dict[str, Any],
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Update a block's content.

        Parameters
        ----------
        block_id:
            The UUID of the block to update.
        payload:
            Typically ``{block_type: {"rich_text": [...], ...}}``.  Only the
            fields present are modified.
        """
        return self._transport.request("PATCH", f"/blocks/{block_id}", payload, cancel=cancel)

    def delete(
        self,
        block_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Delete (archive) a block and return the archived block object."""
        return self._transport.request("DELETE", f"/blocks/{block_id}", cancel=cancel)

    def get_children(
        self,
        block_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> list[dict[str, Any]]:
        """Retrieve all children of a block or page, auto-paginating.

        Issues as many ``GET /blocks/{block_id}/children`` requests as
        needed; the same *cancel* token bounds all of them.
        """
        return list(
            self._transport.paginate(
                f"/blocks/{block_id}/children",
                method="GET",
                cancel=cancel,
            )
        )

    def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Append child blocks to a parent block or page.

        Parameters
        ----------
        block_id:
            The UUID of the parent block (or page).
        children:
            Block objects to append, at most 100.
        after:
            Optional ID of an existing child; new children are inserted
            right after it instead of at the end.

        Raises
        ------
        ValueError
            If more than 100 children are given.
        """
        return self._transport.request(
            "PATCH",
            f"/blocks/{block_id}/children",
            _append_body(children, after),
            cancel=cancel,
        )


class AsyncBlockAPI:
    """Asynchronous wrapper for the Notion Blocks API.

    Mirrors :class:`BlockAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(
        self,
        block_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request("GET", f"/blocks/{block_id}", cancel=cancel)

    async def update(
        self,
        block_id: str,
        payload: dict[str, Any],
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "PATCH", f"/blocks/{block_id}", payload, cancel=cancel,
        )

    async def delete(
        self,
        block_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request("DELETE", f"/blocks/{block_id}", cancel=cancel)

    async def get_children(
        self,
        block_id: str,
        *,
        cancel: CancelToken | None = None,
    ) -> list[dict[str, Any]]:
        """Retrieve all children of a block, auto-paginating (async).

        See :meth:`BlockAPI.get_children`.
        """
        return [
            item
            async for item in self._transport.paginate(
                f"/blocks/{block_id}/children",
                method="GET",
                cancel=cancel,
            )
        ]

    async def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Append child blocks (async).  See :meth:`BlockAPI.append_children`."""
        return await self._transport.request(
            "PATCH",
            f"/blocks/{block_id}/children",
            _append_body(children, after),
            cancel=cancel,
        )
