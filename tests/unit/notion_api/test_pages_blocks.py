"""Unit tests for PageAPI, AsyncPageAPI, BlockAPI, AsyncBlockAPI.

All HTTP calls go through a transport mock (MagicMock / AsyncMock).
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, call

import pytest

from notionkit.notion_api.blocks import (
    MAX_CHILDREN_PER_APPEND,
    AsyncBlockAPI,
    BlockAPI,
    extract_block_ids,
)
from notionkit.notion_api.cancel import CancelToken
from notionkit.notion_api.pages import AsyncPageAPI, PageAPI

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _agen(*items):
    """Async generator yielding each item."""
    for item in items:
        yield item


_PAGE_WITH_PROPS = {
    "id": "pg-1",
    "properties": {
        "Name": {"id": "title", "type": "title"},
        "Status": {"id": "a%3Bc", "type": "select"},
    },
}


# ===========================================================================
# PageAPI -- sync
# ===========================================================================

class TestPageAPISync:
    def test_create_without_children(self):
        t = MagicMock()
        t.request.return_value = {"id": "pg-1"}
        result = PageAPI(t).create(
            parent={"page_id": "p1"},
            properties={"title": [{"text": {"content": "T"}}]},
        )
        t.request.assert_called_once_with(
            "POST",
            "/pages",
            {
                "parent": {"page_id": "p1"},
                "properties": {"title": [{"text": {"content": "T"}}]},
            },
            cancel=None,
        )
        assert result == {"id": "pg-1"}

    def test_create_with_children(self):
        t = MagicMock()
        children = [{"object": "block", "type": "paragraph"}]
        PageAPI(t).create(
            parent={"database_id": "db-1"},
            properties={"Name": {"title": []}},
            children=children,
        )
        body = t.request.call_args.args[2]
        assert body["children"] == children

    def test_retrieve(self):
        t = MagicMock()
        t.request.return_value = {"id": "pg-1"}
        token = CancelToken()
        assert PageAPI(t).retrieve("pg-1", cancel=token) == {"id": "pg-1"}
        t.request.assert_called_once_with("GET", "/pages/pg-1", cancel=token)

    def test_update_properties(self):
        t = MagicMock()
        PageAPI(t).update("pg-1", properties={"Done": {"checkbox": True}})
        t.request.assert_called_once_with(
            "PATCH", "/pages/pg-1", {"properties": {"Done": {"checkbox": True}}}, cancel=None,
        )

    def test_update_archive(self):
        t = MagicMock()
        PageAPI(t).update("pg-1", archived=True)
        t.request.assert_called_once_with(
            "PATCH", "/pages/pg-1", {"archived": True}, cancel=None,
        )

    def test_retrieve_property(self):
        t = MagicMock()
        PageAPI(t).retrieve_property("pg-1", "title")
        t.request.assert_called_once_with(
            "GET", "/pages/pg-1/properties/title", cancel=None,
        )

    def test_retrieve_all_properties_keyed_by_name(self):
        t = MagicMock()
        t.request.side_effect = [
            _PAGE_WITH_PROPS,
            {"object": "list", "type": "property_item"},
            {"object": "property_item", "type": "select"},
        ]
        result = PageAPI(t).retrieve_all_properties("pg-1")
        assert result == {
            "Name": {"object": "list", "type": "property_item"},
            "Status": {"object": "property_item", "type": "select"},
        }
        assert t.request.call_args_list == [
            call("GET", "/pages/pg-1", cancel=None),
            call("GET", "/pages/pg-1/properties/title", cancel=None),
            call("GET", "/pages/pg-1/properties/a%3Bc", cancel=None),
        ]

    def test_retrieve_all_properties_empty_page(self):
        t = MagicMock()
        t.request.return_value = {"id": "pg-1"}
        assert PageAPI(t).retrieve_all_properties("pg-1") == {}
        assert t.request.call_count == 1


# ===========================================================================
# PageAPI -- async
# ===========================================================================

class TestPageAPIAsync:
    async def test_create(self):
        t = MagicMock()
        t.request = AsyncMock(return_value={"id": "pg-a1"})
        result = await AsyncPageAPI(t).create(
            parent={"page_id": "p1"}, properties={"title": []},
        )
        t.request.assert_awaited_once_with(
            "POST", "/pages", {"parent": {"page_id": "p1"}, "properties": {"title": []}},
            cancel=None,
        )
        assert result == {"id": "pg-a1"}

    async def test_retrieve(self):
        t = MagicMock()
        t.request = AsyncMock(return_value={"id": "pg-a2"})
        assert await AsyncPageAPI(t).retrieve("pg-a2") == {"id": "pg-a2"}

    async def test_update(self):
        t = MagicMock()
        t.request = AsyncMock(return_value={})
        await AsyncPageAPI(t).update("pg-1", archived=False)
        t.request.assert_awaited_once_with(
            "PATCH", "/pages/pg-1", {"archived": False}, cancel=None,
        )

    async def test_retrieve_all_properties_sequential(self):
        t = MagicMock()
        t.request = AsyncMock(side_effect=[_PAGE_WITH_PROPS, {"v": 1}, {"v": 2}])
        result = await AsyncPageAPI(t).retrieve_all_properties("pg-1")
        assert result == {"Name": {"v": 1}, "Status": {"v": 2}}
        assert t.request.await_count == 3


# ===========================================================================
# BlockAPI -- sync
# ===========================================================================

class TestBlockAPISync:
    def test_retrieve(self):
        t = MagicMock()
        BlockAPI(t).retrieve("b1")
        t.request.assert_called_once_with("GET", "/blocks/b1", cancel=None)

    def test_update(self):
        t = MagicMock()
        payload = {"paragraph": {"rich_text": []}}
        BlockAPI(t).update("b1", payload)
        t.request.assert_called_once_with("PATCH", "/blocks/b1", payload, cancel=None)

    def test_delete(self):
        t = MagicMock()
        BlockAPI(t).delete("b1")
        t.request.assert_called_once_with("DELETE", "/blocks/b1", cancel=None)

    def test_get_children_paginates(self):
        t = MagicMock()
        t.paginate.return_value = iter([{"id": "c1"}, {"id": "c2"}])
        token = CancelToken()
        result = BlockAPI(t).get_children("b1", cancel=token)
        assert result == [{"id": "c1"}, {"id": "c2"}]
        t.paginate.assert_called_once_with("/blocks/b1/children", method="GET", cancel=token)

    def test_append_children(self):
        t = MagicMock()
        children = [{"type": "paragraph"}]
        BlockAPI(t).append_children("b1", children)
        t.request.assert_called_once_with(
            "PATCH", "/blocks/b1/children", {"children": children}, cancel=None,
        )

    def test_append_children_after(self):
        t = MagicMock()
        BlockAPI(t).append_children("b1", [], after="c9")
        body = t.request.call_args.args[2]
        assert body == {"children": [], "after": "c9"}

    def test_append_children_limit(self):
        t = MagicMock()
        BlockAPI(t).append_children("b1", [{}] * MAX_CHILDREN_PER_APPEND)
        with pytest.raises(ValueError, match="at most 100"):
            BlockAPI(t).append_children("b1", [{}] * (MAX_CHILDREN_PER_APPEND + 1))
        assert t.request.call_count == 1


# ===========================================================================
# BlockAPI -- async
# ===========================================================================

class TestBlockAPIAsync:
    async def test_retrieve(self):
        t = MagicMock()
        t.request = AsyncMock(return_value={"id": "b1"})
        assert await AsyncBlockAPI(t).retrieve("b1") == {"id": "b1"}

    async def test_delete(self):
        t = MagicMock()
        t.request = AsyncMock(return_value={"archived": True})
        await AsyncBlockAPI(t).delete("b1")
        t.request.assert_awaited_once_with("DELETE", "/blocks/b1", cancel=None)

    async def test_get_children(self):
        t = MagicMock()
        t.paginate = MagicMock(return_value=_agen({"id": "c1"}, {"id": "c2"}))
        result = await AsyncBlockAPI(t).get_children("b1")
        assert result == [{"id": "c1"}, {"id": "c2"}]

    async def test_append_children(self):
        t = MagicMock()
        t.request = AsyncMock(return_value={"results": [{"id": "n1"}]})
        result = await AsyncBlockAPI(t).append_children("b1", [{"type": "divider"}])
        assert extract_block_ids(result) == ["n1"]


# ===========================================================================
# extract_block_ids
# ===========================================================================

class TestExtractBlockIds:
    def test_extracts_in_order(self):
        resp = {"results": [{"id": "a"}, {"id": "b"}]}
        assert extract_block_ids(resp) == ["a", "b"]

    def test_skips_entries_without_id(self):
        assert extract_block_ids({"results": [{"type": "x"}, {"id": "b"}]}) == ["b"]

    def test_missing_results(self):
        assert extract_block_ids({}) == []
