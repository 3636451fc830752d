"""Tests for CancelToken: manual cancellation, deadlines, and sync/async waits."""

from __future__ import annotations

import asyncio
import threading
import time
from unittest.mock import MagicMock

import pytest

from notionkit.notion_api.cancel import CancelToken


class TestCancelTokenState:
    def test_fresh_token_not_cancelled(self):
        token = CancelToken()
        assert token.cancelled is False
        assert token.remaining() is None

    def test_cancel_is_sticky(self):
        token = CancelToken()
        token.cancel()
        token.cancel()
        assert token.cancelled is True

    def test_zero_timeout_is_already_cancelled(self):
        assert CancelToken(timeout=0).cancelled is True

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError, match="timeout"):
            CancelToken(timeout=-1)

    def test_deadline_expires(self):
        token = CancelToken(timeout=0.02)
        assert token.cancelled is False
        time.sleep(0.04)
        assert token.cancelled is True
        assert token.remaining() == 0.0

    def test_remaining_counts_down(self):
        token = CancelToken(timeout=10)
        remaining = token.remaining()
        assert 9.0 < remaining <= 10.0

    def test_cancel_skips_closed_loop(self):
        token = CancelToken()
        loop = asyncio.new_event_loop()
        loop.close()
        token._waiters.add((loop, MagicMock()))
        token.cancel()
        assert token.cancelled is True

    def test_cancel_tolerates_loop_closing_concurrently(self):
        token = CancelToken()
        loop = MagicMock()
        loop.is_closed.return_value = False
        loop.call_soon_threadsafe.side_effect = RuntimeError("Event loop is closed")
        other_loop = MagicMock()
        other_loop.is_closed.return_value = False
        event = MagicMock()
        token._waiters.update({(loop, MagicMock()), (other_loop, event)})
        token.cancel()
        assert token.cancelled is True
        other_loop.call_soon_threadsafe.assert_called_once_with(event.set)

    def test_repr(self):
        assert repr(CancelToken()) == "CancelToken(cancelled=False)"
        assert "remaining=" in repr(CancelToken(timeout=5))


class TestCancelTokenWait:
    def test_wait_times_out_without_cancel(self):
        token = CancelToken()
        t0 = time.monotonic()
        assert token.wait(0.02) is False
        assert time.monotonic() - t0 >= 0.015

    def test_wait_returns_immediately_when_cancelled(self):
        token = CancelToken()
        token.cancel()
        t0 = time.monotonic()
        assert token.wait(5.0) is True
        assert time.monotonic() - t0 < 0.5

    def test_wait_woken_by_other_thread(self):
        token = CancelToken()
        timer = threading.Timer(0.02, token.cancel)
        timer.start()
        t0 = time.monotonic()
        try:
            assert token.wait(5.0) is True
        finally:
            timer.cancel()
        assert time.monotonic() - t0 < 1.0

    def test_wait_bounded_by_deadline(self):
        token = CancelToken(timeout=0.03)
        t0 = time.monotonic()
        assert token.wait(5.0) is True
        assert time.monotonic() - t0 < 1.0


class TestCancelTokenWaitAsync:
    async def test_times_out_without_cancel(self):
        token = CancelToken()
        assert await token.wait_async(0.02) is False

    async def test_woken_by_cancel_in_same_loop(self):
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)
        t0 = time.monotonic()
        assert await token.wait_async(5.0) is True
        assert time.monotonic() - t0 < 1.0

    async def test_woken_by_cancel_from_thread(self):
        token = CancelToken()
        timer = threading.Timer(0.02, token.cancel)
        timer.start()
        try:
            assert await token.wait_async(5.0) is True
        finally:
            timer.cancel()

    async def test_bounded_by_deadline(self):
        token = CancelToken(timeout=0.03)
        t0 = time.monotonic()
        assert await token.wait_async() is True
        assert time.monotonic() - t0 < 1.0

    async def test_waiter_unregistered_after_wait(self):
        token = CancelToken()
        await token.wait_async(0.01)
        assert not token._waiters

    async def test_outer_task_cancel_propagates(self):
        token = CancelToken()
        task = asyncio.ensure_future(token.wait_async())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not token._waiters
        assert token.cancelled is False
