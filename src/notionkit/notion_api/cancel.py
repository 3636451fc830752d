"""Caller-owned cancellation signal for transport calls.

A :class:`CancelToken` is threaded through one logical call (and may be
shared by several).  It fires when :meth:`CancelToken.cancel` is called or
when its optional deadline passes, whichever comes first.  Once fired it
stays fired.

The token can be waited on from blocking code (:meth:`CancelToken.wait`)
and from coroutines (:meth:`CancelToken.wait_async`); ``cancel()`` may be
called from any thread and wakes both kinds of waiter promptly.
"""

from __future__ import annotations

import asyncio
import threading
import time


class CancelToken:
    """Cancellation signal with an optional deadline.

    Parameters
    ----------
    timeout:
        Seconds from now after which the token fires by itself.  ``None``
        means no deadline.
    """

    __slots__ = ("_deadline", "_event", "_lock", "_waiters")

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        self._event = threading.Event()
        self._deadline: float | None = (
            None if timeout is None else time.monotonic() + timeout
        )
        self._lock = threading.Lock()
        self._waiters: set[tuple[asyncio.AbstractEventLoop, asyncio.Event]] = set()

    def cancel(self) -> None:
        """Fire the token and wake every waiter."""
        self._event.set()
        with self._lock:
            waiters = list(self._waiters)
        for loop, event in waiters:
            if loop.is_closed():
                continue
            try:
                loop.call_soon_threadsafe(event.set)
            except RuntimeError:
                # The loop closed after the check; its waiter is gone with it.
                continue

    @property
    def cancelled(self) -> bool:
        """``True`` once :meth:`cancel` was called or the deadline passed."""
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left until the deadline, or ``None`` without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def _bound(self, timeout: float | None) -> float | None:
        remaining = self.remaining()
        if timeout is None:
            return remaining
        if remaining is None:
            return max(timeout, 0.0)
        return max(min(timeout, remaining), 0.0)

    def wait(self, timeout: float | None = None) -> bool:
        """Block for up to *timeout* seconds or until the token fires.

        Returns ``True`` if the token fired.
        """
        if self.cancelled:
            return True
        self._event.wait(self._bound(timeout))
        return self.cancelled

    async def wait_async(self, timeout: float | None = None) -> bool:
        """Await up to *timeout* seconds or until the token fires.

        Returns ``True`` if the token fired.
        """
        if self.cancelled:
            return True
        entry = (asyncio.get_running_loop(), asyncio.Event())
        with self._lock:
            self._waiters.add(entry)
        try:
            # cancel() may have run between the first check and registration.
            if self._event.is_set():
                return True
            try:
                await asyncio.wait_for(entry[1].wait(), self._bound(timeout))
            except asyncio.TimeoutError:
                pass
        finally:
            with self._lock:
                self._waiters.discard(entry)
        return self.cancelled

    def __repr__(self) -> str:
        remaining = self.remaining()
        deadline = "" if remaining is None else f", remaining={remaining:.3f}s"
        return f"CancelToken(cancelled={self.cancelled}{deadline})"
