"""
Asyncio Timer

Production Clock and Timer backed by the running asyncio event loop.
"""

import asyncio
import inspect
import time
from typing import Dict, Set

import structlog

from .interfaces import Clock, Timer, TimerCallback, TimerHandle

logger = structlog.get_logger(__name__)


class MonotonicClock(Clock):
    """Clock reading time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()


async def invoke_callback(callback: TimerCallback, handle: TimerHandle) -> None:
    """Run a timer callback, awaiting it if needed, and log its failure."""
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(
            "timer_callback_failed",
            handle_id=handle.handle_id,
            error=str(e),
            exc_info=True,
        )


class AsyncioTimer(Timer):
    """
    Timer running each schedule as an asyncio task.

    Must be used from inside a running event loop. Repeating callbacks are
    awaited before the next interval starts, so one schedule never overlaps
    itself. Cancelling a schedule whose callback is running lets the
    callback finish and stops the schedule afterwards.
    """

    def __init__(self) -> None:
        self._tasks: Dict[int, asyncio.Task] = {}
        self._handles: Dict[int, TimerHandle] = {}
        self._in_callback: Set[int] = set()

    def after(self, delay: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle.new(delay=max(0.0, float(delay)))
        self._spawn(handle, self._run_after(handle, callback))
        return handle

    def every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("Timer interval must be positive")
        handle = TimerHandle.new(delay=float(interval), interval=float(interval))
        self._spawn(handle, self._run_every(handle, callback))
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True
        self._handles.pop(handle.handle_id, None)
        task = self._tasks.pop(handle.handle_id, None)
        if task is not None and not task.done():
            self._stop(handle.handle_id, task)

    def cancel_all(self) -> None:
        """Cancel every outstanding schedule."""
        for handle in list(self._handles.values()):
            self.cancel(handle)

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def _stop(self, handle_id: int, task: asyncio.Task) -> None:
        # A running callback is never interrupted; the cancelled flag ends the loop.
        if handle_id not in self._in_callback:
            task.cancel()

    def _spawn(self, handle: TimerHandle, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks[handle.handle_id] = task
        self._handles[handle.handle_id] = handle
        task.add_done_callback(lambda _: self._forget(handle.handle_id, task))

    def _forget(self, handle_id: int, task: asyncio.Task) -> None:
        if self._tasks.get(handle_id) is task:
            del self._tasks[handle_id]
            self._handles.pop(handle_id, None)

    async def _fire(self, handle: TimerHandle, callback: TimerCallback) -> None:
        self._in_callback.add(handle.handle_id)
        try:
            await invoke_callback(callback, handle)
        finally:
            self._in_callback.discard(handle.handle_id)

    async def _run_after(self, handle: TimerHandle, callback: TimerCallback) -> None:
        await asyncio.sleep(handle.delay)
        if not handle.cancelled:
            await self._fire(handle, callback)

    async def _run_every(self, handle: TimerHandle, callback: TimerCallback) -> None:
        while not handle.cancelled:
            try:
                await asyncio.sleep(handle.interval)
            except asyncio.CancelledError:
                break
            if handle.cancelled:
                break
            await self._fire(handle, callback)
