"""
Manual Timing

Virtual-time Clock and Timer. Nothing fires until advance() is awaited,
which makes sweep and scheduler behaviour deterministic in tests and in
hosts that drive their own tick loop.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from typing import List

from .asyncio_timer import invoke_callback
from .interfaces import Clock, Timer, TimerCallback, TimerHandle


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def monotonic(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("Cannot move a monotonic clock backwards")
        self._now += seconds
        return self._now

    def set(self, now: float) -> None:
        if now < self._now:
            raise ValueError("Cannot move a monotonic clock backwards")
        self._now = float(now)


@dataclass(order=True)
class _ScheduledCall:
    due: float
    sequence: int
    handle: TimerHandle = field(compare=False)
    callback: TimerCallback = field(compare=False)


class ManualTimer(Timer):
    """
    Timer driven by a ManualClock.

    Due callbacks run in due-time order (registration order on ties) when
    advance() or run_pending() is awaited.
    """

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self._queue: List[_ScheduledCall] = []
        self._sequence = itertools.count()

    def after(self, delay: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle.new(delay=max(0.0, float(delay)))
        self._push(self.clock.monotonic() + handle.delay, handle, callback)
        return handle

    def every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("Timer interval must be positive")
        handle = TimerHandle.new(delay=float(interval), interval=float(interval))
        self._push(self.clock.monotonic() + handle.interval, handle, callback)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True

    @property
    def pending(self) -> int:
        """Number of armed, not cancelled schedules."""
        return sum(1 for call in self._queue if not call.handle.cancelled)

    async def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing every callback that falls due."""
        target = self.clock.monotonic() + seconds
        while self._queue and self._queue[0].due <= target:
            call = heapq.heappop(self._queue)
            if call.handle.cancelled:
                continue
            self.clock.set(max(call.due, self.clock.monotonic()))
            if call.handle.repeating:
                self._push(call.due + call.handle.interval, call.handle, call.callback)
            await invoke_callback(call.callback, call.handle)
        self.clock.set(max(target, self.clock.monotonic()))

    async def run_pending(self) -> None:
        """Fire callbacks already due without moving time."""
        await self.advance(0)

    def _push(self, due: float, handle: TimerHandle, callback: TimerCallback) -> None:
        heapq.heappush(
            self._queue,
            _ScheduledCall(due=due, sequence=next(self._sequence), handle=handle, callback=callback),
        )
