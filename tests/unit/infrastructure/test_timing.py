"""
Unit tests for Clock and Timer implementations.
"""

import asyncio

import pytest

from perfcore.infrastructure.timing.asyncio_timer import AsyncioTimer, MonotonicClock
from perfcore.infrastructure.timing.manual import ManualClock, ManualTimer


class TestManualClock:
    """Test ManualClock."""

    def test_advance_and_set(self):
        """Test the clock moves only forward."""
        clock = ManualClock(start=5.0)
        assert clock.advance(2.5) == 7.5
        clock.set(10.0)
        assert clock.monotonic() == 10.0

        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(9.0)


class TestManualTimer:
    """Test ManualTimer firing order and cancellation."""

    @pytest.mark.asyncio
    async def test_after_fires_once_at_due_time(self, clock, timer):
        """Test one-shot callbacks see the clock at their due time."""
        fired = []
        timer.after(5, lambda: fired.append(clock.monotonic()))

        await timer.advance(4)
        assert fired == []
        await timer.advance(10)
        assert fired == [1005.0]
        assert clock.monotonic() == 1014.0

    @pytest.mark.asyncio
    async def test_every_repeats_in_order(self, clock, timer):
        """Test repeating and one-shot callbacks interleave by due time."""
        fired = []
        timer.every(3, lambda: fired.append(("tick", clock.monotonic())))
        timer.after(4, lambda: fired.append(("once", clock.monotonic())))

        await timer.advance(7)

        assert fired == [("tick", 1003.0), ("once", 1004.0), ("tick", 1006.0)]

    @pytest.mark.asyncio
    async def test_async_callbacks_awaited(self, timer):
        """Test coroutine callbacks are awaited."""
        fired = []

        async def callback():
            await asyncio.sleep(0)
            fired.append(True)

        timer.after(1, callback)
        await timer.advance(1)

        assert fired == [True]

    @pytest.mark.asyncio
    async def test_cancel(self, timer):
        """Test cancelled handles never fire."""
        fired = []
        handle = timer.every(1, lambda: fired.append(True))
        timer.cancel(handle)
        timer.cancel(handle)

        await timer.advance(5)

        assert fired == []
        assert timer.pending == 0

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_schedule(self, timer):
        """Test a raising callback is logged and keeps repeating."""
        calls = []

        def flaky():
            calls.append(True)
            raise RuntimeError("boom")

        timer.every(1, flaky)
        await timer.advance(3)

        assert len(calls) == 3

    def test_non_positive_interval_rejected(self, timer):
        """Test every() rejects non-positive intervals."""
        with pytest.raises(ValueError):
            timer.every(0, lambda: None)


class TestAsyncioTimer:
    """Test AsyncioTimer on the running event loop."""

    def test_monotonic_clock_moves_forward(self):
        """Test MonotonicClock is non-decreasing."""
        clock = MonotonicClock()
        first = clock.monotonic()
        assert clock.monotonic() >= first

    @pytest.mark.asyncio
    async def test_after(self):
        """Test a one-shot callback runs after its delay."""
        timer = AsyncioTimer()
        done = asyncio.Event()
        timer.after(0.01, done.set)

        await asyncio.wait_for(done.wait(), timeout=1)
        assert done.is_set()

    @pytest.mark.asyncio
    async def test_every_and_cancel(self):
        """Test a repeating callback runs until cancelled."""
        timer = AsyncioTimer()
        calls = []
        handle = timer.every(0.01, lambda: calls.append(True))

        await asyncio.sleep(0.06)
        timer.cancel(handle)
        count = len(calls)
        await asyncio.sleep(0.03)

        assert count >= 2
        assert len(calls) == count
        assert timer.active_count == 0

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        """Test cancel_all stops every schedule."""
        timer = AsyncioTimer()
        calls = []
        timer.after(0.01, lambda: calls.append("after"))
        timer.every(0.01, lambda: calls.append("every"))

        timer.cancel_all()
        await asyncio.sleep(0.03)

        assert calls == []

    @pytest.mark.asyncio
    async def test_cancel_during_callback_lets_it_finish(self):
        """Test cancelling a schedule mid-callback stops only later firings."""
        timer = AsyncioTimer()
        started = asyncio.Event()
        finished = []

        async def slow():
            started.set()
            await asyncio.sleep(0.05)
            finished.append(True)

        handle = timer.every(0.01, slow)
        await asyncio.wait_for(started.wait(), timeout=1)

        timer.cancel(handle)
        await asyncio.sleep(0.1)

        assert finished == [True]
        assert timer.active_count == 0
