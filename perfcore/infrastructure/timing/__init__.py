"""
Timing Infrastructure

Clock and Timer implementations:
- MonotonicClock / AsyncioTimer: production, asyncio event loop
- ManualClock / ManualTimer: virtual time for tests and host-driven ticks
"""

from .interfaces import Clock, Timer, TimerHandle, TimerCallback
from .asyncio_timer import MonotonicClock, AsyncioTimer
from .manual import ManualClock, ManualTimer

__all__ = [
    "Clock",
    "Timer",
    "TimerHandle",
    "TimerCallback",
    "MonotonicClock",
    "AsyncioTimer",
    "ManualClock",
    "ManualTimer",
]
