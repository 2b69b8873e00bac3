"""
Timing Interfaces

Clock and timer contracts consumed by the cache sweep and the
background scheduler.
"""

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

TimerCallback = Callable[[], Union[None, Awaitable[None]]]

_handle_ids = itertools.count(1)


@dataclass(eq=False)
class TimerHandle:
    """Opaque handle returned by Timer.after / Timer.every."""

    handle_id: int
    delay: float
    interval: Optional[float] = None
    cancelled: bool = False

    @classmethod
    def new(cls, delay: float, interval: Optional[float] = None) -> "TimerHandle":
        return cls(handle_id=next(_handle_ids), delay=delay, interval=interval)

    @property
    def repeating(self) -> bool:
        return self.interval is not None


class Clock(ABC):
    """Monotonic time source in seconds."""

    @abstractmethod
    def monotonic(self) -> float:
        pass


class Timer(ABC):
    """
    Delayed and repeating callbacks.

    Callbacks may be plain functions or coroutine functions. A callback that
    raises is logged by the timer and does not stop a repeating schedule.
    """

    @abstractmethod
    def after(self, delay: float, callback: TimerCallback) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        pass

    @abstractmethod
    def every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds until cancelled."""
        pass

    @abstractmethod
    def cancel(self, handle: TimerHandle) -> None:
        """Cancel future firings of ``handle``. Cancelling twice is a no-op."""
        pass
