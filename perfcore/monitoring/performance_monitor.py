"""
Performance Monitor

Start/end measurement of named operations: wall duration, CPU time,
traced memory and derived throughput/latency. Completed measurements
feed the operation duration histogram and a bounded per-operation
history for summary statistics.
"""

import statistics
import time
import tracemalloc
from collections import defaultdict, deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Deque, Dict, List, Optional

import structlog

from ..constants import get_current_timestamp
from ..infrastructure.timing.asyncio_timer import MonotonicClock
from ..infrastructure.timing.interfaces import Clock
from .metrics import operation_duration_seconds

logger = structlog.get_logger(__name__)


def _traced_memory() -> int:
    """Bytes currently traced by tracemalloc, or 0 when tracing is off."""
    if not tracemalloc.is_tracing():
        return 0
    current, _peak = tracemalloc.get_traced_memory()
    return current


@dataclass
class ResourceUsage:
    """Before/after readings of one resource."""

    before: float
    after: float = 0.0
    peak: float = 0.0


@dataclass
class PerformanceMetrics:
    """Measurement of a single operation run."""

    operation: str
    started_at: datetime
    memory: ResourceUsage
    cpu_seconds: ResourceUsage
    ended_at: Optional[datetime] = None
    duration_ms: Optional[float] = None
    throughput: float = 0.0  # operations per second
    latency_ms: float = 0.0
    success_rate: float = 0.0
    error_rate: float = 0.0
    _started_monotonic: float = field(default=0.0, repr=False)

    @property
    def finished(self) -> bool:
        return self.ended_at is not None


@dataclass
class OperationSummary:
    """Aggregate over the recent runs of one operation."""

    operation: str
    count: int
    success_count: int
    error_count: int
    avg_duration_ms: float
    min_duration_ms: float
    max_duration_ms: float
    p95_duration_ms: float
    error_rate: float


class PerformanceMonitor:
    """
    Named-operation performance monitor.

    One measurement per operation name may be open at a time; starting an
    operation that is already open restarts it.
    """

    def __init__(self, clock: Optional[Clock] = None, history_size: int = 1000):
        self._clock = clock or MonotonicClock()
        self._open: Dict[str, PerformanceMetrics] = {}
        self._latest: Dict[str, PerformanceMetrics] = {}
        self._history: Dict[str, Deque[PerformanceMetrics]] = defaultdict(
            lambda: deque(maxlen=history_size)
        )

    def start(self, operation: str) -> PerformanceMetrics:
        """Open a measurement for ``operation``."""
        metrics = PerformanceMetrics(
            operation=operation,
            started_at=get_current_timestamp(),
            memory=ResourceUsage(before=_traced_memory()),
            cpu_seconds=ResourceUsage(before=time.process_time()),
            _started_monotonic=self._clock.monotonic(),
        )
        self._open[operation] = metrics
        logger.debug("performance_monitor_started", operation=operation)
        return metrics

    def end(self, operation: str, success: bool = True) -> Optional[PerformanceMetrics]:
        """
        Close the open measurement for ``operation``.

        Returns:
            The completed metrics, or None if no measurement was open
        """
        metrics = self._open.pop(operation, None)
        if metrics is None:
            logger.debug("performance_monitor_not_started", operation=operation)
            return None

        elapsed = max(0.0, self._clock.monotonic() - metrics._started_monotonic)
        metrics.ended_at = get_current_timestamp()
        metrics.duration_ms = elapsed * 1000

        metrics.memory.after = _traced_memory()
        metrics.memory.peak = max(metrics.memory.before, metrics.memory.after)
        metrics.cpu_seconds.after = time.process_time()
        metrics.cpu_seconds.peak = max(metrics.cpu_seconds.before, metrics.cpu_seconds.after)

        metrics.success_rate = 100.0 if success else 0.0
        metrics.error_rate = 0.0 if success else 100.0
        if metrics.duration_ms > 0:
            metrics.throughput = 1000 / metrics.duration_ms
            metrics.latency_ms = metrics.duration_ms

        self._latest[operation] = metrics
        self._history[operation].append(metrics)
        operation_duration_seconds.labels(
            operation=operation, status="success" if success else "error"
        ).observe(elapsed)

        logger.debug(
            "performance_monitor_ended",
            operation=operation,
            duration_ms=metrics.duration_ms,
            success=success,
        )
        return metrics

    @asynccontextmanager
    async def measure(self, operation: str) -> AsyncIterator[PerformanceMetrics]:
        """Measure the body of an ``async with`` block; an exception counts as failure."""
        metrics = self.start(operation)
        try:
            yield metrics
        except BaseException:
            self.end(operation, success=False)
            raise
        self.end(operation, success=True)

    def statistics(self) -> List[PerformanceMetrics]:
        """Latest completed measurement of every operation."""
        return list(self._latest.values())

    def summary(self, operation: str) -> Optional[OperationSummary]:
        """Aggregate the recent history of ``operation``."""
        runs = list(self._history.get(operation, ()))
        if not runs:
            return None

        durations = sorted(run.duration_ms or 0.0 for run in runs)
        success_count = sum(1 for run in runs if run.success_rate > 0)
        error_count = len(runs) - success_count

        return OperationSummary(
            operation=operation,
            count=len(runs),
            success_count=success_count,
            error_count=error_count,
            avg_duration_ms=statistics.mean(durations),
            min_duration_ms=durations[0],
            max_duration_ms=durations[-1],
            p95_duration_ms=durations[min(len(durations) - 1, int(len(durations) * 0.95))],
            error_rate=error_count / len(runs),
        )

    @property
    def open_operations(self) -> List[str]:
        return list(self._open)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "open": self.open_operations,
            "operations": {
                name: {
                    "duration_ms": metrics.duration_ms,
                    "success_rate": metrics.success_rate,
                    "throughput": metrics.throughput,
                }
                for name, metrics in self._latest.items()
            },
        }
