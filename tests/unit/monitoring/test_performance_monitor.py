"""
Unit tests for the Performance Monitor.
"""

import pytest

from perfcore.infrastructure.timing.manual import ManualClock
from perfcore.monitoring.performance_monitor import PerformanceMonitor


@pytest.fixture
def monitor(clock):
    """Monitor timed by the virtual clock."""
    return PerformanceMonitor(clock=clock)


class TestPerformanceMonitor:
    """Test start/end measurement."""

    def test_start_end(self, monitor, clock):
        """Test duration and derived throughput."""
        monitor.start("load_page")
        assert monitor.open_operations == ["load_page"]
        clock.advance(0.5)

        metrics = monitor.end("load_page")

        assert metrics.duration_ms == pytest.approx(500)
        assert metrics.latency_ms == pytest.approx(500)
        assert metrics.throughput == pytest.approx(2.0)
        assert metrics.success_rate == 100.0
        assert metrics.error_rate == 0.0
        assert metrics.cpu_seconds.after >= metrics.cpu_seconds.before
        assert metrics.finished
        assert monitor.open_operations == []

    def test_end_without_start(self, monitor):
        """Test ending an unknown operation returns None."""
        assert monitor.end("never_started") is None

    def test_zero_duration(self, monitor):
        """Test an instantaneous run leaves throughput at zero."""
        monitor.start("noop")
        metrics = monitor.end("noop", success=False)

        assert metrics.duration_ms == 0
        assert metrics.throughput == 0.0
        assert metrics.error_rate == 100.0

    @pytest.mark.asyncio
    async def test_measure_context(self, monitor, clock):
        """Test the async context manager records success and failure."""
        async with monitor.measure("ok"):
            clock.advance(0.1)

        with pytest.raises(RuntimeError):
            async with monitor.measure("broken"):
                raise RuntimeError("fail")

        latest = {metrics.operation: metrics for metrics in monitor.statistics()}
        assert latest["ok"].success_rate == 100.0
        assert latest["broken"].error_rate == 100.0

    def test_summary(self):
        """Test aggregation over recent runs."""
        clock = ManualClock()
        monitor = PerformanceMonitor(clock=clock)
        for seconds, success in ((0.1, True), (0.3, True), (0.2, False)):
            monitor.start("query")
            clock.advance(seconds)
            monitor.end("query", success=success)

        summary = monitor.summary("query")

        assert summary.count == 3
        assert summary.success_count == 2
        assert summary.error_count == 1
        assert summary.min_duration_ms == pytest.approx(100)
        assert summary.max_duration_ms == pytest.approx(300)
        assert summary.avg_duration_ms == pytest.approx(200)
        assert summary.error_rate == pytest.approx(1 / 3)
        assert monitor.summary("unknown") is None
