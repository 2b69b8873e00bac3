"""
Performance Services Container

Explicit construction and lifecycle of one cache manager, background
scheduler, pool registry and performance monitor sharing a timer and a
durable store.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import structlog

from ..core.config import PerformanceSettings, get_settings
from ..domain.cache.repository_interfaces import DurableStoreInterface
from ..domain.cache.value_objects import CacheConfiguration
from ..infrastructure.repositories.durable_store import FileDurableStore
from ..infrastructure.timing.asyncio_timer import AsyncioTimer, MonotonicClock
from ..infrastructure.timing.interfaces import Clock, Timer
from ..monitoring.performance_monitor import PerformanceMonitor
from .cache.cache_manager import CacheManager
from .loading.lazy_loader import FetchFunction, LazyLoader, LazyLoadingConfig
from .pooling.memory_pool import MemoryPoolManager
from .scheduler.background_scheduler import BackgroundScheduler
from .virtualization.virtualized_list import VirtualizationConfig, VirtualizedList

logger = structlog.get_logger(__name__)


@dataclass
class PerformanceServices:
    """One wired set of performance services."""

    settings: PerformanceSettings
    cache: CacheManager
    scheduler: BackgroundScheduler
    pools: MemoryPoolManager
    monitor: PerformanceMonitor

    async def start(self) -> None:
        """Arm the cache sweep."""
        await self.cache.initialize()
        logger.info("performance_services_started")

    async def close(self) -> None:
        """Stop timers and wait for pending snapshot writes."""
        await self.scheduler.close()
        await self.cache.close()
        logger.info("performance_services_closed")

    async def __aenter__(self) -> "PerformanceServices":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def create_lazy_loader(
        self, fetch: FetchFunction, config: Optional[LazyLoadingConfig] = None
    ) -> LazyLoader:
        """Build a LazyLoader, defaulting its paging to the settings."""
        return LazyLoader(fetch, config or LazyLoadingConfig.from_settings(self.settings))

    def create_virtualized_list(
        self, items: Sequence[Any], config: Optional[VirtualizationConfig] = None
    ) -> VirtualizedList:
        """Build a VirtualizedList, defaulting its geometry to the settings."""
        return VirtualizedList(
            items, config or VirtualizationConfig.from_settings(self.settings)
        )


def create_performance_services(
    settings: Optional[PerformanceSettings] = None,
    *,
    timer: Optional[Timer] = None,
    clock: Optional[Clock] = None,
    durable_store: Optional[DurableStoreInterface] = None,
) -> PerformanceServices:
    """
    Wire a PerformanceServices set.

    Args:
        settings: Settings to build from (cached settings if omitted)
        timer: Timer shared by the cache sweep and the scheduler
        clock: Monotonic clock for cache entries and the monitor
        durable_store: Snapshot sink shared by cache and scheduler; a
            file-backed store under CACHE_PERSISTENCE_PATH is created when
            persistence is enabled and none is given
    """
    settings = settings or get_settings()
    timer = timer or AsyncioTimer()
    clock = clock or MonotonicClock()

    if durable_store is None and (
        settings.CACHE_PERSISTENCE_ENABLED or settings.TASK_PERSISTENCE_ENABLED
    ):
        durable_store = FileDurableStore(settings.CACHE_PERSISTENCE_PATH)

    cache: CacheManager = CacheManager(
        CacheConfiguration.from_settings(settings),
        timer=timer,
        clock=clock,
        durable_store=durable_store,
    )
    scheduler = BackgroundScheduler(
        timer=timer,
        cache_manager=cache,
        durable_store=durable_store,
        persistence_enabled=settings.TASK_PERSISTENCE_ENABLED,
        compress=settings.CACHE_COMPRESSION_ENABLED,
    )

    return PerformanceServices(
        settings=settings,
        cache=cache,
        scheduler=scheduler,
        pools=MemoryPoolManager(),
        monitor=PerformanceMonitor(clock=clock),
    )
