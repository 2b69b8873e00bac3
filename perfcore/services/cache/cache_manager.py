"""
Cache Manager Service

High-level cache management service that orchestrates the entry store,
eviction and expiration domain services, the sweep timer and snapshot
persistence.
"""

from typing import Any, Dict, Generic, Iterable, List, Optional, TypeVar, Union

import structlog
from opentelemetry import trace

from ...constants import CACHE_SNAPSHOT_KEY
from ...core.config import get_settings
from ...domain.cache.domain_services import EvictionService, ExpirationService
from ...domain.cache.entities import CacheEntry
from ...domain.cache.repository_interfaces import (
    DurableStoreInterface,
    EntryStoreInterface,
    SizeEstimatorInterface,
)
from ...domain.cache.value_objects import (
    CacheConfiguration,
    CacheStatistics,
    Priority,
)
from ...infrastructure.repositories.durable_store import FileDurableStore
from ...infrastructure.repositories.entry_store import InMemoryEntryStore
from ...infrastructure.serialization import JsonSizeEstimator
from ...infrastructure.snapshot_writer import SnapshotWriter
from ...infrastructure.timing.asyncio_timer import AsyncioTimer, MonotonicClock
from ...infrastructure.timing.interfaces import Clock, Timer, TimerHandle
from ...monitoring.metrics import (
    cache_evictions_total,
    cache_expirations_total,
    cache_operations_total,
)

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

V = TypeVar("V")


def _normalize_tags(tags: Optional[Union[str, Iterable[str]]]) -> Optional[List[str]]:
    if tags is None:
        return None
    if isinstance(tags, str):
        return [tags]
    return list(tags)


class CacheManager(Generic[V]):
    """
    Tagged, priority-aware in-process cache.

    Runs on a single asyncio event loop; operations complete without
    yielding, so no locking is needed around the entry store. Eviction runs
    synchronously inside set(); stale entries are purged by get() on access
    and by a periodic sweep armed in initialize().

    Snapshot writes are fire-and-forget: callers never wait on, or see
    failures from, the durable store.
    """

    def __init__(
        self,
        config: Optional[CacheConfiguration] = None,
        *,
        timer: Optional[Timer] = None,
        clock: Optional[Clock] = None,
        durable_store: Optional[DurableStoreInterface] = None,
        size_estimator: Optional[SizeEstimatorInterface] = None,
        entry_store: Optional[EntryStoreInterface] = None,
        eviction_service: Optional[EvictionService] = None,
    ):
        self.config = config or CacheConfiguration.from_settings(get_settings())
        self._clock = clock or MonotonicClock()
        self._timer = timer or AsyncioTimer()
        self._store = entry_store or InMemoryEntryStore()
        self._size_estimator = size_estimator or JsonSizeEstimator()
        self._eviction = eviction_service or EvictionService(self.config.eviction_policy)

        if durable_store is None and self.config.persistence_enabled:
            durable_store = FileDurableStore(self.config.persistence_path)
        self._snapshot_writer: Optional[SnapshotWriter] = None
        if self.config.persistence_enabled and durable_store is not None:
            self._snapshot_writer = SnapshotWriter(
                durable_store,
                CACHE_SNAPSHOT_KEY,
                self._snapshot_records,
                compress=self.config.compression_enabled,
            )

        self._sweep_handle: Optional[TimerHandle] = None

    async def initialize(self) -> None:
        """Arm the periodic TTL sweep. Calling twice is a no-op."""
        if self._sweep_handle is not None:
            return

        self._sweep_handle = self._timer.every(self.config.sweep_interval, self.sweep)
        logger.info(
            "cache_manager_initialized",
            policy=self.config.eviction_policy.value,
            max_entries=self.config.max_entries,
            max_size_bytes=self.config.max_size_bytes,
            sweep_interval=self.config.sweep_interval,
            persistence_enabled=self.config.persistence_enabled,
        )

    def dispose(self) -> None:
        """Stop the sweep timer. Entries stay readable."""
        if self._sweep_handle is not None:
            self._timer.cancel(self._sweep_handle)
            self._sweep_handle = None
            logger.info("cache_manager_disposed")

    async def close(self) -> None:
        """Dispose and wait for outstanding snapshot writes."""
        self.dispose()
        await self.flush()

    async def flush(self) -> None:
        """Wait for outstanding snapshot writes to finish."""
        if self._snapshot_writer is not None:
            await self._snapshot_writer.flush()

    async def __aenter__(self) -> "CacheManager[V]":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_running(self) -> bool:
        """True while the sweep timer is armed."""
        return self._sweep_handle is not None

    # Cache operations

    async def set(
        self,
        key: str,
        value: V,
        ttl: Optional[float] = None,
        tags: Optional[Union[str, Iterable[str]]] = None,
        priority: Union[Priority, str, int] = Priority.MEDIUM,
    ) -> None:
        """
        Store a value, evicting other entries first if a limit would be breached.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (configuration default if omitted)
            tags: Tags used for bulk invalidation via clear()
            priority: Eviction priority, low priority entries go first

        The insert always happens, even if eviction could not free enough
        room for the new entry.
        """
        with tracer.start_as_current_span("cache_manager.set") as span:
            span.set_attribute("cache.key", key)

            entry: CacheEntry[V] = CacheEntry.create(
                key,
                value,
                now=self._clock.monotonic(),
                ttl=self.config.default_ttl if ttl is None else ttl,
                size_bytes=self._estimate_size(key, value),
                tags=_normalize_tags(tags),
                priority=Priority.parse(priority),
            )
            span.set_attribute("cache.size_bytes", entry.size_bytes)

            self._evict_if_needed(entry)
            self._store.put(entry)

            cache_operations_total.labels(operation="set", result="stored").inc()
            logger.debug(
                "cache_entry_set",
                key=key,
                size_bytes=entry.size_bytes,
                ttl=entry.ttl,
                priority=entry.priority.name.lower(),
            )

            self._schedule_persist()

    async def get(self, key: str, default: Optional[V] = None) -> Optional[V]:
        """
        Get a cached value.

        Args:
            key: Cache key
            default: Returned when the key is missing or stale

        Returns:
            Cached value, or ``default``. A stale entry is removed before
            returning.
        """
        with tracer.start_as_current_span("cache_manager.get") as span:
            span.set_attribute("cache.key", key)

            entry = self._store.get(key)
            if entry is None:
                span.set_attribute("cache_hit", False)
                cache_operations_total.labels(operation="get", result="miss").inc()
                return default

            now = self._clock.monotonic()
            if entry.is_expired(now):
                self._store.remove(key)
                span.set_attribute("cache_hit", False)
                cache_operations_total.labels(operation="get", result="expired").inc()
                cache_expirations_total.labels(source="read").inc()
                logger.debug("cache_entry_expired_on_read", key=key)
                self._schedule_persist()
                return default

            entry.access(now)
            span.set_attribute("cache_hit", True)
            cache_operations_total.labels(operation="get", result="hit").inc()
            return entry.value

    async def delete(self, key: str) -> bool:
        """
        Delete a cache entry.

        Returns:
            True if an entry was removed
        """
        removed = self._store.remove(key) is not None
        cache_operations_total.labels(
            operation="delete", result="removed" if removed else "missing"
        ).inc()

        if removed:
            logger.debug("cache_entry_deleted", key=key)
            self._schedule_persist()
        return removed

    async def clear(self, tags: Optional[Union[str, Iterable[str]]] = None) -> int:
        """
        Remove entries.

        Args:
            tags: If omitted, remove everything. Otherwise remove only
                entries whose tag set intersects ``tags``.

        Returns:
            Number of entries removed
        """
        tag_list = _normalize_tags(tags)

        with tracer.start_as_current_span("cache_manager.clear") as span:
            if tag_list is None:
                removed = self._store.clear()
            else:
                span.set_attribute("cache.tags", tag_list)
                victims = [
                    entry.key
                    for entry in self._store.entries()
                    if entry.has_any_tag(tag_list)
                ]
                for key in victims:
                    self._store.remove(key)
                removed = len(victims)

            span.set_attribute("cache.removed", removed)
            cache_operations_total.labels(operation="clear", result="ok").inc()
            logger.info("cache_cleared", tags=tag_list, removed=removed)

            if removed:
                self._schedule_persist()
            return removed

    async def sweep(self) -> int:
        """
        Remove every stale entry.

        Idempotent; safe to call at any point between other operations.

        Returns:
            Number of entries removed
        """
        with tracer.start_as_current_span("cache_manager.sweep") as span:
            now = self._clock.monotonic()
            expired = ExpirationService.find_expired(self._store.entries(), now)
            for entry in expired:
                self._store.remove(entry.key)

            span.set_attribute("cache.expired", len(expired))
            if expired:
                cache_expirations_total.labels(source="sweep").inc(len(expired))
                logger.debug("cache_sweep_completed", removed=len(expired))
                self._schedule_persist()
            return len(expired)

    def statistics(self) -> CacheStatistics:
        """
        Get statistics of the live entry population.

        hit_rate is the fraction of live entries read at least once; it
        describes the current population, not a request-level hit ratio.
        """
        entries = self._store.entries()
        total = len(entries)
        if total == 0:
            return CacheStatistics(
                total_entries=0,
                total_size_bytes=0,
                hit_rate=0.0,
                miss_rate=0.0,
                average_access_count=0.0,
            )

        accessed = sum(1 for entry in entries if entry.access_count > 0)
        hit_rate = accessed / total
        created = [entry.created_at for entry in entries]

        return CacheStatistics(
            total_entries=total,
            total_size_bytes=self._store.total_size_bytes(),
            hit_rate=hit_rate,
            miss_rate=1.0 - hit_rate,
            average_access_count=sum(entry.access_count for entry in entries) / total,
            oldest_entry=min(created),
            newest_entry=max(created),
        )

    def keys(self) -> List[str]:
        """Keys currently held, stale entries included until swept."""
        return [entry.key for entry in self._store.entries()]

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    # Eviction

    def _evict_if_needed(self, entry: CacheEntry) -> None:
        """Make room for ``entry`` according to the configured limits."""
        replaced = self._store.get(entry.key)

        projected_count = len(self._store) + (0 if replaced else 1)
        if projected_count > self.config.max_entries:
            self._evict(1, exclude=entry.key, reason="max_entries")

        current_size = self._store.total_size_bytes()
        if replaced is not None and entry.key in self._store:
            current_size -= replaced.size_bytes
        if current_size + entry.size_bytes > self.config.max_size_bytes:
            count = EvictionService.size_eviction_count(
                entry.size_bytes, self.config.max_size_bytes
            )
            self._evict(count, exclude=entry.key, reason="max_size_bytes")

    def _evict(self, count: int, *, exclude: str, reason: str) -> None:
        candidates = [e for e in self._store.entries() if e.key != exclude]
        victims = self._eviction.select_victims(candidates, count)
        for victim in victims:
            self._store.remove(victim.key)

        if victims:
            cache_evictions_total.labels(
                policy=self._eviction.policy.value, reason=reason
            ).inc(len(victims))
            logger.debug(
                "cache_entries_evicted",
                reason=reason,
                requested=count,
                evicted=[victim.key for victim in victims],
            )

    def _estimate_size(self, key: str, value: Any) -> int:
        try:
            return max(0, int(self._size_estimator.estimate(value)))
        except Exception as e:
            logger.warning("cache_size_estimation_failed", key=key, error=str(e))
            return 0

    # Persistence

    def _schedule_persist(self) -> None:
        if self._snapshot_writer is not None:
            self._snapshot_writer.schedule()

    def _snapshot_records(self) -> List[Dict[str, Any]]:
        return [entry.to_snapshot() for entry in self._store.entries()]
