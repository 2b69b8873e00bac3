"""
Memory Pools

Fixed-capacity object pools and the manager that owns them. Pools are
pre-filled at creation and never grow; an empty pool reports a miss.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, NewType, Optional, TypeVar
from uuid import uuid4

import structlog

from ...exceptions import PoolNotFoundException
from ...monitoring.metrics import pool_allocations_total

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PoolHandle = NewType("PoolHandle", str)


@dataclass
class PoolStatistics:
    """Allocation counters for a memory pool. Counters never decrease."""

    total_allocations: int = 0
    total_deallocations: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    miss_rate: float = 0.0
    peak_usage: int = 0
    average_usage: float = 0.0
    _usage_samples: int = field(default=0, repr=False)

    def record_usage(self, in_use: int) -> None:
        """Fold the current number of checked-out items into peak/average usage."""
        self.peak_usage = max(self.peak_usage, in_use)
        self._usage_samples += 1
        self.average_usage += (in_use - self.average_usage) / self._usage_samples

    def refresh_rates(self) -> None:
        moves = self.total_allocations + self.total_deallocations
        self.hit_rate = self.total_allocations / moves if moves else 0.0
        attempts = self.total_allocations + self.misses
        self.miss_rate = self.misses / attempts if attempts else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_allocations": self.total_allocations,
            "total_deallocations": self.total_deallocations,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "miss_rate": self.miss_rate,
            "peak_usage": self.peak_usage,
            "average_usage": self.average_usage,
        }


class MemoryPool(Generic[T]):
    """
    Fixed set of reusable items.

    Every item is either available or allocated, never both. Allocated
    items are tracked by identity, so equal-but-distinct objects are not
    confused on deallocate().
    """

    def __init__(
        self,
        name: str,
        item_type: str,
        max_size: int,
        factory: Optional[Callable[[], T]] = None,
        pool_id: Optional[str] = None,
    ):
        if max_size < 0:
            raise ValueError("Pool max_size cannot be negative")

        self.id = pool_id or uuid4().hex
        self.name = name
        self.item_type = item_type
        self.max_size = max_size
        self.statistics = PoolStatistics()

        make = factory or dict
        self._available: List[T] = [make() for _ in range(max_size)]
        self._allocated: Dict[int, T] = {}

    @property
    def available(self) -> List[T]:
        return list(self._available)

    @property
    def allocated(self) -> List[T]:
        return list(self._allocated.values())

    @property
    def in_use(self) -> int:
        return len(self._allocated)

    def allocate(self) -> Optional[T]:
        """Check out an item, or return None if the pool is exhausted."""
        if not self._available:
            self.statistics.misses += 1
            self.statistics.refresh_rates()
            pool_allocations_total.labels(pool=self.name, result="miss").inc()
            logger.debug("memory_pool_exhausted", pool=self.name, max_size=self.max_size)
            return None

        item = self._available.pop()
        self._allocated[id(item)] = item
        self.statistics.total_allocations += 1
        self.statistics.refresh_rates()
        self.statistics.record_usage(self.in_use)
        pool_allocations_total.labels(pool=self.name, result="hit").inc()
        return item

    def deallocate(self, item: T) -> bool:
        """
        Return an item to the pool.

        Returns:
            False, with no state change, if ``item`` is not currently
            allocated from this pool
        """
        if self._allocated.get(id(item)) is not item:
            return False

        del self._allocated[id(item)]
        self._available.append(item)
        self.statistics.total_deallocations += 1
        self.statistics.refresh_rates()
        self.statistics.record_usage(self.in_use)
        return True

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "item_type": self.item_type,
            "max_size": self.max_size,
            "available": len(self._available),
            "allocated": len(self._allocated),
            "statistics": self.statistics.to_dict(),
        }


class MemoryPoolManager:
    """Registry of memory pools addressed by handle."""

    def __init__(self) -> None:
        self._pools: Dict[str, MemoryPool] = {}

    def create(
        self,
        name: str,
        item_type: str,
        max_size: int,
        factory: Optional[Callable[[], Any]] = None,
    ) -> PoolHandle:
        """
        Create a pool pre-filled with ``max_size`` items.

        Args:
            name: Pool name
            item_type: Free-form label for the pooled item type
            max_size: Number of items in the pool
            factory: Builds one item; empty dicts when omitted

        Returns:
            Handle identifying the new pool
        """
        pool: MemoryPool = MemoryPool(name, item_type, max_size, factory)
        self._pools[pool.id] = pool
        logger.info(
            "memory_pool_created",
            pool_id=pool.id,
            name=name,
            item_type=item_type,
            max_size=max_size,
        )
        return PoolHandle(pool.id)

    def get(self, handle: PoolHandle) -> MemoryPool:
        pool = self._pools.get(handle)
        if pool is None:
            raise PoolNotFoundException(handle)
        return pool

    def allocate(self, handle: PoolHandle) -> Optional[Any]:
        return self.get(handle).allocate()

    def deallocate(self, handle: PoolHandle, item: Any) -> bool:
        return self.get(handle).deallocate(item)

    def list(self) -> List[MemoryPool]:
        return list(self._pools.values())

    def remove(self, handle: PoolHandle) -> MemoryPool:
        """Drop a pool from the registry. Items still checked out are abandoned."""
        pool = self.get(handle)
        del self._pools[handle]
        logger.info("memory_pool_removed", pool_id=pool.id, name=pool.name, in_use=pool.in_use)
        return pool

    def __len__(self) -> int:
        return len(self._pools)
