"""
Cache Domain Services

Business logic services for cache domain operations.
Implements victim selection under capacity pressure and staleness scans.
"""

import math
import random
from typing import Callable, Dict, Iterable, List, Optional

from ...constants import EVICTION_CAPACITY_FRACTION
from .entities import CacheEntry
from .value_objects import EvictionPolicy


_POLICY_SORT_KEYS: Dict[EvictionPolicy, Callable[[CacheEntry], float]] = {
    EvictionPolicy.LRU: lambda entry: entry.last_accessed_at,
    EvictionPolicy.LFU: lambda entry: entry.access_count,
    EvictionPolicy.FIFO: lambda entry: entry.created_at,
    EvictionPolicy.TTL: lambda entry: entry.created_at,
}


class EvictionService:
    """
    Domain service for eviction victim selection.

    Candidates are first ordered by the configured policy, then re-sorted
    (stably) by ascending priority, so a lower-priority entry is always
    evicted before a higher-priority one and the policy only breaks ties
    within the same priority.
    """

    def __init__(
        self, policy: EvictionPolicy, rng: Optional[random.Random] = None
    ):
        self.policy = EvictionPolicy(policy)
        self._rng = rng or random.Random()

    def order_candidates(self, entries: Iterable[CacheEntry]) -> List[CacheEntry]:
        """
        Order entries from first to last eviction candidate.

        Args:
            entries: Live entries to rank

        Returns:
            New list, first element is evicted first
        """
        ordered = list(entries)

        sort_key = _POLICY_SORT_KEYS.get(self.policy)
        if sort_key is not None:
            ordered.sort(key=sort_key)
        else:
            self._rng.shuffle(ordered)

        # list.sort is stable: policy order survives within a priority band
        ordered.sort(key=lambda entry: entry.priority)
        return ordered

    def select_victims(
        self, entries: Iterable[CacheEntry], count: int
    ) -> List[CacheEntry]:
        """Pick up to ``count`` entries to evict."""
        if count <= 0:
            return []
        return self.order_candidates(entries)[:count]

    @staticmethod
    def size_eviction_count(new_entry_size: int, max_size_bytes: int) -> int:
        """
        Number of entries to evict when an insert would exceed the byte limit.

        Heuristic: each evicted entry is assumed to free about one tenth of
        capacity, so the result may overshoot or undershoot the space the new
        entry actually needs. Callers insert regardless of the outcome.
        """
        step = max_size_bytes / EVICTION_CAPACITY_FRACTION
        return math.ceil(new_entry_size / step)


class ExpirationService:
    """Domain service for TTL staleness scans."""

    @staticmethod
    def find_expired(entries: Iterable[CacheEntry], now: float) -> List[CacheEntry]:
        """Return all entries stale at ``now``."""
        return [entry for entry in entries if entry.is_expired(now)]
