"""
Cache Repository Interfaces

Abstract repository interfaces following DDD Repository pattern.
Defines contracts for the in-memory entry store, the durable snapshot
sink and value size estimation.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional

from .entities import CacheEntry


class EntryStoreInterface(ABC):
    """
    Abstract store for live cache entries.

    Owned by exactly one cache manager. Implementations keep a running
    byte total so capacity checks do not rescan the store.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Find entry by key."""
        pass

    @abstractmethod
    def put(self, entry: CacheEntry) -> Optional[CacheEntry]:
        """Insert or replace entry, returning the replaced entry if any."""
        pass

    @abstractmethod
    def remove(self, key: str) -> Optional[CacheEntry]:
        """Remove entry by key, returning it if it was present."""
        pass

    @abstractmethod
    def clear(self) -> int:
        """Remove all entries and return how many were removed."""
        pass

    @abstractmethod
    def entries(self) -> List[CacheEntry]:
        """Return a snapshot list of entries in insertion order."""
        pass

    @abstractmethod
    def total_size_bytes(self) -> int:
        """Sum of size_bytes over all entries."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    @abstractmethod
    def __contains__(self, key: object) -> bool:
        pass

    def __iter__(self) -> Iterator[str]:
        return iter([entry.key for entry in self.entries()])


class DurableStoreInterface(ABC):
    """
    Abstract durable key-value sink for snapshots.

    Overwrite-only: the core never reads back or performs
    read-modify-write against the store.
    """

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Persist ``value`` under ``key``, replacing any previous value."""
        pass


class SizeEstimatorInterface(ABC):
    """Estimate the serialized size of a cached value in bytes."""

    @abstractmethod
    def estimate(self, value: Any) -> int:
        """Return estimated size in bytes."""
        pass
