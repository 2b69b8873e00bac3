"""
Cache Domain Entities

Core domain entities for cache management.
Encapsulates freshness, access bookkeeping and tag matching for entries.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Generic, Iterable, Optional, TypeVar

from .value_objects import CacheEntryStatus, Priority

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """
    Cache entry entity.

    Timestamps come from the owning manager's monotonic clock, in seconds.
    An entry is stale once more than ``ttl`` seconds have passed since
    ``created_at``.
    """

    key: str
    value: V
    created_at: float
    ttl: float
    size_bytes: int = 0
    tags: FrozenSet[str] = field(default_factory=frozenset)
    priority: Priority = Priority.MEDIUM
    access_count: int = 0
    last_accessed_at: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate entry invariants."""
        if not isinstance(self.key, str) or not self.key:
            raise ValueError("Cache key must be a non-empty string")
        if self.ttl < 0:
            raise ValueError("TTL cannot be negative")
        if self.size_bytes < 0:
            raise ValueError("Entry size cannot be negative")

        self.tags = frozenset(self.tags)
        self.priority = Priority.parse(self.priority)
        if self.last_accessed_at is None:
            self.last_accessed_at = self.created_at

    @classmethod
    def create(
        cls,
        key: str,
        value: V,
        *,
        now: float,
        ttl: float,
        size_bytes: int = 0,
        tags: Optional[Iterable[str]] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> "CacheEntry[V]":
        """Create new cache entry stamped at ``now``."""
        return cls(
            key=key,
            value=value,
            created_at=now,
            ttl=float(ttl),
            size_bytes=int(size_bytes),
            tags=frozenset(tags or ()),
            priority=priority,
            last_accessed_at=now,
        )

    def is_expired(self, now: float) -> bool:
        """Check if entry is stale at ``now``."""
        return now - self.created_at > self.ttl

    def access(self, now: float) -> None:
        """Record a successful read."""
        self.access_count += 1
        self.last_accessed_at = now

    def has_any_tag(self, tags: Iterable[str]) -> bool:
        """Check if the entry's tag set intersects ``tags``."""
        return not self.tags.isdisjoint(tags)

    def get_status(self, now: float) -> CacheEntryStatus:
        """Get current status of cache entry."""
        if self.is_expired(now):
            return CacheEntryStatus.EXPIRED
        return CacheEntryStatus.ACTIVE

    def to_snapshot(self) -> Dict[str, Any]:
        """Serialize entry metadata and value for persistence."""
        return {
            "key": self.key,
            "value": self.value,
            "created_at": self.created_at,
            "ttl": self.ttl,
            "size_bytes": self.size_bytes,
            "tags": sorted(self.tags),
            "priority": self.priority.name.lower(),
            "access_count": self.access_count,
            "last_accessed_at": self.last_accessed_at,
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "CacheEntry[Any]":
        """Rebuild an entry from ``to_snapshot`` output."""
        return cls(
            key=data["key"],
            value=data["value"],
            created_at=float(data["created_at"]),
            ttl=float(data["ttl"]),
            size_bytes=int(data.get("size_bytes", 0)),
            tags=frozenset(data.get("tags", ())),
            priority=Priority.parse(data.get("priority", Priority.MEDIUM)),
            access_count=int(data.get("access_count", 0)),
            last_accessed_at=data.get("last_accessed_at"),
        )
