"""
Cache Value Objects

Immutable value objects for the cache domain.
Provides type safety and validation for cache configuration and reporting.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ...constants import (
    DEFAULT_MAX_SIZE_BYTES,
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_PERSISTENCE_PATH,
)


class Priority(int, Enum):
    """Priority levels shared by cache entries and background tasks.

    Lower values are evicted first.
    """

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @classmethod
    def parse(cls, value: Union["Priority", str, int]) -> "Priority":
        """Coerce a priority name ("low", "HIGH") or ordinal into a Priority."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown priority: {value!r}") from None
        return cls(value)


class EvictionPolicy(str, Enum):
    """Victim ordering used under capacity pressure."""

    LRU = "lru"
    LFU = "lfu"
    FIFO = "fifo"
    TTL = "ttl"
    RANDOM = "random"


class CacheEntryStatus(str, Enum):
    """Cache entry status enumeration."""

    ACTIVE = "active"
    EXPIRED = "expired"


class CacheConfiguration(BaseModel):
    """
    Cache manager configuration.

    Frozen: recreate the manager to change policy or limits.
    Durations are in seconds.
    """

    model_config = ConfigDict(frozen=True)

    max_size_bytes: int = Field(
        default=DEFAULT_MAX_SIZE_BYTES, gt=0, description="Capacity in bytes"
    )
    max_entries: int = Field(
        default=DEFAULT_MAX_ENTRIES, gt=0, description="Maximum number of entries"
    )
    default_ttl: float = Field(
        default=DEFAULT_TTL_SECONDS, gt=0, description="TTL applied when set() gets none"
    )
    sweep_interval: float = Field(
        default=DEFAULT_SWEEP_INTERVAL_SECONDS,
        gt=0,
        description="Seconds between TTL sweeps",
    )
    eviction_policy: EvictionPolicy = Field(
        default=EvictionPolicy.LRU, description="Victim ordering policy"
    )
    persistence_enabled: bool = Field(
        default=False, description="Write snapshots to the durable store"
    )
    persistence_path: str = Field(
        default=DEFAULT_PERSISTENCE_PATH,
        description="Directory for the file-backed durable store",
    )
    compression_enabled: bool = Field(
        default=True, description="Gzip-compress snapshot payloads"
    )

    @classmethod
    def from_settings(cls, settings) -> "CacheConfiguration":
        """Build a configuration from PerformanceSettings."""
        return cls(
            max_size_bytes=settings.CACHE_MAX_SIZE_BYTES,
            max_entries=settings.CACHE_MAX_ENTRIES,
            default_ttl=settings.CACHE_DEFAULT_TTL_SECONDS,
            sweep_interval=settings.CACHE_SWEEP_INTERVAL_SECONDS,
            eviction_policy=EvictionPolicy(settings.CACHE_EVICTION_POLICY),
            persistence_enabled=settings.CACHE_PERSISTENCE_ENABLED,
            persistence_path=settings.CACHE_PERSISTENCE_PATH,
            compression_enabled=settings.CACHE_COMPRESSION_ENABLED,
        )


class CacheStatistics(BaseModel):
    """Point-in-time statistics of the live entry population."""

    model_config = ConfigDict(frozen=True)

    total_entries: int = Field(..., ge=0)
    total_size_bytes: int = Field(..., ge=0)
    hit_rate: float = Field(
        ..., ge=0, le=1, description="Fraction of live entries read at least once"
    )
    miss_rate: float = Field(..., ge=0, le=1)
    average_access_count: float = Field(..., ge=0)
    oldest_entry: Optional[float] = Field(
        None, description="Monotonic creation time of the oldest live entry"
    )
    newest_entry: Optional[float] = Field(
        None, description="Monotonic creation time of the newest live entry"
    )
