"""
Unit tests for cache domain entities and value objects.
"""

import pytest
from pydantic import ValidationError

from perfcore.domain.cache.entities import CacheEntry
from perfcore.domain.cache.value_objects import (
    CacheConfiguration,
    CacheEntryStatus,
    EvictionPolicy,
    Priority,
)


class TestPriority:
    """Test Priority value object."""

    def test_ordering(self):
        """Test priorities compare from LOW to CRITICAL."""
        assert Priority.LOW < Priority.MEDIUM < Priority.HIGH < Priority.CRITICAL

    def test_parse_names_and_ordinals(self):
        """Test parsing names, ordinals and existing members."""
        assert Priority.parse("high") == Priority.HIGH
        assert Priority.parse(" Critical ") == Priority.CRITICAL
        assert Priority.parse(0) == Priority.LOW
        assert Priority.parse(Priority.MEDIUM) is Priority.MEDIUM

    def test_parse_unknown_name(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown priority"):
            Priority.parse("urgent")


class TestCacheEntry:
    """Test CacheEntry entity."""

    def test_create_stamps_access_time(self):
        """Test a new entry has last access equal to creation time."""
        entry = CacheEntry.create("k", "v", now=10.0, ttl=5, tags=["a", "b"])

        assert entry.created_at == 10.0
        assert entry.last_accessed_at == 10.0
        assert entry.access_count == 0
        assert entry.tags == frozenset({"a", "b"})
        assert entry.priority == Priority.MEDIUM

    def test_empty_key_rejected(self):
        """Test empty key validation."""
        with pytest.raises(ValueError, match="non-empty string"):
            CacheEntry.create("", "v", now=0.0, ttl=1)

    def test_negative_ttl_rejected(self):
        """Test negative TTL validation."""
        with pytest.raises(ValueError, match="TTL cannot be negative"):
            CacheEntry.create("k", "v", now=0.0, ttl=-1)

    def test_expiry_is_strictly_after_ttl(self):
        """Test an entry is fresh at exactly ttl seconds and stale after."""
        entry = CacheEntry.create("k", "v", now=100.0, ttl=10)

        assert not entry.is_expired(110.0)
        assert entry.is_expired(110.001)
        assert entry.get_status(105.0) == CacheEntryStatus.ACTIVE
        assert entry.get_status(111.0) == CacheEntryStatus.EXPIRED

    def test_zero_ttl_stale_once_time_moves(self):
        """Test a zero TTL entry goes stale as soon as the clock advances."""
        entry = CacheEntry.create("k", "v", now=1.0, ttl=0)

        assert not entry.is_expired(1.0)
        assert entry.is_expired(1.5)

    def test_access_updates_bookkeeping(self):
        """Test access increments count and moves last access."""
        entry = CacheEntry.create("k", "v", now=1.0, ttl=10)
        entry.access(3.0)
        entry.access(4.0)

        assert entry.access_count == 2
        assert entry.last_accessed_at == 4.0

    def test_has_any_tag(self):
        """Test tag intersection."""
        entry = CacheEntry.create("k", "v", now=0.0, ttl=1, tags=["user:1", "profile"])

        assert entry.has_any_tag(["profile"])
        assert entry.has_any_tag(["x", "user:1"])
        assert not entry.has_any_tag(["x"])
        assert not entry.has_any_tag([])

    def test_snapshot_restores_entry(self):
        """Test snapshot output rebuilds an equal entry."""
        entry = CacheEntry.create(
            "k", {"a": 1}, now=2.0, ttl=30, size_bytes=7, tags=["t"], priority=Priority.HIGH
        )
        entry.access(5.0)

        data = entry.to_snapshot()
        assert data["priority"] == "high"
        assert data["tags"] == ["t"]
        assert CacheEntry.from_snapshot(data) == entry


class TestCacheConfiguration:
    """Test CacheConfiguration value object."""

    def test_defaults(self):
        """Test default limits."""
        config = CacheConfiguration()

        assert config.max_size_bytes == 100 * 1024 * 1024
        assert config.max_entries == 10_000
        assert config.default_ttl == 3600
        assert config.eviction_policy == EvictionPolicy.LRU
        assert config.persistence_enabled is False

    def test_policy_from_string(self):
        """Test the policy accepts its string value."""
        assert CacheConfiguration(eviction_policy="lfu").eviction_policy == EvictionPolicy.LFU

    def test_non_positive_limits_rejected(self):
        """Test limits must be positive."""
        with pytest.raises(ValidationError):
            CacheConfiguration(max_entries=0)
        with pytest.raises(ValidationError):
            CacheConfiguration(max_size_bytes=-1)

    def test_frozen(self):
        """Test the configuration is immutable."""
        config = CacheConfiguration()
        with pytest.raises(ValidationError):
            config.max_entries = 5
