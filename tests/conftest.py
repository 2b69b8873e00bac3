"""
Shared pytest configuration.

Fixtures build the performance services on virtual time so sweeps,
schedules and TTLs are driven explicitly by the tests.
"""

import pytest

from perfcore.domain.cache.value_objects import CacheConfiguration, EvictionPolicy
from perfcore.infrastructure.repositories.durable_store import InMemoryDurableStore
from perfcore.infrastructure.timing.manual import ManualClock, ManualTimer
from perfcore.services.cache.cache_manager import CacheManager


@pytest.fixture
def clock():
    """Virtual monotonic clock starting at t=1000."""
    return ManualClock(start=1000.0)


@pytest.fixture
def timer(clock):
    """Virtual timer bound to the test clock."""
    return ManualTimer(clock)


@pytest.fixture
def durable_store():
    """In-memory snapshot sink."""
    return InMemoryDurableStore()


@pytest.fixture
def cache_config():
    """Small cache: 10 entries, 10 KiB, 60s TTL, 30s sweep, LRU."""
    return CacheConfiguration(
        max_size_bytes=10 * 1024,
        max_entries=10,
        default_ttl=60.0,
        sweep_interval=30.0,
        eviction_policy=EvictionPolicy.LRU,
    )


@pytest.fixture
def cache(cache_config, clock, timer):
    """Cache manager on virtual time without persistence."""
    return CacheManager(cache_config, clock=clock, timer=timer)
