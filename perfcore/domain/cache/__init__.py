"""
Cache Domain Module

Domain-Driven Design implementation for cache management.
Contains entities, value objects, repository interfaces, and domain services.
"""

from .entities import CacheEntry
from .value_objects import (
    Priority,
    EvictionPolicy,
    CacheEntryStatus,
    CacheConfiguration,
    CacheStatistics,
)
from .domain_services import EvictionService, ExpirationService
from .repository_interfaces import (
    EntryStoreInterface,
    DurableStoreInterface,
    SizeEstimatorInterface,
)

__all__ = [
    "CacheEntry",
    "Priority",
    "EvictionPolicy",
    "CacheEntryStatus",
    "CacheConfiguration",
    "CacheStatistics",
    "EvictionService",
    "ExpirationService",
    "EntryStoreInterface",
    "DurableStoreInterface",
    "SizeEstimatorInterface",
]
