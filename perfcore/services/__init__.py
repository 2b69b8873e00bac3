"""
Performance Services

Application services of the performance layer.
"""

from .cache import CacheManager
from .container import PerformanceServices, create_performance_services
from .loading import LazyLoader, LazyLoadingConfig
from .pooling import MemoryPool, MemoryPoolManager, PoolHandle, PoolStatistics
from .scheduler import BackgroundScheduler
from .virtualization import VirtualizationConfig, VirtualizedList

__all__ = [
    "CacheManager",
    "PerformanceServices",
    "create_performance_services",
    "LazyLoader",
    "LazyLoadingConfig",
    "MemoryPool",
    "MemoryPoolManager",
    "PoolHandle",
    "PoolStatistics",
    "BackgroundScheduler",
    "VirtualizationConfig",
    "VirtualizedList",
]
