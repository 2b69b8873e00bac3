"""
Memory Pooling Services

Pre-filled object pools and their registry.
"""

from .memory_pool import MemoryPool, MemoryPoolManager, PoolHandle, PoolStatistics

__all__ = ["MemoryPool", "MemoryPoolManager", "PoolHandle", "PoolStatistics"]
