"""
Cache Services

High-level cache management built on the cache domain.
"""

from .cache_manager import CacheManager

__all__ = ["CacheManager"]
