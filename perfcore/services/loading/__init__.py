"""
Lazy Loading Services

Paginated accumulation over async fetch functions.
"""

from .lazy_loader import FetchFunction, LazyLoader, LazyLoadingConfig

__all__ = ["FetchFunction", "LazyLoader", "LazyLoadingConfig"]
