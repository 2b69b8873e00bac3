"""
perfcore

In-process performance layer: tagged priority-aware cache, background
task scheduler, object pools, paginated lazy loading and list virtualization.
"""

from .constants import APP_NAME, APP_VERSION

__version__ = APP_VERSION

__all__ = ["APP_NAME", "APP_VERSION", "__version__"]
