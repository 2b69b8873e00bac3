"""
perfcore Core Module

Settings and logging setup shared by all services.
"""

from .config import PerformanceSettings, get_settings
from .logging import configure_logging

__all__ = ["PerformanceSettings", "get_settings", "configure_logging"]
