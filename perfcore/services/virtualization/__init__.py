"""
Virtualization Services

Viewport windowing for long fixed-height lists.
"""

from .virtualized_list import VirtualizationConfig, VirtualizedList

__all__ = ["VirtualizationConfig", "VirtualizedList"]
