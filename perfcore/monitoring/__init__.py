"""
Monitoring

Prometheus collectors and the named-operation performance monitor.
"""

from .performance_monitor import (
    OperationSummary,
    PerformanceMetrics,
    PerformanceMonitor,
    ResourceUsage,
)

__all__ = [
    "OperationSummary",
    "PerformanceMetrics",
    "PerformanceMonitor",
    "ResourceUsage",
]
