"""
Prometheus Metrics

Process-wide collectors for the performance layer. Defined once at import
time on the default registry; label values distinguish instances.
"""

from prometheus_client import Counter, Histogram

cache_operations_total = Counter(
    "perfcore_cache_operations_total",
    "Cache operations by outcome",
    ["operation", "result"],
)

cache_evictions_total = Counter(
    "perfcore_cache_evictions_total",
    "Entries evicted under capacity pressure",
    ["policy", "reason"],
)

cache_expirations_total = Counter(
    "perfcore_cache_expirations_total",
    "Stale entries removed by sweep or read",
    ["source"],
)

persistence_failures_total = Counter(
    "perfcore_persistence_failures_total",
    "Snapshot writes that failed",
    ["collection"],
)

background_task_runs_total = Counter(
    "perfcore_background_task_runs_total",
    "Background task executions by final status",
    ["kind", "status"],
)

pool_allocations_total = Counter(
    "perfcore_pool_allocations_total",
    "Memory pool allocation attempts",
    ["pool", "result"],
)

operation_duration_seconds = Histogram(
    "perfcore_operation_duration_seconds",
    "Duration of monitored operations",
    ["operation", "status"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 30],
)
