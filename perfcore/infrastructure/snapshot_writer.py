"""
Snapshot Writer

Coalescing, fire-and-forget snapshot persistence shared by the cache
manager and the background scheduler.
"""

import asyncio
from typing import Any, Callable, Dict, Iterable, Set

import structlog

from ..domain.cache.repository_interfaces import DurableStoreInterface
from ..monitoring.metrics import persistence_failures_total
from .serialization import encode_snapshot

logger = structlog.get_logger(__name__)

RecordsProvider = Callable[[], Iterable[Dict[str, Any]]]


class SnapshotWriter:
    """
    Writes one collection snapshot to a durable store in the background.

    At most one write is queued at a time: mutations made while a write is
    queued are picked up by it, mutations made while a write is in progress
    queue exactly one more. Writes are serialized so the last one to finish
    always carries the newest state. Failures are logged and counted, never
    raised to the code that requested the write.
    """

    def __init__(
        self,
        store: DurableStoreInterface,
        key: str,
        records: RecordsProvider,
        *,
        compress: bool = False,
    ):
        self.store = store
        self.key = key
        self._records = records
        self._compress = compress
        self._scheduled = False
        self._dirty = False
        self._pending: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    def schedule(self) -> None:
        """
        Queue a snapshot write on the running event loop.

        Outside a running loop the write is deferred: the writer stays dirty
        and the next schedule() or flush() inside a loop writes the latest
        state.
        """
        if self._scheduled:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if not self._dirty:
                logger.warning(
                    "snapshot_write_deferred", key=self.key, reason="no_running_event_loop"
                )
            self._dirty = True
            return

        self._scheduled = True
        task = loop.create_task(self._write())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait until every queued write has finished, writing deferred state first."""
        if self._dirty:
            self.schedule()
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def dirty(self) -> bool:
        return self._dirty

    async def _write(self) -> None:
        async with self._lock:
            self._scheduled = False
            self._dirty = False
            try:
                payload = encode_snapshot(self._records(), compress=self._compress)
                await self.store.put(self.key, payload)
            except Exception as e:
                persistence_failures_total.labels(collection=self.key).inc()
                logger.error(
                    "snapshot_write_failed",
                    key=self.key,
                    error=str(e),
                    error_type=type(e).__name__,
                )
