"""
Durable Stores

Implementations of DurableStoreInterface:
- InMemoryDurableStore: keeps the last payload per key (tests, embedding hosts)
- FileDurableStore: one file per key under a directory, written atomically
"""

import asyncio
import os
import re
from pathlib import Path
from typing import Dict, Optional, Union

import structlog

from ...domain.cache.repository_interfaces import DurableStoreInterface
from ...exceptions import PersistenceException

logger = structlog.get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def _validate_key(key: str) -> None:
    """Reject keys that could escape the store directory."""
    if not key or not _KEY_PATTERN.match(key) or key in (".", ".."):
        raise PersistenceException(message=f"Invalid durable store key: {key!r}", key=key)


class InMemoryDurableStore(DurableStoreInterface):
    """Durable store keeping payloads in a dictionary."""

    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}
        self.write_count = 0

    async def put(self, key: str, value: bytes) -> None:
        _validate_key(key)
        self._data[key] = bytes(value)
        self.write_count += 1

    def read(self, key: str) -> Optional[bytes]:
        """Return the last payload written under ``key``."""
        return self._data.get(key)

    def keys(self):
        return list(self._data.keys())


class FileDurableStore(DurableStoreInterface):
    """
    Durable store writing ``<directory>/<key>`` files.

    Writes go to a temporary sibling first and are moved into place with
    os.replace, so readers never observe a partial snapshot. Blocking file
    I/O runs in a worker thread.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        _validate_key(key)
        return self.directory / key

    async def put(self, key: str, value: bytes) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._write_atomic, path, bytes(value))
        except OSError as e:
            raise PersistenceException(
                message=f"Failed to write snapshot {key}", key=key, original_error=e
            )
        logger.debug("durable_store_written", key=key, path=str(path), size=len(value))

    def read(self, key: str) -> Optional[bytes]:
        """Return the stored payload for ``key`` or None if absent."""
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    @staticmethod
    def _write_atomic(path: Path, value: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")
        with open(tmp_path, "wb") as fh:
            fh.write(value)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
