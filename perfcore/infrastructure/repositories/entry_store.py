"""
In-Memory Entry Store

Dictionary-backed implementation of EntryStoreInterface with a running
byte total.
"""

from typing import Dict, List, Optional

from ...domain.cache.entities import CacheEntry
from ...domain.cache.repository_interfaces import EntryStoreInterface


class InMemoryEntryStore(EntryStoreInterface):
    """Entry store keeping entries in insertion order."""

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._total_size = 0

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, entry: CacheEntry) -> Optional[CacheEntry]:
        replaced = self._entries.pop(entry.key, None)
        if replaced is not None:
            self._total_size -= replaced.size_bytes
        self._entries[entry.key] = entry
        self._total_size += entry.size_bytes
        return replaced

    def remove(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._total_size -= entry.size_bytes
        return entry

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        self._total_size = 0
        return count

    def entries(self) -> List[CacheEntry]:
        return list(self._entries.values())

    def total_size_bytes(self) -> int:
        return self._total_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
