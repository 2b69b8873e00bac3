"""
Repository Implementations

Entry store and durable snapshot stores.
"""

from .entry_store import InMemoryEntryStore
from .durable_store import InMemoryDurableStore, FileDurableStore

__all__ = ["InMemoryEntryStore", "InMemoryDurableStore", "FileDurableStore"]
