"""Reference materialization store adapters."""

from stickyresolve.stores.file import FileMaterializationStore
from stickyresolve.stores.memory import InMemoryMaterializationStore, StoreStats

__all__ = [
    "FileMaterializationStore",
    "InMemoryMaterializationStore",
    "StoreStats",
]
