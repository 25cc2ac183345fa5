"""Destination storage backends."""

from msi_splitter.storage.base import DestinationStore, folder_key
from msi_splitter.storage.local import LocalDirectoryStore
from msi_splitter.storage.memory import MemoryStore

__all__ = [
    "DestinationStore",
    "LocalDirectoryStore",
    "MemoryStore",
    "folder_key",
]
