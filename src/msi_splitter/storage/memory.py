"""In-memory destination store for dry runs and tests."""

from __future__ import annotations

from typing import Dict, List, Set, Tuple

from msi_splitter.storage.base import DestinationStore, FolderKey


class MemoryStore(DestinationStore):
    """Destination tree kept in dicts."""

    def __init__(self) -> None:
        super().__init__()
        self.folders: Set[FolderKey] = {()}
        self.files: Dict[Tuple[FolderKey, str], bytes] = {}

    async def _create_folder(self, key: FolderKey) -> None:
        for depth in range(1, len(key) + 1):
            self.folders.add(key[:depth])

    async def _write(self, key: FolderKey, name: str, data: bytes) -> None:
        self.files[(key, name)] = bytes(data)

    async def _read(self, key: FolderKey, name: str) -> bytes:
        try:
            return self.files[(key, name)]
        except KeyError:
            raise FileNotFoundError("/".join(key + (name,))) from None

    async def _exists(self, key: FolderKey, name: str) -> bool:
        return (key, name) in self.files

    async def _list(self, key: FolderKey) -> List[str]:
        return sorted(name for folder, name in self.files if folder == key)

    def paths(self) -> List[str]:
        """All stored files as ``a/b/name`` strings."""
        return sorted("/".join(folder + (name,)) for folder, name in self.files)


__all__ = ["MemoryStore"]
