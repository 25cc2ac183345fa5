"""Destination storage interface.

A store is a hierarchical folder tree addressed by path segments. Folder
creation is create-if-absent and serialized per path, so concurrent writers
never race on the same folder.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Tuple

FolderKey = Tuple[str, ...]


def folder_key(segments: Sequence[str]) -> FolderKey:
    """Validated, hashable folder path."""
    key = tuple(segments)
    for segment in key:
        if not segment or segment in (".", "..") or "/" in segment or "\\" in segment:
            raise ValueError(f"Invalid folder segment: {segment!r}")
    return key


def _check_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid file name: {name!r}")


class DestinationStore(ABC):
    """Abstract destination tree.

    Subclasses implement the underscored primitives; the public coroutines
    validate arguments and serialize folder creation.
    """

    def __init__(self) -> None:
        self._folder_locks: Dict[FolderKey, asyncio.Lock] = {}

    def _lock_for(self, key: FolderKey) -> asyncio.Lock:
        lock = self._folder_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._folder_locks[key] = lock
        return lock

    async def ensure_folder(self, segments: Sequence[str]) -> None:
        """Create the folder (and parents) if absent."""
        key = folder_key(segments)
        async with self._lock_for(key):
            await self._create_folder(key)

    async def write_file(self, segments: Sequence[str], name: str, data: bytes) -> None:
        """Create or overwrite ``name`` inside the folder, creating folders as needed."""
        _check_name(name)
        await self.ensure_folder(segments)
        await self._write(folder_key(segments), name, data)

    async def read_file(self, segments: Sequence[str], name: str) -> bytes:
        """Read a file's bytes.

        Raises:
            FileNotFoundError: the file does not exist
        """
        _check_name(name)
        return await self._read(folder_key(segments), name)

    async def exists(self, segments: Sequence[str], name: str) -> bool:
        _check_name(name)
        return await self._exists(folder_key(segments), name)

    async def list_files(self, segments: Sequence[str]) -> List[str]:
        """File names directly inside the folder (empty if it does not exist)."""
        return await self._list(folder_key(segments))

    @abstractmethod
    async def _create_folder(self, key: FolderKey) -> None:
        pass

    @abstractmethod
    async def _write(self, key: FolderKey, name: str, data: bytes) -> None:
        pass

    @abstractmethod
    async def _read(self, key: FolderKey, name: str) -> bytes:
        pass

    @abstractmethod
    async def _exists(self, key: FolderKey, name: str) -> bool:
        pass

    @abstractmethod
    async def _list(self, key: FolderKey) -> List[str]:
        pass


__all__ = ["DestinationStore", "FolderKey", "folder_key"]
