"""Filesystem-backed destination store."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import List

from loguru import logger

from msi_splitter.exceptions import DirectoryPermissionError
from msi_splitter.storage.base import DestinationStore, FolderKey


class LocalDirectoryStore(DestinationStore):
    """Destination tree rooted at a local directory.

    Writes go to a temporary file in the target folder and are moved into
    place with ``os.replace``, so readers never see a half-written PDF.
    Permission failures surface as DirectoryPermissionError.
    """

    def __init__(self, root: str | Path, create: bool = True):
        super().__init__()
        self.root = Path(root)
        if create:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except PermissionError as e:
                raise DirectoryPermissionError(f"Cannot create destination root {self.root}", e) from e
        if not self.root.is_dir():
            raise DirectoryPermissionError(f"Destination root is not a directory: {self.root}")

    def __repr__(self) -> str:
        return f"LocalDirectoryStore({str(self.root)!r})"

    def path_for(self, key: FolderKey) -> Path:
        return self.root.joinpath(*key)

    async def _create_folder(self, key: FolderKey) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        except PermissionError as e:
            raise DirectoryPermissionError(f"Permission denied creating {path}", e) from e

    def _write_atomic(self, folder: Path, name: str, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=".part", dir=folder)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, folder / name)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    async def _write(self, key: FolderKey, name: str, data: bytes) -> None:
        folder = self.path_for(key)
        try:
            await asyncio.to_thread(self._write_atomic, folder, name, data)
        except PermissionError as e:
            raise DirectoryPermissionError(f"Permission denied writing {folder / name}", e) from e
        logger.debug(f"Wrote {folder / name} ({len(data)} bytes)")

    async def _read(self, key: FolderKey, name: str) -> bytes:
        path = self.path_for(key) / name
        try:
            return await asyncio.to_thread(path.read_bytes)
        except PermissionError as e:
            raise DirectoryPermissionError(f"Permission denied reading {path}", e) from e

    async def _exists(self, key: FolderKey, name: str) -> bool:
        return await asyncio.to_thread((self.path_for(key) / name).is_file)

    def _list_sync(self, key: FolderKey) -> List[str]:
        folder = self.path_for(key)
        if not folder.is_dir():
            return []
        return sorted(p.name for p in folder.iterdir() if p.is_file() and not p.name.startswith(".tmp-"))

    async def _list(self, key: FolderKey) -> List[str]:
        return await asyncio.to_thread(self._list_sync, key)


__all__ = ["LocalDirectoryStore"]
