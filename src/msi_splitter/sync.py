"""Replay a staged run into another destination.

The staged manifest lists every artifact with its recommended path. Each one
is read from that path in the staging tree and written to the same path in the
destination tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from loguru import logger

from msi_splitter.config import DEFAULT_MANIFEST_NAME, DEFAULT_STAGING_FOLDER
from msi_splitter.output.manifest import read_manifest
from msi_splitter.storage.base import DestinationStore


@dataclass
class SyncResult:
    success: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


def _segments(recommended_path: str) -> List[str]:
    return [part for part in recommended_path.split("/") if part]


async def sync_to_destination(
    staging: DestinationStore,
    source_file_name: str,
    destination: DestinationStore,
    staging_folder: str = DEFAULT_STAGING_FOLDER,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
) -> SyncResult:
    """Copy every artifact of a staged run into ``destination``.

    Raises:
        ManifestReadError: the staged manifest is missing or malformed
        DirectoryPermissionError: either store refused access
    """
    manifest = await read_manifest(staging, source_file_name, staging_folder, manifest_name)
    result = SyncResult()

    for recommended_path, filename in manifest.artifact_locations():
        segments = _segments(recommended_path)
        try:
            data = await staging.read_file(segments, filename)
            await destination.write_file(segments, filename, data)
        except (OSError, ValueError) as e:
            result.failed += 1
            result.errors.append(f"{recommended_path}/{filename}: {e}")
            logger.error(f"Sync failed for {recommended_path}/{filename}: {e}")
            continue
        result.success += 1
        logger.debug(f"Synced {recommended_path}/{filename}")

    logger.info(f"Synced {source_file_name}: {result.success} copied, {result.failed} failed")
    return result


__all__ = ["SyncResult", "sync_to_destination"]
