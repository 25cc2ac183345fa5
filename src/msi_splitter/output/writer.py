"""Document writer.

Writes each planned group as a sub-PDF into the destination store, then
writes the run manifest once. A failing group is counted and reported but
does not stop the run; only a permission error on the destination aborts it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from loguru import logger

from msi_splitter.config import DEFAULT_MANIFEST_NAME, DEFAULT_STAGING_FOLDER
from msi_splitter.exceptions import (
    DirectoryPermissionError,
    GroupWriteError,
    ManifestWriteError,
)
from msi_splitter.models import DocumentGroup, OutputArtifact, PageInfo
from msi_splitter.output.manifest import Manifest, build_manifest, write_manifest
from msi_splitter.output.planner import ArtifactPlanner, drop_overwritten
from msi_splitter.pdf.extract import SourcePdf
from msi_splitter.splitting.routing import FolderRouter
from msi_splitter.storage.base import DestinationStore

GroupProgress = Callable[[int, int], None]


@dataclass
class SplitResult:
    """Outcome of one run.

    Attributes:
        success: groups written
        failed: groups that could not be written
        details: one line per attempted group, plus manifest notes
        manifest: the manifest built for the run
        artifacts: artifacts on the destination after the run, in page order;
            a group overwritten by a later one is dropped
    """

    success: int = 0
    failed: int = 0
    details: List[str] = field(default_factory=list)
    manifest: Optional[Manifest] = None
    artifacts: List[OutputArtifact] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0


class DocumentWriter:
    """Persists document groups of one source PDF."""

    def __init__(
        self,
        store: DestinationStore,
        router: FolderRouter | None = None,
        staging_folder: str = DEFAULT_STAGING_FOLDER,
        manifest_name: str = DEFAULT_MANIFEST_NAME,
    ):
        self.store = store
        self.router = router or FolderRouter()
        self.staging_folder = staging_folder
        self.manifest_name = manifest_name

    async def _write_group(self, planner: ArtifactPlanner, source: SourcePdf, group: DocumentGroup) -> OutputArtifact:
        try:
            artifact = await planner.plan_group(group, reserve=False)
            data = await asyncio.to_thread(source.extract, [p.page for p in group.pages])
            await self.store.write_file(artifact.destination_path, artifact.filename, data)
            planner.commit(artifact)
        except DirectoryPermissionError:
            raise
        except Exception as e:
            raise GroupWriteError(str(e), code=group.label, original_error=e) from e
        return artifact

    async def write(
        self,
        source: SourcePdf,
        pages: Sequence[PageInfo],
        groups: Sequence[DocumentGroup],
        on_progress: GroupProgress | None = None,
    ) -> SplitResult:
        """Write all groups in page order, then the manifest.

        Args:
            source: loaded source PDF
            pages: smoothed pages (recorded in the manifest analysis)
            groups: groups built from ``pages``
            on_progress: called with (groups done, groups total)

        Returns:
            SplitResult with counts, detail lines and the manifest.

        Raises:
            DirectoryPermissionError: the destination refused access
        """
        result = SplitResult()
        planner = ArtifactPlanner(source.name, self.store, self.router)

        for index, group in enumerate(groups, start=1):
            try:
                artifact = await self._write_group(planner, source, group)
            except GroupWriteError as e:
                result.failed += 1
                result.details.append(f"[Error] Failed to save group {e.code}: {e}")
                logger.error(f"Group {group.label} (pages {group.start_page}-{group.end_page}) failed: {e}")
            else:
                result.success += 1
                result.artifacts.append(artifact)
                result.details.append(f"[OK] Saved {artifact.filename} to {artifact.recommended_path}")
                logger.debug(f"Saved {artifact.recommended_path}/{artifact.filename}")
            if on_progress is not None:
                on_progress(index, len(groups))

        result.artifacts = drop_overwritten(result.artifacts)
        result.manifest = build_manifest(source.name, pages, result.artifacts)
        try:
            path = await write_manifest(self.store, result.manifest, self.staging_folder, self.manifest_name)
            result.details.append(f"[INFO] Created {self.manifest_name} in {path.rsplit('/', 1)[0]}")
        except ManifestWriteError as e:
            logger.error(str(e))
            result.details.append(f"[Error] Manifest write failed: {e}")

        logger.info(f"{source.name}: {result.success} saved, {result.failed} failed")
        return result


__all__ = ["DocumentWriter", "SplitResult"]
