"""Per-file split pipeline.

rasterize -> classify (behind the rate gate) -> smooth -> group -> route/write

Usage:
    pipeline = SplitPipeline(config, classifier)
    result = await pipeline.process_file(Path("bundle.pdf"), LocalDirectoryStore("out"))
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, List, Optional, Union

from loguru import logger

from msi_splitter.classifiers.base import PageClassifier
from msi_splitter.classifiers.payload import default_page
from msi_splitter.config import SplitterConfig
from msi_splitter.exceptions import ClassifierError, SourceDocumentError
from msi_splitter.models import PageInfo
from msi_splitter.output.planner import Preview, plan_artifacts, prepare_groups
from msi_splitter.output.writer import DocumentWriter, SplitResult
from msi_splitter.pdf.extract import SourcePdf
from msi_splitter.pdf.rasterize import render_pages_async
from msi_splitter.scheduler import RateLimitGate
from msi_splitter.splitting.routing import FolderRouter, FolderTaxonomy
from msi_splitter.storage.base import DestinationStore

ProgressCallback = Callable[[int, str], None]


def build_router(config: SplitterConfig) -> FolderRouter:
    """Router with the configured taxonomy overrides, if any."""
    if config.taxonomy_file:
        return FolderRouter(FolderTaxonomy.from_yaml(Path(config.taxonomy_file)))
    return FolderRouter()


class SplitPipeline:
    """Splits one source PDF at a time; safe to share between jobs."""

    def __init__(
        self,
        config: SplitterConfig,
        classifier: PageClassifier,
        rate_gate: Optional[RateLimitGate] = None,
        router: Optional[FolderRouter] = None,
    ):
        self.config = config
        self.classifier = classifier
        self.rate_gate = rate_gate or RateLimitGate(config.scheduler.rate_limit_interval_s)
        self.router = router or build_router(config)

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], percent: int, message: str) -> None:
        logger.debug(f"[{percent:3d}%] {message}")
        if on_progress is not None:
            on_progress(percent, message)

    async def analyze(self, source: SourcePdf, data: bytes, on_progress: Optional[ProgressCallback] = None) -> List[PageInfo]:
        """Classify every page of the source.

        Pages past ``max_pages`` are not sent to the classifier and are
        treated as continuation pages.

        Raises:
            SourceDocumentError: rendering failed
            ClassifierError: classification failed or returned the wrong page count
        """
        self._report(on_progress, 5, f"Rendering {source.name}")
        images = await render_pages_async(
            data,
            scale=self.config.render_scale,
            jpeg_quality=self.config.jpeg_quality,
            max_pages=self.config.max_pages,
        )

        self._report(on_progress, 20, f"Classifying {len(images)} page(s)")
        async with self.rate_gate:
            pages = await self.classifier.classify(images)
        if len(pages) != len(images):
            raise ClassifierError(f"Classifier returned {len(pages)} page(s) for {len(images)} image(s)")

        if len(pages) < source.page_count:
            logger.warning(f"{source.name}: pages {len(pages) + 1}-{source.page_count} not classified")
            pages.extend(default_page(n) for n in range(len(pages) + 1, source.page_count + 1))
        return pages

    async def _load(self, path_or_data: Union[Path, str, bytes], name: Optional[str]) -> tuple[SourcePdf, bytes]:
        if isinstance(path_or_data, bytes):
            data = path_or_data
            name = name or "document.pdf"
        else:
            path = Path(path_or_data)
            try:
                data = await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                raise SourceDocumentError(f"Cannot read {path}: {e}", e) from e
            name = name or path.name
        return SourcePdf(data, name), data

    async def preview(
        self,
        path_or_data: Union[Path, str, bytes],
        store: DestinationStore,
        name: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Preview:
        """Classify and plan without writing anything."""
        source, data = await self._load(path_or_data, name)
        pages = await self.analyze(source, data, on_progress)
        self._report(on_progress, 60, "Planning")
        preview = await plan_artifacts(
            pages,
            source.name,
            store,
            self.router,
            lookahead=self.config.lookahead_pages,
            lookback=self.config.lookback_pages,
        )
        self._report(on_progress, 100, f"{len(preview.artifacts)} document(s) planned")
        return preview

    async def process_file(
        self,
        path_or_data: Union[Path, str, bytes],
        store: DestinationStore,
        name: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SplitResult:
        """Split one source PDF into the store.

        Args:
            path_or_data: file path or PDF bytes
            store: destination tree
            name: source file name (required to name outputs when passing bytes)
            on_progress: called with (percent, message)

        Returns:
            SplitResult of the run.

        Raises:
            SourceDocumentError: source unreadable
            ClassifierError: classification failed
            DirectoryPermissionError: destination refused access
        """
        source, data = await self._load(path_or_data, name)
        pages = await self.analyze(source, data, on_progress)

        self._report(on_progress, 60, "Grouping pages")
        groups = prepare_groups(pages, self.config.lookahead_pages, self.config.lookback_pages)
        logger.info(f"{source.name}: {len(pages)} page(s) -> {len(groups)} group(s)")

        def on_group(done: int, total: int) -> None:
            self._report(on_progress, 60 + int(40 * done / total), f"Saved group {done}/{total}")

        writer = DocumentWriter(store, self.router, self.config.staging_folder, self.config.manifest_name)
        result = await writer.write(source, pages, groups, on_progress=on_group)
        self._report(on_progress, 100, "Done")
        return result


__all__ = ["ProgressCallback", "SplitPipeline", "build_router"]
