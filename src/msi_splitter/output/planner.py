"""Artifact planning.

Turns classified pages into OutputArtifacts: smoothing, grouping, routing,
naming and collision resolution. Nothing is written here. The writer plans
each group through the same ArtifactPlanner, so a preview and the committed
run produce the same names and paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Set, Tuple

from loguru import logger

from msi_splitter.models import DocumentGroup, OutputArtifact, PageInfo
from msi_splitter.output.tree import FolderNode, build_tree
from msi_splitter.splitting.grouping import group_pages
from msi_splitter.splitting.naming import (
    filename_base,
    is_counter_named,
    numbered_filename,
    source_base_name,
)
from msi_splitter.splitting.routing import FolderRouter
from msi_splitter.splitting.smoothing import DEFAULT_LOOKAHEAD, DEFAULT_LOOKBACK, smooth_subtypes
from msi_splitter.storage.base import DestinationStore, FolderKey, folder_key


class ArtifactPlanner:
    """Plans one run's artifacts, one group at a time.

    BM.04-like groups skip names that exist in the destination or were
    claimed earlier in the run; all other groups reuse their name and
    overwrite. A name is claimed when it is planned, or, with
    ``reserve=False``, only once ``commit`` records a successful write.
    """

    def __init__(self, source_file_name: str, store: DestinationStore, router: FolderRouter | None = None):
        self.source_file_name = source_file_name
        self.store = store
        self.router = router or FolderRouter()
        self.claimed: Set[Tuple[FolderKey, str]] = set()

    def document_id(self, group: DocumentGroup) -> str:
        return f"{source_base_name(self.source_file_name)}-p{group.start_page}"

    async def _free_name(self, key: FolderKey, base: str) -> str:
        counter = 1
        while True:
            name = numbered_filename(base, counter)
            if (key, name) not in self.claimed and not await self.store.exists(key, name):
                return name
            counter += 1

    def commit(self, artifact: OutputArtifact) -> None:
        self.claimed.add((artifact.destination_path, artifact.filename))

    async def plan_group(self, group: DocumentGroup, reserve: bool = True) -> OutputArtifact:
        key = folder_key(self.router.route_group(group))
        base = filename_base(self.source_file_name, group)

        if is_counter_named(group):
            name = await self._free_name(key, base)
        else:
            name = numbered_filename(base, 1)
            if (key, name) in self.claimed:
                logger.debug(f"{name} planned twice in {'/'.join(key)}; later group overwrites")

        artifact = OutputArtifact(
            document_id=self.document_id(group),
            filename=name,
            destination_path=key,
            start_page=group.start_page,
            end_page=group.end_page,
            code=group.form_code,
            service_type=group.service_type,
            sub_type=group.sub_type,
            is_log=group.is_log,
        )
        if reserve:
            self.commit(artifact)
        return artifact


def drop_overwritten(artifacts: Sequence[OutputArtifact]) -> List[OutputArtifact]:
    """Keep only the last artifact written to each (folder, filename), in page order."""
    last = {(a.destination_path, a.filename): i for i, a in enumerate(artifacts)}
    return [a for i, a in enumerate(artifacts) if last[(a.destination_path, a.filename)] == i]


def prepare_groups(
    pages: Sequence[PageInfo],
    lookahead: int = DEFAULT_LOOKAHEAD,
    lookback: int = DEFAULT_LOOKBACK,
) -> List[DocumentGroup]:
    """Smooth subtypes in place, then group."""
    smooth_subtypes(pages, lookahead=lookahead, lookback=lookback)
    return group_pages(pages)


@dataclass
class Preview:
    """Dry-run result."""

    groups: List[DocumentGroup]
    artifacts: List[OutputArtifact]
    tree: FolderNode


async def plan_artifacts(
    pages: Sequence[PageInfo],
    source_file_name: str,
    store: DestinationStore,
    router: FolderRouter | None = None,
    lookahead: int = DEFAULT_LOOKAHEAD,
    lookback: int = DEFAULT_LOOKBACK,
) -> Preview:
    """Plan every artifact of a run without writing anything.

    Args:
        pages: classified pages (their subtypes are smoothed in place)
        source_file_name: name of the source PDF
        store: destination, consulted only for existing BM.04-like names
        router: folder router (default taxonomy when None)

    Returns:
        Groups, the artifacts left after overwrites (page order) and the
        resulting folder tree.
    """
    groups = prepare_groups(pages, lookahead, lookback)
    planner = ArtifactPlanner(source_file_name, store, router)
    artifacts = drop_overwritten([await planner.plan_group(group) for group in groups])
    logger.info(f"Planned {len(artifacts)} artifact(s) for {source_file_name}")
    return Preview(groups=groups, artifacts=artifacts, tree=build_tree(artifacts))


__all__ = ["ArtifactPlanner", "Preview", "drop_overwritten", "plan_artifacts", "prepare_groups"]
