"""Artifact planning, manifests and writing."""

from msi_splitter.output.manifest import Manifest, build_manifest, read_manifest, write_manifest
from msi_splitter.output.planner import ArtifactPlanner, Preview, plan_artifacts, prepare_groups
from msi_splitter.output.tree import FileNode, FolderNode, build_tree
from msi_splitter.output.writer import DocumentWriter, SplitResult

__all__ = [
    "ArtifactPlanner",
    "DocumentWriter",
    "FileNode",
    "FolderNode",
    "Manifest",
    "Preview",
    "SplitResult",
    "build_manifest",
    "build_tree",
    "plan_artifacts",
    "prepare_groups",
    "read_manifest",
    "write_manifest",
]
