"""Destination folder tree for previews.

An explicit tagged tree: folders hold child folders and files, both keyed by
name. Adding a file whose name already exists in a folder replaces it, which
mirrors the overwrite behaviour of the writer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Union

from msi_splitter.models import OutputArtifact


@dataclass
class FileNode:
    name: str
    artifact: OutputArtifact

    kind = "file"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "name": self.name,
            "pages": list(self.artifact.page_range),
            "code": self.artifact.code,
        }


@dataclass
class FolderNode:
    name: str
    folders: Dict[str, FolderNode] = field(default_factory=dict)
    files: Dict[str, FileNode] = field(default_factory=dict)

    kind = "folder"

    @property
    def children(self) -> List[Union[FolderNode, FileNode]]:
        """Folders first, then files, each sorted by name."""
        return [self.folders[k] for k in sorted(self.folders)] + [self.files[k] for k in sorted(self.files)]

    def folder(self, name: str) -> FolderNode:
        node = self.folders.get(name)
        if node is None:
            node = FolderNode(name)
            self.folders[name] = node
        return node

    def add(self, artifact: OutputArtifact) -> FileNode:
        node = self
        for segment in artifact.destination_path:
            node = node.folder(segment)
        file_node = FileNode(artifact.filename, artifact)
        node.files[artifact.filename] = file_node
        return file_node

    def file_count(self) -> int:
        return len(self.files) + sum(f.file_count() for f in self.folders.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "name": self.name,
            "children": [child.to_dict() for child in self.children],
        }

    def render_text(self) -> str:
        """Indented text listing, as printed by ``msi-splitter preview``."""
        lines: List[str] = [f"{self.name}/"]
        self._render(lines, "")
        return "\n".join(lines)

    def _render(self, lines: List[str], prefix: str) -> None:
        children = self.children
        for i, child in enumerate(children):
            last = i == len(children) - 1
            branch = "`-- " if last else "|-- "
            if isinstance(child, FolderNode):
                lines.append(f"{prefix}{branch}{child.name}/")
                child._render(lines, prefix + ("    " if last else "|   "))
            else:
                start, end = child.artifact.page_range
                lines.append(f"{prefix}{branch}{child.name}  (pages {start}-{end})")


def build_tree(artifacts: Iterable[OutputArtifact], root_name: str = ".") -> FolderNode:
    """Tree of planned artifacts; later artifacts replace same-named files."""
    root = FolderNode(root_name)
    for artifact in artifacts:
        root.add(artifact)
    return root


__all__ = ["FileNode", "FolderNode", "build_tree"]
