"""Run manifest (extraction summary).

One JSON document per source file, stored at
``<staging folder>/<sanitized source base>/<manifest name>``. Field names are
camelCase on the wire; the sync step and external tooling read them.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from msi_splitter.config import DEFAULT_MANIFEST_NAME, DEFAULT_STAGING_FOLDER
from msi_splitter.exceptions import ManifestReadError, ManifestWriteError
from msi_splitter.models import OutputArtifact, PageInfo
from msi_splitter.splitting.naming import source_base_name
from msi_splitter.storage.base import DestinationStore


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentEntry(_CamelModel):
    id: str
    filename: str
    code: Optional[str] = None
    service_code: Optional[str] = None
    start_page: int
    end_page: int
    page_count: int
    recommended_path: str


class LogEntry(_CamelModel):
    filename: str
    page: int
    source_document_id: str = ""
    recommended_path: str


class Analysis(_CamelModel):
    broadcast_code: Optional[str] = None
    service_code: Optional[str] = None
    pages: List[dict[str, Any]] = Field(default_factory=list)


class Manifest(_CamelModel):
    """Extraction summary of one source file."""

    original_file_name: str
    broadcast_code: Optional[str] = None
    service_code: Optional[str] = None
    generated_at: str
    documents: List[DocumentEntry] = Field(default_factory=list)
    logs: List[LogEntry] = Field(default_factory=list)
    analysis: Analysis = Field(default_factory=Analysis)

    def artifact_locations(self) -> List[tuple[str, str]]:
        """(recommendedPath, filename) of every document and log."""
        return [(d.recommended_path, d.filename) for d in self.documents] + [
            (entry.recommended_path, entry.filename) for entry in self.logs
        ]

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, mode="json"), indent=2, ensure_ascii=False)


def _first_set(values: Sequence[Optional[str]]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


def build_manifest(
    source_file_name: str,
    pages: Sequence[PageInfo],
    artifacts: Sequence[OutputArtifact],
) -> Manifest:
    """Manifest for the artifacts written in one run.

    Logs reference the id of the closest preceding document ("" when none).
    """
    documents: List[DocumentEntry] = []
    logs: List[LogEntry] = []
    last_document_id = ""

    for artifact in artifacts:
        if artifact.is_log:
            logs.append(
                LogEntry(
                    filename=artifact.filename,
                    page=artifact.start_page,
                    source_document_id=last_document_id,
                    recommended_path=artifact.recommended_path,
                )
            )
            continue
        documents.append(
            DocumentEntry(
                id=artifact.document_id,
                filename=artifact.filename,
                code=artifact.code,
                service_code=artifact.service_type.value if artifact.service_type else None,
                start_page=artifact.start_page,
                end_page=artifact.end_page,
                page_count=artifact.page_count,
                recommended_path=artifact.recommended_path,
            )
        )
        last_document_id = artifact.document_id

    broadcast_code = _first_set([p.broadcast_code for p in pages])
    first_service = pages[0].service_type if pages else None
    return Manifest(
        original_file_name=source_file_name,
        broadcast_code=broadcast_code,
        service_code=first_service.value if first_service else "OTHER",
        generated_at=datetime.now(timezone.utc).isoformat(),
        documents=documents,
        logs=logs,
        analysis=Analysis(
            broadcast_code=broadcast_code,
            service_code=first_service.value if first_service else None,
            pages=[p.model_dump(by_alias=True, mode="json") for p in pages],
        ),
    )


def manifest_location(
    source_file_name: str,
    staging_folder: str = DEFAULT_STAGING_FOLDER,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
) -> tuple[tuple[str, str], str]:
    """(folder segments, file name) of the manifest for a source file."""
    return (staging_folder, source_base_name(source_file_name)), manifest_name


async def write_manifest(
    store: DestinationStore,
    manifest: Manifest,
    staging_folder: str = DEFAULT_STAGING_FOLDER,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
) -> str:
    """Persist the manifest; returns its path.

    Raises:
        ManifestWriteError: the store refused the write
    """
    folder, name = manifest_location(manifest.original_file_name, staging_folder, manifest_name)
    try:
        await store.write_file(folder, name, manifest.to_json().encode("utf-8"))
    except (OSError, ValueError) as e:
        raise ManifestWriteError(f"Cannot write manifest {'/'.join(folder)}/{name}: {e}", e) from e
    path = "/".join(folder + (name,))
    logger.info(f"Manifest written to {path}")
    return path


async def read_manifest(
    store: DestinationStore,
    source_file_name: str,
    staging_folder: str = DEFAULT_STAGING_FOLDER,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
) -> Manifest:
    """Load the staged manifest of a source file.

    Raises:
        ManifestReadError: manifest missing, not JSON or not a manifest
    """
    folder, name = manifest_location(source_file_name, staging_folder, manifest_name)
    path = "/".join(folder + (name,))
    try:
        raw = await store.read_file(folder, name)
    except FileNotFoundError as e:
        raise ManifestReadError(f"No manifest at {path}", e) from e
    except OSError as e:
        raise ManifestReadError(f"Cannot read manifest {path}: {e}", e) from e

    try:
        return Manifest.model_validate_json(raw)
    except ValidationError as e:
        raise ManifestReadError(f"Malformed manifest {path}: {e.error_count()} error(s)", e) from e


__all__ = [
    "Analysis",
    "DocumentEntry",
    "LogEntry",
    "Manifest",
    "build_manifest",
    "manifest_location",
    "read_manifest",
    "write_manifest",
]
