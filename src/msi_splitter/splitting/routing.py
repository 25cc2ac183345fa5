"""Folder routing.

Maps a document group to its destination folder path in the station's filing
taxonomy. The decision table is fixed; only folder names can be overridden
through a YAML taxonomy file.

Decision table (first match wins):

1. form code contains BM.01      -> COVER / (KTKS-COVER | COVER) / subtype
2. page type LOG                 -> LOG-FTP / subtype
3. page type SOURCE_MESSAGE      -> SOURCE-MESSAGES / subtype
4. service folder from service type (EGC, NTX, else RTP):
   a. BM.04 -> service / processed / POST-TRANSMISSION-CHECK / subtype
   b. BM.02 -> service / processed / (ktks-processed | processed) / subtype
   c. BM.03 -> service / PRE-TRANSMISSION / (KTKS-PRE-TRANSMISSION | PRE-TRANSMISSION-CONTENT) / subtype
   d. any known service -> service / subtype
5. UNCLASSIFIED
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from msi_splitter.models import DocumentGroup, PageType, ServiceType, SubType


class FolderTaxonomy(BaseModel):
    """Folder names of the filing taxonomy."""

    cover: str = Field(default="COVER")
    cover_ktks: str = Field(default="KTKS-COVER")
    cover_qt: str = Field(default="COVER")
    log: str = Field(default="LOG-FTP")
    source_messages: str = Field(default="SOURCE-MESSAGES")
    service_rtp: str = Field(default="SERVICE-RTP")
    service_egc: str = Field(default="SERVICE-EGC")
    service_ntx: str = Field(default="SERVICE-NTX")
    processed: str = Field(default="PROCESSED-SOURCE-MESSAGES")
    processed_ktks: str = Field(default="KTKS-PROCESSED-SOURCE-MESSAGES")
    egc_suffix: str = Field(default="-EGC")
    post_transmission_check: str = Field(default="POST-TRANSMISSION-CHECK")
    pre_transmission: str = Field(default="PRE-TRANSMISSION")
    pre_transmission_ktks: str = Field(default="KTKS-PRE-TRANSMISSION")
    pre_transmission_content: str = Field(default="PRE-TRANSMISSION-CONTENT")
    unclassified: str = Field(default="UNCLASSIFIED")

    @field_validator("*")
    @classmethod
    def validate_segment(cls, v: str) -> str:
        if "/" in v or "\\" in v:
            raise ValueError(f"folder name must be a single path segment, got {v!r}")
        return v

    @classmethod
    def from_yaml(cls, path: Path) -> FolderTaxonomy:
        """Load folder name overrides from YAML (a flat mapping)."""
        with open(path, "r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f) or {}
        logger.debug(f"Loaded folder taxonomy overrides from {path}: {sorted(data)}")
        return cls(**data)


class FolderRouter:
    """Deterministic group -> folder path mapping.

    Never fails; anything unmatched lands in UNCLASSIFIED.
    """

    def __init__(self, taxonomy: FolderTaxonomy | None = None):
        self.taxonomy = taxonomy or FolderTaxonomy()

    def service_folder(self, service: ServiceType) -> str:
        if service == ServiceType.EGC:
            return self.taxonomy.service_egc
        if service == ServiceType.NTX:
            return self.taxonomy.service_ntx
        return self.taxonomy.service_rtp

    def processed_folder(self, service_folder: str) -> str:
        if service_folder == self.taxonomy.service_egc:
            return self.taxonomy.processed + self.taxonomy.egc_suffix
        return self.taxonomy.processed

    def ktks_processed_folder(self, service_folder: str) -> str:
        if service_folder == self.taxonomy.service_egc:
            return self.taxonomy.processed_ktks + self.taxonomy.egc_suffix
        return self.taxonomy.processed_ktks

    def route(
        self,
        form_code: str | None,
        service_type: ServiceType | None,
        sub_type: SubType | None,
        page_type: PageType,
    ) -> list[str]:
        """Destination folder segments.

        Args:
            form_code: form code of the group's first page
            service_type: group service type (None treated as OTHER)
            sub_type: group subtype (None treated as OTHER, kept literally)
            page_type: page type of the group's first page

        Returns:
            Folder path segments from the destination root.
        """
        t = self.taxonomy
        code = (form_code or "").upper()
        service = service_type or ServiceType.OTHER
        sub = (sub_type or SubType.OTHER).value
        is_ktks = page_type == PageType.KTKS

        if "BM.01" in code:
            return [t.cover, t.cover_ktks if is_ktks else t.cover_qt, sub]

        if page_type == PageType.LOG:
            return [t.log, sub]
        if page_type == PageType.SOURCE_MESSAGE:
            return [t.source_messages, sub]

        service_folder = self.service_folder(service)

        if "BM.04" in code:
            return [service_folder, self.processed_folder(service_folder), t.post_transmission_check, sub]

        if "BM.02" in code:
            processed = self.processed_folder(service_folder)
            # QT forms repeat the parent folder as their own child, as in the filing tree.
            child = self.ktks_processed_folder(service_folder) if is_ktks else processed
            return [service_folder, processed, child, sub]

        if "BM.03" in code:
            child = t.pre_transmission_ktks if is_ktks else t.pre_transmission_content
            return [service_folder, t.pre_transmission, child, sub]

        if service != ServiceType.OTHER:
            return [service_folder, sub]

        return [t.unclassified]

    def route_group(self, group: DocumentGroup) -> list[str]:
        """Route using the first page's form code and page type."""
        first = group.first_page
        return self.route(first.form_code, group.service_type, group.sub_type, first.page_type)


__all__ = ["FolderTaxonomy", "FolderRouter"]
