"""Core data model.

PageInfo is what the classifier produces for every physical page (and the only
thing the smoother mutates). DocumentGroup is a contiguous run of pages forming
one logical sub-document. OutputArtifact describes one rendered sub-PDF.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class PageType(str, Enum):
    """Structural role of a page."""

    KTKS = "KTKS"
    BM = "BM"
    SOURCE_MESSAGE = "SOURCE_MESSAGE"
    LOG = "LOG"


class ServiceType(str, Enum):
    """Broadcast service the content belongs to."""

    RTP = "RTP"
    EGC = "EGC"
    NTX = "NTX"
    OTHER = "OTHER"


class SubType(str, Enum):
    """Content category."""

    MET = "MET"
    NAV = "NAV"
    SAR = "SAR"
    ROUTE = "ROUTE"
    WX = "WX"
    OTHER = "OTHER"


class PageMarker(str, Enum):
    """Classifier's structural marker for a page."""

    FORM_HEADER = "FORM_HEADER"
    CONTENT = "CONTENT"
    SOURCE_HEADER = "SOURCE_HEADER"
    LOG_SCREEN = "LOG_SCREEN"


# Markers that start a new group regardless of isFormHeader.
BOUNDARY_MARKERS = frozenset({PageMarker.FORM_HEADER, PageMarker.SOURCE_HEADER, PageMarker.LOG_SCREEN})


class PageInfo(BaseModel):
    """Classification of a single physical page.

    Attributes:
        page: 1-based page number
        form_code: form template code (e.g. "QT.MSI-BM.02"), None if not detected
        is_form_header: page starts a new logical document
        page_type: structural role
        service_type: broadcast service, None if unknown
        sub_type: content category, None if unknown
        is_source_message_header: derived, True exactly for SOURCE_MESSAGE pages
        is_log_page: derived, True exactly for LOG pages
        broadcast_code: classifier hint (e.g. "MSI")
        service_hint: classifier hint (e.g. "NAVTEX")
        marker: classifier's structural marker (wire name "type")
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int = Field(ge=1)
    form_code: str | None = None
    is_form_header: bool = False
    page_type: PageType = PageType.BM
    service_type: ServiceType | None = None
    sub_type: SubType | None = None
    is_source_message_header: bool = False
    is_log_page: bool = False
    broadcast_code: str | None = None
    service_hint: str | None = None
    marker: PageMarker = Field(default=PageMarker.CONTENT, alias="type")

    @model_validator(mode="after")
    def _sync_derived_flags(self) -> PageInfo:
        self.is_source_message_header = self.page_type == PageType.SOURCE_MESSAGE
        self.is_log_page = self.page_type == PageType.LOG
        return self

    @property
    def is_boundary(self) -> bool:
        """True when this page starts a new document group."""
        return self.is_form_header or self.marker in BOUNDARY_MARKERS


@dataclass
class DocumentGroup:
    """Contiguous run of pages forming one logical document."""

    form_code: str | None
    service_type: ServiceType | None
    sub_type: SubType | None
    pages: list[PageInfo] = field(default_factory=list)

    @property
    def first_page(self) -> PageInfo:
        return self.pages[0]

    @property
    def start_page(self) -> int:
        return self.pages[0].page

    @property
    def end_page(self) -> int:
        return self.pages[-1].page

    @property
    def page_type(self) -> PageType:
        return self.pages[0].page_type

    @property
    def is_log(self) -> bool:
        return self.page_type == PageType.LOG

    @property
    def label(self) -> str:
        """Human-readable code used in run details."""
        return self.form_code or self.page_type.value


@dataclass(frozen=True)
class OutputArtifact:
    """One rendered sub-PDF and where it goes."""

    document_id: str
    filename: str
    destination_path: tuple[str, ...]
    start_page: int
    end_page: int
    code: str | None = None
    service_type: ServiceType | None = None
    sub_type: SubType | None = None
    is_log: bool = False

    @property
    def page_range(self) -> tuple[int, int]:
        return (self.start_page, self.end_page)

    @property
    def page_count(self) -> int:
        return self.end_page - self.start_page + 1

    @property
    def recommended_path(self) -> str:
        return "/".join(self.destination_path)


__all__ = [
    "PageType",
    "ServiceType",
    "SubType",
    "PageMarker",
    "BOUNDARY_MARKERS",
    "PageInfo",
    "DocumentGroup",
    "OutputArtifact",
]
