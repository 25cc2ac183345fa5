"""Shared test builders: pages, blank PDFs and a scripted classifier."""

from __future__ import annotations

import io
from typing import List, Optional, Sequence

from pypdf import PdfReader, PdfWriter

from msi_splitter.classifiers.base import PageClassifier
from msi_splitter.exceptions import ClassifierError
from msi_splitter.models import PageInfo, PageMarker, PageType, ServiceType, SubType


def make_page(
    n: int,
    page_type: PageType = PageType.BM,
    form_code: Optional[str] = None,
    header: bool = False,
    service: Optional[ServiceType] = None,
    sub: Optional[SubType] = None,
    marker: PageMarker = PageMarker.CONTENT,
) -> PageInfo:
    return PageInfo(
        page=n,
        page_type=page_type,
        form_code=form_code,
        is_form_header=header,
        service_type=service,
        sub_type=sub,
        marker=marker,
    )


def blank_pdf(page_count: int) -> bytes:
    """PDF whose page N is (200 + N) points wide."""
    writer = PdfWriter()
    for n in range(1, page_count + 1):
        writer.add_blank_page(width=200 + n, height=300)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def page_numbers(data: bytes) -> List[int]:
    """Source page numbers of a PDF built from blank_pdf pages."""
    reader = PdfReader(io.BytesIO(data))
    return [round(float(p.mediabox.width)) - 200 for p in reader.pages]


class ScriptedClassifier(PageClassifier):
    """Returns copies of preset pages; can fail a number of times first."""

    name = "scripted"

    def __init__(self, pages: Sequence[PageInfo], failures: int = 0):
        self.pages = list(pages)
        self.failures = failures
        self.calls = 0

    async def classify(self, images: Sequence[bytes]) -> List[PageInfo]:
        self.calls += 1
        if self.calls <= self.failures:
            raise ClassifierError(f"scripted failure {self.calls}")
        return [p.model_copy() for p in self.pages[: len(images)]]
