"""Sub-PDF extraction (pypdf page copy, no re-rendering)."""

from __future__ import annotations

import io
from typing import Sequence

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from msi_splitter.exceptions import SourceDocumentError


class SourcePdf:
    """A loaded source PDF that sub-documents are copied from."""

    def __init__(self, data: bytes, name: str = "source.pdf"):
        self.name = name
        try:
            self.reader = PdfReader(io.BytesIO(data))
            self.page_count = len(self.reader.pages)
        except (PdfReadError, ValueError, OSError) as e:
            raise SourceDocumentError(f"Cannot read PDF {name}: {e}", e) from e

    def extract(self, page_numbers: Sequence[int]) -> bytes:
        """Copy the given 1-based pages, in order, into a new PDF.

        Raises:
            IndexError: a page number is outside the document
        """
        writer = PdfWriter()
        for number in page_numbers:
            if not 1 <= number <= self.page_count:
                raise IndexError(f"Page {number} out of range 1-{self.page_count} in {self.name}")
            writer.add_page(self.reader.pages[number - 1])
        buf = io.BytesIO()
        writer.write(buf)
        return buf.getvalue()


__all__ = ["SourcePdf"]
