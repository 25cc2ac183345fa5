"""PDF input helpers."""

from msi_splitter.pdf.extract import SourcePdf
from msi_splitter.pdf.rasterize import render_pages, render_pages_async

__all__ = ["SourcePdf", "render_pages", "render_pages_async"]
