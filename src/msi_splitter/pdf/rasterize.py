"""Page rasterization for the classifier (pypdfium2).

Only the classifier input is rasterized; output sub-PDFs are page copies.
"""

from __future__ import annotations

import asyncio
import io
from typing import List, Optional

import pypdfium2 as pdfium
from loguru import logger

from msi_splitter.exceptions import SourceDocumentError

# 2.5x (180 DPI) keeps small print on scanned forms legible.
DEFAULT_SCALE = 2.5
DEFAULT_JPEG_QUALITY = 90


def render_pages(
    data: bytes,
    scale: float = DEFAULT_SCALE,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    max_pages: Optional[int] = None,
) -> List[bytes]:
    """Render pages to JPEG bytes.

    Args:
        data: PDF bytes
        scale: render scale (1.0 = 72 DPI)
        jpeg_quality: JPEG quality
        max_pages: render only the first N pages, None for all

    Returns:
        JPEG bytes per page, in page order.

    Raises:
        SourceDocumentError: the PDF cannot be opened or rendered
    """
    try:
        pdf = pdfium.PdfDocument(data)
    except Exception as e:
        raise SourceDocumentError(f"Cannot open PDF: {e}", e) from e

    images: List[bytes] = []
    try:
        total = len(pdf)
        limit = total if max_pages is None else min(total, max_pages)
        for index in range(limit):
            page = pdf[index]
            try:
                bitmap = page.render(scale=scale)
                pil_image = bitmap.to_pil().convert("RGB")
                buf = io.BytesIO()
                pil_image.save(buf, format="JPEG", quality=jpeg_quality)
                images.append(buf.getvalue())
            finally:
                page.close()
    except SourceDocumentError:
        raise
    except Exception as e:
        raise SourceDocumentError(f"Page rendering failed: {e}", e) from e
    finally:
        pdf.close()

    logger.debug(f"Rendered {len(images)} page(s) at scale {scale}")
    return images


async def render_pages_async(
    data: bytes,
    scale: float = DEFAULT_SCALE,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    max_pages: Optional[int] = None,
) -> List[bytes]:
    """render_pages in a worker thread."""
    return await asyncio.to_thread(render_pages, data, scale, jpeg_quality, max_pages)


__all__ = ["render_pages", "render_pages_async", "DEFAULT_SCALE", "DEFAULT_JPEG_QUALITY"]
