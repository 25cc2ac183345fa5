"""Subtype smoothing.

Cover pages (BM.01), KTKS control pages and pages without a usable subtype are
weak signals: the classifier often tags them OTHER or copies a subtype from a
generic title. Their subtype is replaced with the one from the nearest strong
page, looking forward first (the content of a cover normally follows it) and
backward second.

This is the only implementation; the preview planner and the writer both call
it, so dry runs and committed runs always agree.
"""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from msi_splitter.models import PageInfo, PageType, SubType

COVER_CODE = "BM.01"
DEFAULT_LOOKAHEAD = 20
DEFAULT_LOOKBACK = 10


def _has_subtype(page: PageInfo) -> bool:
    return page.sub_type is not None and page.sub_type != SubType.OTHER


def _is_cover(page: PageInfo) -> bool:
    return page.form_code is not None and COVER_CODE in page.form_code.upper()


def is_weak(page: PageInfo) -> bool:
    """Page whose subtype should be taken from a neighbour."""
    return not _has_subtype(page) or _is_cover(page) or page.page_type == PageType.KTKS


def is_strong(page: PageInfo) -> bool:
    """Page whose subtype is authoritative for its neighbours."""
    if not _has_subtype(page):
        return False
    if page.page_type == PageType.SOURCE_MESSAGE:
        return True
    return page.form_code is not None and not _is_cover(page)


def _authoritative_subtype(
    pages: Sequence[PageInfo],
    index: int,
    lookahead: int,
    lookback: int,
) -> SubType | None:
    for j in range(index + 1, min(index + 1 + lookahead, len(pages))):
        if is_strong(pages[j]):
            return pages[j].sub_type

    for j in range(index - 1, max(-1, index - 1 - lookback), -1):
        if _has_subtype(pages[j]):
            return pages[j].sub_type

    return None


def _smoothing_pass(pages: Sequence[PageInfo], lookahead: int, lookback: int) -> int:
    changed = 0
    for i, page in enumerate(pages):
        if not is_weak(page):
            continue
        subtype = _authoritative_subtype(pages, i, lookahead, lookback)
        if subtype is not None and subtype != page.sub_type:
            page.sub_type = subtype
            changed += 1
    return changed


def smooth_subtypes(
    pages: Sequence[PageInfo],
    lookahead: int = DEFAULT_LOOKAHEAD,
    lookback: int = DEFAULT_LOOKBACK,
) -> Sequence[PageInfo]:
    """Repair weak page subtypes in place.

    A single pass can feed a freshly repaired value into a later page's
    backward search, or change a page that is both weak and strong (a coded
    KTKS page) after an earlier page already copied it. Passes repeat until
    nothing changes, so the result is a fixed point and applying the function
    again is a no-op.

    Only ``sub_type`` is modified.

    Args:
        pages: pages of one source document in page order
        lookahead: forward search window (pages)
        lookback: backward search window (pages)

    Returns:
        The same sequence, for chaining.
    """
    max_passes = len(pages) + 1
    for _ in range(max_passes):
        if _smoothing_pass(pages, lookahead, lookback) == 0:
            return pages

    logger.warning(f"Subtype smoothing did not settle after {max_passes} passes")
    return pages


__all__ = ["is_weak", "is_strong", "smooth_subtypes", "DEFAULT_LOOKAHEAD", "DEFAULT_LOOKBACK"]
