"""Page grouping.

Segments a (smoothed) page sequence into DocumentGroups. A page opens a new
group when the classifier flags it as a header (``isFormHeader``) or marks it
FORM_HEADER / SOURCE_HEADER / LOG_SCREEN; both signals are honoured.
"""

from __future__ import annotations

from typing import Iterable

from msi_splitter.models import DocumentGroup, PageInfo


def group_pages(pages: Iterable[PageInfo]) -> list[DocumentGroup]:
    """Split pages into contiguous document groups.

    Groups partition the input exactly and keep page order. Service type and
    subtype come from the group's first page; missing values are backfilled
    from later pages, first value wins. Pages before the first header form a
    group without a form code.

    Args:
        pages: pages in page order

    Returns:
        Groups in page order (empty for no pages).
    """
    groups: list[DocumentGroup] = []
    current: DocumentGroup | None = None

    for page in pages:
        if page.is_boundary:
            if current is not None:
                groups.append(current)
            current = DocumentGroup(
                form_code=page.form_code,
                service_type=page.service_type,
                sub_type=page.sub_type,
                pages=[page],
            )
        elif current is None:
            current = DocumentGroup(
                form_code=None,
                service_type=page.service_type,
                sub_type=page.sub_type,
                pages=[page],
            )
        else:
            current.pages.append(page)
            if current.sub_type is None and page.sub_type is not None:
                current.sub_type = page.sub_type
            if current.service_type is None and page.service_type is not None:
                current.service_type = page.service_type

    if current is not None:
        groups.append(current)

    return groups


__all__ = ["group_pages"]
