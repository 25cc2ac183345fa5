"""Page grouping tests."""

from helpers import make_page

from msi_splitter.models import PageMarker, PageType, ServiceType, SubType
from msi_splitter.splitting.grouping import group_pages


def _ranges(groups):
    return [(g.start_page, g.end_page) for g in groups]


class TestGroupPages:
    def test_headers_split_groups(self):
        headers = {1, 4, 8}
        pages = [make_page(n, form_code=f"QT.MSI-BM.0{n % 4 + 1}" if n in headers else None, header=n in headers) for n in range(1, 11)]

        groups = group_pages(pages)

        assert _ranges(groups) == [(1, 3), (4, 7), (8, 10)]

    def test_groups_partition_pages(self):
        pages = [make_page(n, header=n in (2, 3, 7)) for n in range(1, 10)]

        groups = group_pages(pages)

        flattened = [p.page for g in groups for p in g.pages]
        assert flattened == list(range(1, 10))
        assert all(g.pages for g in groups)

    def test_empty_input_yields_no_groups(self):
        assert group_pages([]) == []

    def test_no_header_yields_single_group(self):
        pages = [make_page(n) for n in range(1, 5)]

        groups = group_pages(pages)

        assert _ranges(groups) == [(1, 4)]
        assert groups[0].form_code is None

    def test_leading_pages_form_group_without_form_code(self):
        pages = [
            make_page(1, form_code="IGNORED"),
            make_page(2),
            make_page(3, form_code="QT.MSI-BM.02", header=True),
        ]

        groups = group_pages(pages)

        assert _ranges(groups) == [(1, 2), (3, 3)]
        assert groups[0].form_code is None
        assert groups[1].form_code == "QT.MSI-BM.02"

    def test_marker_starts_group_without_header_flag(self):
        pages = [
            make_page(1, form_code="QT.MSI-BM.02", header=True),
            make_page(2, page_type=PageType.SOURCE_MESSAGE, marker=PageMarker.SOURCE_HEADER),
            make_page(3, page_type=PageType.LOG, marker=PageMarker.LOG_SCREEN),
            make_page(4, page_type=PageType.LOG),
        ]

        groups = group_pages(pages)

        assert _ranges(groups) == [(1, 1), (2, 2), (3, 4)]
        assert groups[2].is_log

    def test_continuation_pages_backfill_first_value_wins(self):
        pages = [
            make_page(1, form_code="QT.MSI-BM.04", header=True),
            make_page(2, service=ServiceType.RTP),
            make_page(3, service=ServiceType.EGC, sub=SubType.NAV),
            make_page(4, sub=SubType.MET),
        ]

        group = group_pages(pages)[0]

        assert group.service_type == ServiceType.RTP
        assert group.sub_type == SubType.NAV

    def test_header_values_are_not_overridden(self):
        pages = [
            make_page(1, form_code="QT.MSI-BM.04", header=True, service=ServiceType.NTX, sub=SubType.SAR),
            make_page(2, service=ServiceType.RTP, sub=SubType.MET),
        ]

        group = group_pages(pages)[0]

        assert group.service_type == ServiceType.NTX
        assert group.sub_type == SubType.SAR
