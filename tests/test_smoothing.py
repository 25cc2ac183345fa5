"""Subtype smoothing tests."""

from helpers import make_page

from msi_splitter.models import PageType, ServiceType, SubType
from msi_splitter.splitting.smoothing import is_strong, is_weak, smooth_subtypes


class TestPageStrength:
    def test_cover_page_is_weak_even_with_subtype(self):
        page = make_page(1, form_code="QT.MSI-BM.01", sub=SubType.NAV)
        assert is_weak(page)
        assert not is_strong(page)

    def test_ktks_page_is_weak(self):
        page = make_page(1, page_type=PageType.KTKS, form_code="KTKS.MSI.TC-BM.02", sub=SubType.MET)
        assert is_weak(page)

    def test_coded_form_with_subtype_is_strong(self):
        page = make_page(1, form_code="QT.MSI-BM.02", sub=SubType.MET)
        assert is_strong(page)
        assert not is_weak(page)

    def test_source_message_with_subtype_is_strong(self):
        assert is_strong(make_page(1, page_type=PageType.SOURCE_MESSAGE, sub=SubType.SAR))

    def test_other_subtype_is_never_strong(self):
        assert not is_strong(make_page(1, form_code="QT.MSI-BM.02", sub=SubType.OTHER))


class TestSmoothSubtypes:
    def test_forward_search_fills_preceding_and_backward_fills_trailing(self):
        pages = [
            make_page(1, sub=SubType.OTHER),
            make_page(2, sub=SubType.OTHER),
            make_page(3, form_code="QT.MSI-BM.02", sub=SubType.MET),
            make_page(4, sub=SubType.OTHER),
        ]

        smooth_subtypes(pages)

        assert [p.sub_type for p in pages] == [SubType.MET] * 4

    def test_cover_takes_subtype_of_following_content(self):
        pages = [
            make_page(1, form_code="QT.MSI-BM.01", header=True, sub=SubType.NAV),
            make_page(2, form_code="QT.MSI-BM.02", header=True, sub=SubType.MET),
        ]

        smooth_subtypes(pages)

        assert pages[0].sub_type == SubType.MET

    def test_forward_preferred_over_backward(self):
        pages = [
            make_page(1, page_type=PageType.SOURCE_MESSAGE, sub=SubType.SAR),
            make_page(2),
            make_page(3, form_code="QT.MSI-BM.03", sub=SubType.WX),
        ]

        smooth_subtypes(pages)

        assert pages[1].sub_type == SubType.WX

    def test_backward_search_accepts_any_set_subtype(self):
        pages = [
            make_page(1, sub=SubType.ROUTE),
            make_page(2),
        ]

        smooth_subtypes(pages)

        assert pages[1].sub_type == SubType.ROUTE

    def test_lookahead_window_is_twenty_pages(self):
        pages = [make_page(n) for n in range(1, 22)]
        pages.append(make_page(22, form_code="QT.MSI-BM.02", sub=SubType.MET))

        smooth_subtypes(pages)

        # Page 1 is 21 pages away from the strong page; page 2 is 20 away.
        assert pages[0].sub_type is None
        assert pages[1].sub_type == SubType.MET

    def test_windows_can_be_disabled(self):
        pages = [
            make_page(1, form_code="QT.MSI-BM.02", sub=SubType.NAV),
            make_page(2),
            make_page(3, form_code="QT.MSI-BM.02", sub=SubType.MET),
        ]

        smooth_subtypes(pages, lookahead=0, lookback=0)

        assert pages[1].sub_type is None

    def test_backward_only_when_lookahead_disabled(self):
        pages = [
            make_page(1, form_code="QT.MSI-BM.02", sub=SubType.NAV),
            make_page(2),
            make_page(3, form_code="QT.MSI-BM.02", sub=SubType.MET),
        ]

        smooth_subtypes(pages, lookahead=0)

        assert pages[1].sub_type == SubType.NAV

    def test_no_authority_leaves_page_unchanged(self):
        pages = [make_page(1), make_page(2, sub=SubType.OTHER)]

        smooth_subtypes(pages)

        assert pages[0].sub_type is None
        assert pages[1].sub_type == SubType.OTHER

    def test_only_subtype_is_modified(self):
        pages = [
            make_page(1, form_code="QT.MSI-BM.01", header=True, service=ServiceType.EGC),
            make_page(2, form_code="QT.MSI-BM.02", header=True, service=ServiceType.RTP, sub=SubType.MET),
        ]
        before = [p.model_dump(exclude={"sub_type"}) for p in pages]

        smooth_subtypes(pages)

        assert [p.model_dump(exclude={"sub_type"}) for p in pages] == before

    def test_idempotent(self):
        pages = [
            make_page(1, page_type=PageType.KTKS, form_code="KTKS.MSI.TC-BM.01", header=True, sub=SubType.NAV),
            make_page(2, sub=SubType.OTHER),
            make_page(3, page_type=PageType.KTKS, form_code="KTKS.MSI.TC-BM.02", header=True, sub=SubType.MET),
            make_page(4, page_type=PageType.SOURCE_MESSAGE, sub=SubType.SAR),
            make_page(5),
            make_page(6, form_code="QT.MSI-BM.04", header=True, sub=SubType.WX),
            make_page(7, sub=SubType.OTHER),
        ]

        smooth_subtypes(pages)
        once = [p.sub_type for p in pages]
        smooth_subtypes(pages)

        assert [p.sub_type for p in pages] == once

    def test_empty_input(self):
        assert list(smooth_subtypes([])) == []
