"""Output filename tests."""

import pytest
from helpers import make_page

from msi_splitter.models import DocumentGroup, PageType, ServiceType, SubType
from msi_splitter.splitting.naming import (
    filename_base,
    is_counter_named,
    numbered_filename,
    sanitize,
    source_base_name,
)


def _group(form_code=None, service=None, sub=None, page_type=PageType.BM):
    return DocumentGroup(form_code=form_code, service_type=service, sub_type=sub, pages=[make_page(1, page_type=page_type, form_code=form_code)])


class TestNaming:
    def test_sanitize_keeps_dots_and_dashes(self):
        assert sanitize("QT.MSI-BM.04/2025 v1") == "QT.MSI-BM.04_2025_v1"

    def test_source_base_name(self):
        assert source_base_name("Scan 12 (final).pdf") == "Scan_12__final_"

    def test_filename_base_with_suffixes(self):
        group = _group("QT.MSI-BM.04", ServiceType.RTP, SubType.NAV)

        assert filename_base("Bundle 01.pdf", group) == "Bundle_01_QT.MSI-BM.04_RTP_NAV"

    def test_other_suffixes_are_omitted(self):
        group = _group("QT.MSI-BM.02", ServiceType.OTHER, SubType.OTHER)

        assert filename_base("b.pdf", group) == "b_QT.MSI-BM.02"

    def test_page_type_used_without_form_code(self):
        group = _group(None, None, SubType.MET, page_type=PageType.LOG)

        assert filename_base("b.pdf", group) == "b_LOG_MET"

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("QT.MSI-BM.04", True),
            ("qt.msi-bm.04", True),
            ("BM 04", True),
            ("BM04-X", True),
            ("QT.MSI-BM.02", False),
            (None, False),
        ],
    )
    def test_is_counter_named(self, code, expected):
        assert is_counter_named(_group(code)) is expected

    def test_numbered_filename(self):
        assert numbered_filename("x", 1) == "x.pdf"
        assert numbered_filename("x", 3) == "x - 3.pdf"
