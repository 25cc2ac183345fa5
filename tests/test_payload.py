"""Classifier payload normalization tests."""

import json

import pytest

from msi_splitter.classifiers.base import ReplayClassifier
from msi_splitter.classifiers.payload import parse_classification_payload
from msi_splitter.exceptions import ClassifierError
from msi_splitter.models import PageMarker, PageType, ServiceType, SubType


class TestParseClassificationPayload:
    def test_full_record(self):
        payload = json.dumps(
            {
                "pages": [
                    {
                        "page": 1,
                        "formCode": "QT.MSI-BM.04",
                        "isFormHeader": True,
                        "pageType": "BM",
                        "serviceType": "RTP",
                        "subType": "NAV",
                        "broadcastCode": "MSI",
                        "serviceHint": "NAVTEX",
                        "type": "FORM_HEADER",
                    }
                ]
            }
        )

        (page,) = parse_classification_payload(payload, 1)

        assert page.form_code == "QT.MSI-BM.04"
        assert page.is_form_header
        assert page.service_type == ServiceType.RTP
        assert page.sub_type == SubType.NAV
        assert page.broadcast_code == "MSI"
        assert page.marker == PageMarker.FORM_HEADER

    def test_missing_pages_get_defaults(self):
        payload = {"pages": [{"page": 2, "pageType": "LOG"}]}

        pages = parse_classification_payload(payload, 3)

        assert [p.page for p in pages] == [1, 2, 3]
        assert pages[0].page_type == PageType.BM
        assert pages[0].service_type == ServiceType.OTHER
        assert not pages[0].is_form_header
        assert pages[1].is_log_page

    def test_records_beyond_page_count_are_ignored(self):
        payload = {"pages": [{"page": 1}, {"page": 2}, {"page": 5}]}

        assert len(parse_classification_payload(payload, 2)) == 2

    def test_legacy_and_lowercase_values(self):
        payload = [
            {"page": 1, "pageType": "BanTinNguon", "serviceType": "navtex", "subType": "tuyen"},
            {"page": 2, "pageType": "log", "type": "log"},
        ]

        first, second = parse_classification_payload(payload, 2)

        assert first.page_type == PageType.SOURCE_MESSAGE
        assert first.is_source_message_header
        assert first.service_type == ServiceType.NTX
        assert first.sub_type == SubType.ROUTE
        assert second.marker == PageMarker.LOG_SCREEN

    def test_derived_flags_follow_page_type(self):
        payload = [
            {"page": 1, "pageType": "BM", "isSourceMessageHeader": True, "isLogPage": True},
            {"page": 2, "pageType": "SOURCE_MESSAGE", "isSourceMessageHeader": False},
        ]

        first, second = parse_classification_payload(payload, 2)

        assert not first.is_source_message_header
        assert not first.is_log_page
        assert second.is_source_message_header

    def test_null_broadcast_hint_falls_back(self):
        payload = [{"page": 1, "broadcastCodeHint": None, "broadcastCode": "MSI"}]

        (page,) = parse_classification_payload(payload, 1)

        assert page.broadcast_code == "MSI"

    def test_unknown_values_fall_back(self):
        payload = {"pages": [{"page": 1, "pageType": "INVOICE", "subType": "??", "formCode": "  "}]}

        (page,) = parse_classification_payload(payload, 1)

        assert page.page_type == PageType.BM
        assert page.sub_type is None
        assert page.form_code is None
        assert page.marker == PageMarker.CONTENT

    def test_invalid_json_raises(self):
        with pytest.raises(ClassifierError):
            parse_classification_payload("not json", 1)

    def test_missing_page_list_raises(self):
        with pytest.raises(ClassifierError):
            parse_classification_payload({"result": []}, 1)


class TestReplayClassifier:
    @pytest.mark.asyncio
    async def test_replays_manifest_analysis(self):
        manifest = {
            "originalFileName": "b.pdf",
            "analysis": {"pages": [{"page": 1, "formCode": "QT.MSI-BM.02", "isFormHeader": True, "subType": "MET"}]},
        }

        pages = await ReplayClassifier(manifest).classify([b"img", b"img"])

        assert len(pages) == 2
        assert pages[0].sub_type == SubType.MET

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(ClassifierError):
            ReplayClassifier.from_file(tmp_path / "missing.json")
