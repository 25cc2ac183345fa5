"""Gemini classifier and usage tracker tests (no network)."""

import json
from types import SimpleNamespace

import pytest
from loguru import logger

from msi_splitter.classifiers.gemini_classifier import GeminiPageClassifier
from msi_splitter.classifiers.usage_tracker import UsageTracker
from msi_splitter.exceptions import ClassifierError
from msi_splitter.models import PageType


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    async def generate_content(self, model, contents, config):
        self.requests.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.response


def _client(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def _response(pages, prompt_tokens=1000, output_tokens=200):
    return SimpleNamespace(
        text=json.dumps({"pages": pages}),
        usage_metadata=SimpleNamespace(prompt_token_count=prompt_tokens, candidates_token_count=output_tokens),
    )


class TestGeminiPageClassifier:
    @pytest.mark.asyncio
    async def test_classifies_all_pages_in_one_request(self):
        models = FakeModels(_response([{"page": 1, "pageType": "LOG"}, {"page": 2, "pageType": "KTKS"}]))
        tracker = UsageTracker()
        classifier = GeminiPageClassifier("", model="m", usage_tracker=tracker, client=_client(models))

        pages = await classifier.classify([b"jpeg1", b"jpeg2"])

        assert [p.page_type for p in pages] == [PageType.LOG, PageType.KTKS]
        assert len(models.requests) == 1
        request = models.requests[0]
        assert request["model"] == "m"
        assert len(request["contents"]) == 3
        assert request["config"].temperature == 0.0
        assert request["config"].response_mime_type == "application/json"
        assert tracker.calls[0].input_tokens == 1000

    @pytest.mark.asyncio
    async def test_request_failure(self):
        classifier = GeminiPageClassifier("", client=_client(FakeModels(error=RuntimeError("quota"))))

        with pytest.raises(ClassifierError, match="quota"):
            await classifier.classify([b"jpeg"])

    @pytest.mark.asyncio
    async def test_empty_response(self):
        models = FakeModels(SimpleNamespace(text="", usage_metadata=None))
        classifier = GeminiPageClassifier("", client=_client(models))

        with pytest.raises(ClassifierError):
            await classifier.classify([b"jpeg"])

    @pytest.mark.asyncio
    async def test_no_images_skips_request(self):
        models = FakeModels()

        assert await GeminiPageClassifier("", client=_client(models)).classify([]) == []
        assert models.requests == []

    def test_requires_api_key(self):
        with pytest.raises(ClassifierError):
            GeminiPageClassifier("")


class TestUsageTracker:
    def test_cost_and_stats(self):
        tracker = UsageTracker()

        tracker.track_call("m", 1_000_000, 1_000_000)
        tracker.track_call("m", None, None)
        stats = tracker.stats()

        assert stats["calls_today"] == 2
        assert stats["calls_last_minute"] == 2
        assert stats["input_tokens"] == 1_000_000
        assert stats["estimated_cost_usd"] == pytest.approx(0.375)

    def test_keeps_last_thousand_calls(self):
        tracker = UsageTracker(daily_limit=10_000)

        for _ in range(1005):
            tracker.track_call("m")

        assert len(tracker.calls) == 1000

    def test_warns_near_daily_limit(self):
        messages = []
        sink = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
        try:
            tracker = UsageTracker(daily_limit=10)
            for _ in range(9):
                tracker.track_call("m")
        finally:
            logger.remove(sink)

        assert len(messages) == 1
        assert "9/10" in messages[0]
