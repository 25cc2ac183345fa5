"""Gemini vision page classifier."""

from __future__ import annotations

from typing import List, Optional, Sequence

from google import genai
from google.genai import types
from loguru import logger

from msi_splitter.classifiers.base import PageClassifier
from msi_splitter.classifiers.payload import parse_classification_payload
from msi_splitter.classifiers.usage_tracker import UsageTracker
from msi_splitter.config import DEFAULT_MODEL
from msi_splitter.exceptions import ClassifierError
from msi_splitter.models import PageInfo

PROMPT = """You are a document analyst for a maritime safety information (MSI) broadcast station.
TASK: classify EVERY page image into one of four page types: KTKS, BM, SOURCE_MESSAGE, LOG.

PAGE TYPE RULES (apply in order):
1. KTKS: the page has a "Code:" box whose form code contains "KTKS" (e.g. KTKS.MSI.TC-BM.01).
2. BM: the page has a "Code:" box whose form code starts with "QT" or contains "BM" but not "KTKS" (e.g. QT.MSI-BM.02).
3. SOURCE_MESSAGE: no form code, but the page carries the national header and the body is a received source message.
4. LOG: no form code and no national header; the content is a log table or printed screen (DSC, Inmarsat, MET or NAV log).

HEADER RULES (isFormHeader):
- true when a new form code (BM/KTKS) appears.
- true when a new source message starts (page with the national header).
- true when a new log table starts.

EXTRA FIELDS:
- type: FORM_HEADER (new form code), CONTENT (continuation page), SOURCE_HEADER (start of a source message), LOG_SCREEN (log page).
- broadcastCode: broadcast code printed on the page (e.g. MSI, SAR, WX).
- serviceHint: service hint (e.g. NAVTEX, INMARSAT, RTP).
- serviceType: RTP, EGC or NTX; OTHER when unclear.
- subType: taken from the station's processing code box only (MET, NAV, SAR, ROUTE, WX).
  Do not infer it from a general title that names several categories. Leave it null when ambiguous.

OUTPUT: JSON matching the response schema, one entry per page, pages numbered from 1."""


def _nullable_string(enum: Optional[List[str]] = None) -> types.Schema:
    return types.Schema(type=types.Type.STRING, nullable=True, enum=enum)


RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "pages": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "page": types.Schema(type=types.Type.NUMBER),
                    "formCode": _nullable_string(),
                    "isFormHeader": types.Schema(type=types.Type.BOOLEAN),
                    "isSourceMessageHeader": types.Schema(type=types.Type.BOOLEAN),
                    "isLogPage": types.Schema(type=types.Type.BOOLEAN),
                    "pageType": types.Schema(
                        type=types.Type.STRING,
                        enum=["KTKS", "BM", "SOURCE_MESSAGE", "LOG"],
                    ),
                    "serviceType": _nullable_string(["RTP", "EGC", "NTX", "OTHER"]),
                    "subType": _nullable_string(["MET", "NAV", "SAR", "ROUTE", "WX"]),
                    "broadcastCode": _nullable_string(),
                    "serviceHint": _nullable_string(),
                    "type": types.Schema(
                        type=types.Type.STRING,
                        enum=["FORM_HEADER", "CONTENT", "SOURCE_HEADER", "LOG_SCREEN"],
                    ),
                },
                required=["page", "formCode", "isFormHeader", "pageType", "serviceType", "subType", "type"],
            ),
        )
    },
    required=["pages"],
)


class GeminiPageClassifier(PageClassifier):
    """Classifies all pages of a document in one Gemini request.

    No retries here: a failed request fails the document and the scheduler
    decides whether to try again.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        usage_tracker: Optional[UsageTracker] = None,
        client: Optional[genai.Client] = None,
    ):
        """Initialize the classifier.

        Args:
            api_key: Gemini API key
            model: model name
            usage_tracker: optional tracker fed with token counts
            client: preconfigured client (mainly for tests)

        Raises:
            ClassifierError: no API key and no client given
        """
        if client is None and not api_key:
            raise ClassifierError("GEMINI_API_KEY is not configured")
        self.model = model
        self.usage_tracker = usage_tracker
        self.client = client or genai.Client(api_key=api_key)

    def _build_contents(self, images: Sequence[bytes]) -> List[types.Part]:
        parts = [types.Part.from_bytes(data=image, mime_type="image/jpeg") for image in images]
        parts.append(types.Part.from_text(text=PROMPT))
        return parts

    async def classify(self, images: Sequence[bytes]) -> List[PageInfo]:
        if not images:
            return []

        config = types.GenerateContentConfig(
            temperature=0.0,
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
        )

        logger.info(f"Classifying {len(images)} page(s) with {self.model}")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=self._build_contents(images),
                config=config,
            )
        except Exception as e:
            raise ClassifierError(f"Gemini request failed: {e}", e) from e

        if self.usage_tracker is not None:
            usage = getattr(response, "usage_metadata", None)
            self.usage_tracker.track_call(
                self.model,
                getattr(usage, "prompt_token_count", None),
                getattr(usage, "candidates_token_count", None),
            )

        text = (response.text or "").strip()
        if not text:
            raise ClassifierError("Gemini returned an empty response")

        return parse_classification_payload(text, len(images))


__all__ = ["GeminiPageClassifier", "PROMPT", "RESPONSE_SCHEMA"]
