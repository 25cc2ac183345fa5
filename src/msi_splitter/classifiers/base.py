"""Page classifier interface."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Sequence

from msi_splitter.classifiers.payload import parse_classification_payload
from msi_splitter.exceptions import ClassifierError
from msi_splitter.models import PageInfo


class PageClassifier(ABC):
    """Classifies page images into PageInfo records.

    Implementations must return one record per image, pages numbered from 1,
    or raise ClassifierError; partial results are never returned.
    """

    name: str = "classifier"

    @abstractmethod
    async def classify(self, images: Sequence[bytes]) -> List[PageInfo]:
        pass


class ReplayClassifier(PageClassifier):
    """Replays a stored classification instead of calling a model.

    Accepts the classifier's own ``{"pages": [...]}`` format as well as a run
    manifest, whose ``analysis.pages`` section carries the same fields.
    """

    name = "replay"

    def __init__(self, payload: Any):
        if isinstance(payload, dict) and "analysis" in payload:
            payload = payload["analysis"]
        self.payload = payload

    @classmethod
    def from_file(cls, path: Path) -> ReplayClassifier:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return cls(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            raise ClassifierError(f"Cannot load stored classification {path}: {e}", e) from e

    async def classify(self, images: Sequence[bytes]) -> List[PageInfo]:
        return parse_classification_payload(self.payload, len(images))


__all__ = ["PageClassifier", "ReplayClassifier"]
