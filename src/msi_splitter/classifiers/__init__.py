"""Page classifiers.

The Gemini classifier is loaded lazily so that importing the package does not
require google-genai to be configured.
"""

from msi_splitter.classifiers.base import PageClassifier, ReplayClassifier
from msi_splitter.classifiers.payload import parse_classification_payload
from msi_splitter.classifiers.usage_tracker import UsageTracker

__all__ = [
    "GeminiPageClassifier",
    "PageClassifier",
    "ReplayClassifier",
    "UsageTracker",
    "parse_classification_payload",
]


def __getattr__(name: str):
    """Lazy loading of the Gemini classifier."""
    if name == "GeminiPageClassifier":
        from msi_splitter.classifiers.gemini_classifier import GeminiPageClassifier

        return GeminiPageClassifier
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
