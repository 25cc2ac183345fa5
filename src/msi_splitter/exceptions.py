"""Exception hierarchy for the splitter.

Fatal vs. recoverable is decided by the caller:

- ClassifierError, SourceDocumentError: fatal for one document (the scheduler retries)
- GroupWriteError, ManifestWriteError: recovered locally by the writer
- DirectoryPermissionError: fatal for the whole run
"""

from __future__ import annotations


class SplitterError(Exception):
    """Base exception for all splitter errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class ClassifierError(SplitterError):
    """Page classification failed or returned unparseable output."""

    pass


class SourceDocumentError(SplitterError):
    """Source PDF cannot be opened, rendered or copied from."""

    pass


class GroupWriteError(SplitterError):
    """Rendering or persisting one document group failed."""

    def __init__(self, message: str, code: str | None = None, original_error: Exception | None = None):
        super().__init__(message, original_error)
        self.code = code


class ManifestWriteError(SplitterError):
    """Persisting the run manifest failed."""

    pass


class ManifestReadError(SplitterError):
    """A staged manifest is missing or malformed."""

    pass


class DirectoryPermissionError(SplitterError):
    """Destination storage refused access."""

    pass


class ConfigValidationError(ValueError):
    """Configuration validation error."""

    pass


__all__ = [
    "SplitterError",
    "ClassifierError",
    "SourceDocumentError",
    "GroupWriteError",
    "ManifestWriteError",
    "ManifestReadError",
    "DirectoryPermissionError",
    "ConfigValidationError",
]
