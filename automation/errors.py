"""Error taxonomy for the transcript pipeline."""

from __future__ import annotations

from typing import List, Sequence


class AutomationError(Exception):
    """Base error for the automation process."""


class ConfigurationError(AutomationError):
    """Invalid settings or missing credentials; fatal at startup."""


class TranscriptValidationError(AutomationError):
    """Transcript text rejected before any external call."""


class TransformError(AutomationError):
    """Language-model transformation failed."""


class ResponseParseError(TransformError):
    """No JSON object could be recovered from the model response."""


class MissingFieldsError(TransformError):
    """Model response lacks one or more required fields."""

    def __init__(self, missing: Sequence[str]):
        self.missing: List[str] = list(missing)
        lines = "\n".join(f"Missing required field: {name}" for name in self.missing)
        super().__init__(f"API response validation failed:\n{lines}")


class PersistenceError(AutomationError):
    """Article store read/write/integrity failure."""


class ArticleValidationError(AutomationError):
    """Article does not satisfy the store's field contract."""

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("Article validation failed:\n" + "\n".join(self.errors))


class ResourceError(AutomationError):
    """Filesystem move/copy failure while archiving a transcript."""
