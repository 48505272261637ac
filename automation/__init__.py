"""Transcript automation bootstrap: settings, errors and logging."""

from .errors import (  # noqa: F401
    ArticleValidationError,
    AutomationError,
    ConfigurationError,
    MissingFieldsError,
    PersistenceError,
    ResourceError,
    ResponseParseError,
    TransformError,
    TranscriptValidationError,
)
from .settings import AutomationSettings, load_settings  # noqa: F401

__all__ = [
    "ArticleValidationError",
    "AutomationError",
    "AutomationSettings",
    "ConfigurationError",
    "MissingFieldsError",
    "PersistenceError",
    "ResourceError",
    "ResponseParseError",
    "TransformError",
    "TranscriptValidationError",
    "load_settings",
]
