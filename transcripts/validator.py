"""Pre-flight checks on raw transcript text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

MIN_CHARS = 100
MAX_CHARS = 100_000


@dataclass(frozen=True)
class TranscriptValidation:
    valid: bool
    reason: Optional[str] = None


def validate_transcript(text: Any, *, min_chars: int = MIN_CHARS, max_chars: int = MAX_CHARS) -> TranscriptValidation:
    """Bounds are inclusive and apply to the stripped text."""
    if not text or not isinstance(text, str):
        return TranscriptValidation(False, "Transcript is empty or not a string")
    length = len(text.strip())
    if length < min_chars:
        return TranscriptValidation(False, f"Transcript too short (minimum {min_chars:,} characters)")
    if length > max_chars:
        return TranscriptValidation(False, f"Transcript too long (maximum {max_chars:,} characters)")
    return TranscriptValidation(True)
