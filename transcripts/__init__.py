"""Transcript intake: validation, directory watching and the per-file pipeline."""

from transcripts.processor import TranscriptProcessor
from transcripts.validator import TranscriptValidation, validate_transcript
from transcripts.watcher import TranscriptWatcher, is_stable

__all__ = [
    "TranscriptProcessor",
    "TranscriptValidation",
    "TranscriptWatcher",
    "is_stable",
    "validate_transcript",
]
