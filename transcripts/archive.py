"""Move finished transcripts into the processed or failed archive."""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from automation.errors import ResourceError
from automation.utils.files import move_file, timestamp

FAILED_MARKER = "FAILED"
ERROR_SUFFIX = ".error.txt"


def archive_processed(source: Path, processed_dir: Path, now: Optional[datetime] = None) -> Path:
    destination = processed_dir / f"{source.stem}-{timestamp(now)}{source.suffix}"
    try:
        return move_file(source, destination)
    except OSError as exc:
        raise ResourceError(f"Failed to archive {source.name}: {exc}") from exc


def build_error_report(filename: str, error: BaseException, failed_at: datetime) -> str:
    trace = "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip()
    return (
        f"Processing Failed: {failed_at.isoformat()}\n"
        f"File: {filename}\n"
        f"Error: {error}\n"
        "\n"
        "Stack Trace:\n"
        f"{trace}\n"
    )


def archive_failed(source: Path, failed_dir: Path, error: BaseException, now: Optional[datetime] = None) -> Path:
    """Move ``source`` aside and write a ``.error.txt`` report next to it."""
    base = f"{source.stem}-{timestamp(now)}-{FAILED_MARKER}"
    destination = failed_dir / f"{base}{source.suffix}"
    report = failed_dir / f"{base}{ERROR_SUFFIX}"
    try:
        move_file(source, destination)
        report.write_text(
            build_error_report(source.name, error, datetime.now(timezone.utc)),
            encoding="utf-8",
        )
    except OSError as exc:
        raise ResourceError(f"Failed to archive failed transcript {source.name}: {exc}") from exc
    return destination
