"""Filesystem and timestamp helpers shared by the store and the archiver."""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from automation.utils.logging import get_logger

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def timestamp(now: Optional[datetime] = None) -> str:
    """Sortable local timestamp used in backup names, archive names and slug suffixes."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def move_file(source: Path, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(destination))
    logger.info("file.moved", extra={"source": str(source), "destination": str(destination)})
    return destination


def copy_file(source: Path, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)
    logger.debug("file.copied", extra={"source": str(source), "destination": str(destination)})
    return destination
