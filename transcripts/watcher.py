"""Polling directory watcher that only reports files once they stop changing."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, List, Optional, Set

from automation.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileState:
    size: int
    mtime_ns: int


@dataclass
class _Pending:
    state: FileState
    since: float


def is_stable(
    previous: Optional[FileState],
    current: FileState,
    unchanged_since: float,
    now: float,
    window: float,
) -> bool:
    """True when ``current`` matches the last observation and the window has passed."""
    return previous is not None and previous == current and now - unchanged_since >= window


class TranscriptWatcher:
    """Emits each file in ``directory`` once, after it has been quiet for ``stability_seconds``.

    Files already present at startup are reported as well. A file that goes away
    is forgotten, so a new file under the same name is reported again.
    """

    def __init__(
        self,
        directory: Path,
        *,
        stability_seconds: float = 2.0,
        poll_interval_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.directory = Path(directory)
        self.stability_seconds = stability_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self._clock = clock
        self._pending: Dict[Path, _Pending] = {}
        self._emitted: Set[Path] = set()

    def scan(self) -> List[Path]:
        now = self._clock()
        seen: Set[Path] = set()
        ready: List[Path] = []
        for path in sorted(self.directory.iterdir()):
            if path.name.startswith("."):
                continue
            try:
                if not path.is_file():
                    continue
                stat = path.stat()
            except FileNotFoundError:
                continue
            seen.add(path)
            if path in self._emitted:
                continue
            current = FileState(stat.st_size, stat.st_mtime_ns)
            pending = self._pending.get(path)
            if pending is None or pending.state != current:
                self._pending[path] = _Pending(current, now)
                continue
            if is_stable(pending.state, current, pending.since, now, self.stability_seconds):
                del self._pending[path]
                self._emitted.add(path)
                ready.append(path)

        for gone in set(self._pending) - seen:
            del self._pending[gone]
        self._emitted &= seen
        return ready

    async def watch(self, stop_event: asyncio.Event) -> AsyncIterator[Path]:
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.info("watcher.ready", extra={"directory": str(self.directory)})
        while not stop_event.is_set():
            try:
                ready = self.scan()
            except OSError as exc:
                logger.error("watcher.scan_failed", extra={"directory": str(self.directory), "error": str(exc)})
                ready = []
            for path in ready:
                logger.debug("watcher.file_added", extra={"path": str(path)})
                yield path
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("watcher.stopped", extra={"directory": str(self.directory)})
