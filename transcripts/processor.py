"""Per-file pipeline: transcript in, article appended, transcript archived."""

from __future__ import annotations

import asyncio
import time
import uuid
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Set, Union

from articles.metadata import current_date, generate_slug
from articles.models.domain import ARTICLE_AUTHOR, Article
from articles.store import ArticleStore
from automation.errors import ResourceError, TranscriptValidationError
from automation.settings import AutomationSettings
from automation.utils.logging import get_logger
from images.unsplash import ImageResolver
from transcripts.archive import archive_failed, archive_processed
from transcripts.validator import validate_transcript
from transcripts.watcher import TranscriptWatcher
from transform.transformer import ContentTransformer

logger = get_logger(__name__)

TRANSCRIPT_EXTENSION = ".txt"
TOTAL_STEPS = 7


class TranscriptProcessor:
    """Drives validator, transformer, metadata, image and store for each file.

    Pipelines for different files run concurrently; the same path is never
    processed twice at once. Store appends are serialized by one lock.
    """

    def __init__(
        self,
        settings: AutomationSettings,
        transformer: ContentTransformer,
        image_resolver: ImageResolver,
        store: ArticleStore,
        *,
        settle_seconds: Optional[float] = None,
    ) -> None:
        self.settings = settings
        self.transformer = transformer
        self.image_resolver = image_resolver
        self.store = store
        self.settle_seconds = settings.settle_seconds if settle_seconds is None else settle_seconds
        self._in_flight: Set[Path] = set()
        self._store_lock = asyncio.Lock()

    @property
    def in_flight(self) -> FrozenSet[Path]:
        return frozenset(self._in_flight)

    async def handle_file_added(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        if not path.name.endswith(TRANSCRIPT_EXTENSION):
            logger.debug("transcript.ignored", extra={"file": path.name})
            return False
        # Give the writer a moment before the first read.
        await asyncio.sleep(self.settle_seconds)
        return await self.process_transcript(path)

    async def process_transcript(self, path: Union[str, Path]) -> bool:
        """Run the full pipeline for one file. Returns True when an article was stored."""
        path = Path(path)
        if path in self._in_flight:
            logger.debug("transcript.already_processing", extra={"file": path.name})
            return False
        self._in_flight.add(path)

        trace_id = uuid.uuid4().hex
        extra = {"trace_id": trace_id, "file": path.name}
        started = time.monotonic()
        logger.info("transcript.start", extra=extra)
        try:
            stored = await self._run_pipeline(path, extra)
        except Exception as exc:
            logger.exception("transcript.failed", extra={**extra, "error": str(exc)})
            self._archive_failure(path, exc, extra)
            return False
        finally:
            self._in_flight.discard(path)

        logger.info(
            "transcript.succeeded",
            extra={
                **extra,
                "article_id": stored["id"],
                "title": stored["title"],
                "category": stored["category"],
                "duration_seconds": round(time.monotonic() - started, 1),
            },
        )
        return True

    async def run(self, watcher: TranscriptWatcher, stop_event: asyncio.Event) -> None:
        """Consume watcher events until ``stop_event`` is set, one task per file."""
        tasks: Set[asyncio.Task] = set()
        async for path in watcher.watch(stop_event):
            task = asyncio.create_task(self.handle_file_added(path))
            tasks.add(task)
            task.add_done_callback(tasks.discard)

        if tasks:
            logger.info("processor.draining", extra={"pending": len(tasks)})
            _, pending = await asyncio.wait(set(tasks), timeout=float(self.settings.shutdown_grace_seconds))
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.warning("processor.cancelled", extra={"cancelled": len(pending)})

    async def _run_pipeline(self, path: Path, extra: Dict[str, Any]) -> Dict[str, Any]:
        self._step(1, "read", extra)
        text = path.read_text(encoding="utf-8")
        validation = validate_transcript(
            text,
            min_chars=self.settings.transcript_min_chars,
            max_chars=self.settings.transcript_max_chars,
        )
        if not validation.valid:
            raise TranscriptValidationError(f"Invalid transcript: {validation.reason}")
        logger.info("transcript.loaded", extra={**extra, "chars": len(text)})

        self._step(2, "transform", extra)
        draft = await self.transformer.transform(text)
        logger.info("transcript.transformed", extra={**extra, "title": draft.title})

        self._step(3, "metadata", extra)
        article_id = self.store.get_next_article_id()
        slug = generate_slug(draft.title)
        date = current_date()
        logger.info("transcript.metadata", extra={**extra, "article_id": article_id, "slug": slug, "date": date})

        self._step(4, "image", extra)
        image = await self.image_resolver.get_image_for_article(draft.image_search_terms, draft.category)
        logger.info("transcript.image", extra={**extra, "image": image})

        self._step(5, "build", extra)
        article = Article(
            id=article_id,
            title=draft.title,
            slug=slug,
            date=date,
            category=draft.category,
            excerpt=draft.excerpt,
            content=draft.content,
            tags=draft.tags,
            author=ARTICLE_AUTHOR,
            image=image,
        )

        self._step(6, "persist", extra)
        async with self._store_lock:
            confirmed_id = self.store.get_next_article_id()
            if confirmed_id != article.id:
                logger.warning(
                    "transcript.id_reassigned",
                    extra={**extra, "article_id": article.id, "new_article_id": confirmed_id},
                )
                article = article.model_copy(update={"id": confirmed_id})
            stored = self.store.append_article(article)

        self._step(7, "archive", extra)
        try:
            archived = archive_processed(path, self.settings.processed_dir)
        except ResourceError as exc:
            # The article is already stored; leave the transcript where it is.
            logger.error("transcript.archive_failed", extra={**extra, "error": str(exc)})
        else:
            logger.info("transcript.archived", extra={**extra, "destination": archived.name})
        return stored

    def _archive_failure(self, path: Path, error: BaseException, extra: Dict[str, Any]) -> None:
        try:
            destination = archive_failed(path, self.settings.failed_dir, error)
        except ResourceError as exc:
            logger.error("transcript.failed_archive_failed", extra={**extra, "error": str(exc)})
            return
        logger.error("transcript.moved_to_failed", extra={**extra, "destination": destination.name})

    @staticmethod
    def _step(number: int, action: str, extra: Dict[str, Any]) -> None:
        logger.info("transcript.step", extra={**extra, "step": number, "total": TOTAL_STEPS, "action": action})
