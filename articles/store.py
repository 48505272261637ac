"""JSON-backed article store with backup-before-write and restore-on-failure.

The store is one document ``{"_instructions": ..., "posts": [...]}``. Every
mutating call re-reads the file; nothing is cached between operations.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from articles.metadata import generate_id
from articles.models.domain import ARTICLE_AUTHOR, Article
from articles.validation import ArticleValidation, validate_article_structure
from automation.errors import ArticleValidationError, PersistenceError
from automation.settings import AutomationSettings
from automation.utils.files import copy_file, timestamp
from automation.utils.logging import get_logger

logger = get_logger(__name__)

BACKUP_PREFIX = "articles.backup."
BACKUP_SUFFIX = ".json"
BACKUP_SEQUENCE_SEP = "_"
DEFAULT_INSTRUCTIONS = (
    "Posts are appended by the transcript automation. Keep every field of "
    "existing posts intact when editing by hand."
)


def _backup_sort_key(path: Path) -> Tuple[str, int]:
    # Same-second backups carry a "_N" sequence after the timestamp.
    stem = path.name[len(BACKUP_PREFIX) : -len(BACKUP_SUFFIX)]
    stamp, _, sequence = stem.partition(BACKUP_SEQUENCE_SEP)
    return stamp, int(sequence) if sequence.isdigit() else 1


def _unique_slug(slug: str, stamp: str, taken: Set[Any]) -> str:
    candidate = f"{slug}-{stamp}"
    counter = 1
    while candidate in taken:
        counter += 1
        candidate = f"{slug}-{stamp}-{counter}"
    return candidate


class ArticleStore:
    """Owns the article JSON file and its backup directory."""

    def __init__(
        self,
        store_path: Path,
        backup_dir: Path,
        *,
        categories: Iterable[str],
        max_backups: int = 10,
        author: str = ARTICLE_AUTHOR,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store_path = Path(store_path)
        self.backup_dir = Path(backup_dir)
        self.categories = list(categories)
        self.max_backups = max_backups
        self.author = author
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: AutomationSettings) -> "ArticleStore":
        return cls(
            settings.articles_path,
            settings.backup_dir,
            categories=settings.categories,
            max_backups=settings.max_backups,
        )

    # -- document I/O -------------------------------------------------------

    def read_articles(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.store_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("store.read_failed", extra={"path": str(self.store_path), "error": str(exc)})
            raise PersistenceError(f"Failed to read {self.store_path.name}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"Failed to read {self.store_path.name}: top level is not an object")
        posts = data.get("posts")
        logger.debug(
            "store.read",
            extra={"posts": len(posts) if isinstance(posts, list) else None},
        )
        return data

    def write_articles(self, data: Mapping[str, Any]) -> None:
        """Rewrite the whole document, then re-read it to verify the result."""
        content = json.dumps(data, indent=2, ensure_ascii=False)
        tmp_path = self.store_path.with_name(self.store_path.name + ".tmp")
        try:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, self.store_path)
        except OSError as exc:
            logger.error("store.write_failed", extra={"path": str(self.store_path), "error": str(exc)})
            raise PersistenceError(f"Failed to write {self.store_path.name}: {exc}") from exc
        self.verify_integrity()
        logger.info("store.written", extra={"posts": len(data.get("posts") or [])})

    def verify_integrity(self) -> bool:
        data = self.read_articles()
        if not data.get("_instructions") or not isinstance(data.get("posts"), list):
            logger.error("store.integrity_failed", extra={"path": str(self.store_path)})
            raise PersistenceError(f"Invalid {self.store_path.name} structure")
        return True

    def ensure_exists(self) -> bool:
        """Create an empty store document if none exists. Returns True when created."""
        if self.store_path.exists():
            return False
        self.write_articles({"_instructions": DEFAULT_INSTRUCTIONS, "posts": []})
        logger.info("store.initialized", extra={"path": str(self.store_path)})
        return True

    # -- validation / ids ---------------------------------------------------

    def validate_article_structure(self, article: Union[Article, Mapping[str, Any]]) -> ArticleValidation:
        return validate_article_structure(article, self.categories, author=self.author)

    def get_next_article_id(self) -> str:
        posts = self.read_articles().get("posts") or []
        max_id = 0
        for post in posts:
            try:
                numeric = int(post.get("id"))
            except (AttributeError, TypeError, ValueError):
                continue
            max_id = max(max_id, numeric)
        next_id = generate_id(max_id)
        logger.debug("store.next_id", extra={"next_id": next_id, "max_id": max_id})
        return next_id

    # -- backups ------------------------------------------------------------

    def list_backups(self) -> List[Path]:
        """Backup files, newest first by their embedded timestamp."""
        if not self.backup_dir.is_dir():
            return []
        backups = [
            p
            for p in self.backup_dir.iterdir()
            if p.is_file() and p.name.startswith(BACKUP_PREFIX) and p.name.endswith(BACKUP_SUFFIX)
        ]
        return sorted(backups, key=_backup_sort_key, reverse=True)

    def create_backup(self) -> Path:
        stamp = timestamp(self._clock())
        backup_path = self.backup_dir / f"{BACKUP_PREFIX}{stamp}{BACKUP_SUFFIX}"
        sequence = 1
        while backup_path.exists():
            sequence += 1
            backup_path = self.backup_dir / f"{BACKUP_PREFIX}{stamp}{BACKUP_SEQUENCE_SEP}{sequence}{BACKUP_SUFFIX}"
        try:
            copy_file(self.store_path, backup_path)
        except OSError as exc:
            logger.error("store.backup_failed", extra={"error": str(exc)})
            raise PersistenceError(f"Failed to create backup: {exc}") from exc
        logger.info("store.backup_created", extra={"backup": backup_path.name})
        return backup_path

    def clean_old_backups(self) -> int:
        """Delete all but the newest ``max_backups`` backups. Never raises."""
        try:
            stale = self.list_backups()[self.max_backups :]
            for path in stale:
                path.unlink()
                logger.debug("store.backup_deleted", extra={"backup": path.name})
        except OSError as exc:
            logger.warning("store.backup_cleanup_failed", extra={"error": str(exc)})
            return 0
        if stale:
            logger.info("store.backups_cleaned", extra={"deleted": len(stale), "kept": self.max_backups})
        return len(stale)

    def restore_from_backup(self) -> Path:
        backups = self.list_backups()
        if not backups:
            raise PersistenceError("No backups found")
        latest = backups[0]
        try:
            copy_file(latest, self.store_path)
        except OSError as exc:
            raise PersistenceError(f"Failed to restore from {latest.name}: {exc}") from exc
        logger.info("store.restored", extra={"backup": latest.name})
        return latest

    # -- mutation -----------------------------------------------------------

    def append_article(self, article: Union[Article, Mapping[str, Any]]) -> Dict[str, Any]:
        """Validate, back up, append and persist one article.

        Returns the record as stored; its slug may carry a timestamp suffix when
        the original slug was already taken.
        """
        validation = self.validate_article_structure(article)
        if not validation.valid:
            logger.warning("store.article_invalid", extra={"errors": validation.errors})
            raise ArticleValidationError(validation.errors)

        record = article.model_dump() if isinstance(article, Article) else dict(article)
        backup: Optional[Path] = None
        try:
            backup = self.create_backup()
            data = self.read_articles()
            posts = data.get("posts")
            if not isinstance(posts, list):
                raise PersistenceError(f"Invalid {self.store_path.name} structure")
            taken = {p.get("slug") for p in posts if isinstance(p, dict)}
            if record["slug"] in taken:
                new_slug = _unique_slug(record["slug"], timestamp(self._clock()), taken)
                logger.warning("store.duplicate_slug", extra={"slug": record["slug"], "new_slug": new_slug})
                record["slug"] = new_slug
            posts.append(record)
            self.write_articles(data)
        except Exception as exc:
            logger.error("store.append_failed", extra={"article_id": record.get("id"), "error": str(exc)})
            if backup is not None:
                self._restore_after_failure()
            raise

        logger.info("store.article_added", extra={"article_id": record["id"], "title": record["title"]})
        self.clean_old_backups()
        return record

    def _restore_after_failure(self) -> None:
        logger.warning("store.restoring")
        try:
            self.restore_from_backup()
        except Exception as exc:
            logger.error("store.restore_failed", extra={"error": str(exc)})
