"""Field contract every stored article must satisfy."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Union

from articles.models.domain import ARTICLE_AUTHOR, Article

REQUIRED_FIELDS = ("id", "title", "slug", "date", "category", "excerpt", "content", "tags", "author", "image")

_ID_PATTERN = re.compile(r"[0-9]{3}")
_SLUG_PATTERN = re.compile(r"[a-z0-9-]+")
_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

TITLE_MIN, TITLE_MAX = 10, 100
EXCERPT_MIN = 50
CONTENT_MIN = 100
TAGS_MIN = 3


@dataclass(frozen=True)
class ArticleValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)


def _matches(pattern: re.Pattern, value: Any) -> bool:
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def _length(value: Any) -> int:
    return len(value) if isinstance(value, str) else -1


def validate_article_structure(
    article: Union[Article, Mapping[str, Any]],
    categories: Iterable[str],
    *,
    author: str = ARTICLE_AUTHOR,
) -> ArticleValidation:
    """Check every rule and collect all violations instead of stopping at the first."""
    data = article.model_dump() if isinstance(article, Article) else dict(article)
    allowed = list(categories)
    errors: List[str] = [f"Missing required field: {name}" for name in REQUIRED_FIELDS if name not in data]

    if "id" in data and not _matches(_ID_PATTERN, data["id"]):
        errors.append('ID must be 3-digit zero-padded number (e.g., "007")')
    if "title" in data and not TITLE_MIN <= _length(data["title"]) <= TITLE_MAX:
        errors.append(f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters")
    if "slug" in data and not _matches(_SLUG_PATTERN, data["slug"]):
        errors.append("Slug must contain only lowercase letters, numbers, and hyphens")
    if "date" in data and not _matches(_DATE_PATTERN, data["date"]):
        errors.append("Date must be in YYYY-MM-DD format")
    if "category" in data and data["category"] not in allowed:
        errors.append(f"Category must be one of: {', '.join(allowed)}")
    if "excerpt" in data and _length(data["excerpt"]) < EXCERPT_MIN:
        errors.append(f"Excerpt must be at least {EXCERPT_MIN} characters")
    if "content" in data and _length(data["content"]) < CONTENT_MIN:
        errors.append(f"Content must be at least {CONTENT_MIN} characters")
    if "tags" in data and not (isinstance(data["tags"], list) and len(data["tags"]) >= TAGS_MIN):
        errors.append(f"Tags must be an array with at least {TAGS_MIN} items")
    if "author" in data and data["author"] != author:
        errors.append(f'Author must be "{author}"')
    if "image" in data and not (isinstance(data["image"], str) and data["image"].startswith("http")):
        errors.append("Image must be a valid URL starting with http")

    return ArticleValidation(valid=not errors, errors=errors)
