"""Recover and repair the article JSON returned by the language model."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from articles.models.domain import ArticleDraft
from automation.errors import MissingFieldsError, ResponseParseError, TransformError
from automation.utils.logging import get_logger
from transform.sanitize import sanitize_html

logger = get_logger(__name__)

REQUIRED_FIELDS = ("title", "category", "excerpt", "content", "tags", "imageSearchTerms")
FALLBACK_TAGS = ("podcast", "simply-nerdy")
MIN_TAGS = 3

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_OUTERMOST_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def parse_api_response(text: str) -> Dict[str, Any]:
    """Parse the whole body, then a fenced block, then the outermost ``{...}``."""
    candidates: List[str] = [text]
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    outer = _OUTERMOST_OBJECT.search(text)
    if outer:
        candidates.append(outer.group(0))

    for candidate in candidates:
        data = _load_object(candidate)
        if data is not None:
            return data
    raise ResponseParseError("Could not find valid JSON in response")


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    items = [str(v).strip() for v in value if v is not None and str(v).strip()]
    return items


def validate_api_response(
    data: Dict[str, Any],
    *,
    categories: Iterable[str],
    default_category: str,
) -> ArticleDraft:
    """Check required fields, coerce lenient ones and sanitize the body."""
    missing = [name for name in REQUIRED_FIELDS if name not in data]
    if missing:
        raise MissingFieldsError(missing)

    not_text = [name for name in ("title", "excerpt", "content") if not isinstance(data[name], str)]
    if not_text:
        raise TransformError(f"API response fields must be strings: {', '.join(not_text)}")

    category = data["category"]
    if category not in list(categories):
        logger.warning("transform.invalid_category", extra={"category": category, "default": default_category})
        category = default_category

    tags = _string_list(data["tags"])
    if tags is None or len(tags) < MIN_TAGS:
        logger.warning("transform.invalid_tags", extra={"tags": data["tags"]})
        tags = [*FALLBACK_TAGS, category.lower()]

    terms = _string_list(data["imageSearchTerms"])
    if not terms:
        logger.warning("transform.no_image_terms", extra={"category": category})
        terms = [category.lower()]

    return ArticleDraft(
        title=data["title"].strip(),
        category=category,
        excerpt=data["excerpt"].strip(),
        content=sanitize_html(data["content"]),
        tags=tags,
        image_search_terms=terms,
    )
