"""Metadata derived for a new article: sequential id, slug and date."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional, Union

ID_WIDTH = 3

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATOR_RUNS = re.compile(r"[\s_-]+", re.ASCII)


def generate_slug(title: str) -> str:
    """Lowercase, drop punctuation, hyphenate runs of separators."""
    slug = title.lower().strip()
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _SEPARATOR_RUNS.sub("-", slug)
    return slug.strip("-")


def generate_id(current_max: Union[str, int, None], width: int = ID_WIDTH) -> str:
    """Return ``current_max + 1`` zero-padded; unparseable input counts as 0."""
    try:
        numeric = int(current_max or 0)
    except (TypeError, ValueError):
        numeric = 0
    return str(numeric + 1).zfill(width)


def current_date(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()
