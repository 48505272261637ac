"""Minimal HTML sanitizer for model-generated article bodies."""

from __future__ import annotations

import re
from typing import Any, List, Tuple

DANGEROUS_TAGS = ("script", "iframe", "object", "embed", "form")


def _tag_patterns(tag: str) -> Tuple[re.Pattern, re.Pattern]:
    paired = re.compile(rf"<{tag}\b[^>]*>.*?</{tag}\s*>", re.IGNORECASE | re.DOTALL)
    self_closing = re.compile(rf"<{tag}\b[^>]*/>", re.IGNORECASE)
    return paired, self_closing


_TAG_PATTERNS: List[Tuple[re.Pattern, re.Pattern]] = [_tag_patterns(t) for t in DANGEROUS_TAGS]
_OPEN_TAG = re.compile(r"<[a-zA-Z][^>]*>")
_EVENT_HANDLER = re.compile(r"""\s+on[a-z]+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""", re.IGNORECASE)


def _strip_handlers(match: re.Match) -> str:
    return _EVENT_HANDLER.sub("", match.group(0))


def sanitize_html(html: Any) -> str:
    """Drop denylisted elements and inline ``on*`` handlers; keep everything else."""
    if not html or not isinstance(html, str):
        return ""
    sanitized = html
    for paired, self_closing in _TAG_PATTERNS:
        sanitized = paired.sub("", sanitized)
        sanitized = self_closing.sub("", sanitized)
    return _OPEN_TAG.sub(_strip_handlers, sanitized)
