"""Prompt template for turning a transcript into article JSON.

The template is plain text with a ``{{TRANSCRIPT}}`` placeholder; an optional
``{{CATEGORIES}}`` placeholder receives the configured category list.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from automation.errors import ConfigurationError

TRANSCRIPT_PLACEHOLDER = "{{TRANSCRIPT}}"
CATEGORIES_PLACEHOLDER = "{{CATEGORIES}}"

DEFAULT_ARTICLE_PROMPT = """\
You are the editor of Simply Nerdy, a pop-culture podcast blog. Rewrite the
podcast transcript below as a blog article for readers who did not hear the
episode.

Output format: JSON ONLY (no preamble, no code fences). Schema:
{
  "title": string (10-100 chars, no clickbait),
  "category": one of [{{CATEGORIES}}],
  "excerpt": string (1-2 sentences, at least 50 chars),
  "content": string (HTML using <p>, <h2>, <h3>, <ul>, <li>, <strong>, <em>, <blockquote>; at least 4 paragraphs),
  "tags": array<string> (3-8 lowercase tags),
  "imageSearchTerms": array<string> (2-4 concrete keywords for a stock photo search)
}

Rules:
1) Keep facts from the transcript; do not invent quotes, numbers or release dates.
2) Drop filler, ads, sponsor reads and off-topic banter.
3) Write in a conversational but edited voice; no timestamps or speaker labels.

Transcript:
{{TRANSCRIPT}}
"""


def load_prompt_template(path: Optional[Path] = None) -> str:
    """Return the template at ``path`` or the built-in default."""
    if path is None:
        return DEFAULT_ARTICLE_PROMPT
    try:
        template = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read prompt template {path}: {exc}") from exc
    if TRANSCRIPT_PLACEHOLDER not in template:
        raise ConfigurationError(f"Prompt template {path} has no {TRANSCRIPT_PLACEHOLDER} placeholder")
    return template


def build_article_prompt(transcript: str, template: str, categories: Iterable[str] = ()) -> str:
    prompt = template.replace(CATEGORIES_PLACEHOLDER, ", ".join(f'"{c}"' for c in categories))
    return prompt.replace(TRANSCRIPT_PLACEHOLDER, transcript, 1)
