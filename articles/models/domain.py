"""Article DTOs: the language-model draft and the persisted article record."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

ARTICLE_AUTHOR = "Simply Nerdy"


class ArticleDraft(BaseModel):
    """Structured fields returned by the language model, after repair."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    category: str
    excerpt: str
    content: str
    tags: List[str] = Field(default_factory=list)
    image_search_terms: List[str] = Field(default_factory=list, alias="imageSearchTerms")


class Article(BaseModel):
    """Store record.

    Types only; the field contract lives in ``articles.validation`` so that
    every violation can be reported at once.
    """

    id: str
    title: str
    slug: str
    date: str
    category: str
    excerpt: str
    content: str
    tags: List[str]
    author: str = ARTICLE_AUTHOR
    image: str
