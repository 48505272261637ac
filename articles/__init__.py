"""Article records, metadata derivation and the JSON article store."""

from articles.metadata import current_date, generate_id, generate_slug
from articles.models.domain import ARTICLE_AUTHOR, Article, ArticleDraft
from articles.store import ArticleStore
from articles.validation import ArticleValidation, validate_article_structure

__all__ = [
    "ARTICLE_AUTHOR",
    "Article",
    "ArticleDraft",
    "ArticleStore",
    "ArticleValidation",
    "current_date",
    "generate_id",
    "generate_slug",
    "validate_article_structure",
]
