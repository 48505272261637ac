from articles.models.domain import ARTICLE_AUTHOR, Article, ArticleDraft

__all__ = ["ARTICLE_AUTHOR", "Article", "ArticleDraft"]
