"""
Central re-exports for the clearread data models.

Stable import paths as "clearread.models" for the result types.
"""
from .article import Article
from .metadata import ArticleMetadata

__all__ = [
    "Article",
    "ArticleMetadata",
]
