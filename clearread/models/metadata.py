"""
ArticleMetadata model describing what is known about a page besides its body.
"""
from typing import Optional

from pydantic import BaseModel


class ArticleMetadata(BaseModel):
    """
    Title, byline and related facts collected from a document.

    All fields are optional. The metadata extractor builds this from the
    original document; the orchestrator refines it once the article content
    is known.
    """
    title: Optional[str] = None
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    dir: Optional[str] = None
    charset: Optional[str] = None
    lang: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None
