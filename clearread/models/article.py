"""
Article model for representing the result of an extraction.

This module defines the immutable ``Article`` snapshot returned by
``Readability.parse`` together with its derived views (inner HTML, plain
text, length and charset-wrapped HTML).
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from clearread.models.metadata import ArticleMetadata
from clearread.parser.html_parser import inner_html, normalize_whitespace

DEFAULT_ENCODING = "utf-8"

ENCODED_CONTENT_TEMPLATE = (
    "<html>\n"
    "  <head>\n"
    "    <meta charset=\"{encoding}\"/>\n"
    "  </head>\n"
    "  <body>\n"
    "    {content}\n"
    "  </body>\n"
    "</html>"
)


class Article(BaseModel):
    """
    Represents an article extracted from a web page.

    ``article_content`` is the BeautifulSoup element holding the processed
    article, or None when no article could be found. ``content``,
    ``text_content`` and ``length`` are derived from it.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    uri: str
    metadata: ArticleMetadata = Field(default_factory=ArticleMetadata)
    article_content: Optional[Any] = None
    serialized_content: Optional[str] = None

    @property
    def title(self) -> Optional[str]:
        return self.metadata.title

    @property
    def byline(self) -> Optional[str]:
        return self.metadata.byline

    @property
    def excerpt(self) -> Optional[str]:
        return self.metadata.excerpt

    @property
    def dir(self) -> Optional[str]:
        return self.metadata.dir

    @property
    def charset(self) -> Optional[str]:
        return self.metadata.charset

    @property
    def lang(self) -> Optional[str]:
        return self.metadata.lang

    @property
    def site_name(self) -> Optional[str]:
        return self.metadata.site_name

    @property
    def published_time(self) -> Optional[str]:
        return self.metadata.published_time

    @property
    def content(self) -> Optional[str]:
        """Inner HTML of the article content, or the custom serializer's output."""
        if self.serialized_content is not None:
            return self.serialized_content
        if self.article_content is None:
            return None
        return inner_html(self.article_content)

    @property
    def text_content(self) -> Optional[str]:
        """Plain text of the article with whitespace collapsed."""
        if self.article_content is None:
            return None
        return normalize_whitespace(self.article_content.get_text())

    @property
    def length(self) -> int:
        """Length of ``text_content`` in characters, -1 without content."""
        text = self.text_content
        return len(text) if text is not None else -1

    @property
    def content_with_utf8_encoding(self) -> Optional[str]:
        return self.get_content_with_encoding(DEFAULT_ENCODING)

    @property
    def content_with_documents_charset_or_utf8(self) -> Optional[str]:
        return self.get_content_with_encoding(self.charset or DEFAULT_ENCODING)

    def get_content_with_encoding(self, encoding: str) -> Optional[str]:
        """
        Wrap the content in a minimal HTML document declaring ``encoding``.

        Args:
            encoding: Character encoding for the ``<meta charset>`` tag

        Returns:
            Optional[str]: The wrapped document, or None without content
        """
        content = self.content
        if content is None:
            return None
        return ENCODED_CONTENT_TEMPLATE.format(encoding=encoding, content=content)

    def to_dict(self) -> dict:
        """Plain dictionary view used for JSON output."""
        return {
            "uri": self.uri,
            "title": self.title,
            "byline": self.byline,
            "excerpt": self.excerpt,
            "dir": self.dir,
            "charset": self.charset,
            "lang": self.lang,
            "site_name": self.site_name,
            "published_time": self.published_time,
            "length": self.length,
            "content": self.content,
            "text_content": self.text_content,
        }
