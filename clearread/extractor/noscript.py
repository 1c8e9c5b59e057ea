"""
Decide what happens to ``<noscript>`` elements during preprocessing.

Some sites render their article with JavaScript and ship the full text in a
``<noscript>`` fallback, so throwing every noscript away loses the article.
A handler is any callable object with a ``should_keep_noscript(document,
noscript)`` method; kept noscripts are unwrapped in place, the rest removed.
"""
from typing import Protocol

from bs4 import BeautifulSoup, Tag

from clearread.parser.html_parser import get_attr


class NoscriptHandler(Protocol):
    def should_keep_noscript(self, document: BeautifulSoup, noscript: Tag) -> bool:
        ...


class ContentAwareNoscriptHandler:
    """
    Keep a noscript that carries real content.

    A noscript is kept when its text is at least ``min_content_length``
    characters long, or when it holds an image whose ``src`` does not appear
    anywhere else in the document.
    """

    def __init__(self, min_content_length: int = 100):
        self.min_content_length = min_content_length

    def should_keep_noscript(self, document: BeautifulSoup, noscript: Tag) -> bool:
        if len(noscript.get_text().strip()) >= self.min_content_length:
            return True

        images = noscript.find_all("img")
        if not images:
            return False

        inner_ids = {id(img) for img in images}
        known_sources = {
            get_attr(img, "src")
            for img in document.find_all("img")
            if id(img) not in inner_ids
        }

        for image in images:
            source = get_attr(image, "src")
            if not source.strip() or source not in known_sources:
                return True
        return False


class RemoveAllNoscriptHandler:
    """Drop every noscript, the classic Readability.js behaviour."""

    def should_keep_noscript(self, document: BeautifulSoup, noscript: Tag) -> bool:
        return False
