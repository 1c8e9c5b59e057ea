"""
Metadata extraction module for clearread.

This module collects article metadata from the original, unmodified document:
title, byline, excerpt, site name, publication time and charset. It reads
``<meta>`` tags (Open Graph, Twitter Cards, author and publication dates),
JSON-LD blocks with an Article-like type, and falls back to a heuristic over
the ``<title>`` element.
"""
import re
from typing import Dict, Optional, Union

import structlog
from bs4 import BeautifulSoup

from clearread.extractor.base import ProcessorBase
from clearread.extractor.regex import RegExUtil
from clearread.models.metadata import ArticleMetadata
from clearread.parser import parse_html
from clearread.parser.html_parser import (
    get_attr,
    normalize_whitespace,
    text_similarity,
    unescape_html_entities,
)

# Set up structured logger
logger = structlog.get_logger()

# Meta tags whose content is buffered for title/excerpt/site name resolution
META_NAME_PATTERN = re.compile(r"^\s*((twitter)\s*:\s*)?(description|title)\s*$", re.IGNORECASE)
META_PROPERTY_PATTERN = re.compile(r"^\s*og\s*:\s*(description|title|site_name)\s*$", re.IGNORECASE)

# JSON-LD field patterns
JSON_LD_ARTICLE_TYPES = re.compile(r"Article|NewsArticle|BlogPosting|ReportageNewsArticle")
JSON_LD_NAME = re.compile(r'"name"\s*:\s*"([^"]+)"')
JSON_LD_HEADLINE = re.compile(r'"headline"\s*:\s*"([^"]+)"')
JSON_LD_AUTHOR_OBJECT = re.compile(r'"author"\s*:\s*\{[^}]*"name"\s*:\s*"([^"]+)"')
JSON_LD_AUTHOR_STRING = re.compile(r'"author"\s*:\s*"([^"]+)"')
JSON_LD_DESCRIPTION = re.compile(r'"description"\s*:\s*"([^"]+)"')
JSON_LD_PUBLISHER = re.compile(r'"publisher"\s*:\s*\{[^}]*"name"\s*:\s*"([^"]+)"')
JSON_LD_DATE_PUBLISHED = re.compile(r'"datePublished"\s*:\s*"([^"]+)"')

# Title heuristics
TITLE_SEPARATOR = re.compile(r" [|\-/>»] ")
TITLE_HIERARCHICAL_SEPARATOR = re.compile(r" [/>»] ")
TITLE_BEFORE_LAST_SEPARATOR = re.compile(r"(.*)[|\-/>»] .*", re.IGNORECASE)
TITLE_AFTER_FIRST_SEPARATOR = re.compile(r"[^|\-/>»]*[|\-/>»](.*)", re.IGNORECASE)
TITLE_SEPARATOR_CHARS = re.compile(r"[|\-/>»]+")
WORD_SPLIT = re.compile(r"\s+")

CHARSET_PATTERN = re.compile(r"charset\s*=\s*[\"']?([^\s;\"'>]+)", re.IGNORECASE)


def word_count(text: str) -> int:
    """Number of whitespace-separated pieces, counting empty edges like ``str.split(regex)``."""
    return len(WORD_SPLIT.split(text))


def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1) if match else None


class MetadataExtractor(ProcessorBase):
    """Builds ``ArticleMetadata`` from a document before it is modified."""

    def __init__(self, regex: Optional[RegExUtil] = None, log=None):
        super().__init__(regex, log)

    def get_article_metadata(self, document: BeautifulSoup, disable_json_ld: bool = False) -> ArticleMetadata:
        """
        Extract metadata from a parsed document.

        Args:
            document: The original, unmodified document
            disable_json_ld: Skip JSON-LD blocks entirely

        Returns:
            ArticleMetadata: Extracted metadata; missing values are None
        """
        values: Dict[str, str] = {}
        byline: Optional[str] = None
        published_time: Optional[str] = None

        for element in document.find_all("meta"):
            element_name = get_attr(element, "name")
            element_property = get_attr(element, "property")

            if element_name == "author" or element_property == "author":
                byline = get_attr(element, "content")
                continue

            if element_property == "article:published_time" or element_name == "parsely-pub-date":
                published_time = get_attr(element, "content")
                continue

            name = None
            if META_NAME_PATTERN.search(element_name):
                name = element_name
            elif META_PROPERTY_PATTERN.search(element_property):
                name = element_property

            if name is not None:
                content = get_attr(element, "content")
                if content.strip():
                    key = re.sub(r"\s", "", name.lower())
                    values[key] = content.strip().replace("  ", " ")

        title = None
        excerpt = None
        site_name = None

        if not disable_json_ld:
            json_ld = self.get_json_ld(document)
            if json_ld is not None:
                if json_ld.title and json_ld.title.strip():
                    title = json_ld.title
                if json_ld.byline and json_ld.byline.strip() and not (byline and byline.strip()):
                    byline = json_ld.byline
                if json_ld.excerpt and json_ld.excerpt.strip():
                    excerpt = json_ld.excerpt
                if json_ld.site_name and json_ld.site_name.strip():
                    site_name = json_ld.site_name
                if json_ld.published_time and json_ld.published_time.strip() and \
                        not (published_time and published_time.strip()):
                    published_time = json_ld.published_time

        if excerpt is None:
            excerpt = values.get("description") or values.get("og:description") or \
                values.get("twitter:description")

        if not (site_name and site_name.strip()):
            site_name = values.get("og:site_name")

        if not (title and title.strip()):
            title = self.get_article_title(document)
        if not title.strip():
            title = values.get("og:title") or values.get("twitter:title") or ""

        return ArticleMetadata(
            title=unescape_html_entities(title),
            byline=unescape_html_entities(byline),
            excerpt=unescape_html_entities(excerpt),
            charset=self.get_charset(document),
            site_name=unescape_html_entities(site_name),
            published_time=unescape_html_entities(published_time),
        )

    def get_document_title(self, document: BeautifulSoup) -> str:
        title_tag = document.find("title")
        if title_tag is None:
            return ""
        return normalize_whitespace(title_tag.get_text())

    def get_article_title(self, document: BeautifulSoup) -> str:
        """
        Derive the article title from ``<title>``, stripping site names.

        Cuts at ``|``, ``-``, ``/``, ``>`` or ``»`` separators or at a colon,
        falls back to the single ``<h1>`` for very long or very short titles,
        and restores the original when the cut leaves too few words.
        """
        cur_title = ""
        orig_title = ""

        try:
            orig_title = cur_title = self.get_document_title(document)

            if not cur_title.strip():
                element_with_id_title = document.find(id="title")
                if element_with_id_title is not None:
                    orig_title = cur_title = self.get_inner_text(element_with_id_title)
        except Exception as e:
            logger.debug("Error reading document title", error=str(e))

        had_separators = False

        if TITLE_SEPARATOR.search(cur_title):
            had_separators = True
            cur_title = TITLE_BEFORE_LAST_SEPARATOR.sub(r"\1", orig_title)

            # If the resulting title is too short, remove the first part instead
            if word_count(cur_title) < 3:
                cur_title = TITLE_AFTER_FIRST_SEPARATOR.sub(r"\1", orig_title)
        elif ": " in cur_title:
            # Check if we have a heading containing this exact string
            matches_heading = any(
                heading.get_text() == cur_title for heading in document.find_all(["h1", "h2"])
            )

            if not matches_heading:
                cur_title = orig_title[orig_title.rfind(":") + 1:]

                # If the title is now too short, try the first colon instead
                if word_count(cur_title) < 3:
                    cur_title = orig_title[orig_title.find(":") + 1:]
                # But if we have too many words before the colon there's something weird
                elif word_count(orig_title[:orig_title.find(":")]) > 5:
                    cur_title = orig_title
        elif len(cur_title) > 150 or len(cur_title) < 15:
            h_ones = document.find_all("h1")
            if len(h_ones) == 1:
                cur_title = self.get_inner_text(h_ones[0])

        cur_title = cur_title.strip()
        cur_title_word_count = word_count(cur_title)

        # Four words or fewer: keep the cut only if it dropped exactly the site name part
        if cur_title_word_count <= 4 and (
            not had_separators
            or cur_title_word_count == word_count(TITLE_SEPARATOR_CHARS.sub("", orig_title)) - 1
        ):
            cur_title = orig_title

        return cur_title

    def get_json_ld(self, document: BeautifulSoup) -> Optional[ArticleMetadata]:
        """
        Pull metadata from the first JSON-LD block describing an article.

        Fields are matched with patterns rather than a JSON parser, so
        malformed blocks still yield whatever can be recognised.
        """
        for script in document.find_all("script", attrs={"type": "application/ld+json"}):
            content = "".join(str(child) for child in script.contents)
            if not content.strip():
                continue

            if not JSON_LD_ARTICLE_TYPES.search(content):
                continue

            name = _first_group(JSON_LD_NAME, content)
            headline = _first_group(JSON_LD_HEADLINE, content)

            if name and headline and name != headline:
                # Prefer whichever is closer to the document title
                document_title = self.get_document_title(document)
                name_similarity = text_similarity(name, document_title)
                headline_similarity = text_similarity(headline, document_title)
                title = name if name_similarity > headline_similarity else headline
            else:
                title = headline or name

            byline = _first_group(JSON_LD_AUTHOR_OBJECT, content) or \
                _first_group(JSON_LD_AUTHOR_STRING, content)

            logger.debug("Found JSON-LD article metadata", title=title, byline=byline)
            return ArticleMetadata(
                title=title,
                byline=byline,
                excerpt=_first_group(JSON_LD_DESCRIPTION, content),
                site_name=_first_group(JSON_LD_PUBLISHER, content),
                published_time=_first_group(JSON_LD_DATE_PUBLISHED, content),
            )

        return None

    def get_charset(self, document: BeautifulSoup) -> Optional[str]:
        """Declared charset from ``<meta charset>`` or an http-equiv content type."""
        for meta in document.find_all("meta"):
            charset = get_attr(meta, "charset").strip()
            if charset:
                return charset.lower()

            if get_attr(meta, "http-equiv").lower() == "content-type":
                match = CHARSET_PATTERN.search(get_attr(meta, "content"))
                if match:
                    return match.group(1).lower()
        return None


def extract_metadata(
    html_or_document: Union[str, bytes, BeautifulSoup],
    disable_json_ld: bool = False,
) -> ArticleMetadata:
    """
    Extract metadata from HTML content or a parsed document.

    Args:
        html_or_document: Raw HTML or a parsed document
        disable_json_ld: Skip JSON-LD blocks

    Returns:
        ArticleMetadata: Extracted metadata
    """
    if isinstance(html_or_document, BeautifulSoup):
        document = html_or_document
    else:
        document = parse_html(html_or_document)
    return MetadataExtractor().get_article_metadata(document, disable_json_ld)
