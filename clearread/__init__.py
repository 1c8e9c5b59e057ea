"""
clearread

Extracts the readable article and its metadata from HTML pages, following
the heuristics of Mozilla's Readability.
"""

__version__ = "0.1.0"
__author__ = "clearread developers"
__description__ = "Readable article extraction from HTML pages"
__license__ = "MIT"

# Version info tuple
VERSION_INFO = tuple(map(int, __version__.split('.')))

from clearread.config import ArticleGrabberOptions, ReadabilityOptions  # noqa: E402
from clearread.exceptions import (  # noqa: E402
    ExtractionCancelledError,
    MaxElementsExceededError,
    ReadabilityError,
)
from clearread.models import Article, ArticleMetadata  # noqa: E402
from clearread.readability import Readability  # noqa: E402
from clearread.readerable import ReadableCheckOptions, is_probably_readerable  # noqa: E402

__all__ = [
    "Article",
    "ArticleGrabberOptions",
    "ArticleMetadata",
    "ExtractionCancelledError",
    "MaxElementsExceededError",
    "Readability",
    "ReadabilityError",
    "ReadabilityOptions",
    "ReadableCheckOptions",
    "is_probably_readerable",
]
