"""
Quick check whether a document is worth running through extraction.

``is_probably_readerable`` looks at paragraph-like nodes only and never
modifies the document, so it is cheap enough to run before deciding to call
``Readability.parse``.
"""
import math
import re
from typing import Callable, List, Optional

import structlog
from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ConfigDict

from clearread.extractor.regex import RegExUtil
from clearread.parser.html_parser import class_id_string, contains_node, get_attr, get_class_name, parent_element

# Set up structured logger
logger = structlog.get_logger()

UNLIKELY_CANDIDATES = re.compile(
    r"-ad-|banner|combx|comment|community|cover-wrap|disqus|extra|footer|gdpr|"
    r"header|legends|menu|related|remark|replies|rss|shoutbox|sidebar|skyscraper|"
    r"social|sponsor|supplemental|ad-break|agegate|pagination|pager|popup|yom-remote",
    re.IGNORECASE,
)
OK_MAYBE_ITS_A_CANDIDATE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story",
    re.IGNORECASE,
)

HIDDEN_STYLES = ("display:none", "display: none", "visibility:hidden", "visibility: hidden")


def is_node_visible(node: Tag) -> bool:
    """False for nodes hidden through inline style, ``hidden`` or ``aria-hidden``."""
    style = get_attr(node, "style").lower()
    if any(hidden in style for hidden in HIDDEN_STYLES):
        return False

    if node.has_attr("hidden"):
        return False

    # Wikimedia math images carry aria-hidden but are shown through a fallback
    if get_attr(node, "aria-hidden") == "true" and "fallback-image" not in get_class_name(node):
        return False

    return True


class ReadableCheckOptions(BaseModel):
    """Thresholds for ``is_probably_readerable``."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    min_score: float = 20
    min_content_length: int = 140
    visibility_checker: Callable[[Tag], bool] = is_node_visible


def is_probably_readerable(
    document: BeautifulSoup,
    options: Optional[ReadableCheckOptions] = None,
    regex: Optional[RegExUtil] = None,
) -> bool:
    """
    Decide whether the document probably contains an article.

    Every visible ``p``, ``pre`` and ``article`` node, and every ``div``
    holding a ``<br>``, adds ``sqrt(length - min_content_length)`` for text
    longer than ``min_content_length``.

    Args:
        document: Parsed document; it is not modified
        options: Score and length thresholds
        regex: Used to normalise node text

    Returns:
        bool: True as soon as the accumulated score exceeds ``min_score``
    """
    options = options or ReadableCheckOptions()
    regex = regex or RegExUtil()

    nodes: List[Tag] = list(document.find_all(["p", "pre", "article"]))

    for br in document.find_all("br"):
        parent = parent_element(br)
        if parent is not None and parent.name == "div" and not contains_node(nodes, parent):
            nodes.append(parent)

    score = 0.0
    for node in nodes:
        if not options.visibility_checker(node):
            continue

        match_string = class_id_string(node)
        if UNLIKELY_CANDIDATES.search(match_string) and not OK_MAYBE_ITS_A_CANDIDATE.search(match_string):
            continue

        parent = parent_element(node)
        if node.name == "p" and parent is not None and parent.name == "li":
            continue

        text_length = len(regex.normalize(node.get_text().strip()))
        if text_length < options.min_content_length:
            continue

        score += math.sqrt(text_length - options.min_content_length)
        if score > options.min_score:
            logger.debug("Document is probably readerable", score=score)
            return True

    logger.debug("Document is probably not readerable", score=score)
    return False
