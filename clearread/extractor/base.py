"""
Shared helpers for the document processors.

The preprocessor, article grabber and postprocessor all remove, rename and
measure nodes the same way; ``ProcessorBase`` keeps that in one place together
with the injected logger.
"""
from typing import Callable, Optional

import structlog
from bs4 import Tag
from bs4.element import PageElement

from clearread.extractor.regex import RegExUtil
from clearread.parser import html_parser

# Set up structured logger
logger = structlog.get_logger()

LOG_SNIPPET_LENGTH = 80


class ProcessorBase:
    """Base class for processors that mutate the document tree."""

    def __init__(self, regex: Optional[RegExUtil] = None, log=None):
        self.regex = regex or RegExUtil()
        self.logger = log or logger

    def remove_nodes(
        self,
        element: Tag,
        tag_name: str,
        filter_fn: Optional[Callable[[Tag], bool]] = None,
    ) -> None:
        """Remove every ``tag_name`` descendant of ``element`` accepted by ``filter_fn``."""
        for child in reversed(element.find_all(tag_name)):
            if child.parent is None:
                continue
            if filter_fn is None or filter_fn(child):
                self.print_and_remove(child, f"removeNode('{tag_name}')")

    def print_and_remove(self, node: PageElement, reason: str) -> None:
        if node.parent is not None:
            self.log_node_info(node, reason)
            node.extract()

    def log_node_info(self, node: PageElement, reason: str) -> None:
        snippet = str(node)[:LOG_SNIPPET_LENGTH].replace("\n", "")
        self.logger.debug(reason, node=snippet)

    def replace_nodes(self, parent: Tag, tag_name: str, new_tag_name: str) -> None:
        """Rename every ``tag_name`` descendant of ``parent``."""
        for element in parent.find_all(tag_name):
            element.name = new_tag_name

    def next_element(self, node: Optional[PageElement]) -> Optional[Tag]:
        """First element at or after ``node``, skipping whitespace-only text."""
        return html_parser.next_element(node)

    def get_inner_text(self, element: Tag, normalize_spaces: bool = True) -> str:
        """Text content of ``element``, trimmed and optionally whitespace-collapsed."""
        text = element.get_text().strip()
        if normalize_spaces:
            return self.regex.normalize(text)
        return text
