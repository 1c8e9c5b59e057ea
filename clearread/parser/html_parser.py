"""
HTML parsing layer built on BeautifulSoup.

This module owns every direct interaction with the parsed tree that the
extraction pipeline needs: parsing, element-only navigation (children,
siblings, depth-first traversal), ancestor walks, document-order paths and a
few text utilities shared by the processors.

Documents are parsed with the lxml tree builder and with multi-valued
attributes disabled, so ``class`` and ``rel`` are plain strings exactly as
they appear in the markup.
"""
import html
import re
from typing import Callable, List, Optional, Union

import structlog
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement, PreformattedString

# Set up structured logger
logger = structlog.get_logger()

DEFAULT_TREE_BUILDER = "lxml"

_TOKEN_SPLIT = re.compile(r"\s+")


def parse_html(content: Union[str, bytes], builder: str = DEFAULT_TREE_BUILDER) -> BeautifulSoup:
    """
    Parse HTML content into a mutable document.

    This is the main entry point for HTML parsing. The returned document is
    guaranteed to have an ``<html>`` root with a ``<body>`` child.

    Args:
        content: HTML content as string or bytes
        builder: BeautifulSoup tree builder name

    Returns:
        BeautifulSoup: The parsed document
    """
    if isinstance(content, bytes):
        content = content.decode('utf-8', errors='replace')

    document = BeautifulSoup(content or "", builder, multi_valued_attributes=None)
    ensure_document_structure(document)
    return document


def ensure_document_structure(document: BeautifulSoup) -> Tag:
    """Make sure the document has an ``<html>`` element with a ``<body>``.

    Returns:
        Tag: The body element
    """
    root = document.find("html")
    if root is None:
        root = document.new_tag("html")
        for child in list(document.contents):
            root.append(child.extract())
        document.append(root)

    body = root.find("body", recursive=False)
    if body is None:
        body = document.new_tag("body")
        # Anything that is not the head belongs in the body
        for child in list(root.contents):
            if is_tag(child) and child.name == "head":
                continue
            body.append(child.extract())
        root.append(body)

    return body


def get_body(document: BeautifulSoup) -> Tag:
    """Return the document body, creating one when the markup had none."""
    body = document.find("body")
    if body is None:
        body = ensure_document_structure(document)
    return body


def is_tag(node: Optional[PageElement]) -> bool:
    """True for element nodes (not text, comments or the document itself)."""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text(node: Optional[PageElement]) -> bool:
    """True for plain text nodes."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def get_class_name(tag: Tag) -> str:
    """Return the raw ``class`` attribute as a string."""
    value = tag.get("class")
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return value


def get_attr(tag: Tag, name: str) -> str:
    """Return an attribute value as a string, empty when missing."""
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return value


def class_id_string(tag: Tag) -> str:
    """The "class id" string the class/id classifiers match against."""
    return f"{get_class_name(tag)} {get_attr(tag, 'id')}"


def element_children(node: Tag) -> List[Tag]:
    """Child elements of a node, skipping text and comments."""
    return [child for child in node.contents if is_tag(child)]


def first_element_child(node: Tag) -> Optional[Tag]:
    for child in node.contents:
        if is_tag(child):
            return child
    return None


def next_element_sibling(node: PageElement) -> Optional[Tag]:
    sibling = node.next_sibling
    while sibling is not None and not is_tag(sibling):
        sibling = sibling.next_sibling
    return sibling


def previous_element_sibling(node: PageElement) -> Optional[Tag]:
    sibling = node.previous_sibling
    while sibling is not None and not is_tag(sibling):
        sibling = sibling.previous_sibling
    return sibling


def parent_element(node: PageElement) -> Optional[Tag]:
    """The parent element, or None at the top of the tree."""
    parent = node.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def get_next_node(node: Tag, ignore_self_and_kids: bool = False) -> Optional[Tag]:
    """
    Traverse the tree from element to element, depth-first.

    Pass ``ignore_self_and_kids=True`` when the node (and its children) is
    about to go away and the next node over is wanted.

    Args:
        node: Current element
        ignore_self_and_kids: Skip the node's own subtree

    Returns:
        Optional[Tag]: The next element in document order, if any
    """
    # First check for kids if those aren't being ignored
    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child

    # Then for siblings...
    sibling = next_element_sibling(node)
    if sibling is not None:
        return sibling

    # And finally, move up the parent chain *and* find a sibling
    parent = parent_element(node)
    while parent is not None and next_element_sibling(parent) is None:
        parent = parent_element(parent)

    return next_element_sibling(parent) if parent is not None else None


def node_ancestors(node: Tag, max_depth: int = 0) -> List[Tag]:
    """Ancestor elements from the parent upwards, at most ``max_depth`` (0 = all)."""
    ancestors = []
    parent = parent_element(node)
    while parent is not None:
        ancestors.append(parent)
        if max_depth and len(ancestors) == max_depth:
            break
        parent = parent_element(parent)
    return ancestors


def contains_node(nodes: List[PageElement], node: Optional[PageElement]) -> bool:
    """Identity membership test; bs4 tags compare structurally with ``==``."""
    return any(candidate is node for candidate in nodes)


def has_ancestor_tag(
    node: Tag,
    tag_name: str,
    max_depth: int = 3,
    filter_fn: Optional[Callable[[Tag], bool]] = None,
) -> bool:
    """
    Check whether one of the node's ancestors has the given tag name.

    Args:
        node: Element to start from
        tag_name: Tag name to look for
        max_depth: Maximum number of levels to climb (<= 0 means unlimited)
        filter_fn: Optional extra predicate the matching ancestor must satisfy

    Returns:
        bool: True if such an ancestor exists
    """
    tag_name = tag_name.lower()
    depth = 0
    parent = parent_element(node)
    while parent is not None:
        if 0 < max_depth < depth:
            return False
        if parent.name == tag_name and (filter_fn is None or filter_fn(parent)):
            return True
        parent = parent_element(parent)
        depth += 1
    return False


def sibling_index_path(node: PageElement) -> List[int]:
    """Child-index path from the top of the tree down to ``node``."""
    path = []
    current = node
    while current.parent is not None:
        parent = current.parent
        index = next(i for i, child in enumerate(parent.contents) if child is current)
        path.append(index)
        current = parent
    path.reverse()
    return path


def count_elements(document: BeautifulSoup) -> int:
    return len(document.find_all(True))


def inner_html(tag: Tag) -> str:
    return tag.decode_contents()


def unescape_html_entities(text: Optional[str]) -> Optional[str]:
    """Decode named, decimal (``&#NNN;``) and hex (``&#xHH;``) entities."""
    if text is None:
        return None
    return html.unescape(text)


def text_similarity(text_a: str, text_b: str) -> float:
    """
    Token overlap between two strings.

    Returns the number of shared lowercase whitespace tokens divided by the
    number of distinct tokens across both strings (0.0 when either is empty).
    """
    tokens_a = {token for token in _TOKEN_SPLIT.split(text_a.lower()) if token}
    tokens_b = {token for token in _TOKEN_SPLIT.split(text_b.lower()) if token}

    if not tokens_a or not tokens_b:
        return 0.0

    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to one space and trim."""
    return _TOKEN_SPLIT.sub(" ", text).strip()


def next_element(node: Optional[PageElement]) -> Optional[Tag]:
    """
    Find the next element starting at ``node``, skipping whitespace-only text.

    If ``node`` is itself an element it is returned. Any other node in the way
    (non-blank text, a comment) means there is no next element.
    """
    current = node
    while current is not None and is_text(current) and not str(current).strip():
        current = current.next_sibling
    return current if is_tag(current) else None
