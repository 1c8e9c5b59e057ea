"""
Post-processing of the extracted article content.

Relative link and image URLs are made absolute against the article URI,
breadcrumb navigation is dropped and ``class`` attributes are stripped except
for the few classes the output itself relies on.
"""
import re
from typing import Iterable, Optional, Set, Tuple

import structlog
from bs4 import BeautifulSoup, NavigableString, Tag

from clearread.extractor.base import ProcessorBase
from clearread.extractor.regex import RegExUtil
from clearread.parser.html_parser import class_id_string, element_children, get_attr, get_class_name

# Set up structured logger
logger = structlog.get_logger()

ABSOLUTE_URI_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+\-.]*:")

CLASSES_TO_PRESERVE = frozenset({"readability-styled", "page"})

BREADCRUMB_MARKERS = ("breadcrumb", "ui-bc")


def split_uri(uri: str) -> Optional[Tuple[str, str, str]]:
    """
    Split ``uri`` into scheme, host and path.

    Returns None if the URI has no ``://``; the path defaults to ``/``.
    """
    scheme_end = uri.find("://")
    if scheme_end == -1:
        return None

    scheme = uri[:scheme_end]
    after_scheme = uri[scheme_end + 3:]
    path_start = after_scheme.find("/")
    if path_start == -1:
        return scheme, after_scheme, "/"
    return scheme, after_scheme[:path_start], after_scheme[path_start:]


class Postprocessor(ProcessorBase):
    """Final clean-up of the article content node."""

    def __init__(self, regex: Optional[RegExUtil] = None, log=None):
        super().__init__(regex, log)

    def post_process_content(
        self,
        original_document: BeautifulSoup,
        article_content: Tag,
        article_uri: str,
        additional_classes_to_preserve: Iterable[str] = (),
        keep_classes: bool = False,
    ) -> None:
        """
        Post-process the article content in place.

        Args:
            original_document: Document the content was extracted from
            article_content: Content node returned by the grabber
            article_uri: URI relative links are resolved against
            additional_classes_to_preserve: Classes kept besides the built-in ones
            keep_classes: Leave every ``class`` attribute untouched
        """
        # Readers cannot open relative URIs, so make them absolute
        self.fix_relative_uris(original_document, article_content, article_uri)

        self.remove_breadcrumb_navigation(article_content)

        if not keep_classes:
            classes_to_preserve = set(CLASSES_TO_PRESERVE) | set(additional_classes_to_preserve)
            self.clean_classes(article_content, classes_to_preserve)

    def fix_relative_uris(self, original_document: BeautifulSoup, element: Tag, article_uri: str) -> None:
        try:
            parts = split_uri(article_uri)
            if parts is None:
                self.logger.debug("Article URI has no scheme, leaving links alone", uri=article_uri)
                return

            scheme, host, path = parts
            pre_path = f"{scheme}://{host}"
            path_base = pre_path + path[:path.rfind("/") + 1]

            self.fix_relative_anchor_uris(element, scheme, pre_path, path_base)
            self.fix_relative_image_uris(element, scheme, pre_path, path_base)
        except Exception as e:
            self.logger.debug("Could not fix relative URIs", uri=article_uri, error=str(e))

    def fix_relative_anchor_uris(self, element: Tag, scheme: str, pre_path: str, path_base: str) -> None:
        for link in element.find_all("a"):
            href = get_attr(link, "href")
            if not href.strip():
                continue

            # javascript: links do nothing once scripts are gone; keep their text
            if href.startswith("javascript:"):
                link.replace_with(NavigableString(link.get_text()))
            else:
                link["href"] = self.to_absolute_uri(href, scheme, pre_path, path_base)

    def fix_relative_image_uris(self, element: Tag, scheme: str, pre_path: str, path_base: str) -> None:
        for img in element.find_all("img"):
            src = get_attr(img, "src")
            if src.strip():
                img["src"] = self.to_absolute_uri(src, scheme, pre_path, path_base)

    def to_absolute_uri(self, uri: str, scheme: str, pre_path: str, path_base: str) -> str:
        """Resolve ``uri`` the way the article page would have."""
        # Already absolute
        if ABSOLUTE_URI_PATTERN.search(uri) or len(uri) <= 2:
            return uri

        # Scheme-rooted relative URI
        if uri.startswith("//"):
            return f"{scheme}://{uri[2:]}"

        # Prepath-rooted relative URI
        if uri.startswith("/"):
            return pre_path + uri

        # Dotslash relative URI
        if uri.startswith("./"):
            return path_base + uri[2:]

        # Hash URIs stay as they are
        if uri.startswith("#"):
            return uri

        # Standard relative URI; path_base already ends with "/"
        return path_base + uri

    def remove_breadcrumb_navigation(self, article_content: Tag) -> None:
        for nav in article_content.find_all("nav"):
            if nav.parent is None:
                continue
            match_string = class_id_string(nav).lower()
            if any(marker in match_string for marker in BREADCRUMB_MARKERS):
                self.print_and_remove(nav, "Removing breadcrumb nav")

    def clean_classes(self, node: Tag, classes_to_preserve: Set[str]) -> None:
        """Remove ``class`` from the subtree, except the preserved class names."""
        class_names = [name for name in get_class_name(node).split() if name in classes_to_preserve]

        if class_names:
            node["class"] = " ".join(class_names)
        else:
            node.attrs.pop("class", None)

        for child in element_children(node):
            self.clean_classes(child, classes_to_preserve)
