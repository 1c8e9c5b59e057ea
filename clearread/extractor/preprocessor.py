"""
Document preprocessing ahead of article grabbing.

Strips scripts, styles, forms and comments, resolves ``<noscript>``
fallbacks, turns runs of ``<br>`` into paragraphs and repairs lazily loaded
images so the grabber sees the real markup.
"""
import copy
import re
from typing import Optional
from urllib.parse import unquote

import structlog
from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, PageElement

from clearread.extractor.base import ProcessorBase
from clearread.extractor.noscript import ContentAwareNoscriptHandler, NoscriptHandler
from clearread.extractor.regex import RegExUtil
from clearread.parser.html_parser import (
    element_children,
    get_attr,
    get_body,
    previous_element_sibling,
)

# Set up structured logger
logger = structlog.get_logger()

# Attribute values that look like a lazily loaded image
LAZY_SRC_PATTERN = re.compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$", re.IGNORECASE)
LAZY_SRCSET_PATTERN = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d", re.IGNORECASE)

NEXTJS_IMAGE_PATTERN = re.compile(r"/_next/image\?url=([^&]+)")

IMAGE_SOURCE_ATTRIBUTES = ("src", "srcset", "data-src", "data-srcset")


def is_single_image(node: Tag) -> bool:
    """True if ``node`` is an image, or wraps exactly one image and no text."""
    while node.name != "img":
        children = element_children(node)
        if len(children) != 1 or node.get_text().strip():
            return False
        node = children[0]
    return True


class Preprocessor(ProcessorBase):
    """
    Basic sanitisation of a document before extraction starts.

    Every step mutates the document in place and is safe to run on a
    document that has already been prepared.
    """

    def __init__(
        self,
        regex: Optional[RegExUtil] = None,
        noscript_handler: Optional[NoscriptHandler] = None,
        log=None,
    ):
        super().__init__(regex, log)
        self.noscript_handler = noscript_handler or ContentAwareNoscriptHandler()

    def prepare_document(self, document: BeautifulSoup) -> None:
        """
        Prepare the document for readability to scrape it.

        Args:
            document: Parsed document, modified in place
        """
        self.logger.debug("Starting to prepare document")

        self.unwrap_noscript_images(document)
        self.remove_scripts(document)
        self.remove_noscripts(document)
        self.remove_styles(document)
        self.remove_forms(document)
        self.remove_comments(document)
        self.replace_brs(document)
        self.replace_nodes(document, "font", "span")
        self.fix_lazy_images(document)
        self.fix_nextjs_images(document)

    def remove_scripts(self, document: BeautifulSoup) -> None:
        def clear_source(script: Tag) -> bool:
            script.attrs.pop("src", None)
            return True

        self.remove_nodes(document, "script", clear_source)

    def remove_noscripts(self, document: BeautifulSoup) -> None:
        for noscript in document.find_all("noscript"):
            if noscript.parent is None:
                continue
            if self.noscript_handler.should_keep_noscript(document, noscript):
                self.log_node_info(noscript, "Unwrapping noscript")
                noscript.unwrap()
            else:
                self.print_and_remove(noscript, "removeScripts('noscript')")

    def remove_styles(self, document: BeautifulSoup) -> None:
        self.remove_nodes(document, "style")

    def remove_forms(self, document: BeautifulSoup) -> None:
        self.remove_nodes(document, "form")

    def remove_comments(self, document: BeautifulSoup) -> None:
        for comment in document.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

    def replace_brs(self, document: BeautifulSoup) -> None:
        """
        Replace two or more successive ``<br>`` elements with a single ``<p>``.

        Whitespace between the ``<br>`` elements is ignored, so
        ``<div>foo<br>bar<br> <br><br>abc</div>`` becomes
        ``<div>foo<br>bar<p>abc</p></div>``.
        """
        body = get_body(document)
        for br in body.find_all("br"):
            if br.parent is None:
                continue

            replaced = False

            # Remove the rest of the chain, leaving the first <br> to become the <p>
            following = self.next_element(br.next_sibling)
            while following is not None and following.name == "br":
                replaced = True
                sibling = following.next_sibling
                self.print_and_remove(following, "replaceBrs")
                following = self.next_element(sibling)

            if not replaced:
                continue

            paragraph = document.new_tag("p")
            br.replace_with(paragraph)

            current = paragraph.next_sibling
            while current is not None:
                # Another <br><br> ends this paragraph
                if isinstance(current, Tag) and current.name == "br":
                    next_elem = self.next_element(current.next_sibling)
                    if next_elem is not None and next_elem.name == "br":
                        break

                sibling = current.next_sibling
                paragraph.append(current)
                current = sibling

            # Trailing whitespace inside the new paragraph is noise
            while paragraph.contents and self._is_blank_text(paragraph.contents[-1]):
                paragraph.contents[-1].extract()

            if paragraph.parent is not None and paragraph.parent.name == "p":
                paragraph.parent.name = "div"

    def _is_blank_text(self, node: PageElement) -> bool:
        return not isinstance(node, Tag) and isinstance(node, str) and \
            self.regex.is_whitespace(str(node))

    def fix_lazy_images(self, document: BeautifulSoup) -> None:
        """Copy image URLs out of lazy-loading attributes into ``src``/``srcset``."""
        for elem in document.find_all(["img", "picture", "figure"]):
            if elem.name == "figure":
                if elem.find(["img", "picture"]) is None:
                    self._add_image_from_attributes(document, elem)
                continue

            src = get_attr(elem, "src")
            srcset = get_attr(elem, "srcset")
            if (src and not src.startswith("data:")) or (srcset and not srcset.startswith("data:")):
                continue

            for name, value in list(elem.attrs.items()):
                if name in ("src", "srcset") or not isinstance(value, str):
                    continue

                copy_to = self._lazy_target(value)
                if copy_to is None:
                    continue

                if elem.name == "img":
                    elem[copy_to] = value
                else:
                    img = elem.find("img")
                    if img is None:
                        img = document.new_tag("img")
                        elem.append(img)
                    img[copy_to] = value
                self.logger.debug("Fixed lazy image", tag=elem.name, attribute=name, target=copy_to)

    def _lazy_target(self, value: str) -> Optional[str]:
        if LAZY_SRC_PATTERN.match(value):
            return "src"
        if LAZY_SRCSET_PATTERN.search(value):
            return "srcset"
        return None

    def _add_image_from_attributes(self, document: BeautifulSoup, figure: Tag) -> None:
        for value in list(figure.attrs.values()):
            if not isinstance(value, str):
                continue
            copy_to = self._lazy_target(value)
            if copy_to is not None:
                img = document.new_tag("img")
                img[copy_to] = value
                figure.append(img)
                return

    def fix_nextjs_images(self, document: BeautifulSoup) -> None:
        """Replace ``/_next/image?url=...`` proxy URLs with the real image URL."""
        images = document.find_all("img")
        self.logger.debug("Processing Next.js image URLs", images=len(images))

        for img in images:
            src = get_attr(img, "src")
            if src.strip():
                real_url = self.extract_real_image_url(src)
                if real_url is not None:
                    img["src"] = real_url

            srcset = get_attr(img, "srcset")
            if srcset.strip():
                fixed = self.fix_nextjs_srcset(srcset)
                if fixed != srcset:
                    img["srcset"] = fixed

    def extract_real_image_url(self, url: str) -> Optional[str]:
        match = NEXTJS_IMAGE_PATTERN.search(url)
        if match is None:
            return None
        return unquote(match.group(1))

    def fix_nextjs_srcset(self, srcset: str) -> str:
        entries = []
        for entry in (part.strip() for part in srcset.split(",")):
            parts = entry.split()
            if not parts:
                entries.append(entry)
                continue

            real_url = self.extract_real_image_url(parts[0])
            if real_url is None:
                entries.append(entry)
            elif len(parts) > 1:
                entries.append(f"{real_url} {' '.join(parts[1:])}")
            else:
                entries.append(real_url)
        return ", ".join(entries)

    def unwrap_noscript_images(self, document: BeautifulSoup) -> None:
        """
        Replace placeholder images with the real image from a following ``<noscript>``.

        Images without any source attribute are dropped first. If a noscript
        holds exactly one image and its previous sibling is a single image, the
        sibling is swapped for a copy of the noscript image. The placeholder's
        attributes are copied over; those the noscript image already sets
        differently are kept as ``data-old-<name>``.
        """
        for img in document.find_all("img"):
            if not any(get_attr(img, name) for name in IMAGE_SOURCE_ATTRIBUTES):
                img.extract()

        for noscript in document.find_all("noscript"):
            if not is_single_image(noscript):
                continue

            previous = previous_element_sibling(noscript)
            if previous is None or not is_single_image(previous):
                continue

            previous_img = previous if previous.name == "img" else previous.find("img")
            noscript_img = noscript.find("img")
            if previous_img is None or noscript_img is None:
                continue

            new_img = copy.copy(noscript_img)
            for name, value in list(previous_img.attrs.items()):
                if not value or not isinstance(value, str):
                    continue
                if get_attr(new_img, name) == value:
                    continue
                if new_img.has_attr(name):
                    new_img[f"data-old-{name}"] = value
                else:
                    new_img[name] = value

            self.logger.debug("Replacing placeholder image with noscript image")
            previous.replace_with(new_img)
