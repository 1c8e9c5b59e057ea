"""
Article grabbing: the scoring engine.

``ArticleGrabber`` walks the prepared document, scores paragraph-like nodes
and propagates the scores to their ancestors, picks the best scoring
container, joins qualifying siblings into a fresh content node and cleans it
up. When the result is shorter than the character threshold the whole
pipeline runs again on a fresh copy of the page with a less strict set of
options, and the longest attempt wins if none reaches the threshold.
"""
import copy
import math
import re
import threading
from typing import Any, Dict, List, Optional, Pattern, Sequence, Tuple

import structlog
from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ConfigDict

from clearread.config import ArticleGrabberOptions, ReadabilityOptions
from clearread.exceptions import ExtractionCancelledError
from clearread.extractor.base import ProcessorBase
from clearread.extractor.filters import BlockquoteDescendantFilter, CandidateFilter
from clearread.extractor.regex import RegExUtil
from clearread.models.metadata import ArticleMetadata
from clearread.parser.html_parser import (
    class_id_string,
    contains_node,
    element_children,
    get_attr,
    get_body,
    get_class_name,
    get_next_node,
    has_ancestor_tag,
    is_text,
    node_ancestors,
    parent_element,
    sibling_index_path,
    text_similarity,
)

# Set up structured logger
logger = structlog.get_logger()

# Tag base scores
TAG_SCORE_DIV = 5
TAG_SCORE_CONTENT = 3
TAG_SCORE_LIST_PENALTY = -3
TAG_SCORE_HEADER_PENALTY = -5

TAG_SCORES = {
    "div": TAG_SCORE_DIV,
    "pre": TAG_SCORE_CONTENT,
    "td": TAG_SCORE_CONTENT,
    "blockquote": TAG_SCORE_CONTENT,
    "address": TAG_SCORE_LIST_PENALTY,
    "ol": TAG_SCORE_LIST_PENALTY,
    "ul": TAG_SCORE_LIST_PENALTY,
    "dl": TAG_SCORE_LIST_PENALTY,
    "dd": TAG_SCORE_LIST_PENALTY,
    "dt": TAG_SCORE_LIST_PENALTY,
    "li": TAG_SCORE_LIST_PENALTY,
    "form": TAG_SCORE_LIST_PENALTY,
    "h1": TAG_SCORE_HEADER_PENALTY,
    "h2": TAG_SCORE_HEADER_PENALTY,
    "h3": TAG_SCORE_HEADER_PENALTY,
    "h4": TAG_SCORE_HEADER_PENALTY,
    "h5": TAG_SCORE_HEADER_PENALTY,
    "h6": TAG_SCORE_HEADER_PENALTY,
    "th": TAG_SCORE_HEADER_PENALTY,
}

CLASS_WEIGHT = 25

DEFAULT_TAGS_TO_SCORE = ("section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre")
DIV_TO_P_ELEMS = ("a", "blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul", "select")
EMPTY_CONTAINER_TAGS = ("div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6")
ALTER_TO_DIV_EXCEPTIONS = ("div", "article", "section", "p")

PRESENTATIONAL_ATTRIBUTES = (
    "align", "background", "bgcolor", "border", "cellpadding", "cellspacing",
    "frame", "hspace", "rules", "style", "valign", "vspace",
)
DEPRECATED_SIZE_ATTRIBUTE_ELEMS = ("table", "th", "td", "hr", "pre")
EMBEDDED_NODES = ("object", "embed", "iframe")
DATA_TABLE_DESCENDANTS = ("col", "colgroup", "tfoot", "thead", "th")

# Non-content markers that cancel the media bonus
NON_CONTENT_MARKERS = ("sidebar", "related", "recommend", "widget", "promo")

# Utility-style class prefixes that say nothing about content
UTILITY_CLASS_PREFIXES = (
    "flex", "grid", "text", "bg", "p-", "m-", "w-", "h-", "max", "min",
    "rounded", "border", "shadow", "prose",
)

SHARE_PATTERN = re.compile("share")
SENTENCE_END_PATTERN = re.compile(r"\.( |$)")

READABILITY_STYLED_CLASS = "readability-styled"
PAGE_CLASS = "page"
PAGE_ID = "readability-page-1"
PAGING_CONTENT_ID = "readability-content"

MIN_SCORED_TEXT_LENGTH = 25
MAX_BYLINE_LENGTH = 100
MIN_TOP_CANDIDATES = 3
BETTER_ANCESTOR_RATIO = 0.75


class ScoreRecord(BaseModel):
    """Content score of one candidate node."""
    content_score: float = 0.0


class ExtractionAttempt(BaseModel):
    """Outcome of grabbing at one strictness level."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: Any
    direction_nodes: List[Any]
    text_length: int


def options_sequence(options: ArticleGrabberOptions) -> List[ArticleGrabberOptions]:
    """
    Strictness levels to try, from the given options to the most lenient.

    Each level drops one more of strip-unlikely, weight-classes and
    clean-conditionally; a level is only added when its flag was set.
    """
    sequence = [options]

    if options.strip_unlikely_candidates:
        sequence.append(options.model_copy(update={"strip_unlikely_candidates": False}))
    if options.weight_classes:
        sequence.append(options.model_copy(update={
            "strip_unlikely_candidates": False,
            "weight_classes": False,
        }))
    if options.clean_conditionally:
        sequence.append(options.model_copy(update={
            "strip_unlikely_candidates": False,
            "weight_classes": False,
            "clean_conditionally": False,
        }))

    return sequence


class ArticleGrabber(ProcessorBase):
    """
    Find and assemble the main content of a prepared document.

    After ``grab_article`` returns, ``article_byline``, ``article_dir`` and
    ``article_lang`` hold what was discovered along the way.
    """

    def __init__(
        self,
        options: Optional[ReadabilityOptions] = None,
        regex: Optional[RegExUtil] = None,
        candidate_filters: Optional[Sequence[CandidateFilter]] = None,
        log=None,
    ):
        super().__init__(regex, log)
        options = options or ReadabilityOptions()
        self.nb_top_candidates = options.nb_top_candidates
        self.char_threshold = options.char_threshold
        self.allowed_video_regex: Optional[Pattern[str]] = options.allowed_video_regex
        self.link_density_modifier = options.link_density_modifier
        self.candidate_filters = list(candidate_filters) if candidate_filters is not None \
            else [BlockquoteDescendantFilter()]

        self.article_byline: Optional[str] = None
        self.article_dir: Optional[str] = None
        self.article_lang: Optional[str] = None

        # id(node) -> (node, record); the node reference keeps the id stable
        self._scores: Dict[int, Tuple[Tag, ScoreRecord]] = {}
        self._data_tables: Dict[int, Tuple[Tag, bool]] = {}

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    def grab_article(
        self,
        document: BeautifulSoup,
        metadata: ArticleMetadata,
        options: Optional[ArticleGrabberOptions] = None,
        page_element: Optional[Tag] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[Tag]:
        """
        Extract the article content from a prepared document.

        Args:
            document: Preprocessed document; the page is rewritten per attempt
            metadata: Metadata of the original document (title is used)
            options: Strictest options to start from
            page_element: Element to extract from instead of ``<body>``
            cancel_event: Checked before every attempt; when set extraction stops

        Returns:
            Optional[Tag]: Detached content node, or None if nothing was found

        Raises:
            ExtractionCancelledError: If ``cancel_event`` was set
        """
        options = options or ArticleGrabberOptions()
        self.logger.debug("Grabbing article", char_threshold=self.char_threshold)

        self.article_byline = None
        self.article_dir = None
        self.article_lang = None

        is_paging = page_element is not None
        page = page_element if page_element is not None else get_body(document)
        page_snapshot = copy.copy(page)

        attempts: List[ExtractionAttempt] = []

        try:
            for attempt_options in options_sequence(options):
                if cancel_event is not None and cancel_event.is_set():
                    raise ExtractionCancelledError("Article extraction was cancelled")

                self._restore_page(page, page_snapshot)
                self._scores = {}
                self._data_tables = {}

                article_content, direction_nodes = self._try_extract_article(
                    document, metadata, attempt_options, page, is_paging
                )
                text_length = len(self.get_inner_text(article_content))
                attempts.append(ExtractionAttempt(
                    content=article_content,
                    direction_nodes=direction_nodes,
                    text_length=text_length,
                ))
                self.logger.debug(
                    "Extraction attempt finished",
                    attempt=len(attempts),
                    text_length=text_length,
                    strip_unlikely_candidates=attempt_options.strip_unlikely_candidates,
                    weight_classes=attempt_options.weight_classes,
                    clean_conditionally=attempt_options.clean_conditionally,
                )

                if text_length >= self.char_threshold:
                    self._set_text_direction(direction_nodes, document)
                    self._set_language(document)
                    return article_content
        finally:
            self._scores = {}
            self._data_tables = {}

        # Stable sort keeps the earliest attempt among equally long ones
        attempts.sort(key=lambda attempt: attempt.text_length, reverse=True)
        if attempts and attempts[0].text_length > 0:
            best = attempts[0]
            self.logger.debug("Falling back to longest attempt", text_length=best.text_length)
            self._set_text_direction(best.direction_nodes, document)
            self._set_language(document)
            return best.content

        self.logger.debug("No article content found")
        return None

    def _restore_page(self, page: Tag, snapshot: Tag) -> None:
        page.clear()
        for child in list(copy.copy(snapshot).contents):
            page.append(child)

    def _try_extract_article(
        self,
        document: BeautifulSoup,
        metadata: ArticleMetadata,
        options: ArticleGrabberOptions,
        page: Tag,
        is_paging: bool,
    ) -> Tuple[Tag, List[Tag]]:
        elements_to_score = self.prepare_nodes(document, options)
        candidates = self.score_elements(elements_to_score, options)
        top_candidate, created = self.get_top_candidate(document, page, candidates, options)

        # Ancestry is lost once the candidate moves into the content node
        direction_nodes = [top_candidate]
        parent = parent_element(top_candidate)
        if parent is not None:
            direction_nodes = [parent, top_candidate] + node_ancestors(parent)

        article_content = self.create_article_content(document, top_candidate, is_paging)
        self.prep_article(article_content, options, metadata)

        if created:
            top_candidate["id"] = PAGE_ID
            self._add_class(top_candidate, PAGE_CLASS)
        else:
            page_div = document.new_tag("div", attrs={"id": PAGE_ID, "class": PAGE_CLASS})
            for child in list(article_content.contents):
                page_div.append(child)
            article_content.append(page_div)

        return article_content, direction_nodes

    # ------------------------------------------------------------------ #
    # First step: prepare nodes
    # ------------------------------------------------------------------ #

    def prepare_nodes(self, document: BeautifulSoup, options: ArticleGrabberOptions) -> List[Tag]:
        """Walk the document, removing junk and collecting nodes to score."""
        elements_to_score: List[Tag] = []
        node = document.find("html")

        while node is not None:
            match_string = class_id_string(node)

            # Check to see if this node is a byline, and remove it if it is
            if self.check_byline(node, match_string):
                node = self.remove_and_get_next(node, "byline")
                continue

            if options.strip_unlikely_candidates and \
                    self.regex.is_unlikely_candidate(match_string) and \
                    not self.regex.ok_maybe_its_a_candidate(match_string) and \
                    node.name not in ("body", "a"):
                node = self.remove_and_get_next(node, "Removing unlikely candidate")
                continue

            # Remove containers without any content (text, image, video, iframe)
            if node.name in EMPTY_CONTAINER_TAGS and self.is_element_without_content(node):
                node = self.remove_and_get_next(node, "node without content")
                continue

            if node.name in DEFAULT_TAGS_TO_SCORE:
                elements_to_score.append(node)

            # Turn all divs that don't have children block level elements into p's
            if node.name == "div":
                if self.has_single_p_inside_element(node):
                    # A div wrapping a single paragraph is that paragraph
                    new_node = element_children(node)[0]
                    node.replace_with(new_node)
                    node = new_node
                    elements_to_score.append(node)
                elif not self.has_child_block_element(node):
                    node.name = "p"
                    elements_to_score.append(node)
                else:
                    for child in list(node.contents):
                        if is_text(child) and str(child).strip():
                            p = document.new_tag("p", attrs={
                                "style": "display: inline;",
                                "class": READABILITY_STYLED_CLASS,
                            })
                            p.string = self.regex.normalize(str(child))
                            child.replace_with(p)

            node = get_next_node(node)

        return elements_to_score

    def check_byline(self, node: Tag, match_string: str) -> bool:
        if self.article_byline is not None:
            return False

        rel = get_attr(node, "rel")
        if (rel == "author" or self.regex.is_byline(match_string)) and \
                self.is_valid_byline(node.get_text()):
            self.article_byline = self.get_inner_text(node)
            self.logger.debug("Found byline", byline=self.article_byline)
            return True

        return False

    def is_valid_byline(self, text: str) -> bool:
        byline = text.strip()
        return 0 < len(byline) < MAX_BYLINE_LENGTH

    def is_element_without_content(self, node: Tag) -> bool:
        if node.get_text().strip():
            return False
        children = element_children(node)
        if not children:
            return True
        return len(children) == len(node.find_all("br")) + len(node.find_all("hr"))

    def has_single_p_inside_element(self, element: Tag) -> bool:
        """One ``<p>`` child and no text nodes with real content."""
        children = element_children(element)
        if len(children) != 1 or children[0].name != "p":
            return False

        return not any(
            is_text(child) and self.regex.has_content(str(child))
            for child in element.contents
        )

    def has_child_block_element(self, element: Tag) -> bool:
        return any(
            child.name in DIV_TO_P_ELEMS or self.has_child_block_element(child)
            for child in element_children(element)
        )

    # ------------------------------------------------------------------ #
    # Second step: score elements
    # ------------------------------------------------------------------ #

    def score_elements(self, elements_to_score: List[Tag], options: ArticleGrabberOptions) -> List[Tag]:
        """Score paragraphs and credit their ancestors; returns the candidates."""
        candidates: List[Tag] = []

        for element in elements_to_score:
            if element.parent is None:
                continue

            # Paragraphs under 25 characters don't count
            inner_text = self.get_inner_text(element)
            if len(inner_text) < MIN_SCORED_TEXT_LENGTH:
                continue

            ancestors = node_ancestors(element, 3)
            if not ancestors:
                continue

            content_score = 1.0
            content_score += inner_text.count(",")
            content_score += min(math.floor(len(inner_text) / 100), 3)

            for level, ancestor in enumerate(ancestors):
                if self.get_score(ancestor) is None:
                    candidates.append(ancestor)
                    self.initialize_node(ancestor, options)

                # Parent gets the full score, grandparent half, then level * 3
                if level == 0:
                    divider = 1
                elif level == 1:
                    divider = 2
                else:
                    divider = level * 3

                self.get_score(ancestor).content_score += content_score / divider

        return candidates

    def initialize_node(self, node: Tag, options: ArticleGrabberOptions) -> ScoreRecord:
        """Give a node its initial score from tag, class/id weight and media."""
        record = ScoreRecord()
        record.content_score += TAG_SCORES.get(node.name, 0)
        record.content_score += self.get_class_weight(node, options)
        record.content_score += self.get_media_bonus(node, options)
        self._scores[id(node)] = (node, record)
        return record

    def get_score(self, node: Tag) -> Optional[ScoreRecord]:
        entry = self._scores.get(id(node))
        if entry is None or entry[0] is not node:
            return None
        return entry[1]

    def get_class_weight(self, element: Tag, options: ArticleGrabberOptions) -> int:
        """Positive or negative weight from the class and id attributes."""
        if not options.weight_classes:
            return 0

        weight = 0

        class_name = get_class_name(element)
        if class_name.strip():
            if self.regex.is_negative(class_name):
                weight -= CLASS_WEIGHT
            if self.regex.is_positive(class_name):
                weight += CLASS_WEIGHT

        element_id = get_attr(element, "id")
        if element_id.strip():
            if self.regex.is_negative(element_id):
                weight -= CLASS_WEIGHT
            if self.regex.is_positive(element_id):
                weight += CLASS_WEIGHT

        return weight

    def get_media_bonus(self, node: Tag, options: ArticleGrabberOptions) -> int:
        if not options.preserve_images and not options.preserve_videos:
            return 0
        if self.is_likely_non_content_container(node):
            return 0

        image_count = len(node.find_all("img")) if options.preserve_images else 0
        video_count = len(node.find_all(["iframe", "video", "embed"])) if options.preserve_videos else 0

        text_length = len(self.get_inner_text(node))
        if image_count == 0 or text_length / image_count > 50:
            return image_count * 3 + video_count * 5
        return 0

    def is_likely_non_content_container(self, node: Tag) -> bool:
        match_string = class_id_string(node)
        if self.regex.is_negative(match_string):
            return True
        lowered = match_string.lower()
        return any(marker in lowered for marker in NON_CONTENT_MARKERS)

    # ------------------------------------------------------------------ #
    # Third step: get top candidate
    # ------------------------------------------------------------------ #

    def get_top_candidate(
        self,
        document: BeautifulSoup,
        page: Tag,
        candidates: List[Tag],
        options: ArticleGrabberOptions,
    ) -> Tuple[Tag, bool]:
        """
        Pick the node that most likely holds the article.

        Returns:
            Tuple[Tag, bool]: The top candidate and whether it had to be created
        """
        top_candidates: List[Tag] = []

        for candidate in candidates:
            if not self.should_include_candidate(candidate):
                self.logger.debug("Skipping filtered candidate", tag=candidate.name)
                continue

            record = self.get_score(candidate)
            if record is None:
                continue

            # Good content has a low link density and is mostly unaffected here
            candidate_score = record.content_score * (1 - self.get_link_density(candidate))
            record.content_score = candidate_score

            for t in range(self.nb_top_candidates):
                existing = top_candidates[t] if t < len(top_candidates) else None
                if existing is None or candidate_score > self.get_score(existing).content_score:
                    top_candidates.insert(t, candidate)
                    if len(top_candidates) > self.nb_top_candidates:
                        top_candidates.pop()
                    break

        top_candidate = top_candidates[0] if top_candidates else None

        # No candidate, or only the body: move everything into a new container
        if top_candidate is None or top_candidate.name == "body":
            top_candidate = document.new_tag("div")
            for child in list(page.contents):
                top_candidate.append(child)
            page.append(top_candidate)
            self.initialize_node(top_candidate, options)
            self.logger.debug("Created top candidate from page contents")
            return top_candidate, True

        # Find a better top candidate if at least three close runners-up share an ancestor
        alternative_ancestors: List[List[Tag]] = []
        top_record = self.get_score(top_candidate)
        for other in top_candidates[1:]:
            other_record = self.get_score(other)
            other_score = other_record.content_score if other_record is not None else 0.0
            if top_record.content_score and other_score / top_record.content_score >= BETTER_ANCESTOR_RATIO:
                alternative_ancestors.append(node_ancestors(other))

        if len(alternative_ancestors) >= MIN_TOP_CANDIDATES:
            parent = parent_element(top_candidate)
            while parent is not None and parent.name != "body":
                lists_containing = sum(
                    1 for ancestors in alternative_ancestors if contains_node(ancestors, parent)
                )
                if lists_containing >= MIN_TOP_CANDIDATES:
                    top_candidate = parent
                    break
                parent = parent_element(parent)

        if self.get_score(top_candidate) is None:
            self.initialize_node(top_candidate, options)

        # Parents of candidates carry scores too; climb while the score keeps up
        parent = parent_element(top_candidate)
        last_score = self.get_score(top_candidate).content_score
        score_threshold = last_score / 3.0

        while parent is not None and parent.name != "body":
            parent_record = self.get_score(parent)
            if parent_record is None:
                parent = parent_element(parent)
                continue

            parent_score = parent_record.content_score
            if parent_score < score_threshold:
                break
            if parent_score > last_score:
                # Alright! We found a better parent to use.
                top_candidate = parent
                break

            last_score = parent_score
            parent = parent_element(parent)

        # An only child hands over to its parent so sibling joining can see more
        parent = parent_element(top_candidate)
        while parent is not None and parent.name != "body" and len(element_children(parent)) == 1:
            top_candidate = parent
            parent = parent_element(top_candidate)

        if self.get_score(top_candidate) is None:
            self.initialize_node(top_candidate, options)

        return top_candidate, False

    def should_include_candidate(self, candidate: Tag) -> bool:
        return all(f.should_include_candidate(candidate) for f in self.candidate_filters)

    def get_link_density(self, element: Tag) -> float:
        """
        Share of the element's text that sits inside links.

        Text of links pointing at ``#fragment`` URLs only counts for 30%.
        """
        text_length = len(self.get_inner_text(element))
        if text_length == 0:
            return 0.0

        link_length = 0.0
        for link in element.find_all("a"):
            href = get_attr(link, "href")
            coefficient = 0.3 if href and self.regex.is_hash_url(href) else 1.0
            link_length += len(self.get_inner_text(link)) * coefficient

        return link_length / text_length

    # ------------------------------------------------------------------ #
    # Fourth step: create article content
    # ------------------------------------------------------------------ #

    def create_article_content(self, document: BeautifulSoup, top_candidate: Tag, is_paging: bool) -> Tag:
        """Join the top candidate with the siblings and cousins that belong to it."""
        article_content = document.new_tag("div")
        if is_paging:
            article_content["id"] = PAGING_CONTENT_ID

        top_record = self.get_score(top_candidate)
        if top_record is None:
            return article_content

        sibling_score_threshold = max(10.0, top_record.content_score * 0.2)
        parent = parent_element(top_candidate)
        sibling_candidates = self._collect_sibling_candidates(parent)

        elements_to_append = [
            sibling for sibling in sibling_candidates
            if self._should_append_sibling(sibling, top_candidate, top_record, sibling_score_threshold)
        ]

        elements_to_append.sort(key=sibling_index_path)
        for element in elements_to_append:
            if element.name not in ALTER_TO_DIV_EXCEPTIONS:
                self.logger.debug("Altering sibling to div", tag=element.name)
                element.name = "div"
            article_content.append(element)

        return article_content

    def _collect_sibling_candidates(self, parent: Optional[Tag]) -> List[Tag]:
        if parent is None:
            return []

        candidates = element_children(parent)

        grandparent = parent_element(parent)
        if grandparent is None or grandparent.name == "body":
            return candidates

        semantic_classes = [
            name for name in get_class_name(parent).split()
            if len(name) > 3 and not name.startswith(UTILITY_CLASS_PREFIXES)
        ]
        if not semantic_classes:
            return candidates

        for uncle in element_children(grandparent):
            if uncle is parent:
                continue
            uncle_classes = get_class_name(uncle).split()
            if not any(name in uncle_classes for name in semantic_classes):
                continue
            for cousin in element_children(uncle):
                match_string = class_id_string(cousin)
                if not self.regex.is_unlikely_candidate(match_string) or \
                        self.regex.ok_maybe_its_a_candidate(match_string):
                    candidates.append(cousin)
                    self.logger.debug("Adding cousin candidate", tag=cousin.name)

        return candidates

    def _should_append_sibling(
        self,
        sibling: Tag,
        top_candidate: Tag,
        top_record: ScoreRecord,
        sibling_score_threshold: float,
    ) -> bool:
        if sibling is top_candidate:
            return True

        top_class = get_class_name(top_candidate)
        content_bonus = 0.0
        if top_class and get_class_name(sibling) == top_class:
            content_bonus = top_record.content_score * 0.2

        # Introductions and headers with real text belong to the article
        if ("intro" in get_class_name(sibling) or sibling.name == "header") and \
                len(self.get_inner_text(sibling)) > 50:
            return True

        sibling_record = self.get_score(sibling)
        if sibling_record is not None and \
                sibling_record.content_score + content_bonus >= sibling_score_threshold:
            return True

        if sibling.name != "p":
            return False

        link_density = self.get_link_density(sibling)
        node_content = self.get_inner_text(sibling)
        node_length = len(node_content)

        if node_length > 80 and link_density < 0.25 + self.link_density_modifier:
            return True
        return 0 < node_length < 80 and link_density == 0 and \
            SENTENCE_END_PATTERN.search(node_content) is not None

    # ------------------------------------------------------------------ #
    # Fifth step: prepare article
    # ------------------------------------------------------------------ #

    def prep_article(
        self,
        article_content: Tag,
        options: ArticleGrabberOptions,
        metadata: ArticleMetadata,
    ) -> None:
        """
        Clean the assembled content for display.

        Removes inline styles, junk elements and low-value containers; data
        tables are marked first so conditional cleaning leaves them alone.
        """
        self.clean_styles(article_content)
        self.mark_data_tables(article_content)

        self.clean_conditionally(article_content, "form", options)
        self.clean_conditionally(article_content, "fieldset", options)
        self.clean(article_content, "object")
        self.clean(article_content, "embed")
        self.clean(article_content, "footer")
        self.clean(article_content, "link")

        # Share widgets go, but never the top level children themselves
        for child in element_children(article_content):
            self.clean_matched_nodes(child, SHARE_PATTERN)

        for tag_name in ("h1", "h2"):
            self.remove_nodes(
                article_content, tag_name,
                lambda header: self.header_duplicates_title(header, metadata),
            )

        if not options.preserve_videos:
            self.clean(article_content, "iframe")
        self.clean(article_content, "input")

        self.remove_nodes(article_content, "figure", lambda figure: figure.find("img") is None)
        self.remove_nodes(
            article_content, "div",
            lambda div: not div.get_text().strip() and not element_children(div),
        )

        self.clean(article_content, "textarea")
        self.clean(article_content, "select")
        self.clean(article_content, "button")
        self.clean_headers(article_content, options)

        # Do these last as the previous stuff may have removed junk
        self.clean_conditionally(article_content, "table", options)
        self.clean_conditionally(article_content, "ul", options)
        self.clean_conditionally(article_content, "div", options)

        # Remove extra paragraphs
        self.remove_nodes(article_content, "p", self._is_empty_paragraph)

        for br in article_content.find_all("br"):
            following = self.next_element(br.next_sibling)
            if following is not None and following.name == "p":
                br.extract()

    def _is_empty_paragraph(self, paragraph: Tag) -> bool:
        # Only embedded videos are left at this point
        media = paragraph.find_all(["img", "embed", "object", "iframe"])
        return not media and not self.get_inner_text(paragraph, normalize_spaces=False)

    def clean_styles(self, element: Tag) -> None:
        """Remove ``style`` and presentational attributes from the subtree."""
        if element.name == "svg":
            return

        if get_class_name(element) != READABILITY_STYLED_CLASS:
            for attribute in PRESENTATIONAL_ATTRIBUTES:
                element.attrs.pop(attribute, None)
            if element.name in DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
                element.attrs.pop("width", None)
                element.attrs.pop("height", None)

        for child in element_children(element):
            self.clean_styles(child)

    def mark_data_tables(self, root: Tag) -> None:
        """Decide for every table whether it holds data or only layout."""
        for table in root.find_all("table"):
            self._set_data_table(table, self._is_data_table(table))

    def _is_data_table(self, table: Tag) -> bool:
        if get_attr(table, "role") == "presentation":
            return False
        if get_attr(table, "datatable") == "0":
            return False
        if get_attr(table, "summary").strip():
            return True

        caption = table.find("caption")
        if caption is not None and caption.contents:
            return True

        if table.find(DATA_TABLE_DESCENDANTS) is not None:
            self.logger.debug("Data table because found data-y descendant")
            return True

        # Nested tables indicate a layout table
        if table.find("table") is not None:
            return False

        rows, columns = self.get_row_and_column_count(table)
        if rows >= 10 or columns > 4:
            return True

        # Now just go by size entirely
        return rows * columns > 10

    def get_row_and_column_count(self, table: Tag) -> Tuple[int, int]:
        rows = 0
        columns = 0

        for tr in table.find_all("tr"):
            rows += self._span_value(tr, "rowspan")

            columns_in_row = sum(self._span_value(cell, "colspan") for cell in tr.find_all("td"))
            columns = max(columns, columns_in_row)

        return rows, columns

    def _span_value(self, element: Tag, attribute: str) -> int:
        try:
            return int(get_attr(element, attribute))
        except ValueError:
            return 1

    def _set_data_table(self, table: Tag, is_data_table: bool) -> None:
        self._data_tables[id(table)] = (table, is_data_table)

    def is_data_table(self, table: Tag) -> bool:
        entry = self._data_tables.get(id(table))
        return entry is not None and entry[0] is table and entry[1]

    def clean_conditionally(self, element: Tag, tag: str, options: ArticleGrabberOptions) -> None:
        """
        Remove ``tag`` elements that look fishy.

        Judged on class weight, link density, comma count and the number of
        images, list items, inputs and embeds relative to paragraphs.
        """
        if not options.clean_conditionally:
            return

        is_list = tag in ("ul", "ol")

        def should_remove(node: Tag) -> bool:
            # Never touch a data table or anything inside one
            if node.name == "table" and self.is_data_table(node):
                return False
            if has_ancestor_tag(node, "table", -1, self.is_data_table):
                return False

            weight = self.get_class_weight(node, options)
            if weight < 0:
                return True

            if self.get_char_count(node, ",") >= 10:
                return False

            p = len(node.find_all("p"))
            img = len(node.find_all("img"))
            li = len(node.find_all("li")) - 100
            inputs = len(node.find_all("input"))
            embeds = sum(
                1 for embed in node.find_all("embed")
                if not self.is_video_content(get_attr(embed, "src"))
            )

            link_density = self.get_link_density(node)
            content_length = len(self.get_inner_text(node))

            image_check = not options.preserve_images and \
                img > 1 and p / img < 0.5 and not has_ancestor_tag(node, "figure")
            embed_check = not options.preserve_videos and \
                ((embeds == 1 and content_length < 75) or embeds > 1)

            return (
                image_check
                or (not is_list and li > p)
                or inputs > math.floor(p / 3)
                or (not is_list and content_length < 25 and img == 0
                    and not has_ancestor_tag(node, "figure"))
                or (not is_list and weight < 25 and link_density > 0.2 + self.link_density_modifier)
                or (weight >= 25 and link_density > 0.5 + self.link_density_modifier)
                or embed_check
            )

        self.remove_nodes(element, tag, should_remove)

    def get_char_count(self, node: Tag, char: str = ",") -> int:
        return self.get_inner_text(node).count(char)

    def is_video_content(self, match_string: str) -> bool:
        return self.regex.is_video(match_string, self.allowed_video_regex)

    def clean(self, element: Tag, tag: str) -> None:
        """Remove every ``tag`` element, except embeds that point at videos."""
        is_embed = tag in EMBEDDED_NODES

        def should_remove(node: Tag) -> bool:
            if is_embed:
                attribute_values = "|".join(
                    value if isinstance(value, str) else " ".join(value)
                    for value in node.attrs.values()
                )
                if self.is_video_content(attribute_values):
                    return False
                if self.is_video_content(node.decode_contents()):
                    return False
            return True

        self.remove_nodes(element, tag, should_remove)

    def clean_matched_nodes(self, element: Tag, pattern: Pattern[str]) -> None:
        """Remove descendants whose class/id matches ``pattern``."""
        end_of_search = get_next_node(element, True)
        node = get_next_node(element)

        while node is not None and node is not end_of_search:
            if pattern.search(class_id_string(node)):
                node = self.remove_and_get_next(node, pattern.pattern)
            else:
                node = get_next_node(node)

    def clean_headers(self, element: Tag, options: ArticleGrabberOptions) -> None:
        for tag_name in ("h1", "h2"):
            self.remove_nodes(
                element, tag_name,
                lambda header: self.get_class_weight(header, options) < 0,
            )

    def header_duplicates_title(self, node: Tag, metadata: ArticleMetadata) -> bool:
        if node.name not in ("h1", "h2"):
            return False

        title = metadata.title
        if not title or not title.strip():
            return False

        return text_similarity(self.get_inner_text(node), title) > 0.75

    # ------------------------------------------------------------------ #
    # Util methods
    # ------------------------------------------------------------------ #

    def remove_and_get_next(self, node: Tag, reason: str = "") -> Optional[Tag]:
        next_node = get_next_node(node, True)
        self.print_and_remove(node, reason)
        return next_node

    def _add_class(self, element: Tag, class_name: str) -> None:
        classes = get_class_name(element).split()
        if class_name not in classes:
            classes.append(class_name)
        element["class"] = " ".join(classes)

    def _set_text_direction(self, direction_nodes: List[Tag], document: BeautifulSoup) -> None:
        candidates = list(direction_nodes)
        candidates.append(get_body(document))
        root = document.find("html")
        if root is not None:
            candidates.append(root)

        for ancestor in candidates:
            article_dir = get_attr(ancestor, "dir")
            if article_dir.strip():
                self.article_dir = article_dir
                return

    def _set_language(self, document: BeautifulSoup) -> None:
        root = document.find("html")
        if root is not None:
            lang = get_attr(root, "lang")
            if lang.strip():
                self.article_lang = lang
