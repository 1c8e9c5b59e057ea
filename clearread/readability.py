"""
Readability orchestrator.

``Readability`` ties the pipeline together: metadata is read from the
original document, which is then preprocessed, searched for the article and
post-processed, and the outcome is returned as an immutable ``Article``.
"""
import asyncio
import threading
from concurrent.futures import Executor
from typing import Optional, Union

import structlog
from bs4 import BeautifulSoup, Tag

from clearread.config import ArticleGrabberOptions, ReadabilityOptions
from clearread.exceptions import MaxElementsExceededError
from clearread.extractor.grabber import ArticleGrabber
from clearread.extractor.metadata import MetadataExtractor
from clearread.extractor.postprocessor import Postprocessor
from clearread.extractor.preprocessor import Preprocessor
from clearread.models.article import Article
from clearread.models.metadata import ArticleMetadata
from clearread.parser.html_parser import count_elements, parse_html
from clearread.transformers import apply_url_transformers

# Set up structured logger
logger = structlog.get_logger()


class Readability:
    """
    Extract the main article from one HTML document.

    A ``Readability`` instance is single use: ``parse`` rewrites the document
    in place, so parse a fresh instance for every document.
    """

    def __init__(
        self,
        uri: str,
        html_or_document: Union[str, bytes, BeautifulSoup],
        options: Optional[ReadabilityOptions] = None,
        log=None,
        preprocessor: Optional[Preprocessor] = None,
        metadata_parser: Optional[MetadataExtractor] = None,
        article_grabber: Optional[ArticleGrabber] = None,
        postprocessor: Optional[Postprocessor] = None,
    ):
        self.options = options or ReadabilityOptions()
        self.logger = log or logger

        if isinstance(html_or_document, BeautifulSoup):
            self.document = html_or_document
        else:
            self.document = parse_html(html_or_document)

        self.uri = apply_url_transformers(uri, self.options.url_transformers)
        if self.uri != uri:
            self.logger.debug("Transformed article URI", uri=uri, transformed=self.uri)

        self.preprocessor = preprocessor or Preprocessor(log=log)
        self.metadata_parser = metadata_parser or MetadataExtractor(log=log)
        self.article_grabber = article_grabber or ArticleGrabber(self.options, log=log)
        self.postprocessor = postprocessor or Postprocessor(log=log)

    def parse(self, cancel_event: Optional[threading.Event] = None) -> Article:
        """
        Run the extraction.

        Args:
            cancel_event: When set, extraction stops before the next grabbing attempt

        Returns:
            Article: The extracted article; ``content`` is None if none was found

        Raises:
            MaxElementsExceededError: If the document exceeds ``max_elems_to_parse``
            ExtractionCancelledError: If ``cancel_event`` was set during extraction
        """
        max_elements = self.options.max_elems_to_parse
        if max_elements > 0:
            element_count = count_elements(self.document)
            if element_count > max_elements:
                raise MaxElementsExceededError(element_count, max_elements)

        self.logger.debug("Parsing document", uri=self.uri)

        # Metadata comes from the document before any of it is removed
        metadata = self.metadata_parser.get_article_metadata(
            self.document, self.options.disable_json_ld
        )

        self.preprocessor.prepare_document(self.document)

        grabber_options = ArticleGrabberOptions(
            preserve_images=self.options.preserve_images,
            preserve_videos=self.options.preserve_videos,
        )
        article_content = self.article_grabber.grab_article(
            self.document, metadata, grabber_options, cancel_event=cancel_event
        )
        self.logger.debug("Grabbed article", found=article_content is not None)

        if article_content is not None:
            self.postprocessor.post_process_content(
                self.document,
                article_content,
                self.uri,
                self.options.additional_classes_to_preserve,
                self.options.keep_classes,
            )

        metadata = self.refine_metadata(metadata, article_content)

        serialized_content = None
        if article_content is not None and self.options.serializer is not None:
            serialized_content = self.options.serializer(article_content)

        return Article(
            uri=self.uri,
            metadata=metadata,
            article_content=article_content,
            serialized_content=serialized_content,
        )

    def refine_metadata(self, metadata: ArticleMetadata, article_content: Optional[Tag]) -> ArticleMetadata:
        """Fill gaps in the metadata with what grabbing discovered."""
        updates = {}

        # Without an excerpt, use the first paragraph of the article
        if article_content is not None and not (metadata.excerpt and metadata.excerpt.strip()):
            first_paragraph = article_content.find("p")
            if first_paragraph is not None:
                updates["excerpt"] = self.article_grabber.get_inner_text(first_paragraph)

        if not (metadata.byline and metadata.byline.strip()) and self.article_grabber.article_byline:
            updates["byline"] = self.article_grabber.article_byline

        updates["dir"] = self.article_grabber.article_dir
        updates["lang"] = self.article_grabber.article_lang

        return metadata.model_copy(update=updates)

    async def parse_async(self, executor: Optional[Executor] = None) -> Article:
        """
        Run ``parse`` in a worker thread.

        Cancelling the awaiting task asks the worker to stop before its next
        grabbing attempt.

        Args:
            executor: Executor to run in; the loop's default executor if None

        Returns:
            Article: Same result as ``parse``
        """
        cancel_event = threading.Event()
        loop = asyncio.get_running_loop()

        try:
            return await loop.run_in_executor(executor, lambda: self.parse(cancel_event))
        except asyncio.CancelledError:
            self.logger.debug("Extraction task cancelled", uri=self.uri)
            cancel_event.set()
            raise
