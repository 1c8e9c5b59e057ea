#!/usr/bin/env python3
"""
clearread - Command line entry point

Reads an HTML page from a file or standard input, extracts the article and
prints it in the requested format. Fetching pages is left to other tools:

    curl -s https://example.com/post | clearread https://example.com/post --format text
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

import structlog

from clearread import __version__
from clearread.config import LogLevel, Settings, load_settings
from clearread.exceptions import ReadabilityError
from clearread.models.article import Article
from clearread.readability import Readability

# Set up structured logger
logger = structlog.get_logger()

OUTPUT_FORMATS = ("html", "text", "json", "metadata", "all")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_ARTICLE = 2
EXIT_INTERRUPTED = 130

NO_CONTENT_MESSAGE = "No article content extracted."
RULE = "=" * 80


def setup_logging(settings: Settings) -> None:
    """Set up structured logging based on configuration."""
    log_level = settings.log_level.value

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.structured_logging
            else structlog.dev.ConsoleRenderer()
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Log to stderr so stdout only carries the article
    numeric_level = getattr(logging, log_level, logging.WARNING)
    logging.basicConfig(stream=sys.stderr, format="%(message)s", level=numeric_level)
    logging.getLogger().setLevel(numeric_level)

    logger.debug("Logging initialized", level=log_level)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="clearread",
        description="clearread - Extract the readable article from an HTML page",
    )

    parser.add_argument(
        "url",
        help="URL the page was loaded from; relative links are resolved against it",
    )

    parser.add_argument(
        "--file",
        help="Read HTML from this file instead of standard input",
        default=None,
    )

    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="html",
        help="Output format (default: html)",
    )

    parser.add_argument(
        "--char-threshold",
        type=int,
        default=None,
        help="Minimum article length in characters",
    )

    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=None,
        help="Set the log level",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def read_html(path: Optional[str]) -> str:
    if path is None:
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def format_metadata(article: Article) -> str:
    lines = [
        RULE,
        "ARTICLE METADATA",
        RULE,
        f"URL:            {article.uri}",
        f"Title:          {article.title or 'N/A'}",
        f"Author:         {article.byline or 'N/A'}",
        f"Site Name:      {article.site_name or 'N/A'}",
        f"Language:       {article.lang or 'N/A'}",
        f"Published:      {article.published_time or 'N/A'}",
        f"Length:         {article.length} characters",
        f"Excerpt:        {article.excerpt or 'N/A'}",
        RULE,
    ]
    return "\n".join(lines)


def format_article(article: Article, output_format: str) -> str:
    """Render the article in one of ``OUTPUT_FORMATS``."""
    if output_format == "html":
        return article.content if article.content is not None else NO_CONTENT_MESSAGE
    if output_format == "text":
        return article.text_content if article.text_content is not None else NO_CONTENT_MESSAGE
    if output_format == "json":
        return json.dumps(article.to_dict(), indent=2, ensure_ascii=False)
    if output_format == "metadata":
        return format_metadata(article)

    sections = [
        format_metadata(article),
        "HTML CONTENT",
        RULE,
        article.content if article.content is not None else NO_CONTENT_MESSAGE,
        RULE,
        "TEXT CONTENT",
        RULE,
        article.text_content if article.text_content is not None else NO_CONTENT_MESSAGE,
        RULE,
    ]
    return "\n".join(sections)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    try:
        # Parse command line arguments
        args = parse_args(argv)

        # Load settings
        settings = load_settings()

        # Override settings with command line arguments
        if args.log_level:
            settings.log_level = LogLevel(args.log_level)

        # Set up logging
        setup_logging(settings)

        overrides = {}
        if args.char_threshold is not None:
            overrides["char_threshold"] = args.char_threshold
        options = settings.to_options(**overrides)

        html = read_html(args.file)
        logger.debug("Read input", url=args.url, source=args.file or "stdin", size=len(html))

        article = Readability(args.url, html, options).parse()
        print(format_article(article, args.format))

        if article.article_content is None:
            logger.warning("No article found", url=args.url)
            return EXIT_NO_ARTICLE
        return EXIT_OK

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED

    except (OSError, ReadabilityError) as e:
        logger.error("Extraction failed", error=str(e))
        return EXIT_ERROR

    except Exception as e:
        logger.exception("Unhandled exception", error=str(e))
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
