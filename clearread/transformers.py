"""
URL transformers applied to the article URI before extraction.

A transformer is any object with a ``transform(url) -> str`` method and an
integer ``priority``; higher priorities run first.
"""
from typing import Protocol, runtime_checkable
from urllib.parse import urlparse, urlunparse

import structlog

# Set up structured logger
logger = structlog.get_logger()


@runtime_checkable
class UrlTransformer(Protocol):
    """Rewrites a page URL before it is used as the article base URI."""

    priority: int

    def transform(self, url: str) -> str:
        ...


class RedditUrlTransformer:
    """Send reddit links to old.reddit.com, whose markup extracts cleanly."""

    priority = 100

    OLD_REDDIT_HOST = "old.reddit.com"
    REWRITTEN_HOSTS = ("www.reddit.com", "reddit.com")

    def transform(self, url: str) -> str:
        try:
            parsed = urlparse(url)
        except ValueError as e:
            logger.debug("Could not parse URL for transformation", url=url, error=str(e))
            return url

        host = (parsed.hostname or "").lower()
        if host not in self.REWRITTEN_HOSTS:
            return url

        netloc = self.OLD_REDDIT_HOST
        if parsed.port:
            netloc = f"{netloc}:{parsed.port}"
        transformed = urlunparse(parsed._replace(netloc=netloc))
        logger.debug("Rewrote reddit URL", url=url, transformed=transformed)
        return transformed


def apply_url_transformers(url: str, transformers) -> str:
    """Run ``url`` through the transformers in descending priority order."""
    ordered = sorted(transformers, key=lambda t: getattr(t, "priority", 0), reverse=True)
    for transformer in ordered:
        url = transformer.transform(url)
    return url
