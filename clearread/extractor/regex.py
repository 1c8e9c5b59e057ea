"""
Regular expressions used to classify nodes by their class and id attributes.

The pattern banks match Mozilla's Readability.js. All patterns are case
insensitive; custom positive, negative, unlikely and video patterns can be
passed to ``RegExUtil`` to tune classification for a particular site.
"""
import re
from typing import Optional, Pattern, Union

UNLIKELY_CANDIDATES_PATTERN = (
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|"
    r"extra|footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|"
    r"sidebar|skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|"
    r"pager|popup|yom-remote"
)

OK_MAYBE_ITS_A_CANDIDATE_PATTERN = r"and|article|body|column|content|main|mathjax|shadow"

POSITIVE_PATTERN = (
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|"
    r"blog|story"
)

NEGATIVE_PATTERN = (
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|footer|"
    r"gdpr|masthead|media|meta|outbrain|promo|related|scroll|share|shoutbox|"
    r"sidebar|skyscraper|sponsor|shopping|tags|widget"
)

BYLINE_PATTERN = r"byline|author|dateline|writtenby|p-author"

VIDEOS_PATTERN = (
    r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq)\.com|"
    r"(archive|upload\.wikimedia)\.org|player\.twitch\.tv)"
)

HASH_URL_PATTERN = r"^#.+"
WHITESPACE_PATTERN = r"^\s*$"
HAS_CONTENT_PATTERN = r"\S$"

_NORMALIZE = re.compile(r"\s+")

PatternLike = Union[str, Pattern[str]]


def _compile(pattern: PatternLike) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern, re.IGNORECASE)
    return pattern


class RegExUtil:
    """Pure predicates over class/id match strings, URLs and text."""

    def __init__(
        self,
        unlikely_candidates_pattern: PatternLike = UNLIKELY_CANDIDATES_PATTERN,
        ok_maybe_its_a_candidate_pattern: PatternLike = OK_MAYBE_ITS_A_CANDIDATE_PATTERN,
        positive_pattern: PatternLike = POSITIVE_PATTERN,
        negative_pattern: PatternLike = NEGATIVE_PATTERN,
        byline_pattern: PatternLike = BYLINE_PATTERN,
        videos_pattern: PatternLike = VIDEOS_PATTERN,
    ):
        self.unlikely_regex = _compile(unlikely_candidates_pattern)
        self.ok_maybe_regex = _compile(ok_maybe_its_a_candidate_pattern)
        self.positive_regex = _compile(positive_pattern)
        self.negative_regex = _compile(negative_pattern)
        self.byline_regex = _compile(byline_pattern)
        self.videos_regex = _compile(videos_pattern)
        self.hash_url_regex = re.compile(HASH_URL_PATTERN)
        self.whitespace_regex = re.compile(WHITESPACE_PATTERN)
        self.has_content_regex = re.compile(HAS_CONTENT_PATTERN)

    def is_unlikely_candidate(self, match_string: str) -> bool:
        return self.unlikely_regex.search(match_string) is not None

    def ok_maybe_its_a_candidate(self, match_string: str) -> bool:
        return self.ok_maybe_regex.search(match_string) is not None

    def is_positive(self, match_string: str) -> bool:
        return self.positive_regex.search(match_string) is not None

    def is_negative(self, match_string: str) -> bool:
        return self.negative_regex.search(match_string) is not None

    def is_byline(self, match_string: str) -> bool:
        return self.byline_regex.search(match_string) is not None

    def is_video(self, match_string: str, allowed_video_regex: Optional[Pattern[str]] = None) -> bool:
        """Check against the custom video pattern when given, else the built-in one."""
        pattern = allowed_video_regex if allowed_video_regex is not None else self.videos_regex
        return pattern.search(match_string) is not None

    def is_hash_url(self, url: str) -> bool:
        return self.hash_url_regex.search(url) is not None

    def is_whitespace(self, text: str) -> bool:
        return self.whitespace_regex.search(text) is not None

    def has_content(self, text: str) -> bool:
        return self.has_content_regex.search(text) is not None

    def normalize(self, text: str) -> str:
        """Collapse whitespace runs to a single space and trim."""
        return _NORMALIZE.sub(" ", text).strip()
