"""
Configuration management for clearread.

Two layers live here:
- immutable option models that steer a single extraction
  (``ReadabilityOptions`` and ``ArticleGrabberOptions``)
- ``Settings``, loaded through pydantic-settings from ``CLEARREAD_*``
  environment variables or a ``.env`` file, which holds the command line
  defaults and logging setup

Option models are frozen, so one instance can be shared between documents.
"""
import re
from enum import Enum
from typing import Any, Callable, FrozenSet, List, Optional, Pattern

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clearread.transformers import RedditUrlTransformer, UrlTransformer


class LogLevel(str, Enum):
    """Log levels supported by the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _default_url_transformers() -> List[UrlTransformer]:
    return [RedditUrlTransformer()]


class ArticleGrabberOptions(BaseModel):
    """Strictness flags for one article grabbing attempt."""
    model_config = ConfigDict(frozen=True)

    strip_unlikely_candidates: bool = True
    weight_classes: bool = True
    clean_conditionally: bool = True
    preserve_images: bool = True
    preserve_videos: bool = True


class ReadabilityOptions(BaseModel):
    """
    Options for a full ``Readability.parse`` run.

    The defaults reproduce the behaviour of Mozilla's Readability.js.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    max_elems_to_parse: int = 0
    """Abort when the document has more elements than this. 0 disables the check."""

    nb_top_candidates: int = 5
    """Number of top candidates considered when looking for a better ancestor."""

    char_threshold: int = 500
    """Minimum article text length before the grabber stops relaxing its rules."""

    additional_classes_to_preserve: FrozenSet[str] = Field(default_factory=frozenset)
    keep_classes: bool = False
    disable_json_ld: bool = False

    allowed_video_regex: Optional[Pattern[str]] = None
    """Extra pattern for embeds that should survive cleanup as videos."""

    link_density_modifier: float = 0.0
    url_transformers: List[Any] = Field(default_factory=_default_url_transformers)
    preserve_images: bool = True
    preserve_videos: bool = True

    serializer: Optional[Callable[[Any], str]] = None
    """Custom renderer for the article content node."""

    @field_validator("max_elems_to_parse", "char_threshold")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator("nb_top_candidates")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("nb_top_candidates must be at least 1")
        return v

    @field_validator("additional_classes_to_preserve", mode="before")
    @classmethod
    def _coerce_classes(cls, v):
        """Accept any iterable of class names (or a single name)."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset([v])
        return frozenset(v)

    @field_validator("allowed_video_regex", mode="before")
    @classmethod
    def _compile_video_regex(cls, v):
        if isinstance(v, str):
            return re.compile(v, re.IGNORECASE)
        return v

    @field_validator("url_transformers")
    @classmethod
    def _check_transformers(cls, v: List[Any]) -> List[Any]:
        for transformer in v:
            if not callable(getattr(transformer, "transform", None)):
                raise ValueError(
                    f"URL transformer {transformer!r} has no transform() method"
                )
        return v


class Settings(BaseSettings):
    """Command line defaults for clearread."""
    # Logging
    log_level: LogLevel = LogLevel.WARNING
    structured_logging: bool = False

    # Extraction defaults
    char_threshold: int = 500
    nb_top_candidates: int = 5
    max_elems_to_parse: int = 0
    keep_classes: bool = False
    disable_json_ld: bool = False

    model_config = SettingsConfigDict(
        env_prefix="CLEARREAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    def to_options(self, **overrides: Any) -> ReadabilityOptions:
        """Build extraction options from these settings."""
        values = {
            "char_threshold": self.char_threshold,
            "nb_top_candidates": self.nb_top_candidates,
            "max_elems_to_parse": self.max_elems_to_parse,
            "keep_classes": self.keep_classes,
            "disable_json_ld": self.disable_json_ld,
        }
        values.update(overrides)
        return ReadabilityOptions(**values)


def load_settings() -> Settings:
    """Load settings from environment variables and .env file."""
    return Settings()
