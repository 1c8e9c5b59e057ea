"""
Extraction pipeline stages.

Each stage is a small class with a default implementation that
``clearread.readability.Readability`` wires together; any of them can be
replaced by passing a compatible object to the orchestrator.
"""
from .grabber import ArticleGrabber
from .metadata import MetadataExtractor, extract_metadata
from .noscript import ContentAwareNoscriptHandler, NoscriptHandler, RemoveAllNoscriptHandler
from .postprocessor import Postprocessor
from .preprocessor import Preprocessor
from .regex import RegExUtil

__all__ = [
    "ArticleGrabber",
    "ContentAwareNoscriptHandler",
    "MetadataExtractor",
    "NoscriptHandler",
    "Postprocessor",
    "Preprocessor",
    "RegExUtil",
    "RemoveAllNoscriptHandler",
    "extract_metadata",
]
