"""
Exceptions raised by the article extraction pipeline.

Everything that is not listed here degrades softly: a broken title, invalid
JSON-LD or an unparsable base URI is logged and treated as absent.
"""


class ReadabilityError(Exception):
    """Base class for all clearread errors."""


class MaxElementsExceededError(ReadabilityError):
    """The document has more elements than the configured parse limit."""

    def __init__(self, element_count: int, max_elements: int):
        self.element_count = element_count
        self.max_elements = max_elements
        super().__init__(
            f"Aborting parsing document; {element_count} elements found, "
            f"but max_elems_to_parse is set to {max_elements}"
        )


class ExtractionCancelledError(ReadabilityError):
    """Extraction was stopped between two grabbing attempts."""
