"""
Candidate filters for top-candidate selection.

A filter is any object with a ``should_include_candidate(candidate)`` method.
A scored node only competes for the top spot when every configured filter
accepts it.
"""
from typing import Protocol

from bs4 import Tag

from clearread.parser.html_parser import has_ancestor_tag


class CandidateFilter(Protocol):
    def should_include_candidate(self, candidate: Tag) -> bool:
        ...


class BlockquoteDescendantFilter:
    """Reject candidates nested anywhere inside a ``<blockquote>``."""

    def should_include_candidate(self, candidate: Tag) -> bool:
        return not has_ancestor_tag(candidate, "blockquote", max_depth=-1)

