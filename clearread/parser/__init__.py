"""
HTML parsing helpers for clearread.
"""
from clearread.parser.html_parser import parse_html

__all__ = ["parse_html"]
