"""Canonical formatting for HTML and Markdown documents."""

from sitegate.formatter.formatter import (
    FormatFailure,
    FormatReport,
    Formatter,
    unified_diff,
    validate_document,
)
from sitegate.formatter.html import format_html, validate_html
from sitegate.formatter.markdown import format_markdown, validate_markdown

__all__ = [
    "FormatFailure",
    "FormatReport",
    "Formatter",
    "format_html",
    "format_markdown",
    "unified_diff",
    "validate_document",
    "validate_html",
    "validate_markdown",
]
