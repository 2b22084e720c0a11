"""Document model and source tree discovery."""

from sitegate.documents.discovery import detect_format, discover, find_entry, load_document
from sitegate.documents.models import Document, DocumentFormat, LoadFailure, SourceTree

__all__ = [
    "Document",
    "DocumentFormat",
    "LoadFailure",
    "SourceTree",
    "detect_format",
    "discover",
    "find_entry",
    "load_document",
]
