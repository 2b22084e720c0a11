"""Data models for the document tree."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class DocumentFormat(str, Enum):
    HTML = "html"
    MARKDOWN = "markdown"


@dataclass(frozen=True)
class Document:
    """A single HTML or Markdown source file."""

    path: str  # POSIX path relative to the source root
    content: str
    format: DocumentFormat

    def with_content(self, content: str) -> Document:
        return dataclasses.replace(self, content=content)


@dataclass(frozen=True)
class LoadFailure:
    """A file that matched a document extension but could not be loaded."""

    path: str
    error: str


@dataclass
class SourceTree:
    """All documents under a site root plus the root entry document."""

    root: Path
    entry: str
    documents: list[Document] = field(default_factory=list)
    failures: list[LoadFailure] = field(default_factory=list)

    def get(self, path: str) -> Document | None:
        for doc in self.documents:
            if doc.path == path:
                return doc
        return None

    @property
    def paths(self) -> set[str]:
        return {doc.path for doc in self.documents} | {f.path for f in self.failures}

    def __len__(self) -> int:
        return len(self.documents)
