"""Source tree discovery: walk a site root and load its documents."""

from __future__ import annotations

import logging
from pathlib import Path

from sitegate.config.models import SourceConfig
from sitegate.documents.models import Document, DocumentFormat, LoadFailure, SourceTree
from sitegate.errors import MalformedDocumentError, SourceTreeError

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


def _matches_any(path: Path, patterns: set[str]) -> bool:
    """Check whether any component of *path* matches one of *patterns*."""
    return any(part in patterns for part in path.parts)


def detect_format(path: str | Path, extensions: dict[str, str]) -> DocumentFormat | None:
    """Map a file extension to a DocumentFormat, or None if it isn't a document."""
    fmt = extensions.get(Path(path).suffix.lower())
    return DocumentFormat(fmt) if fmt else None


def load_document(
    root: Path,
    path: str,
    fmt: DocumentFormat | None = None,
    extensions: dict[str, str] | None = None,
) -> Document:
    """Read *path* (relative to *root*) as a UTF-8 document.

    Raises MalformedDocumentError for undecodable or binary content.
    """
    if fmt is None:
        fmt = detect_format(path, extensions or SourceConfig().extensions)
        if fmt is None:
            raise MalformedDocumentError(path, "not an HTML or Markdown file")

    raw = (root / path).read_bytes()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedDocumentError(path, f"not valid UTF-8 (byte {e.start})") from e
    if "\x00" in text:
        line = text.count("\n", 0, text.index("\x00")) + 1
        raise MalformedDocumentError(path, "contains NUL bytes", line=line)
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    return Document(path=path, content=text, format=fmt)


def find_entry(root: Path, candidates: list[str]) -> str | None:
    """Return the first entry candidate present at *root*."""
    for name in candidates:
        if (root / name).is_file():
            return name
    return None


def discover(root: str | Path, config: SourceConfig | None = None) -> SourceTree:
    """Walk *root* and build a SourceTree.

    Files that fail to load are recorded as failures rather than aborting
    the walk; the merge gate reports them.
    """
    config = config or SourceConfig()
    root = Path(root)
    if not root.exists():
        raise SourceTreeError(f"Source root does not exist: {root}")
    if not root.is_dir():
        raise SourceTreeError(f"Source root is not a directory: {root}")
    root = root.resolve()

    entry = find_entry(root, config.entry_candidates)
    if entry is None:
        raise SourceTreeError(
            f"No entry document in {root} (looked for {', '.join(config.entry_candidates)})"
        )

    ignore = set(config.ignore_patterns)
    tree = SourceTree(root=root, entry=entry)

    for p in sorted(root.rglob("*")):
        if not p.is_file():
            continue
        rel = p.relative_to(root)
        if _matches_any(rel, ignore):
            continue
        fmt = detect_format(rel, config.extensions)
        if fmt is None:
            continue
        rel_posix = rel.as_posix()
        try:
            tree.documents.append(load_document(root, rel_posix, fmt))
        except MalformedDocumentError as e:
            logger.warning("skipping %s: %s", rel_posix, e.message)
            tree.failures.append(LoadFailure(path=rel_posix, error=str(e)))
        except OSError as e:
            logger.warning("cannot read %s: %s", rel_posix, e)
            tree.failures.append(LoadFailure(path=rel_posix, error=f"{rel_posix}: {e}"))

    logger.debug(
        "discovered %d document(s) under %s (entry: %s)", len(tree.documents), root, entry
    )
    return tree
