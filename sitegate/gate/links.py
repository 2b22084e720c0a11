"""Relative link extraction and resolution for HTML and Markdown documents."""

from __future__ import annotations

import posixpath
import re
from html.parser import HTMLParser
from pathlib import Path
from urllib.parse import unquote, urlsplit

from sitegate.documents.models import Document, DocumentFormat
from sitegate.formatter.markdown import Fence, is_list_item, open_fence

_LINK_ATTRS = {"a": "href", "link": "href", "img": "src", "script": "src"}

_MD_LINK_RE = re.compile(r"!?\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+(?:\"[^\"]*\"|'[^']*'))?\s*\)")
_MD_REF_DEF_RE = re.compile(r"^ {0,3}\[(?!\^)[^\]]+\]:\s*<?(\S+?)>?(?:\s+.*)?$")
_INLINE_CODE_RE = re.compile(r"(`+).+?\1")


class _LinkParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.links: list[tuple[str, int]] = []

    def _collect(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attr = _LINK_ATTRS.get(tag)
        if attr is None:
            return
        value = dict(attrs).get(attr)
        if value:
            self.links.append((value.strip(), self.getpos()[0]))

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._collect(tag, attrs)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._collect(tag, attrs)


def html_links(content: str) -> list[tuple[str, int]]:
    parser = _LinkParser()
    parser.feed(content)
    parser.close()
    return parser.links


def markdown_links(content: str) -> list[tuple[str, int]]:
    links: list[tuple[str, int]] = []
    fence: Fence | None = None
    in_list = False
    prev_blank = False
    for lineno, line in enumerate(content.splitlines(), start=1):
        if fence is not None:
            if fence.closes(line):
                fence = None
            continue
        if not line.strip():
            prev_blank = True
            continue
        fence = open_fence(line, lineno, nested=in_list)
        if fence is not None:
            prev_blank = False
            continue
        if is_list_item(line):
            in_list = True
        elif prev_blank and not line.startswith((" ", "\t")):
            in_list = False
        prev_blank = False

        line = _INLINE_CODE_RE.sub("", line)
        for target in _MD_LINK_RE.findall(line):
            links.append((target, lineno))
        ref = _MD_REF_DEF_RE.match(line)
        if ref:
            links.append((ref.group(1), lineno))
    return links


def extract_links(doc: Document) -> list[tuple[str, int]]:
    """(target, line) pairs for every link-like reference in *doc*."""
    if doc.format is DocumentFormat.HTML:
        return html_links(doc.content)
    return markdown_links(doc.content)


def is_local(target: str) -> bool:
    if not target or target.startswith("#") or target.startswith("//"):
        return False
    # Any URL scheme (http, mailto, tel, data, ...) points outside the tree.
    return not urlsplit(target).scheme


def resolve_link(
    doc_path: str, target: str, root: Path, entry_candidates: list[str]
) -> str | None:
    """Resolve a local link to a root-relative path, or None if it's broken.

    Links starting with ``/`` are site-root relative. A link to a directory
    resolves to its entry document. Links that escape the root are broken.
    """
    path = unquote(urlsplit(target).path)
    if not path:
        return doc_path

    if path.startswith("/"):
        rel = posixpath.normpath(path.lstrip("/")) if path.strip("/") else "."
    else:
        rel = posixpath.normpath(posixpath.join(posixpath.dirname(doc_path), path))
    if rel == ".." or rel.startswith("../"):
        return None

    full = root / rel
    if full.is_file():
        return rel
    if full.is_dir():
        for name in entry_candidates:
            if (full / name).is_file():
                return posixpath.normpath(posixpath.join(rel, name))
        return None
    if not Path(rel).suffix and full.with_suffix(".html").is_file():
        return rel + ".html"
    return None
