"""Canonical HTML formatting on top of ``html.parser``.

Tags are re-serialized from the parsed token stream (lowercase names,
uniform attribute quoting). Text, entity references and comments are
copied from the source byte-for-byte, so only whitespace around them
changes. ``pre``/``textarea``/``script``/``style`` contents are left
exactly as written.
"""

from __future__ import annotations

import re
from html.parser import HTMLParser

from sitegate.config.models import FormatterConfig
from sitegate.errors import MalformedDocumentError
from sitegate.formatter.whitespace import (
    collapse_blank_runs,
    finish,
    normalize_newlines,
    strip_trailing_ws,
)

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# Elements whose end tag may be omitted.
OPTIONAL_END = frozenset({
    "html", "head", "body", "p", "li", "dt", "dd", "option", "optgroup",
    "tr", "td", "th", "thead", "tbody", "tfoot", "colgroup", "caption",
    "rp", "rt",
})

PROTECTED_ELEMENTS = frozenset({"pre", "textarea", "script", "style"})

_TEXT = "text"
_TAG = "tag"
_RAW = "raw"


_TAG_NAME_RE = re.compile(r"<[^\s/>]+")
_ATTR_RE = re.compile(
    r"""([^\s"'<>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+)))?"""
)
_QUOTE_ENTITY = {'"': "&quot;", "'": "&#39;"}


def _raw_attrs(starttag: str) -> list[tuple[str, str | None]]:
    """Attributes of a start tag with their values exactly as written.

    ``HTMLParser`` hands over decoded values, so ``&copy=1`` in a URL would
    come back as a copyright sign.
    """
    rest = _TAG_NAME_RE.sub("", starttag, count=1)
    attrs: list[tuple[str, str | None]] = []
    for m in _ATTR_RE.finditer(rest):
        name, dq, sq, bare = m.groups()
        value = next((v for v in (dq, sq, bare) if v is not None), None)
        attrs.append((name.lower(), value))
    return attrs


def _quote_attrs(attrs: list[tuple[str, str | None]], quote: str) -> str:
    parts = []
    for name, value in attrs:
        if value is None:
            parts.append(name)
            continue
        value = value.replace(quote, _QUOTE_ENTITY[quote])
        parts.append(f"{name}={quote}{value}{quote}")
    return (" " + " ".join(parts)) if parts else ""


class _TokenCollector(HTMLParser):
    """Records each token with its source offset and tracks element nesting."""

    def __init__(self, text: str, path: str, quote: str) -> None:
        super().__init__(convert_charrefs=False)
        self.path = path
        self.quote = quote
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", text)]
        # (offset, kind, serialized-or-None, protected)
        self.tokens: list[tuple[int, str, str | None, bool]] = []
        self.stack: list[tuple[str, int]] = []
        self._protected = 0

    # -- positions ---------------------------------------------------------

    def _offset(self) -> int:
        lineno, col = self.getpos()
        return self._line_starts[lineno - 1] + col

    def _line(self) -> int:
        return self.getpos()[0]

    def _emit(self, kind: str, rendered: str | None = None) -> None:
        self.tokens.append((self._offset(), kind, rendered, self._protected > 0))

    # -- structure ---------------------------------------------------------

    def _fail(self, message: str, line: int | None = None) -> None:
        raise MalformedDocumentError(self.path, message, line=line or self._line())

    def _attrs(self) -> str:
        return _quote_attrs(_raw_attrs(self.get_starttag_text() or ""), self.quote)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._emit(_TAG, f"<{tag}{self._attrs()}>")
        if tag in VOID_ELEMENTS:
            return
        self.stack.append((tag, self._line()))
        if tag in PROTECTED_ELEMENTS:
            self._protected += 1

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._emit(_TAG, f"<{tag}{self._attrs()} />")

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_ELEMENTS:
            self._emit(_TAG, f"</{tag}>")
            return
        for depth in range(len(self.stack) - 1, -1, -1):
            if self.stack[depth][0] == tag:
                break
        else:
            self._fail(f"unexpected closing tag </{tag}>")

        for open_tag, open_line in self.stack[depth + 1:]:
            if open_tag not in OPTIONAL_END:
                self._fail(
                    f"closing tag </{tag}> does not match <{open_tag}> opened on line {open_line}"
                )
        for open_tag, _line in self.stack[depth:]:
            if open_tag in PROTECTED_ELEMENTS:
                self._protected -= 1
        del self.stack[depth:]
        self._emit(_TAG, f"</{tag}>")

    # -- text and raw tokens -----------------------------------------------

    def handle_data(self, data: str) -> None:
        self._emit(_TEXT)

    def handle_entityref(self, name: str) -> None:
        self._emit(_TEXT)

    def handle_charref(self, name: str) -> None:
        self._emit(_TEXT)

    def handle_comment(self, data: str) -> None:
        self._emit(_RAW)

    def handle_pi(self, data: str) -> None:
        self._emit(_RAW)

    def unknown_decl(self, data: str) -> None:
        self._emit(_RAW)

    def handle_decl(self, decl: str) -> None:
        keyword, _, rest = decl.replace("\n", " ").partition(" ")
        if keyword.lower() == "doctype":
            rest = rest.strip()
            if rest.lower() == "html":
                rest = "html"
            self._emit(_TAG, f"<!DOCTYPE {rest}>" if rest else "<!DOCTYPE>")
        else:
            self._emit(_RAW)

    def finish(self) -> None:
        self.close()
        for open_tag, open_line in self.stack:
            if open_tag not in OPTIONAL_END:
                self._fail(f"<{open_tag}> is never closed", line=open_line)


def _parse(text: str, path: str, quote: str) -> _TokenCollector:
    collector = _TokenCollector(text, path, quote)
    collector.feed(text)
    collector.finish()
    return collector


def format_html(
    text: str, config: FormatterConfig | None = None, path: str = "<string>"
) -> str:
    """Return *text* in canonical HTML style."""
    config = config or FormatterConfig()
    text = normalize_newlines(text)
    quote = '"' if config.quote_style == "double" else "'"
    collector = _parse(text, path, quote)

    tokens = collector.tokens
    offsets = [t[0] for t in tokens] + [len(text)]
    out: list[str] = []
    pending: list[str] = []
    pending_protected = False

    def flush() -> None:
        if not pending:
            return
        chunk = "".join(pending)
        if not pending_protected:
            chunk = collapse_blank_runs(strip_trailing_ws(chunk), config.max_blank_lines)
        out.append(chunk)
        pending.clear()

    for i, (offset, kind, rendered, protected) in enumerate(tokens):
        raw = text[offset:offsets[i + 1]]
        if kind == _TEXT:
            if pending and protected != pending_protected:
                flush()
            pending_protected = protected
            pending.append(raw)
            continue
        flush()
        if kind == _TAG:
            out.append(rendered or raw)
        else:
            out.append(raw if protected else strip_trailing_ws(raw))
    flush()

    return finish("".join(out).strip(), config.line_ending)


def validate_html(text: str, path: str = "<string>") -> None:
    """Raise MalformedDocumentError on unbalanced or mismatched tags."""
    _parse(normalize_newlines(text), path, '"')
