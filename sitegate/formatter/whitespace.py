"""Whitespace rules shared by the Markdown and HTML formatters."""

from __future__ import annotations

import re

_TRAILING_WS_RE = re.compile(r"[ \t]+\n")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def strip_trailing_ws(text: str) -> str:
    """Strip spaces/tabs before every newline in *text*."""
    return _TRAILING_WS_RE.sub("\n", text)


def collapse_blank_runs(text: str, max_blank_lines: int) -> str:
    """Collapse runs of empty lines to at most *max_blank_lines*.

    Expects trailing whitespace to be stripped already.
    """
    limit = max_blank_lines + 1
    return re.sub(r"\n{%d,}" % (limit + 1), "\n" * limit, text)


def finish(text: str, line_ending: str) -> str:
    """Single trailing newline (empty stays empty), then apply the line ending."""
    text = text.rstrip("\n")
    if not text.strip():
        return ""
    text += "\n"
    if line_ending == "crlf":
        text = text.replace("\n", "\r\n")
    return text
