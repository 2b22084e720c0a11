"""Canonical Markdown formatting.

Works line by line. Fenced code blocks and YAML front matter are passed
through untouched (apart from trailing whitespace on front matter lines);
everything else gets heading, list-marker and whitespace normalization.
"""

from __future__ import annotations

import re

import yaml

from sitegate.config.models import FormatterConfig
from sitegate.errors import MalformedDocumentError
from sitegate.formatter.whitespace import finish, normalize_newlines

_FENCE_OPEN_RE = re.compile(r"^[ \t]*(`{3,}|~{3,})(.*)$")
_ATX_RE = re.compile(r"^( {0,3})(#{1,6})(?:[ \t]+(.*))?$")
_ATX_CLOSE_RE = re.compile(r"(?:^|[ \t]+)#+$")
_BULLET_RE = re.compile(r"^([ \t]*)([-*+])([ \t]+)(.*)$")
_ORDERED_RE = re.compile(r"^ {0,3}\d{1,9}[.)](?:[ \t]|$)")
_THEMATIC_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_FRONT_MATTER_CLOSE = ("---", "...")


def _is_blank(line: str) -> bool:
    return not line.strip(" \t")


def _indent_width(line: str) -> int:
    width = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += 4 - width % 4
        else:
            break
    return width


def _front_matter_end(lines: list[str], path: str) -> int:
    """Index of the closing front matter line, or -1 if there is no front matter.

    Raises MalformedDocumentError if the block doesn't parse as a YAML mapping.
    """
    if not lines or lines[0].rstrip(" \t") != "---":
        return -1
    for i in range(1, len(lines)):
        if lines[i].rstrip(" \t") in _FRONT_MATTER_CLOSE:
            break
    else:
        # No closing marker: the leading --- is a thematic break.
        return -1

    try:
        data = yaml.safe_load("\n".join(lines[1:i]))
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line = mark.line + 2 if mark is not None else 1
        raise MalformedDocumentError(path, f"front matter is not valid YAML: {exc}", line=line) from exc
    if data is not None and not isinstance(data, dict):
        raise MalformedDocumentError(
            path, f"front matter must be a mapping, got {type(data).__name__}", line=1
        )
    return i


def _format_heading(match: re.Match[str]) -> str:
    lead, hashes, text = match.group(1), match.group(2), (match.group(3) or "")
    text = _ATX_CLOSE_RE.sub("", text.strip(" \t")).strip(" \t")
    return f"{lead}{hashes} {text}" if text else f"{lead}{hashes}"


def _keep_hard_break(line: str, next_line: str | None) -> bool:
    stripped = line.rstrip(" \t")
    trailing = line[len(stripped):]
    return (
        bool(stripped)
        and len(trailing) - len(trailing.rstrip(" ")) >= 2
        and next_line is not None
        and not _is_blank(next_line)
    )


class Fence:
    __slots__ = ("char", "length", "line")

    def __init__(self, marker: str, line: int) -> None:
        self.char = marker[0]
        self.length = len(marker)
        self.line = line

    def closes(self, line: str) -> bool:
        stripped = line.strip(" \t")
        return (
            len(stripped) >= self.length
            and stripped == self.char * len(stripped)
        )


def open_fence(line: str, lineno: int, nested: bool = False) -> Fence | None:
    """Return the fence *line* opens, or None.

    Outside a list a fence may be indented at most three spaces; deeper
    lines belong to an indented code block.
    """
    m = _FENCE_OPEN_RE.match(line)
    if m is None or (not nested and _indent_width(line) > 3):
        return None
    marker, info = m.group(1), m.group(2)
    # Backtick fences can't carry backticks in their info string.
    if marker[0] == "`" and "`" in info:
        return None
    return Fence(marker, lineno)


def is_list_item(line: str) -> bool:
    """True for a top-level bullet or ordered list item line."""
    if _indent_width(line) > 3 or _THEMATIC_RE.match(line):
        return False
    return bool(_BULLET_RE.match(line) or _ORDERED_RE.match(line))


def format_markdown(
    text: str, config: FormatterConfig | None = None, path: str = "<string>"
) -> str:
    """Return *text* in canonical Markdown style."""
    config = config or FormatterConfig()
    lines = normalize_newlines(text).split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    out: list[str] = []
    start = 0
    fm_end = _front_matter_end(lines, path)
    if fm_end >= 0:
        out.extend(line.rstrip(" \t") for line in lines[: fm_end + 1])
        start = fm_end + 1

    fence: Fence | None = None
    blank_run = 0
    in_list = False
    prev_blank = False

    for idx in range(start, len(lines)):
        line = lines[idx]

        if fence is not None:
            if fence.closes(line):
                out.append(line.rstrip(" \t"))
                fence = None
            else:
                out.append(line)
            continue

        if _is_blank(line):
            blank_run += 1
            prev_blank = True
            if out and blank_run <= config.max_blank_lines:
                out.append("")
            continue
        blank_run = 0

        opened = open_fence(line, idx + 1, nested=in_list)
        if opened is not None:
            fence = opened
            out.append(line.rstrip(" \t"))
            prev_blank = False
            continue

        indent = _indent_width(line)
        if prev_blank and indent == 0 and not _BULLET_RE.match(line) and not _ORDERED_RE.match(line):
            in_list = False
        prev_blank = False

        heading = _ATX_RE.match(line)
        if heading is not None:
            out.append(_format_heading(heading))
            continue

        next_line = lines[idx + 1] if idx + 1 < len(lines) else None
        body = line.rstrip(" \t")
        if _keep_hard_break(line, next_line):
            body += "  "

        if _THEMATIC_RE.match(body):
            out.append(body)
            continue

        if _ORDERED_RE.match(body):
            in_list = True

        bullet = _BULLET_RE.match(body)
        if bullet is not None and (indent <= 3 or in_list):
            lead, _marker, gap, rest = bullet.groups()
            in_list = True
            body = f"{lead}{config.list_marker}{gap}{rest}"

        out.append(body)

    if fence is not None:
        raise MalformedDocumentError(
            path, f"code fence opened with {fence.char * fence.length} is never closed",
            line=fence.line,
        )

    while out and out[-1] == "":
        out.pop()
    return finish("\n".join(out), config.line_ending)


def validate_markdown(text: str, path: str = "<string>") -> None:
    """Raise MalformedDocumentError if *text* can't be formatted."""
    format_markdown(text, path=path)
