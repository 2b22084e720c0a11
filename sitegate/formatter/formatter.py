"""Formatter: applies canonical style to documents and source trees."""

from __future__ import annotations

import difflib
import logging
import subprocess

from pydantic import BaseModel, Field

from sitegate.config.models import FormatterConfig
from sitegate.documents.models import Document, DocumentFormat, SourceTree
from sitegate.errors import ExternalToolError, MalformedDocumentError
from sitegate.formatter.html import format_html, validate_html
from sitegate.formatter.markdown import format_markdown, validate_markdown

logger = logging.getLogger(__name__)


class FormatFailure(BaseModel):
    path: str
    error: str
    line: int | None = None


class FormatReport(BaseModel):
    """Outcome of formatting a source tree."""

    changed: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    failed: list[FormatFailure] = Field(default_factory=list)
    diffs: dict[str, str] = Field(default_factory=dict)
    written: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.changed) + len(self.unchanged) + len(self.failed)


def validate_document(doc: Document) -> None:
    """Raise MalformedDocumentError if *doc* isn't well-formed HTML/Markdown."""
    if doc.format is DocumentFormat.HTML:
        validate_html(doc.content, path=doc.path)
    else:
        validate_markdown(doc.content, path=doc.path)


def unified_diff(before: str, after: str, path: str) -> str:
    """Unified diff between two versions of a document."""
    return "".join(difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
    ))


class Formatter:
    """Formats documents with the built-in rules or an external command.

    When ``config.command`` is set, each document is piped through it
    (``{path}`` in the argv is replaced by the document path). If the
    command is missing, times out, or exits non-zero, the built-in rules
    are used instead.
    """

    def __init__(self, config: FormatterConfig | None = None) -> None:
        self.config = config or FormatterConfig()

    # ------------------------------------------------------------------
    # Single document
    # ------------------------------------------------------------------

    def format_text(self, text: str, fmt: DocumentFormat, path: str = "<string>") -> str:
        if fmt is DocumentFormat.HTML:
            return format_html(text, self.config, path=path)
        return format_markdown(text, self.config, path=path)

    def format_document(self, doc: Document) -> Document:
        """Return *doc* with canonical content.

        Raises MalformedDocumentError if the document can't be parsed.
        """
        validate_document(doc)
        if self.config.command:
            try:
                return doc.with_content(self._run_external(doc))
            except ExternalToolError as e:
                logger.warning("%s; falling back to built-in formatter", e)
        return doc.with_content(self.format_text(doc.content, doc.format, doc.path))

    def _run_external(self, doc: Document) -> str:
        argv = [arg.replace("{path}", doc.path) for arg in self.config.command or []]
        tool = argv[0]
        try:
            result = subprocess.run(
                argv,
                input=doc.content,
                capture_output=True,
                text=True,
                timeout=self.config.command_timeout,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(tool, e) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(tool, f"timed out after {self.config.command_timeout}s") from e

        if result.returncode != 0:
            raise ExternalToolError(
                tool, f"exited {result.returncode}: {result.stderr[:200].strip()}"
            )
        return result.stdout

    # ------------------------------------------------------------------
    # Whole tree
    # ------------------------------------------------------------------

    def format_tree(
        self,
        tree: SourceTree,
        *,
        write: bool = True,
        check: bool = False,
        diff: bool = False,
    ) -> FormatReport:
        """Format every document in *tree*.

        With ``check`` nothing is written; the report lists the files
        that would change. Malformed documents are reported per file and
        never stop the rest of the tree.
        """
        report = FormatReport()
        do_write = write and not check

        for failure in tree.failures:
            report.failed.append(FormatFailure(path=failure.path, error=failure.error))

        for doc in tree.documents:
            try:
                formatted = self.format_document(doc)
            except MalformedDocumentError as e:
                logger.warning("cannot format %s", e)
                report.failed.append(FormatFailure(path=doc.path, error=str(e), line=e.line))
                continue

            if formatted.content == doc.content:
                report.unchanged.append(doc.path)
                continue

            report.changed.append(doc.path)
            if diff:
                report.diffs[doc.path] = unified_diff(doc.content, formatted.content, doc.path)
            if do_write:
                dest = tree.root / doc.path
                dest.write_bytes(formatted.content.encode("utf-8"))
                logger.info("formatted %s", doc.path)

        report.written = do_write
        return report
