"""Exception types shared across sitegate."""

from __future__ import annotations


class SitegateError(Exception):
    """Base class for sitegate errors."""


class SourceTreeError(SitegateError):
    """The source root is missing, not a directory, or has no entry document."""


class MalformedDocumentError(SitegateError):
    """A document could not be decoded or parsed."""

    def __init__(self, path: str, message: str, line: int | None = None) -> None:
        self.path = path
        self.message = message
        self.line = line
        location = f"{path}:{line}" if line is not None else path
        super().__init__(f"{location}: {message}")


class ExternalToolError(SitegateError):
    """Wraps failures of an external formatter or CI command with context."""

    def __init__(self, tool: str, cause: Exception | str) -> None:
        self.tool = tool
        super().__init__(f"{tool} failed: {cause}")
        if isinstance(cause, Exception):
            self.__cause__ = cause
