"""Built-in merge checks and configured command checks.

Each check takes a SourceTree and returns a list of error messages; an
empty list means the check passed.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable

from sitegate.config.models import CommandCheckConfig, SitegateConfig
from sitegate.documents.models import SourceTree
from sitegate.errors import ExternalToolError, MalformedDocumentError
from sitegate.formatter import Formatter, validate_document
from sitegate.gate.links import extract_links, is_local, resolve_link

logger = logging.getLogger(__name__)

CheckFn = Callable[[SourceTree, SitegateConfig], list[str]]


def check_entry(tree: SourceTree, config: SitegateConfig) -> list[str]:
    """The root entry document exists and has content."""
    path = tree.root / tree.entry
    if not path.is_file():
        return [f"entry document {tree.entry} is missing"]
    doc = tree.get(tree.entry)
    if doc is None:
        return [f"entry document {tree.entry} could not be loaded"]
    if not doc.content.strip():
        return [f"entry document {tree.entry} is empty"]
    return []


def check_valid(tree: SourceTree, config: SitegateConfig) -> list[str]:
    """Every document decodes and parses."""
    errors = [f.error for f in tree.failures]
    for doc in tree.documents:
        try:
            validate_document(doc)
        except MalformedDocumentError as e:
            errors.append(str(e))
    return errors


def check_format(tree: SourceTree, config: SitegateConfig) -> list[str]:
    """Every document is already in canonical form."""
    report = Formatter(config.formatter).format_tree(tree, check=True)
    errors = [f"{path}: not formatted (run `sitegate format`)" for path in report.changed]
    # Unparseable files are the validity check's concern; just note them here.
    errors.extend(f"{f.path}: cannot be formatted" for f in report.failed)
    return errors


def check_links(tree: SourceTree, config: SitegateConfig) -> list[str]:
    """Relative links point at files inside the source root."""
    errors: list[str] = []
    for doc in tree.documents:
        for target, line in extract_links(doc):
            if not is_local(target):
                continue
            if resolve_link(doc.path, target, tree.root, config.source.entry_candidates) is None:
                errors.append(f"{doc.path}:{line}: broken link -> {target}")
    return errors


BUILTIN_CHECKS: dict[str, CheckFn] = {
    "entry": check_entry,
    "valid": check_valid,
    "format": check_format,
    "links": check_links,
}


def run_command_check(tree: SourceTree, command: CommandCheckConfig) -> list[str]:
    """Run a configured CI command in the source root; exit 0 passes."""
    try:
        result = _run(command, tree)
    except ExternalToolError as e:
        return [str(e)]
    if result.returncode != 0:
        output = (result.stdout + result.stderr).strip()
        tail = output[-500:] if output else "(no output)"
        return [f"{command.name} exited {result.returncode}: {tail}"]
    return []


def _run(command: CommandCheckConfig, tree: SourceTree) -> subprocess.CompletedProcess[str]:
    logger.debug("running %s: %s", command.name, " ".join(command.run))
    try:
        return subprocess.run(
            command.run,
            cwd=tree.root,
            capture_output=True,
            text=True,
            timeout=command.timeout,
        )
    except FileNotFoundError as e:
        raise ExternalToolError(command.name, f"command not found: {command.run[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(command.name, f"timed out after {command.timeout}s") from e
