"""Merge gate: the checklist a change must pass before it is merged."""

from sitegate.gate.checks import (
    BUILTIN_CHECKS,
    check_entry,
    check_format,
    check_links,
    check_valid,
    run_command_check,
)
from sitegate.gate.models import CheckResult, GateReport
from sitegate.gate.runner import MergeGate

__all__ = [
    "BUILTIN_CHECKS",
    "CheckResult",
    "GateReport",
    "MergeGate",
    "check_entry",
    "check_format",
    "check_links",
    "check_valid",
    "run_command_check",
]
