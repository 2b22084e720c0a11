"""MergeGate: runs the fixed merge checklist over a source tree."""

from __future__ import annotations

import logging

from sitegate.config.models import SitegateConfig
from sitegate.documents.models import SourceTree
from sitegate.gate.checks import BUILTIN_CHECKS, run_command_check
from sitegate.gate.models import CheckResult, GateReport

logger = logging.getLogger(__name__)


class MergeGate:
    """Runs built-in checks in a fixed order, then configured commands.

    Supports three modes via GateConfig.mode:
      - "strict": any check error fails the gate
      - "warn": errors are reported as warnings; the gate passes
      - "off": every check is skipped
    """

    def __init__(self, config: SitegateConfig | None = None) -> None:
        self.config = config or SitegateConfig()
        self.mode = self.config.gate.mode

    def run(self, tree: SourceTree) -> GateReport:
        report = GateReport(root=str(tree.root))
        enabled = set(self.config.gate.checks)

        for name, check in BUILTIN_CHECKS.items():
            if self.mode == "off" or name not in enabled:
                report.results.append(CheckResult(name=name, skipped=True))
                continue
            report.results.append(self._result(name, check(tree, self.config)))

        for command in self.config.gate.commands:
            if self.mode == "off":
                report.results.append(CheckResult(name=command.name, skipped=True))
                continue
            report.results.append(self._result(command.name, run_command_check(tree, command)))

        logger.info(
            "merge gate %s for %s (%d check(s), %d failed)",
            "passed" if report.passed else "failed",
            tree.root,
            len([r for r in report.results if not r.skipped]),
            len(report.failed),
        )
        return report

    def _result(self, name: str, issues: list[str]) -> CheckResult:
        """Turn check issues into errors or warnings depending on mode."""
        result = CheckResult(name=name)
        if not issues:
            return result
        if self.mode == "strict":
            result.errors.extend(issues)
            result.passed = False
        else:
            result.warnings.extend(issues)
            for issue in issues:
                logger.warning("%s: %s", name, issue)
        return result
