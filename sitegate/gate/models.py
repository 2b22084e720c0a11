"""Pydantic models for merge gate results."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CheckResult(BaseModel):
    """Result of one merge check."""

    name: str
    passed: bool = True
    skipped: bool = False
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class GateReport(BaseModel):
    """All merge check results for one source tree."""

    root: str = ""
    results: list[CheckResult] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results if not r.skipped)

    @property
    def failed(self) -> list[CheckResult]:
        return [r for r in self.results if not r.skipped and not r.passed]

    def get(self, name: str) -> CheckResult | None:
        for r in self.results:
            if r.name == name:
                return r
        return None
