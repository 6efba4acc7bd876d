"""
Run and verification reports.

Both are ordered, one entry per registry step, and carry the derived
counts the renderer and the CLI exit code are computed from. The
verification report is the ground truth for "done".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hostprep.core.models.outcome import CheckResult, RunOutcome
from hostprep.core.models.step import Step


@dataclass
class RunReport:
    """Result of an orchestrator run: (step, outcome) in registry order."""

    entries: list[tuple[Step, RunOutcome]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def installed(self) -> int:
        return sum(1 for _, o in self.entries if o.installed)

    @property
    def skipped(self) -> int:
        return sum(1 for _, o in self.entries if o.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for _, o in self.entries if o.failed)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.installed + self.skipped > 0:
            return "partial"
        return "failed"

    def outcome_for(self, step_id: str) -> RunOutcome | None:
        for step, outcome in self.entries:
            if step.id == step_id:
                return outcome
        return None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "cancelled": self.cancelled,
            "total": self.total,
            "installed": self.installed,
            "skipped": self.skipped,
            "failed": self.failed,
            "steps": [
                {"id": step.id, "description": step.label, **outcome.to_dict()}
                for step, outcome in self.entries
            ],
        }


@dataclass
class VerificationReport:
    """Result of a verifier pass: (step, check result) in registry order."""

    entries: list[tuple[Step, CheckResult]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def passed(self) -> int:
        return sum(1 for _, r in self.entries if r.satisfied)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def all_satisfied(self) -> bool:
        return self.failed == 0

    @property
    def unsatisfied(self) -> list[str]:
        """Ids of unsatisfied steps, in order."""
        return [step.id for step, r in self.entries if not r.satisfied]

    def result_for(self, step_id: str) -> CheckResult | None:
        for step, result in self.entries:
            if step.id == step_id:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "all_satisfied": self.all_satisfied,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "steps": [
                {"id": step.id, "description": step.label, **result.to_dict()}
                for step, result in self.entries
            ],
        }
