"""
Outcome models — what the engine records per step.

RunOutcome is produced by the orchestrator from an install receipt.
CheckResult is produced by the verifier from a check receipt.
Both are frozen once created.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class OutcomeStatus(str, Enum):
    """Classification of an install attempt."""

    INSTALLED = "installed"
    SKIPPED = "skipped"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Why a step did not reach (or could not confirm) its goal state."""

    ACTION_NOT_FOUND = "ActionNotFound"
    INSTALL_FAILED = "InstallFailed"
    TIMEOUT = "Timeout"
    CHECK_FAILED = "CheckFailed"
    NOT_SATISFIED = "NotSatisfied"
    CANCELLED = "Cancelled"


class RunOutcome(BaseModel):
    """Result of attempting one step's install action."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    diagnostic: str = ""
    error_kind: ErrorKind | None = None
    duration_ms: int = 0

    @property
    def installed(self) -> bool:
        return self.status is OutcomeStatus.INSTALLED

    @property
    def skipped(self) -> bool:
        return self.status is OutcomeStatus.SKIPPED

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "diagnostic": self.diagnostic,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "duration_ms": self.duration_ms,
        }


class CheckResult(BaseModel):
    """Result of one step's check action."""

    model_config = ConfigDict(frozen=True)

    satisfied: bool
    diagnostic: str = ""
    error_kind: ErrorKind | None = None
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "satisfied": self.satisfied,
            "diagnostic": self.diagnostic,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "duration_ms": self.duration_ms,
        }
