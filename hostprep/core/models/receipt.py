"""
Receipt model — the action return contract.

Install and check actions hand a Receipt back to the engine.
Actions never raise: failures are captured here, and the engine
classifies the receipt into a RunOutcome or CheckResult.

    install action:  ok → installed,  skipped → already present,  failed → failed
    check action:    ok → satisfied,  anything else → not satisfied
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of a single action invocation."""

    action: str                     # action name, e.g. "shell", "command"
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        """Whether the action found nothing to do."""
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @classmethod
    def success(cls, action: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(action=action, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, action: str, error: str, **kwargs: Any) -> Receipt:
        """Create a failure receipt."""
        return cls(action=action, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, action: str, reason: str = "", **kwargs: Any) -> Receipt:
        """Create a skip receipt (the goal state already held)."""
        return cls(action=action, status="skipped", output=reason, **kwargs)
