"""
Mock action — universal test double for install and check actions.

Simulates action behavior without touching the host. Configurable
to succeed, skip, fail, raise, or block until released.
"""

from __future__ import annotations

import threading
from typing import Literal

from hostprep.adapters.base import Action, ActionContext
from hostprep.core.models.receipt import Receipt


class MockAction(Action):
    """Universal mock action for testing.

    By default, returns success for everything. Responses can be
    queued so consecutive calls return different receipts.
    """

    def __init__(
        self,
        action_name: str = "mock",
        status: Literal["ok", "skipped", "failed"] = "ok",
        output: str = "[mock] executed",
        error: str = "Mock failure",
        raises: Exception | None = None,
        block: threading.Event | None = None,
        timeout: float | None = None,
    ):
        self._name = action_name
        self._status = status
        self._output = output
        self._error = error
        self._raises = raises
        self._block = block
        self._queued: list[Receipt] = []
        self._call_log: list[ActionContext] = []
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ActionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    def set_status(self, status: Literal["ok", "skipped", "failed"]) -> None:
        """Change the default status for subsequent calls."""
        self._status = status

    def queue(self, *receipts: Receipt) -> None:
        """Queue receipts returned (in order) before the default."""
        self._queued.extend(receipts)

    def execute(self, context: ActionContext) -> Receipt:
        self._call_log.append(context)

        if self._block is not None:
            self._block.wait()

        if self._raises is not None:
            raise self._raises

        if self._queued:
            return self._queued.pop(0)

        if self._status == "failed":
            return Receipt.failure(action=self._name, error=self._error)
        if self._status == "skipped":
            return Receipt.skip(action=self._name, reason="[mock] already satisfied")
        return Receipt.success(
            action=self._name,
            output=self._output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and queued responses."""
        self._call_log.clear()
        self._queued.clear()
