"""
Orchestrator — the provisioning loop.

Walks the registry in order and invokes each step's install action,
one at a time. Install actions mutate shared host state (package
database, dotfiles) and later steps depend on earlier ones (nvm before
node), so nothing here runs in parallel.

Flow per step:
    cancelled? → bound? → (precheck satisfied?) → install → classify → record

A failing step never stops the run. There is no retry and no rollback:
one forward attempt per step, observed and reported.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from hostprep.adapters.base import ActionContext
from hostprep.core.engine.dispatch import classify_check, classify_install, invoke
from hostprep.core.engine.registry import StepRegistry
from hostprep.core.engine.reports import RunReport
from hostprep.core.models.outcome import ErrorKind, OutcomeStatus, RunOutcome
from hostprep.core.models.step import Step

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Step, RunOutcome], None]

_MARKERS = {
    OutcomeStatus.INSTALLED: "✓",
    OutcomeStatus.SKIPPED: "⊘",
    OutcomeStatus.FAILED: "✗",
}


class Orchestrator:
    """Execute install actions across a registry with partial-failure tolerance.

    Args:
        context: Base action context (env overrides, home, sudo).
        timeout: Per-install bound in seconds; ``None`` is unbounded.
        check_timeout: Bound for the precheck.
        precheck: Run the step's check first and record ``Skipped`` without
            invoking install when it is already satisfied.
        cancel: Event checked before each step. Once set, remaining
            steps are recorded as failed with ``Cancelled``.
        on_progress: Called after each step with its outcome.
    """

    def __init__(
        self,
        context: ActionContext | None = None,
        timeout: float | None = None,
        check_timeout: float | None = None,
        precheck: bool = False,
        cancel: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.context = context or ActionContext()
        self.timeout = timeout
        self.check_timeout = check_timeout
        self.precheck = precheck
        self.cancel = cancel or threading.Event()
        self.on_progress = on_progress

    def run(self, registry: StepRegistry) -> RunReport:
        """Run every step's install action in registry order."""
        report = RunReport()
        steps = registry.all()
        logger.info("Provisioning %d step(s)", len(steps))

        for step in steps:
            if self.cancel.is_set():
                report.cancelled = True
                outcome = RunOutcome(
                    status=OutcomeStatus.FAILED,
                    diagnostic="run cancelled before this step started",
                    error_kind=ErrorKind.CANCELLED,
                )
            else:
                outcome = self._run_step(step)

            report.entries.append((step, outcome))

            marker = _MARKERS[outcome.status]
            if outcome.failed:
                logger.warning("%s %s → %s: %s", marker, step.id,
                               outcome.error_kind.value if outcome.error_kind else "failed",
                               outcome.diagnostic)
            else:
                logger.info("%s %s → %s", marker, step.id, outcome.status.value)

            if self.on_progress:
                self.on_progress(step, outcome)

        return report

    def _run_step(self, step: Step) -> RunOutcome:
        if step.install is None:
            return RunOutcome(
                status=OutcomeStatus.FAILED,
                diagnostic=f"no install action bound for step '{step.id}'",
                error_kind=ErrorKind.ACTION_NOT_FOUND,
            )

        if self.precheck and step.check is not None:
            ctx = self.context.for_invocation(step.id, "check", self.check_timeout)
            result = classify_check(invoke(step.check, ctx, self.check_timeout))
            if result.satisfied:
                return RunOutcome(
                    status=OutcomeStatus.SKIPPED,
                    diagnostic="already satisfied",
                    duration_ms=result.duration_ms,
                )

        logger.debug("Installing %s", step.id)
        ctx = self.context.for_invocation(step.id, "install", self.timeout)
        return classify_install(invoke(step.install, ctx, self.timeout))
