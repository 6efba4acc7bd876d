"""
Verifier — re-check every step's goal state.

Independent of the orchestrator: it never looks at install outcomes,
only at what the host looks like now. Used as the last phase of a
provisioning run and on its own as the ``verify`` (doctor) command.

Checks are side-effect-free, so with ``max_workers > 1`` they run on a
thread pool. ``Executor.map`` yields results in submission order,
which keeps the report in registry order whatever finishes first.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from hostprep.adapters.base import ActionContext
from hostprep.core.engine.dispatch import classify_check, invoke
from hostprep.core.engine.registry import StepRegistry
from hostprep.core.engine.reports import VerificationReport
from hostprep.core.models.outcome import CheckResult, ErrorKind
from hostprep.core.models.step import Step

logger = logging.getLogger(__name__)


class Verifier:
    """Run check actions across a registry.

    Args:
        context: Base action context.
        timeout: Per-check bound in seconds; ``None`` is unbounded.
        max_workers: Checks run concurrently when greater than 1.
    """

    def __init__(
        self,
        context: ActionContext | None = None,
        timeout: float | None = None,
        max_workers: int = 1,
    ):
        self.context = context or ActionContext()
        self.timeout = timeout
        self.max_workers = max(1, max_workers)

    def verify(self, registry: StepRegistry) -> VerificationReport:
        """Check every step; one result per step, in registry order."""
        steps = registry.all()
        logger.info("Verifying %d step(s) (workers=%d)", len(steps), self.max_workers)

        if self.max_workers == 1 or len(steps) <= 1:
            results = [self._check(step) for step in steps]
        else:
            with ThreadPoolExecutor(
                max_workers=min(self.max_workers, len(steps)),
                thread_name_prefix="hostprep-verify",
            ) as pool:
                results = list(pool.map(self._check, steps))

        report = VerificationReport(entries=list(zip(steps, results)))
        logger.info("Verification: %d/%d satisfied", report.passed, report.total)
        return report

    def _check(self, step: Step) -> CheckResult:
        if step.check is None:
            return CheckResult(
                satisfied=False,
                diagnostic=f"no check action bound for step '{step.id}'",
                error_kind=ErrorKind.ACTION_NOT_FOUND,
            )

        ctx = self.context.for_invocation(step.id, "check", self.timeout)
        result = classify_check(invoke(step.check, ctx, self.timeout))
        logger.debug("%s %s", "✓" if result.satisfied else "✗", step.id)
        return result
