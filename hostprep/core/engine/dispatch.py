"""
Action dispatch — invoke one action under a time bound.

This is the boundary where per-step errors stop. Whatever an action
does (returns a receipt, raises, hangs) the caller gets a Receipt back:

    returns         → the receipt, timed
    raises          → failure receipt, metadata["exception"]
    exceeds timeout → failure receipt, metadata["timeout"]

A timed-out action is not killed. It keeps running on its daemon
thread until it returns on its own; the engine simply stops waiting.
"""

from __future__ import annotations

import logging
import threading
import time

from hostprep.adapters.base import Action, ActionContext
from hostprep.core.models.outcome import CheckResult, ErrorKind, OutcomeStatus, RunOutcome
from hostprep.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


def _call(action: Action, context: ActionContext) -> Receipt:
    try:
        receipt = action.execute(context)
    except Exception as e:
        # Actions should never raise, but this is the boundary
        logger.error("Action %s raised during %s of %s: %s",
                     action.name, context.phase, context.step_id, e)
        return Receipt.failure(
            action=action.name,
            error=f"{type(e).__name__}: {e}",
            metadata={"exception": True},
        )
    if not isinstance(receipt, Receipt):
        return Receipt.failure(
            action=action.name,
            error=f"Action returned {type(receipt).__name__}, expected Receipt",
            metadata={"exception": True},
        )
    return receipt


def invoke(
    action: Action,
    context: ActionContext,
    timeout: float | None = None,
) -> Receipt:
    """Execute ``action`` and return its receipt. Never raises.

    Args:
        action: The action to run.
        context: Invocation context (already scoped to the step).
        timeout: Caller's bound in seconds. An action's own ``timeout``
            attribute takes precedence. ``None``, zero or negative
            means unbounded.
    """
    limit = action.timeout if action.timeout is not None else timeout
    if limit is not None and limit <= 0:
        limit = None
    start = time.monotonic()

    if limit is None:
        receipt = _call(action, context)
    else:
        box: list[Receipt] = []
        worker = threading.Thread(
            target=lambda: box.append(_call(action, context)),
            name=f"hostprep-{context.phase}-{context.step_id}",
            daemon=True,
        )
        worker.start()
        worker.join(limit)
        if worker.is_alive() or not box:
            logger.warning("%s of %s timed out after %ss", context.phase, context.step_id, limit)
            return Receipt.failure(
                action=action.name,
                error=f"Timed out after {limit}s",
                duration_ms=int((time.monotonic() - start) * 1000),
                metadata={"timeout": True},
            )
        receipt = box[0]

    elapsed_ms = int((time.monotonic() - start) * 1000)
    return receipt.model_copy(update={"duration_ms": receipt.duration_ms or elapsed_ms})


def _diagnostic(receipt: Receipt) -> str:
    return (receipt.error or receipt.output or "").strip()


def classify_install(receipt: Receipt) -> RunOutcome:
    """Map an install receipt onto a RunOutcome."""
    if receipt.ok:
        return RunOutcome(
            status=OutcomeStatus.INSTALLED,
            diagnostic=receipt.output.strip(),
            duration_ms=receipt.duration_ms,
        )
    if receipt.skipped:
        return RunOutcome(
            status=OutcomeStatus.SKIPPED,
            diagnostic=receipt.output.strip(),
            duration_ms=receipt.duration_ms,
        )
    kind = ErrorKind.TIMEOUT if receipt.metadata.get("timeout") else ErrorKind.INSTALL_FAILED
    return RunOutcome(
        status=OutcomeStatus.FAILED,
        diagnostic=_diagnostic(receipt),
        error_kind=kind,
        duration_ms=receipt.duration_ms,
    )


def classify_check(receipt: Receipt) -> CheckResult:
    """Map a check receipt onto a CheckResult."""
    if receipt.ok:
        return CheckResult(
            satisfied=True,
            diagnostic=receipt.output.strip(),
            duration_ms=receipt.duration_ms,
        )
    if receipt.metadata.get("timeout"):
        kind = ErrorKind.TIMEOUT
    elif receipt.metadata.get("exception"):
        kind = ErrorKind.CHECK_FAILED
    else:
        kind = ErrorKind.NOT_SATISFIED
    return CheckResult(
        satisfied=False,
        diagnostic=_diagnostic(receipt),
        error_kind=kind,
        duration_ms=receipt.duration_ms,
    )
