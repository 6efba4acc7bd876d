"""
Provision use case — preflight, install, verify.

The full vertical slice behind ``hostprep run``: load config, select
steps, check host preconditions, run every install action in order,
then verify every step independently. The verification report decides
the exit code; install outcomes are informational.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from hostprep.adapters.base import ActionContext
from hostprep.adapters.catalog import ActionCatalog
from hostprep.core.config.loader import ConfigError
from hostprep.core.engine.orchestrator import Orchestrator, ProgressCallback
from hostprep.core.engine.registry import StepRegistry
from hostprep.core.engine.reports import RunReport, VerificationReport
from hostprep.core.engine.verifier import Verifier
from hostprep.core.models.config import ProvisionConfig
from hostprep.core.services.prerequisites import PreflightResult, run_preflight
from hostprep.core.use_cases.selection import bound, load_selection

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[StepRegistry], bool]


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    config: ProvisionConfig | None = None
    preflight: PreflightResult | None = None
    run: RunReport | None = None
    verification: VerificationReport | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.verification is not None
            and self.verification.all_satisfied
        )

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok}
        if self.error:
            result["error"] = self.error
        if self.config:
            result["name"] = self.config.name
        if self.warnings:
            result["warnings"] = self.warnings
        if self.preflight:
            result["preflight"] = self.preflight.to_dict()
        if self.run:
            result["run"] = self.run.to_dict()
        if self.verification:
            result["verification"] = self.verification.to_dict()
        return result


def run_provision(
    config_path: Path | None = None,
    only: list[str] | None = None,
    timeout: float | None = None,
    jobs: int | None = None,
    skip_prereqs: bool = False,
    confirm: ConfirmCallback | None = None,
    cancel: threading.Event | None = None,
    on_progress: ProgressCallback | None = None,
    catalog: ActionCatalog | None = None,
) -> ProvisionResult:
    """Provision the host from hostprep.yml.

    Args:
        config_path: Optional explicit path to hostprep.yml.
        only: Step ids to run. None = all (or ``HOSTPREP_STEPS``).
        timeout: Per-install timeout; overrides ``defaults.timeout``.
        jobs: Concurrent checks during verification; overrides ``defaults.jobs``.
        skip_prereqs: Skip the platform / sudo preflight.
        confirm: Asked once before the first install; returning False aborts.
        cancel: Set to stop before the next step.
        on_progress: Called after each install with its outcome.
        catalog: Optional action catalog (default: built-in kinds).

    Returns:
        ProvisionResult with run and verification reports.
    """
    result = ProvisionResult()

    # ── Load config and select steps ─────────────────────────────
    try:
        loaded, registry = load_selection(config_path, only, catalog)
    except ConfigError as e:
        result.error = str(e)
        return result

    config = loaded.config
    result.config = config
    result.warnings = list(loaded.warnings)
    # Unbound actions are reported before anything runs
    for warning in loaded.warnings:
        logger.warning(warning)

    # ── Preflight ────────────────────────────────────────────────
    if not skip_prereqs:
        result.preflight = run_preflight(requires_sudo=config.defaults.requires_sudo)
        if not result.preflight.ok:
            reasons = "; ".join(c.message for c in result.preflight.failures)
            result.error = f"Preflight failed: {reasons}"
            return result

    if confirm is not None and not confirm(registry):
        result.error = "Aborted by user."
        return result

    # ── Install, then verify ─────────────────────────────────────
    context = ActionContext(env=config.env, use_sudo=config.defaults.requires_sudo)
    check_timeout = bound(config.defaults.check_timeout)

    orchestrator = Orchestrator(
        context=context,
        timeout=bound(timeout if timeout is not None else config.defaults.timeout),
        check_timeout=check_timeout,
        precheck=config.defaults.precheck,
        cancel=cancel,
        on_progress=on_progress,
    )
    result.run = orchestrator.run(registry)

    verifier = Verifier(
        context=context,
        timeout=check_timeout,
        max_workers=jobs if jobs is not None else config.defaults.jobs,
    )
    result.verification = verifier.verify(registry)

    logger.info(
        "Provisioning finished: run=%s, verified %d/%d",
        result.run.status,
        result.verification.passed,
        result.verification.total,
    )
    return result
