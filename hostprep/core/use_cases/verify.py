"""
Verify use case — check every step without installing anything.

Behind ``hostprep verify`` ("doctor" mode). Needs no sudo and runs no
preflight: checks only observe the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from hostprep.adapters.base import ActionContext
from hostprep.adapters.catalog import ActionCatalog
from hostprep.core.config.loader import ConfigError
from hostprep.core.engine.reports import VerificationReport
from hostprep.core.engine.verifier import Verifier
from hostprep.core.models.config import ProvisionConfig
from hostprep.core.use_cases.selection import bound, load_selection


@dataclass
class VerifyResult:
    """Result of a verification-only pass."""

    config: ProvisionConfig | None = None
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
            return result
        if self.config:
            result["name"] = self.config.name
        if self.warnings:
            result["warnings"] = self.warnings
        if self.verification:
            result["verification"] = self.verification.to_dict()
        return result


def run_verification(
    config_path: Path | None = None,
    only: list[str] | None = None,
    jobs: int | None = None,
    catalog: ActionCatalog | None = None,
) -> VerifyResult:
    """Verify the selected steps against the current host."""
    result = VerifyResult()

    try:
        loaded, registry = load_selection(config_path, only, catalog)
    except ConfigError as e:
        result.error = str(e)
        return result

    config = loaded.config
    result.config = config
    result.warnings = list(loaded.warnings)

    verifier = Verifier(
        context=ActionContext(env=config.env),
        timeout=bound(config.defaults.check_timeout),
        max_workers=jobs if jobs is not None else config.defaults.jobs,
    )
    result.verification = verifier.verify(registry)
    return result
