"""
Steps use case — list the registry in execution order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from hostprep.core.config.loader import ConfigError, load_registry
from hostprep.core.models.config import ProvisionConfig
from hostprep.core.models.step import Step


@dataclass
class StepListResult:
    """Steps in execution order, with binding status."""

    config: ProvisionConfig | None = None
    steps: list[Step] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "name": self.config.name if self.config else "",
            "steps": [
                {"position": i, **step.to_dict(), "bound": step.bound}
                for i, step in enumerate(self.steps, start=1)
            ],
            "warnings": self.warnings,
        }


def list_steps(config_path: Path | None = None) -> StepListResult:
    """Load hostprep.yml and return its steps in execution order."""
    result = StepListResult()
    try:
        loaded = load_registry(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.config = loaded.config
    result.steps = loaded.registry.all()
    result.warnings = list(loaded.warnings)
    return result
