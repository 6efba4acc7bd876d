"""
Config check use case — validate hostprep.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from hostprep.adapters.catalog import ActionCatalog
from hostprep.core.config.loader import ConfigError, build_registry, find_config_file, load_config
from hostprep.core.models.config import ProvisionConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: ProvisionConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    unbound: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "unbound": self.unbound,
            "name": self.config.name if self.config else None,
            "step_count": len(self.config.steps) if self.config else 0,
        }


def check_config(
    config_path: Path | None = None,
    catalog: ActionCatalog | None = None,
) -> ConfigCheckResult:
    """Validate provisioning configuration and report issues.

    Args:
        config_path: Optional explicit path to hostprep.yml.
        catalog: Optional action catalog (default: built-in kinds).

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        result.errors.append("No hostprep.yml found.")
        return result
    result.config_path = config_path

    # Load and validate
    try:
        config = load_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Resolve actions
    try:
        loaded = build_registry(config, catalog)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.warnings.extend(loaded.warnings)
    result.unbound = loaded.registry.unbound()

    # Semantic checks
    orders = [s.order for s in config.steps if s.order is not None]
    clashes = sorted({o for o in orders if orders.count(o) > 1})
    if clashes:
        result.warnings.append(
            "Steps share an order value: "
            + ", ".join(str(o) for o in clashes)
            + ". Ties run in declaration order."
        )

    for key in config.env:
        if not key.isidentifier():
            result.warnings.append(f"Environment override '{key}' is not a valid variable name")

    result.valid = len(result.errors) == 0
    return result
