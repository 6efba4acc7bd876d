"""
Step selection — load the config and narrow it to the requested steps.

Shared by the provision and verify use cases. The subset comes from
``--only`` on the command line, or ``HOSTPREP_STEPS`` (comma-separated)
when no ``--only`` is given.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from hostprep.adapters.catalog import ActionCatalog
from hostprep.core.config.loader import ConfigError, LoadedRegistry, load_registry
from hostprep.core.engine.registry import RegistryError, StepRegistry

STEPS_ENV = "HOSTPREP_STEPS"


def steps_from_env() -> list[str]:
    """Step ids named in ``HOSTPREP_STEPS``, or an empty list."""
    raw = os.environ.get(STEPS_ENV, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


def load_selection(
    config_path: Path | None = None,
    only: Iterable[str] | None = None,
    catalog: ActionCatalog | None = None,
) -> tuple[LoadedRegistry, StepRegistry]:
    """Load hostprep.yml and return it with the selected registry.

    Raises:
        ConfigError: Invalid config, or ``only`` names an unknown step.
    """
    loaded = load_registry(config_path, catalog)

    wanted = list(only) if only else steps_from_env()
    if not wanted:
        return loaded, loaded.registry

    try:
        return loaded, loaded.registry.subset(wanted)
    except RegistryError as e:
        raise ConfigError(str(e)) from e


def bound(seconds: float | None) -> float | None:
    """Zero or negative timeouts mean unbounded."""
    if seconds is None or seconds <= 0:
        return None
    return seconds
