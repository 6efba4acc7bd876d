"""
Configuration loader — reads hostprep.yml into a step registry.

This is the primary entry point for loading provisioning configuration.
It reads YAML, validates against Pydantic schemas, resolves every
declared action through the action catalog, and returns a ready
StepRegistry.

Structural problems (bad YAML, duplicate ids, bad action parameters)
raise ConfigError and abort before any step runs. An action kind the
catalog does not know leaves that action unbound; the step is still
registered and reports ``ActionNotFound`` when it is reached.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from hostprep.adapters.base import Action
from hostprep.adapters.catalog import (
    ActionCatalog,
    InvalidActionParams,
    Phase,
    UnknownActionKind,
    default_catalog,
)
from hostprep.core.engine.registry import RegistryError, StepRegistry
from hostprep.core.models.config import ActionSpec, ProvisionConfig, StepSpec
from hostprep.core.models.step import Step

logger = logging.getLogger(__name__)

# Default config filenames, in lookup order
CONFIG_FILES = ("hostprep.yml", "hostprep.yaml")

CONFIG_ENV = "HOSTPREP_CONFIG"


class ConfigError(Exception):
    """Raised when provisioning configuration is invalid or missing."""


@dataclass
class LoadedRegistry:
    """A built registry plus the non-fatal issues found while building it."""

    registry: StepRegistry
    config: ProvisionConfig
    warnings: list[str] = field(default_factory=list)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Locate hostprep.yml.

    ``HOSTPREP_CONFIG`` wins when set. Otherwise searches from the
    given directory (default: cwd) upward, so commands work from
    subdirectories of a dotfiles repo.

    Returns:
        Path to the config file, or None if not found.
    """
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)

    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        for name in CONFIG_FILES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> ProvisionConfig:
    """Load and validate provisioning configuration.

    Args:
        path: Explicit path to hostprep.yml. If None, searches upward.

    Returns:
        Validated ProvisionConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {CONFIG_FILES[0]} found. "
            f"Create one, set {CONFIG_ENV}, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading provisioning config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = ProvisionConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid provisioning configuration: {e}") from e

    logger.info("Loaded config '%s' with %d steps", config.name, len(config.steps))
    return config


def _resolve_action(
    catalog: ActionCatalog,
    phase: Phase,
    step: StepSpec,
    spec: ActionSpec | None,
    warnings: list[str],
) -> Action | None:
    if spec is None:
        warnings.append(f"Step '{step.id}' has no {phase} action")
        return None
    try:
        return catalog.build(phase, spec)
    except UnknownActionKind:
        warnings.append(
            f"Step '{step.id}': unknown {phase} action kind '{spec.kind}' "
            f"(known: {', '.join(catalog.kinds(phase))})"
        )
        return None
    except InvalidActionParams as e:
        raise ConfigError(f"Step '{step.id}': {e}") from e


def build_registry(
    config: ProvisionConfig,
    catalog: ActionCatalog | None = None,
) -> LoadedRegistry:
    """Turn declared steps into a StepRegistry.

    Raises:
        ConfigError: Duplicate step ids or invalid action parameters.
    """
    catalog = catalog or default_catalog()
    warnings: list[str] = []
    registry = StepRegistry()

    for spec in config.steps:
        install = _resolve_action(catalog, "install", spec, spec.install, warnings)
        check = _resolve_action(catalog, "check", spec, spec.check, warnings)
        step = Step(
            id=spec.id,
            description=spec.description,
            install=install,
            check=check,
            order=spec.order,
        )
        try:
            registry.register(step)
        except RegistryError as e:
            raise ConfigError(str(e)) from e

    if not config.steps:
        warnings.append("No steps defined. There is nothing to provision.")

    return LoadedRegistry(registry=registry, config=config, warnings=warnings)


def load_registry(
    path: Path | None = None,
    catalog: ActionCatalog | None = None,
) -> LoadedRegistry:
    """Load hostprep.yml and build its registry in one call."""
    return build_registry(load_config(path), catalog)
