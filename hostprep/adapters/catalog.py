"""
Action catalog — maps declared action kinds to implementations.

The catalog is the single point where ``kind: apt`` in hostprep.yml
becomes an ``AptPackagesAction``. Resolution happens once, while the
step registry is built, so a misspelled kind is known before any
step runs rather than discovered half-way through a provisioning run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

from pydantic import ValidationError

from hostprep.adapters.base import Action
from hostprep.adapters.host.checks import CommandCheck, FileCheck
from hostprep.adapters.host.packages import AptPackagesAction, AptPackagesCheck
from hostprep.adapters.shell.command import ShellCommandAction
from hostprep.adapters.shell.config_block import ConfigBlockAction, ConfigBlockCheck
from hostprep.core.models.config import ActionSpec

logger = logging.getLogger(__name__)

Phase = Literal["install", "check"]
ActionFactory = Callable[..., Action]


class UnknownActionKind(KeyError):
    """Raised when a spec names a kind the catalog has no factory for."""


class InvalidActionParams(ValueError):
    """Raised when a factory rejects the declared parameters."""


class ActionCatalog:
    """Registry of action factories keyed by (phase, kind)."""

    def __init__(self) -> None:
        self._factories: dict[tuple[str, str], ActionFactory] = {}

    def register(self, phase: Phase, kind: str, factory: ActionFactory) -> None:
        """Register a factory for a kind in one phase."""
        key = (phase, kind)
        if key in self._factories:
            logger.warning("Overwriting existing %s action kind: %s", phase, kind)
        self._factories[key] = factory
        logger.debug("Registered %s action kind: %s", phase, kind)

    def kinds(self, phase: Phase) -> list[str]:
        """List registered kinds for a phase."""
        return sorted(k for p, k in self._factories if p == phase)

    def has(self, phase: Phase, kind: str) -> bool:
        return (phase, kind) in self._factories

    def build(self, phase: Phase, spec: ActionSpec) -> Action:
        """Instantiate the action declared by ``spec``.

        Raises:
            UnknownActionKind: No factory for ``spec.kind`` in this phase.
            InvalidActionParams: The factory rejected the parameters.
        """
        factory = self._factories.get((phase, spec.kind))
        if factory is None:
            raise UnknownActionKind(spec.kind)

        params: dict[str, Any] = spec.params
        try:
            action = factory(**params)
        except ValidationError as e:
            raise InvalidActionParams(
                f"{phase} action '{spec.kind}': {_describe(e)}"
            ) from e
        except TypeError as e:
            raise InvalidActionParams(f"{phase} action '{spec.kind}': {e}") from e

        if spec.timeout is not None:
            action.timeout = spec.timeout
        return action


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )


def _shell_check(
    command: str,
    shell: bool = True,
    cwd: str | None = None,
) -> ShellCommandAction:
    # A check never escalates and never guards
    return ShellCommandAction(command, shell=shell, cwd=cwd)


def default_catalog() -> ActionCatalog:
    """Catalog with every built-in action kind registered."""
    catalog = ActionCatalog()

    catalog.register("install", "shell", ShellCommandAction)
    catalog.register("install", "apt", AptPackagesAction)
    catalog.register("install", "config_block", ConfigBlockAction)

    catalog.register("check", "shell", _shell_check)
    catalog.register("check", "command", CommandCheck)
    catalog.register("check", "file", FileCheck)
    catalog.register("check", "apt", AptPackagesCheck)
    catalog.register("check", "config_block", ConfigBlockCheck)

    return catalog
