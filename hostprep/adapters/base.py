"""
Action base — the contract between the engine and concrete installers.

The engine only talks to install and check logic through this
protocol. It never shells out, reads files or probes packages itself.

Every invocation receives an ActionContext instead of reading ambient
process state, so environment overrides (PATH additions, NVM_DIR, ...)
are explicit and per run.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from hostprep.core.models.receipt import Receipt

_VAR_RE = re.compile(r"\$(\w+)|\$\{(\w+)\}")


def _expand_vars(value: str, env: dict[str, str]) -> str:
    """Substitute ``$NAME`` / ``${NAME}`` from env; unknown names are kept."""

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        return env.get(name, match.group(0))

    return _VAR_RE.sub(_sub, value)


class ActionContext(BaseModel):
    """Everything an action needs to execute.

    The engine builds one per run and narrows it per invocation with
    ``for_invocation``.
    """

    env: dict[str, str] = Field(default_factory=dict)
    home: str = Field(default_factory=lambda: str(Path.home()))
    # Elevation is permitted; actions still opt in with their own sudo flag
    use_sudo: bool = True
    timeout: float | None = None
    step_id: str = ""
    phase: Literal["install", "check"] = "install"

    def environ(self) -> dict[str, str]:
        """Process environment merged with this context's overrides.

        Override values may reference other variables (``$HOME/.cargo/bin``);
        they are expanded against the merged environment in declaration order.
        """
        merged = os.environ.copy()
        merged["HOME"] = self.home
        for key, value in self.env.items():
            merged[key] = _expand_vars(value, merged)
        return merged

    def expand(self, value: str) -> str:
        """Expand a leading ``~`` and ``$VARS`` in a path or command fragment."""
        if value == "~" or value.startswith("~/"):
            value = self.home + value[1:]
        return _expand_vars(value, self.environ())

    def for_invocation(
        self,
        step_id: str,
        phase: Literal["install", "check"],
        timeout: float | None,
    ) -> ActionContext:
        """Return a copy scoped to one step invocation."""
        return self.model_copy(
            update={"step_id": step_id, "phase": phase, "timeout": timeout}
        )


class Action(ABC):
    """Abstract base class for install and check actions.

    Actions perform (or probe) host side effects and return receipts.
    They NEVER raise exceptions: failures are captured in the Receipt.

    Install actions must be idempotent and return a skip receipt when
    the goal state already holds. Check actions must not mutate state;
    ``ok`` means satisfied.

    To create a new action:
        1. Subclass Action
        2. Implement name and execute
        3. Register a factory for it in the ActionCatalog
    """

    #: Per-action timeout in seconds. ``None`` defers to the engine.
    timeout: float | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """The action identifier (e.g., 'shell', 'command', 'apt')."""

    @abstractmethod
    def execute(self, context: ActionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class FunctionAction(Action):
    """Adapt a plain callable into an Action.

    The callable receives the context and may return:
        - a Receipt (used as-is)
        - ``True`` / ``False`` (ok / failed)
        - ``None`` (ok)
        - the string ``"skipped"`` (skip)
    """

    def __init__(
        self,
        fn: Callable[[ActionContext], Receipt | bool | str | None],
        name: str | None = None,
        timeout: float | None = None,
    ):
        self._fn = fn
        self._name = name or getattr(fn, "__name__", "function")
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self._name

    def execute(self, context: ActionContext) -> Receipt:
        result = self._fn(context)
        if isinstance(result, Receipt):
            return result
        if result == "skipped":
            return Receipt.skip(action=self.name, reason="already satisfied")
        if result is False:
            return Receipt.failure(action=self.name, error=f"{self.name} returned False")
        return Receipt.success(action=self.name)
