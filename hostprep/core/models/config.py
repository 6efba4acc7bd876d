"""
Provision config model — the declared step table.

Loaded from hostprep.yml. Steps are declared in execution order;
each names an install and a check action by kind, with the rest of
the mapping passed to the action as parameters:

    steps:
      - id: tmux
        description: "Tmux - Terminal multiplexer"
        install: {kind: apt, packages: [tmux]}
        check: {kind: command, name: tmux}
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ActionSpec(BaseModel):
    """Declaration of one action: a catalog kind plus its parameters."""

    model_config = ConfigDict(extra="allow")

    kind: str
    timeout: float | None = None

    @property
    def params(self) -> dict[str, Any]:
        """Everything except ``kind`` and ``timeout``."""
        return dict(self.model_extra or {})


class StepSpec(BaseModel):
    """A step declared in hostprep.yml."""

    id: str
    description: str = ""
    order: int | None = None
    install: ActionSpec | None = None
    check: ActionSpec | None = None


class Defaults(BaseModel):
    """Run-wide defaults, overridable from the CLI."""

    timeout: float = 600.0
    check_timeout: float = 30.0
    jobs: int = 1
    renderer: Literal["auto", "plain", "styled", "gum"] = "auto"
    requires_sudo: bool = True
    precheck: bool = False


class ProvisionConfig(BaseModel):
    """Root config — loaded from hostprep.yml."""

    version: int = 1

    name: str = "hostprep"
    description: str = ""

    defaults: Defaults = Field(default_factory=Defaults)
    env: dict[str, str] = Field(default_factory=dict)
    steps: list[StepSpec] = Field(default_factory=list)

    def get_step(self, step_id: str) -> StepSpec | None:
        """Look up a step declaration by id."""
        for step in self.steps:
            if step.id == step_id:
                return step
        return None
