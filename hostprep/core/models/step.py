"""
Step model — the unit of provisioning work.

A step pairs an idempotent install action with a side-effect-free
check action. Steps are plain frozen dataclasses because they hold
live action objects rather than serialisable data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hostprep.adapters.base import Action


@dataclass(frozen=True)
class Step:
    """One named unit of provisioning work.

    Attributes:
        id: Unique, stable key (e.g. ``"nodejs"``).
        description: Human-readable label used in reports.
        install: Action that brings the host to the goal state.
            ``None`` means no implementation is bound.
        check: Action that reports whether the goal state holds.
            ``None`` means no implementation is bound.
        order: Explicit position in the execution order. When ``None``
            the registry uses the registration index.
    """

    id: str
    description: str = ""
    install: Action | None = None
    check: Action | None = None
    order: int | None = None

    @property
    def label(self) -> str:
        """Description, or the id when no description is set."""
        return self.description or self.id

    @property
    def bound(self) -> bool:
        """Whether both actions are bound."""
        return self.install is not None and self.check is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "order": self.order,
            "install": self.install.name if self.install else None,
            "check": self.check.name if self.check else None,
        }
