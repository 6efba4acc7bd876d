"""
Step registry — the ordered table of provisioning steps.

The registry is the single source of truth consulted by both the
orchestrator and the verifier. Neither reorders nor filters it; subset
selection goes through ``subset()`` and yields a new registry in the
same order.

Ordering: steps sort by ``order`` when declared, otherwise by their
registration index; ties are broken by registration index.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace

from hostprep.core.models.step import Step

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when the registry is malformed. Fatal before any step runs."""


class DuplicateIdError(RegistryError):
    """Raised when a step id is registered twice."""

    def __init__(self, step_id: str):
        super().__init__(f"Duplicate step id: {step_id}")
        self.step_id = step_id


class StepRegistry:
    """Ordered, id-unique collection of steps."""

    def __init__(self, steps: Iterable[Step] = ()):
        self._steps: dict[str, Step] = {}
        self._index: dict[str, int] = {}
        self._ordered: list[Step] | None = None
        for step in steps:
            self.register(step)

    def register(self, step: Step) -> None:
        """Add a step.

        Raises:
            DuplicateIdError: A step with the same id already exists.
        """
        if not step.id:
            raise RegistryError("Step id must not be empty")
        if step.id in self._steps:
            raise DuplicateIdError(step.id)
        self._index[step.id] = len(self._steps)
        self._steps[step.id] = step
        self._ordered = None
        logger.debug("Registered step: %s", step.id)

    def all(self) -> list[Step]:
        """All steps in declared execution order."""
        if self._ordered is None:
            def _key(step: Step) -> tuple[int, int]:
                idx = self._index[step.id]
                return (step.order if step.order is not None else idx, idx)

            self._ordered = sorted(self._steps.values(), key=_key)
        return list(self._ordered)

    def get(self, step_id: str) -> Step | None:
        """Look up a step by id."""
        return self._steps.get(step_id)

    def ids(self) -> list[str]:
        """Step ids in execution order."""
        return [s.id for s in self.all()]

    def unbound(self) -> list[str]:
        """Ids of steps missing an install or a check action, in order."""
        return [s.id for s in self.all() if not s.bound]

    def subset(self, step_ids: Iterable[str]) -> StepRegistry:
        """A new registry holding only ``step_ids``, in this registry's order.

        Raises:
            RegistryError: An id is not registered.
        """
        wanted = list(dict.fromkeys(step_ids))
        unknown = [sid for sid in wanted if sid not in self._steps]
        if unknown:
            raise RegistryError(f"Unknown step id(s): {', '.join(unknown)}")
        selected = set(wanted)
        # Pin positions so the subset cannot re-sort differently
        kept = [s for s in self.all() if s.id in selected]
        return StepRegistry(replace(s, order=i) for i, s in enumerate(kept))

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.all())

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._steps

    def __repr__(self) -> str:
        return f"<StepRegistry steps={len(self)}>"
