"""
Config block actions — marker-guarded edits to dotfiles.

The marker line makes the write idempotent: once a file contains it,
installs are skipped and checks pass.

Two modes:
    append   add the block to the end of the file (shell rc PATH setup)
    replace  write the block as the whole file (tmux.conf, starship.toml)

Replacing a file that exists without the marker destroys user content,
so what happens to that file is an explicit policy:

    timestamp   rename it to ``<path>.bak.<YYYYmmdd_HHMMSS>`` first (default)
    none        overwrite in place
    refuse      fail the step and leave the file untouched
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Literal

from pydantic import validate_call

from hostprep.adapters.base import Action, ActionContext
from hostprep.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

BackupPolicy = Literal["timestamp", "none", "refuse"]


def _has_marker(path: Path, marker: str) -> bool:
    try:
        return marker in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def backup_file(path: Path) -> Path:
    """Rename ``path`` to a timestamped sibling and return the new path."""
    ts = time.strftime("%Y%m%d_%H%M%S")
    dest = path.with_name(f"{path.name}.bak.{ts}")
    counter = 1
    while dest.exists():
        dest = path.with_name(f"{path.name}.bak.{ts}.{counter}")
        counter += 1
    path.rename(dest)
    logger.info("Backed up %s → %s", path, dest)
    return dest


class ConfigBlockAction(Action):
    """Write a marker-delimited block into a config file.

    Args:
        path: Target file (``~`` and ``$VARS`` expanded from the context).
        marker: Unique comment line identifying the managed block.
        content: Block body written after the marker.
        mode: ``append`` or ``replace``.
        backup: Policy for an existing unmarked file in ``replace`` mode.
    """

    @validate_call
    def __init__(
        self,
        path: str,
        marker: str,
        content: str,
        mode: Literal["append", "replace"] = "append",
        backup: BackupPolicy = "timestamp",
    ):
        self.path = path
        self.marker = marker
        self.content = content
        self.mode = mode
        self.backup = backup

    @property
    def name(self) -> str:
        return "config_block"

    def _block(self) -> str:
        body = self.content if self.content.endswith("\n") else self.content + "\n"
        return f"{self.marker}\n{body}"

    def execute(self, context: ActionContext) -> Receipt:
        target = Path(context.expand(self.path))

        if _has_marker(target, self.marker):
            return Receipt.skip(action=self.name, reason=f"{target} already configured")

        metadata: dict = {"path": str(target), "mode": self.mode}
        try:
            target.parent.mkdir(parents=True, exist_ok=True)

            if self.mode == "append":
                existing = target.read_text(encoding="utf-8") if target.exists() else ""
                separator = "\n" if existing and not existing.endswith("\n") else ""
                with target.open("a", encoding="utf-8") as f:
                    f.write(f"{separator}\n{self._block()}" if existing else self._block())
                return Receipt.success(
                    action=self.name,
                    output=f"Appended block to {target}",
                    metadata=metadata,
                )

            if target.exists():
                if self.backup == "refuse":
                    return Receipt.failure(
                        action=self.name,
                        error=f"{target} exists without marker and backup policy is 'refuse'",
                        metadata=metadata,
                    )
                if self.backup == "timestamp":
                    metadata["backup"] = str(backup_file(target))

            target.write_text(self._block(), encoding="utf-8")
            return Receipt.success(
                action=self.name,
                output=f"Wrote {target}",
                metadata=metadata,
            )
        except OSError as e:
            return Receipt.failure(
                action=self.name,
                error=f"Cannot write {target}: {e}",
                metadata=metadata,
            )


class ConfigBlockCheck(Action):
    """Satisfied when the file contains the marker."""

    @validate_call
    def __init__(self, path: str, marker: str):
        self.path = path
        self.marker = marker

    @property
    def name(self) -> str:
        return "config_block"

    def execute(self, context: ActionContext) -> Receipt:
        target = Path(context.expand(self.path))
        if _has_marker(target, self.marker):
            return Receipt.success(action=self.name, output=f"{target} configured")
        return Receipt.failure(action=self.name, error=f"marker not found in {target}")
