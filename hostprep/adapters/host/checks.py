"""
Presence checks — side-effect-free check actions.

    command   tool on PATH (optionally at a known location, optionally
              with a version matching a pattern)
    file      one or more paths exist (optionally containing a string)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import validate_call

from hostprep.adapters.base import Action, ActionContext
from hostprep.adapters.host.probes import command_exists, file_exists, output_matches
from hostprep.core.models.receipt import Receipt


class CommandCheck(Action):
    """Satisfied when ``name`` resolves on PATH or at a fallback path.

    Args:
        name: Command to look up.
        fallback_paths: Files that also count as present
            (``~/.cargo/bin/rustc`` before the shell rc is reloaded).
        version_args: Arguments for a version probe, e.g. ``["--version"]``.
        version_pattern: Regex the probe output must match, e.g. ``^v24``.
    """

    @validate_call
    def __init__(
        self,
        name: str,
        fallback_paths: list[str] | None = None,
        version_args: list[str] | None = None,
        version_pattern: str | None = None,
    ):
        self.command = name
        self.fallback_paths = list(fallback_paths or [])
        self.version_args = list(version_args or ["--version"])
        self.version_pattern = version_pattern

    @property
    def name(self) -> str:
        return "command"

    def execute(self, context: ActionContext) -> Receipt:
        env = context.environ()
        found = command_exists(self.command, env)
        if found is None:
            for candidate in self.fallback_paths:
                if file_exists(context.expand(candidate)):
                    found = context.expand(candidate)
                    break

        if found is None:
            return Receipt.failure(action=self.name, error=f"{self.command} not found on PATH")

        if self.version_pattern:
            cmd = [found, *self.version_args]
            if not output_matches(cmd, self.version_pattern, env=env):
                return Receipt.failure(
                    action=self.name,
                    error=f"{self.command} version does not match {self.version_pattern!r}",
                    metadata={"path": found},
                )

        return Receipt.success(action=self.name, output=found, metadata={"path": found})


class FileCheck(Action):
    """Satisfied when every path exists (and contains ``contains``, if set)."""

    @validate_call
    def __init__(
        self,
        paths: list[str],
        contains: str | None = None,
        non_empty: bool = False,
    ):
        self.paths = list(paths)
        self.contains = contains
        self.non_empty = non_empty

    @property
    def name(self) -> str:
        return "file"

    def execute(self, context: ActionContext) -> Receipt:
        if not self.paths:
            return Receipt.failure(action=self.name, error="Missing required param: 'paths'")

        for raw in self.paths:
            path = context.expand(raw)
            if not file_exists(path, non_empty=self.non_empty):
                return Receipt.failure(action=self.name, error=f"{path} not found")
            if self.contains is not None:
                try:
                    text = Path(path).read_text(encoding="utf-8", errors="replace")
                except OSError as e:
                    return Receipt.failure(action=self.name, error=f"Cannot read {path}: {e}")
                if self.contains not in text:
                    return Receipt.failure(
                        action=self.name,
                        error=f"{path} does not contain {self.contains!r}",
                    )

        return Receipt.success(action=self.name, output=", ".join(self.paths))
