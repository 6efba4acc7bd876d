"""
Report renderers — turn run + verification reports into text.

Strategies:
    PlainRenderer   plain ``[OK]`` / ``[FAIL]`` lines, always available
    StyledRenderer  the same layout with ANSI colour (via click.style)
    GumRenderer     boxed header/summary drawn by the external ``gum``
                    binary; falls back to plain framing if gum fails

The choice is made once per invocation, by ``select_renderer``.
Renderers never decide success: the verification report does. A step
whose install failed but which verifies as satisfied is shown as OK
with the install failure noted next to it.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass

import click

from hostprep.core.engine.reports import RunReport, VerificationReport
from hostprep.core.models.outcome import OutcomeStatus, RunOutcome

logger = logging.getLogger(__name__)

TITLE = "Installation Verification Report"
_RULE = "-" * 46
_BANNER = "=" * 46


@dataclass
class _Row:
    label: str
    satisfied: bool
    install: str
    detail: str


def _install_text(outcome: RunOutcome | None) -> str:
    if outcome is None:
        return ""
    if outcome.status is OutcomeStatus.INSTALLED:
        return "installed"
    if outcome.status is OutcomeStatus.SKIPPED:
        return "already present"
    kind = outcome.error_kind.value if outcome.error_kind else "failed"
    return f"install failed ({kind})"


def _rows(run: RunReport | None, verification: VerificationReport) -> list[_Row]:
    rows = []
    for step, result in verification.entries:
        outcome = run.outcome_for(step.id) if run is not None else None
        detail = "" if result.satisfied else result.diagnostic
        if not result.satisfied and result.error_kind is not None:
            detail = f"{result.error_kind.value}: {detail}" if detail else result.error_kind.value
        rows.append(
            _Row(
                label=step.label,
                satisfied=result.satisfied,
                install=_install_text(outcome),
                detail=detail,
            )
        )
    return rows


def summary_line(verification: VerificationReport) -> str:
    """``"2 of 3 succeeded"`` — counts come from verification only."""
    return f"{verification.passed} of {verification.total} succeeded"


def tally_line(verification: VerificationReport) -> str:
    return (
        f"Results: {verification.passed} passed, {verification.failed} failed "
        f"out of {verification.total}"
    )


class Renderer(ABC):
    """Strategy interface for report rendering."""

    name: str = ""

    @abstractmethod
    def render(self, run: RunReport | None, verification: VerificationReport) -> str:
        """Render both reports. ``run`` is None in verify-only mode."""


class PlainRenderer(Renderer):
    """Plain text, no escape codes. Always available."""

    name = "plain"

    def header(self) -> list[str]:
        return [_BANNER, f"  {TITLE}", _BANNER]

    def step_line(self, row: _Row) -> str:
        marker = "[OK]" if row.satisfied else "[FAIL]"
        parts = [f"{marker} {row.label}"]
        if row.install:
            parts.append(f"({row.install})")
        if row.detail:
            parts.append(f"- {row.detail}")
        return " ".join(parts)

    def footer(self, verification: VerificationReport) -> list[str]:
        closing = (
            "All steps verified successfully!"
            if verification.all_satisfied
            else "Some steps are not satisfied. Review the output above."
        )
        return [_RULE, tally_line(verification), summary_line(verification), _RULE, closing]

    def render(self, run: RunReport | None, verification: VerificationReport) -> str:
        lines = self.header()
        lines.extend(self.step_line(row) for row in _rows(run, verification))
        if run is not None and run.cancelled:
            lines.append("Run was cancelled; remaining steps were not attempted.")
        lines.extend(self.footer(verification))
        return "\n".join(lines)


class StyledRenderer(PlainRenderer):
    """Plain layout with ANSI colour."""

    name = "styled"

    def header(self) -> list[str]:
        return [click.style(line, fg="cyan", bold=True) for line in super().header()]

    def step_line(self, row: _Row) -> str:
        if row.satisfied:
            marker = click.style("✓", fg="green", bold=True)
        else:
            marker = click.style("✗", fg="red", bold=True)
        line = f"{marker} {row.label}"
        if row.install:
            colour = "red" if row.install.startswith("install failed") else "bright_black"
            line += " " + click.style(f"({row.install})", fg=colour)
        if row.detail:
            line += "\n    " + click.style(row.detail, fg="yellow")
        return line

    def footer(self, verification: VerificationReport) -> list[str]:
        colour = "green" if verification.all_satisfied else "red"
        lines = super().footer(verification)
        lines[1] = (
            click.style("Results: ", bold=True)
            + click.style(f"{verification.passed} passed", fg="green")
            + ", "
            + click.style(f"{verification.failed} failed", fg="red")
            + f" out of {verification.total}"
        )
        lines[2] = click.style(lines[2], fg=colour, bold=True)
        lines[4] = click.style(lines[4], fg=colour, bold=True)
        return lines


class GumRenderer(StyledRenderer):
    """Styled renderer with boxes drawn by ``gum style``."""

    name = "gum"

    def __init__(self, gum_path: str = "gum"):
        self.gum_path = gum_path

    def _gum_box(self, text: str, colour: str) -> str | None:
        try:
            result = subprocess.run(
                [
                    self.gum_path, "style",
                    "--border", "rounded",
                    "--padding", "1 2",
                    "--border-foreground", colour,
                    text,
                ],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("gum style failed: %s", e)
            return None
        if result.returncode != 0:
            logger.debug("gum style exited %d: %s", result.returncode, result.stderr.strip())
            return None
        return result.stdout.rstrip("\n")

    def header(self) -> list[str]:
        boxed = self._gum_box(TITLE, "212")
        return [boxed] if boxed is not None else PlainRenderer.header(self)

    def footer(self, verification: VerificationReport) -> list[str]:
        colour = "82" if verification.all_satisfied else "196"
        boxed = self._gum_box(
            f"{tally_line(verification)}\n{summary_line(verification)}", colour
        )
        if boxed is None:
            return PlainRenderer.footer(self, verification)
        return [boxed]


def gum_available() -> str | None:
    """Path to the gum binary, if installed."""
    return shutil.which("gum")


def select_renderer(preference: str = "auto", isatty: bool | None = None) -> Renderer:
    """Pick a renderer once, by preference and capability.

    ``auto`` uses gum when it is installed and stdout is a terminal,
    colour when stdout is a terminal, and plain text otherwise. An
    explicit ``gum`` preference without gum installed degrades to plain.
    """
    if isatty is None:
        isatty = sys.stdout.isatty()

    if preference == "plain":
        return PlainRenderer()
    if preference == "styled":
        return StyledRenderer()
    if preference == "gum":
        gum = gum_available()
        if gum:
            return GumRenderer(gum)
        logger.warning("gum renderer requested but gum is not installed; using plain output")
        return PlainRenderer()

    if not isatty:
        return PlainRenderer()
    gum = gum_available()
    if gum:
        return GumRenderer(gum)
    return StyledRenderer()
