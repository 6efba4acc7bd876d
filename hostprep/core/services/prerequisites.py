"""
Preflight — host preconditions checked before any step runs.

A provisioning run needs a Linux host and, for configs that install
system packages, either root or passwordless sudo. Failing here aborts
the run before the first install, which is cheaper than discovering it
on step one and then failing every apt step after it.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class PreflightCheck:
    """Outcome of one precondition."""

    name: str
    ok: bool
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "ok": self.ok, "message": self.message}


@dataclass
class PreflightResult:
    """All preconditions; the run may start only if ``ok``."""

    checks: list[PreflightCheck] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(c.ok for c in self.checks)

    @property
    def failures(self) -> list[PreflightCheck]:
        return [c for c in self.checks if not c.ok]

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "checks": [c.to_dict() for c in self.checks]}


def check_platform(system: str | None = None) -> PreflightCheck:
    """The host must be Linux."""
    system = system or platform.system()
    if system == "Linux":
        return PreflightCheck(name="platform", ok=True, message="Linux system detected")
    return PreflightCheck(
        name="platform",
        ok=False,
        message=f"hostprep provisions Linux hosts only (found {system})",
    )


def check_sudo() -> PreflightCheck:
    """Root, or ``sudo -n true`` succeeds without a password prompt."""
    if os.geteuid() == 0:
        return PreflightCheck(name="sudo", ok=True, message="Running as root")

    if not shutil.which("sudo"):
        return PreflightCheck(name="sudo", ok=False, message="sudo is not installed")

    try:
        result = subprocess.run(
            ["sudo", "-n", "true"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        return PreflightCheck(name="sudo", ok=False, message=f"sudo probe failed: {e}")

    if result.returncode == 0:
        return PreflightCheck(name="sudo", ok=True, message="Passwordless sudo access verified")

    user = os.environ.get("USER", "<user>")
    return PreflightCheck(
        name="sudo",
        ok=False,
        message=(
            "Passwordless sudo is required. Run: "
            f"echo '{user} ALL=(ALL) NOPASSWD:ALL' | sudo tee /etc/sudoers.d/{user}"
        ),
    )


def run_preflight(requires_sudo: bool = True) -> PreflightResult:
    """Check every precondition for a provisioning run."""
    result = PreflightResult()
    result.checks.append(check_platform())
    if requires_sudo:
        result.checks.append(check_sudo())

    for check in result.checks:
        if check.ok:
            logger.info("Preflight %s: %s", check.name, check.message)
        else:
            logger.error("Preflight %s failed: %s", check.name, check.message)
    return result
