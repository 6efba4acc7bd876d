"""
APT package actions — install and verify Debian packages.

Packages are installed one at a time so a single broken package does
not block the rest; the install receipt lists which ones failed.
"""

from __future__ import annotations

import logging
import os
import subprocess

from pydantic import validate_call

from hostprep.adapters.base import Action, ActionContext
from hostprep.adapters.host.probes import dpkg_installed
from hostprep.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


class AptPackagesAction(Action):
    """Install missing packages with ``apt-get install -y -qq``.

    Skipped when every package is already installed.
    """

    @validate_call
    def __init__(
        self,
        packages: list[str],
        update: bool = True,
        sudo: bool = True,
        timeout: float | None = None,
    ):
        self.packages = list(packages)
        self.update = update
        self.sudo = sudo
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "apt"

    def _apt(self, args: list[str], context: ActionContext, timeout: float) -> tuple[bool, str]:
        cmd = ["apt-get", *args]
        if self.sudo and context.use_sudo and os.geteuid() != 0:
            cmd = ["sudo", "-n", *cmd]
        env = context.environ()
        env["DEBIAN_FRONTEND"] = "noninteractive"
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=timeout, env=env,
            )
        except subprocess.TimeoutExpired:
            return False, f"apt-get {args[0]} timed out after {timeout}s"
        except OSError as e:
            return False, str(e)
        if result.returncode != 0:
            return False, (result.stderr or "").strip()[-500:] or f"exit {result.returncode}"
        return True, ""

    def execute(self, context: ActionContext) -> Receipt:
        if not self.packages:
            return Receipt.failure(action=self.name, error="Missing required param: 'packages'")

        missing = [p for p in self.packages if not dpkg_installed(p)]
        if not missing:
            return Receipt.skip(
                action=self.name,
                reason=f"all {len(self.packages)} packages installed",
            )

        timeout = self.timeout or context.timeout or 600

        if self.update:
            ok, err = self._apt(["update", "-qq"], context, timeout)
            if not ok:
                logger.warning("apt-get update failed: %s", err)

        installed: list[str] = []
        failed: dict[str, str] = {}
        for pkg in missing:
            ok, err = self._apt(["install", "-y", "-qq", pkg], context, timeout)
            if ok:
                installed.append(pkg)
                logger.info("Installed %s", pkg)
            else:
                failed[pkg] = err
                logger.warning("Failed to install %s (continuing): %s", pkg, err)

        metadata = {"installed": installed, "failed": sorted(failed)}
        if failed:
            return Receipt.failure(
                action=self.name,
                error=f"{len(failed)} package(s) failed: {', '.join(sorted(failed))}",
                metadata=metadata,
            )
        return Receipt.success(
            action=self.name,
            output=f"Installed {len(installed)} package(s): {', '.join(installed)}",
            metadata=metadata,
        )


class AptPackagesCheck(Action):
    """Satisfied when every package is installed."""

    @validate_call
    def __init__(self, packages: list[str]):
        self.packages = list(packages)

    @property
    def name(self) -> str:
        return "apt"

    def execute(self, context: ActionContext) -> Receipt:
        missing = [p for p in self.packages if not dpkg_installed(p)]
        if missing:
            return Receipt.failure(
                action=self.name,
                error=f"missing: {', '.join(missing)}",
                metadata={"missing": missing},
            )
        return Receipt.success(action=self.name, output=f"{len(self.packages)} packages installed")
