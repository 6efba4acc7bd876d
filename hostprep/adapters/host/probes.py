"""
Host probes — read-only presence detection.

Is a command on PATH, does a file exist, is a dpkg package installed,
what does ``<tool> --version`` print. Used by actions, never by the
engine directly. Probes never raise and never mutate the host.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def command_exists(name: str, env: dict[str, str] | None = None) -> str | None:
    """Return the resolved path of ``name`` on PATH, or None.

    When ``env`` is given its PATH is searched instead of the
    process PATH, so context overrides (``~/.cargo/bin``) are seen.
    """
    path = (env or os.environ).get("PATH")
    return shutil.which(name, path=path)


def file_exists(path: str | Path, non_empty: bool = False) -> bool:
    """Whether ``path`` exists; with ``non_empty``, also that it has content."""
    target = Path(path)
    if not target.exists():
        return False
    if non_empty and target.is_file():
        return target.stat().st_size > 0
    return True


def dpkg_installed(package: str, timeout: float = 10) -> bool:
    """Whether dpkg records ``package`` as installed."""
    if not shutil.which("dpkg-query"):
        return False
    try:
        result = subprocess.run(
            ["dpkg-query", "-W", "-f=${Status}", package],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug("dpkg-query failed for %s: %s", package, e)
        return False
    return result.returncode == 0 and "install ok installed" in result.stdout


def command_output(
    cmd: list[str],
    env: dict[str, str] | None = None,
    timeout: float = 10,
) -> str | None:
    """Run a read-only command and return combined output, or None on failure.

    Some tools print their version to stderr, so both streams are kept.
    """
    if not command_exists(cmd[0], env):
        return None
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug("Probe %s failed: %s", cmd, e)
        return None
    if result.returncode != 0:
        return None
    return ((result.stdout or "") + (result.stderr or "")).strip()


def output_matches(
    cmd: list[str],
    pattern: str,
    env: dict[str, str] | None = None,
    timeout: float = 10,
) -> bool:
    """Whether ``cmd`` succeeds and its output matches ``pattern``.

    E.g. ``output_matches(["node", "--version"], r"^v24")``.
    """
    output = command_output(cmd, env=env, timeout=timeout)
    if output is None:
        return False
    return re.search(pattern, output, re.MULTILINE) is not None
