"""
Shell command action — run a command and capture its output.

This is the most fundamental action: install steps that are
"curl | sh" pipelines and check steps that are "exit 0 means present"
are both expressed with it.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time

from pydantic import validate_call

from hostprep.adapters.base import Action, ActionContext
from hostprep.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300

# Output kept on receipts is truncated to the tail
_MAX_OUTPUT = 2000


class ShellCommandAction(Action):
    """Execute a shell command and capture output.

    Args:
        command: The command to execute.
        shell: Run through ``sh -c`` (default) or split into argv.
        cwd: Working directory (``~`` and ``$VARS`` are expanded).
        sudo: Prefix with non-interactive ``sudo -n`` unless already root.
        unless: Guard command; when it exits 0 the action is skipped
            without running ``command``. Makes non-idempotent installers
            (``curl | sh``) safe to re-run.
        timeout: Seconds before the command is abandoned.
    """

    @validate_call
    def __init__(
        self,
        command: str,
        shell: bool = True,
        cwd: str | None = None,
        sudo: bool = False,
        unless: str | None = None,
        timeout: float | None = None,
        action_name: str = "shell",
    ):
        self.command = command
        self.shell = shell
        self.cwd = cwd
        self.sudo = sudo
        self.unless = unless
        self.timeout = timeout
        self._name = action_name

    @property
    def name(self) -> str:
        return self._name

    def execute(self, context: ActionContext) -> Receipt:
        if not self.command:
            return Receipt.failure(action=self.name, error="Missing required param: 'command'")

        timeout = self.timeout or context.timeout or DEFAULT_TIMEOUT

        if self.unless:
            guard = self._run(self.unless, context, timeout, sudo=False)
            if guard.ok:
                return Receipt.skip(
                    action=self.name,
                    reason=f"guard passed: {self.unless}",
                    metadata={"command": self.command, "guard": self.unless},
                )

        return self._run(self.command, context, timeout, sudo=self.sudo and context.use_sudo)

    def _argv(self, command: str, sudo: bool) -> list[str]:
        argv = ["sh", "-c", command] if self.shell else shlex.split(command)
        if sudo and os.geteuid() != 0:
            argv = ["sudo", "-n", "--preserve-env=PATH"] + argv
        return argv

    def _run(
        self,
        command: str,
        context: ActionContext,
        timeout: float,
        sudo: bool,
    ) -> Receipt:
        cwd = context.expand(self.cwd) if self.cwd else None
        argv = self._argv(command, sudo)

        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                cwd=cwd,
                env=context.environ(),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                action=self.name,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command, "timeout": True},
            )
        except Exception as e:
            return Receipt.failure(
                action=self.name,
                error=f"Command execution error: {e}",
                metadata={"command": command},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = result.stdout.strip()[-_MAX_OUTPUT:]
        stderr = result.stderr.strip()[-_MAX_OUTPUT:]

        if result.returncode == 0:
            return Receipt.success(
                action=self.name,
                output=output,
                duration_ms=elapsed_ms,
                metadata={
                    "command": command,
                    "return_code": result.returncode,
                    "stderr": stderr,
                },
            )

        return Receipt.failure(
            action=self.name,
            error=stderr or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={
                "command": command,
                "return_code": result.returncode,
                "stdout": output,
            },
        )
