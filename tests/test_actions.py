"""
Tests for built-in actions — shell, config blocks, presence checks, catalog.
"""

import os
import stat
from pathlib import Path

import pytest

from hostprep.adapters.base import ActionContext, FunctionAction
from hostprep.adapters.catalog import (
    ActionCatalog,
    InvalidActionParams,
    UnknownActionKind,
    default_catalog,
)
from hostprep.adapters.host.checks import CommandCheck, FileCheck
from hostprep.adapters.host.packages import AptPackagesAction, AptPackagesCheck
from hostprep.adapters.host.probes import command_exists, command_output, file_exists, output_matches
from hostprep.adapters.mock import MockAction
from hostprep.adapters.shell.command import ShellCommandAction
from hostprep.adapters.shell.config_block import ConfigBlockAction, ConfigBlockCheck
from hostprep.core.models.config import ActionSpec
from hostprep.core.models.receipt import Receipt


def _tool(directory: Path, name: str, output: str) -> Path:
    """An executable script printing ``output``."""
    path = directory / name
    path.write_text(f"#!/bin/sh\necho '{output}'\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


# ── Action Context Tests ─────────────────────────────────────────────


class TestActionContext:
    def test_home_in_environ(self, context):
        assert context.environ()["HOME"] == context.home

    def test_env_overrides_expand(self, context):
        ctx = context.model_copy(update={"env": {"NVM_DIR": "$HOME/.nvm"}})
        assert ctx.environ()["NVM_DIR"] == f"{context.home}/.nvm"

    def test_path_prepend(self, context):
        ctx = context.model_copy(update={"env": {"PATH": "/opt/tools:${PATH}"}})
        path = ctx.environ()["PATH"]
        assert path.startswith("/opt/tools:")
        assert path != "/opt/tools:${PATH}"

    def test_unknown_vars_kept(self, context):
        assert context.expand("$HOSTPREP_NOT_SET/x") == "$HOSTPREP_NOT_SET/x"

    def test_expand_tilde(self, context):
        assert context.expand("~/.bashrc") == f"{context.home}/.bashrc"
        assert context.expand("/etc/hosts") == "/etc/hosts"

    def test_for_invocation(self, context):
        scoped = context.for_invocation("tmux", "check", 5)
        assert scoped.step_id == "tmux"
        assert scoped.phase == "check"
        assert scoped.timeout == 5
        assert context.step_id == ""


class TestFunctionAction:
    def test_return_values(self, context):
        assert FunctionAction(lambda c: None).execute(context).ok
        assert FunctionAction(lambda c: True).execute(context).ok
        assert FunctionAction(lambda c: False).execute(context).failed
        assert FunctionAction(lambda c: "skipped").execute(context).skipped

    def test_receipt_passthrough(self, context):
        action = FunctionAction(lambda c: Receipt.failure("custom", error="nope"))
        assert action.execute(context).error == "nope"

    def test_name(self):
        def install_zsh(ctx):
            return None

        assert FunctionAction(install_zsh).name == "install_zsh"
        assert FunctionAction(install_zsh, name="zsh").name == "zsh"


class TestMockAction:
    def test_default_success(self, context):
        mock = MockAction()
        assert mock.execute(context).ok
        assert mock.call_count == 1

    def test_queue_then_default(self, context):
        mock = MockAction(status="failed")
        mock.queue(Receipt.skip("mock"))
        assert mock.execute(context).skipped
        assert mock.execute(context).failed

    def test_reset(self, context):
        mock = MockAction()
        mock.execute(context)
        mock.reset()
        assert mock.call_count == 0


# ── Shell Command Tests ──────────────────────────────────────────────


class TestShellCommandAction:
    def test_success(self, context):
        receipt = ShellCommandAction("echo hello").execute(context)
        assert receipt.ok
        assert receipt.output == "hello"
        assert receipt.metadata["return_code"] == 0

    def test_failure(self, context):
        receipt = ShellCommandAction("echo oops >&2; exit 3").execute(context)
        assert receipt.failed
        assert receipt.error == "oops"
        assert receipt.metadata["return_code"] == 3

    def test_failure_without_stderr(self, context):
        receipt = ShellCommandAction("exit 2").execute(context)
        assert receipt.error == "Command exited with code 2"

    def test_missing_command(self, context):
        assert ShellCommandAction("").execute(context).failed

    def test_uses_context_env(self, context):
        ctx = context.model_copy(update={"env": {"GREETING": "hi"}})
        receipt = ShellCommandAction('test "$GREETING" = hi').execute(ctx)
        assert receipt.ok

    def test_cwd_expanded(self, context):
        receipt = ShellCommandAction("pwd", cwd="~").execute(context)
        assert receipt.output == os.path.realpath(context.home)

    def test_unless_guard_skips(self, context, tmp_path):
        marker = tmp_path / "ran"
        action = ShellCommandAction(f"touch {marker}", unless="true")
        receipt = action.execute(context)
        assert receipt.skipped
        assert not marker.exists()

    def test_unless_guard_runs_when_failing(self, context, tmp_path):
        marker = tmp_path / "ran"
        action = ShellCommandAction(f"touch {marker}", unless=f"test -f {marker}")
        assert action.execute(context).ok
        assert marker.exists()
        assert action.execute(context).skipped

    def test_timeout(self, context):
        receipt = ShellCommandAction("sleep 5", timeout=0.2).execute(context)
        assert receipt.failed
        assert receipt.metadata["timeout"] is True

    def test_no_shell_splits_argv(self, context):
        receipt = ShellCommandAction("echo 'a b'", shell=False).execute(context)
        assert receipt.output == "a b"

    def test_sudo_not_permitted_by_context(self, context):
        action = ShellCommandAction("true", sudo=True)
        ctx = context.model_copy(update={"use_sudo": False})
        assert action.execute(ctx).ok

    def test_argv_without_sudo(self):
        assert ShellCommandAction("x")._argv("x", sudo=False) == ["sh", "-c", "x"]


# ── Config Block Tests ───────────────────────────────────────────────


class TestConfigBlockAction:
    MARKER = "# hostprep: PATH setup"

    def test_append_creates_file(self, context):
        action = ConfigBlockAction("~/.bashrc", self.MARKER, 'export PATH="$HOME/.local/bin:$PATH"')
        receipt = action.execute(context)
        assert receipt.ok
        text = (Path(context.home) / ".bashrc").read_text()
        assert text.startswith(self.MARKER + "\n")
        assert "$HOME/.local/bin" in text

    def test_append_keeps_existing_content(self, context):
        rc = Path(context.home) / ".bashrc"
        rc.write_text("alias ll='ls -l'")
        ConfigBlockAction("~/.bashrc", self.MARKER, "export A=1").execute(context)
        text = rc.read_text()
        assert text.startswith("alias ll='ls -l'\n")
        assert self.MARKER in text

    def test_idempotent(self, context):
        action = ConfigBlockAction("~/.bashrc", self.MARKER, "export A=1")
        assert action.execute(context).ok
        before = (Path(context.home) / ".bashrc").read_text()
        assert action.execute(context).skipped
        assert (Path(context.home) / ".bashrc").read_text() == before

    def test_replace_with_timestamp_backup(self, context):
        conf = Path(context.home) / ".tmux.conf"
        conf.write_text("set -g mouse off\n")
        action = ConfigBlockAction("~/.tmux.conf", "# hostprep tmux", "set -g mouse on", mode="replace")
        receipt = action.execute(context)
        assert receipt.ok
        backup = Path(receipt.metadata["backup"])
        assert backup.name.startswith(".tmux.conf.bak.")
        assert backup.read_text() == "set -g mouse off\n"
        assert conf.read_text() == "# hostprep tmux\nset -g mouse on\n"

    def test_replace_refuse(self, context):
        conf = Path(context.home) / ".tmux.conf"
        conf.write_text("mine\n")
        action = ConfigBlockAction(
            "~/.tmux.conf", "# hostprep tmux", "x", mode="replace", backup="refuse"
        )
        receipt = action.execute(context)
        assert receipt.failed
        assert "refuse" in receipt.error
        assert conf.read_text() == "mine\n"

    def test_replace_none_overwrites(self, context):
        conf = Path(context.home) / ".tmux.conf"
        conf.write_text("mine\n")
        action = ConfigBlockAction(
            "~/.tmux.conf", "# hostprep tmux", "x", mode="replace", backup="none"
        )
        receipt = action.execute(context)
        assert receipt.ok
        assert "backup" not in receipt.metadata
        assert conf.read_text() == "# hostprep tmux\nx\n"
        assert list(Path(context.home).glob(".tmux.conf.bak.*")) == []

    def test_replace_missing_file_needs_no_backup(self, context):
        action = ConfigBlockAction(
            "~/.config/starship.toml", "# hostprep starship", "add_newline = false", mode="replace"
        )
        receipt = action.execute(context)
        assert receipt.ok
        assert (Path(context.home) / ".config" / "starship.toml").is_file()

    def test_check(self, context):
        check = ConfigBlockCheck("~/.bashrc", self.MARKER)
        assert check.execute(context).failed
        ConfigBlockAction("~/.bashrc", self.MARKER, "export A=1").execute(context)
        assert check.execute(context).ok


# ── Presence Check Tests ─────────────────────────────────────────────


class TestProbes:
    def test_command_exists(self):
        assert command_exists("sh") is not None
        assert command_exists("hostprep-definitely-missing") is None

    def test_command_exists_uses_env_path(self, tmp_path):
        _tool(tmp_path, "mytool", "mytool 1.0")
        assert command_exists("mytool", {"PATH": str(tmp_path)}) == str(tmp_path / "mytool")

    def test_file_exists(self, tmp_path):
        empty = tmp_path / "empty"
        empty.touch()
        assert file_exists(empty)
        assert not file_exists(empty, non_empty=True)
        assert not file_exists(tmp_path / "missing")

    def test_command_output(self, tmp_path):
        _tool(tmp_path, "mytool", "mytool v24.1.0")
        env = {"PATH": f"{tmp_path}:{os.environ.get('PATH', '')}"}
        assert command_output(["mytool", "--version"], env=env) == "mytool v24.1.0"
        assert output_matches(["mytool", "--version"], r"v24\.", env=env)
        assert not output_matches(["mytool", "--version"], r"v18", env=env)
        assert command_output(["hostprep-definitely-missing"]) is None


class TestCommandCheck:
    def test_found(self, context):
        receipt = CommandCheck("sh").execute(context)
        assert receipt.ok
        assert receipt.metadata["path"].endswith("/sh")

    def test_missing(self, context):
        receipt = CommandCheck("hostprep-definitely-missing").execute(context)
        assert receipt.failed
        assert "not found" in receipt.error

    def test_fallback_path(self, context):
        bin_dir = Path(context.home) / ".cargo" / "bin"
        bin_dir.mkdir(parents=True)
        _tool(bin_dir, "rustc-hostprep-test", "rustc 1.80.0")
        check = CommandCheck("rustc-hostprep-test", fallback_paths=["~/.cargo/bin/rustc-hostprep-test"])
        assert check.execute(context).ok

    def test_version_pattern(self, context, tmp_path):
        tools = tmp_path / "tools"
        tools.mkdir()
        _tool(tools, "node-hostprep-test", "v24.3.0")
        ctx = context.model_copy(update={"env": {"PATH": f"{tools}:$PATH"}})
        assert CommandCheck("node-hostprep-test", version_pattern=r"^v24").execute(ctx).ok
        wrong = CommandCheck("node-hostprep-test", version_pattern=r"^v18").execute(ctx)
        assert wrong.failed
        assert "version" in wrong.error


class TestFileCheck:
    def test_all_present(self, context):
        (Path(context.home) / ".zshrc").write_text("plugins=(git)\n")
        assert FileCheck(["~/.zshrc"]).execute(context).ok

    def test_one_missing(self, context):
        (Path(context.home) / ".zshrc").write_text("x")
        receipt = FileCheck(["~/.zshrc", "~/.oh-my-zsh"]).execute(context)
        assert receipt.failed
        assert ".oh-my-zsh" in receipt.error

    def test_contains(self, context):
        (Path(context.home) / ".zshrc").write_text("plugins=(git)\n")
        assert FileCheck(["~/.zshrc"], contains="plugins=").execute(context).ok
        assert FileCheck(["~/.zshrc"], contains="starship").execute(context).failed

    def test_no_paths(self, context):
        assert FileCheck([]).execute(context).failed


class TestAptActions:
    def test_install_skips_when_all_present(self, context, monkeypatch):
        monkeypatch.setattr("hostprep.adapters.host.packages.dpkg_installed", lambda p: True)
        receipt = AptPackagesAction(["tmux", "mosh"]).execute(context)
        assert receipt.skipped

    def test_install_reports_failed_packages(self, context, monkeypatch):
        monkeypatch.setattr("hostprep.adapters.host.packages.dpkg_installed", lambda p: p == "tmux")
        calls = []

        def fake_apt(self, args, ctx, timeout):
            calls.append(args)
            if args[0] == "install" and args[-1] == "broken":
                return False, "E: Unable to locate package broken"
            return True, ""

        monkeypatch.setattr(AptPackagesAction, "_apt", fake_apt)
        receipt = AptPackagesAction(["tmux", "mosh", "broken"]).execute(context)
        assert receipt.failed
        assert receipt.metadata == {"installed": ["mosh"], "failed": ["broken"]}
        assert calls[0] == ["update", "-qq"]
        assert ["install", "-y", "-qq", "tmux"] not in calls

    def test_install_success(self, context, monkeypatch):
        monkeypatch.setattr("hostprep.adapters.host.packages.dpkg_installed", lambda p: False)
        monkeypatch.setattr(AptPackagesAction, "_apt", lambda self, a, c, t: (True, ""))
        receipt = AptPackagesAction(["jq"], update=False).execute(context)
        assert receipt.ok
        assert receipt.metadata["installed"] == ["jq"]

    def test_check(self, context, monkeypatch):
        monkeypatch.setattr("hostprep.adapters.host.packages.dpkg_installed", lambda p: p != "mosh")
        receipt = AptPackagesCheck(["tmux", "mosh"]).execute(context)
        assert receipt.failed
        assert receipt.metadata["missing"] == ["mosh"]


# ── Catalog Tests ────────────────────────────────────────────────────


class TestActionCatalog:
    def test_default_kinds(self):
        catalog = default_catalog()
        assert catalog.kinds("install") == ["apt", "config_block", "shell"]
        assert catalog.kinds("check") == ["apt", "command", "config_block", "file", "shell"]

    def test_build(self):
        spec = ActionSpec.model_validate({"kind": "shell", "command": "true", "unless": "false"})
        action = default_catalog().build("install", spec)
        assert isinstance(action, ShellCommandAction)
        assert action.unless == "false"

    def test_build_applies_timeout(self):
        spec = ActionSpec.model_validate({"kind": "file", "paths": ["/etc"], "timeout": 3})
        action = default_catalog().build("check", spec)
        assert isinstance(action, FileCheck)
        assert action.timeout == 3

    def test_zero_timeout_runs_unbounded(self):
        from hostprep.core.engine.dispatch import invoke

        spec = ActionSpec.model_validate({"kind": "file", "paths": ["/"], "timeout": 0})
        action = default_catalog().build("check", spec)
        assert invoke(action, ActionContext()).ok

    def test_scalar_packages_rejected(self):
        spec = ActionSpec.model_validate({"kind": "apt", "packages": "tmux"})
        with pytest.raises(InvalidActionParams, match="packages"):
            default_catalog().build("install", spec)

    def test_unknown_kind(self):
        with pytest.raises(UnknownActionKind):
            default_catalog().build("install", ActionSpec(kind="brew"))

    def test_kind_is_per_phase(self):
        with pytest.raises(UnknownActionKind):
            default_catalog().build("install", ActionSpec(kind="command"))

    def test_invalid_params(self):
        spec = ActionSpec.model_validate({"kind": "apt", "pkgs": ["tmux"]})
        with pytest.raises(InvalidActionParams):
            default_catalog().build("install", spec)

    def test_shell_check_rejects_sudo(self):
        spec = ActionSpec.model_validate({"kind": "shell", "command": "true", "sudo": True})
        with pytest.raises(InvalidActionParams):
            default_catalog().build("check", spec)

    def test_custom_registration(self):
        catalog = ActionCatalog()
        catalog.register("install", "noop", lambda: MockAction("noop"))
        assert catalog.has("install", "noop")
        assert not catalog.has("check", "noop")
        assert catalog.build("install", ActionSpec(kind="noop")).name == "noop"
