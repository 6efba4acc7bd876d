"""
Tests for config loading — hostprep.yml → ProvisionConfig → StepRegistry.
"""

from pathlib import Path

import pytest

from hostprep.adapters.host.packages import AptPackagesAction
from hostprep.adapters.shell.command import ShellCommandAction
from hostprep.core.config.loader import (
    ConfigError,
    build_registry,
    find_config_file,
    load_config,
    load_registry,
)
from hostprep.core.models.config import ProvisionConfig
from hostprep.core.use_cases.config_check import check_config


class TestFindConfigFile:
    def test_in_start_dir(self, tmp_path: Path):
        (tmp_path / "hostprep.yml").write_text("steps: []\n")
        assert find_config_file(tmp_path) == tmp_path / "hostprep.yml"

    def test_yaml_extension(self, tmp_path: Path):
        (tmp_path / "hostprep.yaml").write_text("steps: []\n")
        assert find_config_file(tmp_path) == tmp_path / "hostprep.yaml"

    def test_walks_up(self, tmp_path: Path):
        (tmp_path / "hostprep.yml").write_text("steps: []\n")
        nested = tmp_path / "dotfiles" / "zsh"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == tmp_path / "hostprep.yml"

    def test_env_var_wins(self, tmp_path: Path, monkeypatch):
        (tmp_path / "hostprep.yml").write_text("steps: []\n")
        other = tmp_path / "other.yml"
        monkeypatch.setenv("HOSTPREP_CONFIG", str(other))
        assert find_config_file(tmp_path) == other


class TestLoadConfig:
    def test_valid(self, write_config):
        path = write_config("""\
            name: laptop
            description: "Dev laptop"
            defaults:
              timeout: 120
              jobs: 4
            env:
              NVM_DIR: "$HOME/.nvm"
            steps:
              - id: tmux
                description: "Tmux - Terminal multiplexer"
                install: {kind: apt, packages: [tmux]}
                check: {kind: command, name: tmux}
        """)
        config = load_config(path)
        assert config.name == "laptop"
        assert config.defaults.timeout == 120
        assert config.defaults.jobs == 4
        assert config.env == {"NVM_DIR": "$HOME/.nvm"}
        assert config.steps[0].install.params == {"packages": ["tmux"]}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(tmp_path / "nope.yml")

    def test_not_found_anywhere(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match="No hostprep.yml found"):
            load_config()

    def test_invalid_yaml(self, write_config):
        path = write_config("steps: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, write_config):
        path = write_config("- just\n- a list\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(path)

    def test_schema_error(self, write_config):
        path = write_config("steps: nope\n")
        with pytest.raises(ConfigError, match="Invalid provisioning configuration"):
            load_config(path)


class TestBuildRegistry:
    def _config(self, steps: list[dict]) -> ProvisionConfig:
        return ProvisionConfig.model_validate({"steps": steps})

    def test_resolves_actions(self):
        loaded = build_registry(self._config([
            {
                "id": "tmux",
                "install": {"kind": "apt", "packages": ["tmux"], "timeout": 90},
                "check": {"kind": "shell", "command": "command -v tmux"},
            },
        ]))
        step = loaded.registry.get("tmux")
        assert isinstance(step.install, AptPackagesAction)
        assert step.install.timeout == 90
        assert isinstance(step.check, ShellCommandAction)
        assert loaded.warnings == []

    def test_declared_order(self):
        loaded = build_registry(self._config([
            {"id": "b", "order": 2},
            {"id": "a", "order": 1},
            {"id": "c"},
        ]))
        # c has no order: falls back to its index (2), tie with b broken by index
        assert loaded.registry.ids() == ["a", "b", "c"]

    def test_unknown_kind_leaves_action_unbound(self):
        loaded = build_registry(self._config([
            {
                "id": "brew",
                "install": {"kind": "homebrew", "formula": "jq"},
                "check": {"kind": "command", "name": "jq"},
            },
        ]))
        step = loaded.registry.get("brew")
        assert step.install is None
        assert step.check is not None
        assert loaded.registry.unbound() == ["brew"]
        assert any("unknown install action kind 'homebrew'" in w for w in loaded.warnings)

    def test_missing_actions_warned(self):
        loaded = build_registry(self._config([{"id": "todo"}]))
        assert "Step 'todo' has no install action" in loaded.warnings
        assert "Step 'todo' has no check action" in loaded.warnings

    def test_invalid_params_fatal(self):
        with pytest.raises(ConfigError, match="Step 'x'"):
            build_registry(self._config([
                {"id": "x", "install": {"kind": "shell", "cmd": "true"}},
            ]))

    def test_scalar_packages_fatal(self):
        with pytest.raises(ConfigError, match="packages"):
            build_registry(self._config([
                {"id": "tmux", "install": {"kind": "apt", "packages": "tmux"}},
            ]))

    @pytest.mark.parametrize("check", [
        {"kind": "file", "paths": "~/.zshrc"},
        {"kind": "command", "name": "rustc", "fallback_paths": "~/.cargo/bin/rustc"},
        {"kind": "command", "name": "node", "version_args": "--version"},
        {"kind": "apt", "packages": "tmux"},
    ])
    def test_scalar_list_params_fatal(self, check):
        with pytest.raises(ConfigError, match="Step 'x'"):
            build_registry(self._config([{"id": "x", "check": check}]))

    def test_misspelled_backup_policy_fatal(self):
        with pytest.raises(ConfigError, match="backup"):
            build_registry(self._config([
                {
                    "id": "tmux-conf",
                    "install": {
                        "kind": "config_block",
                        "path": "~/.tmux.conf",
                        "marker": "# managed",
                        "content": "x",
                        "mode": "replace",
                        "backup": "timestmp",
                    },
                },
            ]))

    def test_misspelled_mode_fatal(self):
        with pytest.raises(ConfigError, match="mode"):
            build_registry(self._config([
                {
                    "id": "bashrc",
                    "install": {
                        "kind": "config_block",
                        "path": "~/.bashrc",
                        "marker": "# managed",
                        "content": "x",
                        "mode": "apend",
                    },
                },
            ]))

    def test_rejected_backup_policy_leaves_file(self, tmp_path: Path):
        conf = tmp_path / "tmux.conf"
        conf.write_text("# mine\nset -g mouse off\n")
        with pytest.raises(ConfigError):
            build_registry(self._config([
                {
                    "id": "tmux-conf",
                    "install": {
                        "kind": "config_block",
                        "path": str(conf),
                        "marker": "# managed",
                        "content": "x",
                        "mode": "replace",
                        "backup": "timestmp",
                    },
                },
            ]))
        assert conf.read_text() == "# mine\nset -g mouse off\n"

    def test_duplicate_ids_fatal(self):
        with pytest.raises(ConfigError, match="Duplicate step id: tmux"):
            build_registry(self._config([{"id": "tmux"}, {"id": "tmux"}]))

    def test_no_steps_warned(self):
        loaded = build_registry(ProvisionConfig())
        assert len(loaded.registry) == 0
        assert any("No steps defined" in w for w in loaded.warnings)

    def test_load_registry(self, write_config):
        path = write_config("""\
            steps:
              - id: marker
                install: {kind: shell, command: "touch {tmp}/m"}
                check: {kind: file, paths: ["{tmp}/m"]}
        """)
        loaded = load_registry(path)
        assert loaded.registry.ids() == ["marker"]
        assert loaded.config.steps[0].id == "marker"


class TestConfigCheck:
    def test_valid(self, write_config):
        path = write_config("""\
            name: box
            steps:
              - id: a
                install: {kind: shell, command: "true"}
                check: {kind: shell, command: "true"}
        """)
        result = check_config(path)
        assert result.valid
        assert result.errors == []
        assert result.to_dict()["step_count"] == 1
        assert result.to_dict()["name"] == "box"

    def test_unbound_and_warnings(self, write_config):
        path = write_config("""\
            env:
              "BAD-NAME": x
            steps:
              - id: a
                order: 1
                install: {kind: snap, name: foo}
                check: {kind: shell, command: "true"}
              - id: b
                order: 1
        """)
        result = check_config(path)
        assert result.valid
        assert result.unbound == ["a", "b"]
        assert any("share an order value: 1" in w for w in result.warnings)
        assert any("BAD-NAME" in w for w in result.warnings)

    def test_duplicate_ids_invalid(self, write_config):
        path = write_config("""\
            steps:
              - id: a
              - id: a
        """)
        result = check_config(path)
        assert not result.valid
        assert any("Duplicate step id" in e for e in result.errors)

    def test_missing(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = check_config()
        assert not result.valid
        assert result.errors == ["No hostprep.yml found."]

    def test_invalid_yaml(self, write_config):
        result = check_config(write_config("steps: [\n"))
        assert not result.valid
        assert result.to_dict()["config_path"].endswith("hostprep.yml")
