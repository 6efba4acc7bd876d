"""
Shared test fixtures and configuration.
"""

import logging
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from hostprep.adapters.base import ActionContext
from hostprep.adapters.mock import MockAction
from hostprep.core.models.step import Step

_ENV_VARS = (
    "HOSTPREP_CONFIG",
    "HOSTPREP_STEPS",
    "HOSTPREP_TIMEOUT",
    "HOSTPREP_LOG_LEVEL",
    "HOSTPREP_LOG_FILE",
    "HOSTPREP_LOG_FILE_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's HOSTPREP_* settings out of tests."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def context(tmp_path: Path) -> ActionContext:
    """An action context whose HOME is a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    return ActionContext(home=str(home))


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write a hostprep.yml into tmp_path; ``{tmp}`` expands to tmp_path."""

    def _write(content: str, name: str = "hostprep.yml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content).replace("{tmp}", str(tmp_path)))
        return path

    return _write


def mock_step(
    step_id: str,
    install: str | None = "ok",
    check: str | None = "ok",
    **kwargs,
) -> Step:
    """A step backed by MockActions with the given default statuses."""
    return Step(
        id=step_id,
        description=kwargs.pop("description", f"{step_id.title()} step"),
        install=MockAction(f"{step_id}-install", status=install) if install else None,
        check=MockAction(f"{step_id}-check", status=check) if check else None,
        **kwargs,
    )


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Drop handlers installed by setup_logging during a test."""
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in before and type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
