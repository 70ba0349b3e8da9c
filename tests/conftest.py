"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest


def _helm_result(output: str = "", returncode: int = 0) -> MagicMock:
    return MagicMock(returncode=returncode, stdout=output.encode("utf-8"), stderr=None)


@pytest.fixture
def helm_result():
    """Factory for fake ``subprocess.run`` results carrying combined helm output."""
    return _helm_result


@pytest.fixture
def mock_run():
    """Patch ``subprocess.run`` for the command runner; succeeds with no output."""
    with patch("helmwrap.adapters.shell.command.subprocess.run") as m:
        m.return_value = _helm_result()
        yield m


@pytest.fixture
def chart_dir(tmp_path: Path):
    """Factory creating ``<tmp_path>/<rel>/Chart.yaml`` files."""

    def _make(rel: str = "") -> Path:
        d = tmp_path / rel if rel else tmp_path
        d.mkdir(parents=True, exist_ok=True)
        chart = d / "Chart.yaml"
        chart.write_text("name: app\nversion: 0.1.0\n")
        return chart

    return _make


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HELMWRAP_HOME at a throwaway directory."""
    home = tmp_path_factory.mktemp("helmwrap-home")
    monkeypatch.setenv("HELMWRAP_HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo ``setup_logging`` calls made by the CLI under test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
