"""
pytest configuration and shared fixtures for configforge tests.

Fixtures
--------
target_dir : Path
    A not-yet-existing project directory inside ``tmp_path``.

manifest : Manifest
    The bundled manifest.

defaults : dict
    The default parameter values for a fresh project, spelled out.

make_manifest : callable
    Writes a custom manifest plus payloads and loads it.
"""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from configforge.models import Manifest


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """
    Path of a project directory that does not exist yet.

    configforge creates it on first apply.
    """
    return tmp_path / "project"


@pytest.fixture
def manifest() -> Manifest:
    """Load the manifest bundled with configforge."""
    return Manifest.load()


@pytest.fixture
def defaults() -> dict[str, object]:
    """
    Fresh-project parameter values, as the user would type them.

    Returns
    -------
    dict[str, object]
        Overrides equal to the fresh-project defaults.
    """
    return {
        "python_version": "3.12",
        "line_length": 88,
        "strict_mypy": True,
        "use_docker": False,
        "use_github_actions": True,
    }


@pytest.fixture
def make_manifest(tmp_path: Path) -> Callable[[str, dict[str, str]], Manifest]:
    """
    Build a custom manifest on disk.

    Returns
    -------
    callable
        ``make(manifest_toml, payloads)`` writes ``manifest.toml`` and each
        payload into one directory and returns the loaded Manifest.
    """
    root = tmp_path / "custom_manifest"

    def _make(manifest_toml: str, payloads: dict[str, str]) -> Manifest:
        root.mkdir(exist_ok=True)
        (root / "manifest.toml").write_text(textwrap.dedent(manifest_toml), encoding="utf-8")
        for name, content in payloads.items():
            (root / name).write_text(content, encoding="utf-8")
        return Manifest.load(root / "manifest.toml")

    return _make


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.
    """
    config.addinivalue_line(
        "markers", "scenario: end-to-end scenarios against the bundled manifest"
    )
