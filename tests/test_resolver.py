"""
Tests for configforge.resolver
==============================

Test Organization
-----------------
- TestDefaults: Resolution without overrides
- TestOverrides: Validation and coercion of user overrides
- TestActivation: Inactive parameters
- TestPrompting: The interactive prompt callback
- TestDetectExistingProject: Existing-project marker detection
"""

from pathlib import Path

import pytest

from configforge.errors import InvalidParameterError
from configforge.models import INACTIVE, Manifest, Parameter, ParameterSet
from configforge.resolver import detect_existing_project, resolve


# =============================================================================
# Default Resolution Tests
# =============================================================================

class TestDefaults:
    """Tests for resolution with no overrides."""

    def test_one_entry_per_parameter(self, manifest: Manifest) -> None:
        """Test that every schema parameter appears exactly once."""
        params = resolve(manifest.parameters)

        assert isinstance(params, ParameterSet)
        assert list(params) == manifest.parameter_names

    def test_fresh_project_defaults(self, manifest: Manifest) -> None:
        """Test the defaults for a fresh project."""
        params = resolve(manifest.parameters, {}, existing_project=False)

        assert params["python_version"] == "3.12"
        assert params["line_length"] == 88
        assert params["strict_mypy"] is True
        assert params["use_docker"] is False
        assert params["use_github_actions"] is True
        assert params["ci_runner"] == "ubuntu-latest"

    def test_existing_project_relaxes_strictness(self, manifest: Manifest) -> None:
        """Test that existing projects default to gradual type checking."""
        params = resolve(manifest.parameters, {}, existing_project=True)

        assert params["strict_mypy"] is False
        # Nothing else changes
        assert params["python_version"] == "3.12"
        assert params["line_length"] == 88

    def test_explicit_strictness_wins(self, manifest: Manifest) -> None:
        """Test that an override beats the existing-project default."""
        params = resolve(manifest.parameters, {"strict_mypy": "yes"}, existing_project=True)
        assert params["strict_mypy"] is True

    def test_pure(self, manifest: Manifest) -> None:
        """Test that equal inputs give equal outputs."""
        overrides = {"line_length": "100"}
        assert resolve(manifest.parameters, overrides) == resolve(manifest.parameters, overrides)


# =============================================================================
# Override Tests
# =============================================================================

class TestOverrides:
    """Tests for override validation."""

    def test_string_overrides_are_coerced(self, manifest: Manifest) -> None:
        """Test that command-line strings become typed values."""
        params = resolve(
            manifest.parameters,
            {"line_length": "100", "use_docker": "yes", "python_version": "3.13"},
        )

        assert params["line_length"] == 100
        assert params["use_docker"] is True
        assert params["python_version"] == "3.13"

    def test_invalid_python_version(self, manifest: Manifest) -> None:
        """Test that a version outside the allowed set is rejected."""
        with pytest.raises(InvalidParameterError) as exc_info:
            resolve(manifest.parameters, {"python_version": "2.7"})

        assert exc_info.value.name == "python_version"
        assert exc_info.value.value == "2.7"
        assert "3.11, 3.12, 3.13" in exc_info.value.rule

    def test_unknown_parameter(self, manifest: Manifest) -> None:
        """Test that overrides must name schema parameters."""
        with pytest.raises(InvalidParameterError, match="known parameter"):
            resolve(manifest.parameters, {"line_lenght": "100"})

    def test_invalid_text(self, manifest: Manifest) -> None:
        """Test that text overrides must match the pattern."""
        with pytest.raises(InvalidParameterError, match="project_name"):
            resolve(manifest.parameters, {"project_name": "My Project"})


# =============================================================================
# Activation Tests
# =============================================================================

class TestActivation:
    """Tests for parameters with activation conditions."""

    def test_inactive_when_condition_false(self, manifest: Manifest) -> None:
        """Test that a dependent parameter resolves to INACTIVE."""
        params = resolve(manifest.parameters, {"use_docker": False})

        assert params["docker_base_variant"] is INACTIVE
        assert "docker_base_variant" not in params.active()

    def test_active_when_condition_true(self, manifest: Manifest) -> None:
        """Test that a dependent parameter gets its default once enabled."""
        params = resolve(manifest.parameters, {"use_docker": "true"})
        assert params["docker_base_variant"] == "slim"

    def test_override_for_inactive_is_ignored(self, manifest: Manifest) -> None:
        """Test that overrides for inactive parameters are not validated."""
        params = resolve(
            manifest.parameters,
            {"use_github_actions": "no", "ci_runner": "not-a-runner"},
        )
        assert params["ci_runner"] is INACTIVE

    def test_override_for_active_dependent(self, manifest: Manifest) -> None:
        """Test that dependent overrides are validated when active."""
        with pytest.raises(InvalidParameterError, match="ci_runner"):
            resolve(manifest.parameters, {"ci_runner": "not-a-runner"})


# =============================================================================
# Prompting Tests
# =============================================================================

class TestPrompting:
    """Tests for the prompt callback."""

    def test_prompt_only_for_unresolved(self, manifest: Manifest) -> None:
        """Test that parameters with overrides or inactive are not asked."""
        asked: list[str] = []

        def prompt(parameter: Parameter, default: object) -> object:
            asked.append(parameter.name)
            return default

        resolve(
            manifest.parameters,
            {"python_version": "3.13", "use_docker": "no"},
            prompt=prompt,
        )

        assert "python_version" not in asked
        assert "use_docker" not in asked
        assert "docker_base_variant" not in asked
        assert asked == [
            "project_name",
            "line_length",
            "strict_mypy",
            "use_github_actions",
            "ci_runner",
        ]

    def test_prompt_receives_existing_default(self, manifest: Manifest) -> None:
        """Test that the suggested default follows the project marker."""
        seen: dict[str, object] = {}

        def prompt(parameter: Parameter, default: object) -> object:
            seen[parameter.name] = default
            return default

        resolve(manifest.parameters, {}, existing_project=True, prompt=prompt)
        assert seen["strict_mypy"] is False

    def test_prompt_answers_drive_activation(self, manifest: Manifest) -> None:
        """Test that an answer can activate a later parameter."""

        def prompt(parameter: Parameter, default: object) -> object:
            if parameter.name == "use_docker":
                return True
            if parameter.name == "docker_base_variant":
                return "alpine"
            return default

        params = resolve(manifest.parameters, prompt=prompt)
        assert params["docker_base_variant"] == "alpine"

    def test_prompt_answers_are_validated(self, manifest: Manifest) -> None:
        """Test that prompted answers go through the same rule."""

        def prompt(parameter: Parameter, default: object) -> object:
            return "999" if parameter.name == "line_length" else default

        with pytest.raises(InvalidParameterError, match="line_length"):
            resolve(manifest.parameters, prompt=prompt)


# =============================================================================
# Existing Project Detection Tests
# =============================================================================

class TestDetectExistingProject:
    """Tests for detect_existing_project."""

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Test that a directory that does not exist is a fresh project."""
        assert detect_existing_project(tmp_path / "nope") is False

    def test_empty_directory(self, tmp_path: Path) -> None:
        """Test that an empty directory is a fresh project."""
        assert detect_existing_project(tmp_path) is False

    @pytest.mark.parametrize("marker", ["pyproject.toml", "setup.py", "setup.cfg"])
    def test_marker_files(self, tmp_path: Path, marker: str) -> None:
        """Test each packaging marker."""
        (tmp_path / marker).write_text("", encoding="utf-8")
        assert detect_existing_project(tmp_path) is True
