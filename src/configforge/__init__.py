"""
configforge - Tooling Configuration for Python Projects
=======================================================

A CLI tool that drops a consistent set of tooling configuration files into a
Python project: ruff, mypy, pytest, pre-commit, a task-runner script, and
optionally a Dockerfile and a GitHub Actions workflow.

Features
--------
- **Never touches your code**: Only tooling configuration is written
- **Re-runnable**: Protected files are kept, managed files are re-rendered
- **Update mode**: Re-apply later with the values you chose the first time
- **Scriptable**: ``--yes`` and ``--set key=value`` for CI usage

Quick Start
-----------
```bash
# Configure the current project interactively
configforge apply .

# Or non-interactively
configforge apply ./myproject --yes --set python_version=3.13 --set use_docker=yes

# Later, after upgrading configforge
configforge update ./myproject --yes
```

Example
-------
>>> from pathlib import Path
>>> from configforge import configure_project
>>> report = configure_project(Path("myproject"), {"line_length": 100})
>>> report.outcome_for("ruff.toml").value
'written'

Architecture
------------
The package is organized into these main modules:

- ``cli``: Typer-based command line interface
- ``models``: Pydantic models for the parameter schema and manifest
- ``resolver``: Turns defaults and overrides into a ParameterSet
- ``applier``: Renders and writes manifest entries
- ``answers``: Records parameter values in the target
- ``updater``: Re-applies using recorded values
- ``templates``: Bundled manifest and payloads
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================

from configforge.applier import ApplyReport, ApplyResult, Outcome, apply, configure_project
from configforge.errors import (
    ConfigforgeError,
    FilesystemError,
    InvalidParameterError,
    UnresolvedPlaceholderError,
)
from configforge.models import INACTIVE, Manifest, ParameterSet
from configforge.resolver import resolve
from configforge.updater import update_project


__all__ = [
    "INACTIVE",
    "ApplyReport",
    "ApplyResult",
    "ConfigforgeError",
    "FilesystemError",
    "InvalidParameterError",
    "Manifest",
    "Outcome",
    "ParameterSet",
    "UnresolvedPlaceholderError",
    "__version__",
    "apply",
    "configure_project",
    "resolve",
    "update_project",
]
