"""
configforge.templates - Bundled Manifest and Payloads
=====================================================

This package holds the versioned manifest (``manifest.toml``) together with
every payload it references. Nothing in here is user-editable at run time;
changing a payload or the schema is a maintenance action and must come with
a bump of the manifest ``version``.

Payload Kinds
-------------
- ``*.j2``: Jinja2 templates, rendered with the active parameters as context.
  Unknown names fail loudly (``StrictUndefined``).
- everything else: raw payloads copied byte for byte (``render = false``).

Available Payloads
------------------
Always:
    - pyproject.toml.j2: Minimal packaging stub (protected)
    - gitignore: Git ignore patterns (protected)
    - ruff.toml.j2: Linter and formatter settings
    - mypy.ini.j2: Type checker settings, strict or gradual
    - pytest.ini: Test runner settings
    - pre-commit-config.yaml.j2: Pre-commit hooks
    - run.sh: Task runner script

Conditional:
    - Dockerfile.j2, dockerignore: when ``use_docker`` is true
    - github_ci.yml.j2: when ``use_github_actions`` is true

Custom Filters
--------------
    nodot : "3.12" -> "312" (used for ruff's ``target-version``)
"""

from pathlib import Path


TEMPLATES_DIR = Path(__file__).resolve().parent
MANIFEST_PATH = TEMPLATES_DIR / "manifest.toml"
