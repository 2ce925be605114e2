"""
configforge.answers - Recorded Parameter Values
===============================================

After every successful apply, the resolved parameters are written to
``.configforge-answers.toml`` in the target directory. Update mode reads the
file back and uses the values as defaults for anything not given on the
command line.

File Format
-----------
A flat TOML table. Keys starting with an underscore are metadata, the rest
are active parameter values (inactive parameters are not recorded)::

    # Recorded by configforge. Change values with 'configforge update'.
    _manifest_version = 1
    _configforge_version = "0.1.0"
    _existing_project = false

    project_name = "my-project"
    python_version = "3.12"
    line_length = 88
    ...

The file is always rewritten whole; it is state, not a log.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomlkit

from configforge import __version__
from configforge.errors import AnswersFileError, FilesystemError
from configforge.models import Manifest, ParameterSet


ANSWERS_FILENAME = ".configforge-answers.toml"


@dataclass
class RecordedAnswers:
    """
    Parameter values recorded by a previous invocation.

    Attributes
    ----------
    path : Path
        Location of the answers file.

    values : dict[str, object]
        Recorded parameter values, keyed by parameter name.

    manifest_version : int | None
        Manifest version that produced the values.

    tool_version : str | None
        configforge version that wrote the file.

    existing_project : bool | None
        Whether the target held a project before configforge first
        configured it.
    """

    path: Path
    values: dict[str, object] = field(default_factory=dict)
    manifest_version: int | None = None
    tool_version: str | None = None
    existing_project: bool | None = None


def answers_path(target: Path) -> Path:
    return target / ANSWERS_FILENAME


def write_answers(
    target: Path,
    params: ParameterSet,
    manifest: Manifest,
    *,
    existing_project: bool = False,
) -> Path:
    """
    Record the active values of ``params`` in ``target``.

    Parameters
    ----------
    target : Path
        Target directory of the invocation.

    params : ParameterSet
        The set that was just applied.

    manifest : Manifest
        Manifest whose version gets recorded.

    existing_project : bool, default=False
        Whether the target held a project before configforge first
        configured it. Later runs reuse this instead of looking for
        project markers, since configforge writes one itself.

    Returns
    -------
    Path
        Path of the written answers file.

    Raises
    ------
    FilesystemError
        If the file cannot be written.
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment("Recorded by configforge. Change values with 'configforge update'."))
    doc.add("_manifest_version", manifest.version)
    doc.add("_configforge_version", __version__)
    doc.add("_existing_project", existing_project)
    doc.add(tomlkit.nl())

    for name, value in params.active().items():
        doc.add(name, value)

    path = answers_path(target)
    try:
        path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    except OSError as e:
        raise FilesystemError(ANSWERS_FILENAME, e) from e

    return path


def read_answers(target: Path) -> RecordedAnswers:
    """
    Load the answers recorded in ``target``.

    Raises
    ------
    AnswersFileError
        If there is no answers file or it is not valid TOML.
    """
    path = answers_path(target)

    if not path.is_file():
        raise AnswersFileError(
            "no recorded answers found; run 'configforge apply' first",
            path=path,
        )

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise AnswersFileError(f"invalid TOML: {e}", path=path) from e
    except OSError as e:
        raise AnswersFileError(f"cannot read file: {e}", path=path) from e

    manifest_version = data.get("_manifest_version")
    tool_version = data.get("_configforge_version")
    existing_project = data.get("_existing_project")

    return RecordedAnswers(
        path=path,
        values={k: v for k, v in data.items() if not k.startswith("_")},
        manifest_version=manifest_version if isinstance(manifest_version, int) else None,
        tool_version=str(tool_version) if tool_version is not None else None,
        existing_project=existing_project if isinstance(existing_project, bool) else None,
    )
