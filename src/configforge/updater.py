"""
configforge.updater - Update Mode
=================================

Re-applies the manifest to a target that was configured before, reusing the
parameter values recorded in its answers file.

Update Strategy
---------------
1. Read ``.configforge-answers.toml`` (missing file is an error)
2. Merge: recorded values < command-line overrides
3. Schema evolution:
   - recorded keys the schema no longer has are dropped with a warning
   - recorded values the schema no longer accepts are asked again in
     interactive mode, and rejected with ``InvalidParameterError`` otherwise
   - parameters the schema gained have no recorded value, so they are asked
     (interactive) or take their default
4. Apply as usual and rewrite the answers file

Usage
-----
>>> from pathlib import Path
>>> from configforge.updater import update_project
>>> report = update_project(Path("./myproject"), {"line_length": "100"})
>>> report.parameters["line_length"]
100
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path

from configforge.answers import RecordedAnswers, read_answers
from configforge.applier import ApplyReport, configure_project
from configforge.errors import InvalidParameterError
from configforge.models import Manifest, ParameterSet
from configforge.resolver import PromptFunc


def merge_recorded_answers(
    manifest: Manifest,
    recorded: RecordedAnswers,
    overrides: Mapping[str, object],
    *,
    interactive: bool,
) -> tuple[dict[str, object], list[str]]:
    """
    Combine recorded answers with new overrides.

    Parameters
    ----------
    manifest : Manifest
        Current manifest.

    recorded : RecordedAnswers
        Values from the previous invocation.

    overrides : Mapping[str, object]
        Values given for this invocation; they always win.

    interactive : bool
        Whether stale recorded values can be asked again.

    Returns
    -------
    tuple[dict[str, object], list[str]]
        The merged overrides and any warnings about dropped answers.

    Raises
    ------
    InvalidParameterError
        If a recorded value is no longer valid and we cannot ask again.
    """
    warnings: list[str] = []
    merged: dict[str, object] = {}

    if recorded.manifest_version is not None and recorded.manifest_version != manifest.version:
        warnings.append(
            f"Answers were recorded with manifest version {recorded.manifest_version}, "
            f"current version is {manifest.version}"
        )

    known = set(manifest.parameter_names)

    for name, value in recorded.values.items():
        if name not in known:
            warnings.append(f"Dropped recorded answer '{name}': no longer part of the schema")
            continue
        if name in overrides:
            continue

        parameter = manifest.parameter(name)
        error = parameter.validation_error(value)
        if error is not None:
            if not interactive:
                raise InvalidParameterError(name, value, parameter.rule)
            warnings.append(f"Recorded answer {name}={value!r} is no longer valid ({error})")
            continue

        merged[name] = value

    merged.update(overrides)
    return merged, warnings


def update_project(
    target: Path,
    overrides: Mapping[str, object] | None = None,
    *,
    manifest: Manifest | None = None,
    prompt: PromptFunc | None = None,
    confirm: Callable[[ParameterSet], None] | None = None,
    dry_run: bool = False,
    verbose: bool = False,
) -> ApplyReport:
    """
    Re-apply the manifest using the target's recorded answers.

    Parameters are the same as for
    :func:`~configforge.applier.configure_project`. ``prompt`` is only
    called for parameters without a usable recorded value.

    Raises
    ------
    AnswersFileError
        If the target has no readable answers file.
    """
    manifest = manifest or Manifest.load()
    target = target.resolve()

    recorded = read_answers(target)
    merged, warnings = merge_recorded_answers(
        manifest,
        recorded,
        dict(overrides or {}),
        interactive=prompt is not None,
    )

    report = configure_project(
        target,
        merged,
        manifest=manifest,
        prompt=prompt,
        confirm=confirm,
        dry_run=dry_run,
        verbose=verbose,
    )
    report.warnings[:0] = warnings
    return report
