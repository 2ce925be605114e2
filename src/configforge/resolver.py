"""
configforge.resolver - Parameter Resolution
===========================================

Turns the static parameter schema plus whatever the user supplied into one
immutable :class:`~configforge.models.ParameterSet`.

Resolution Order
----------------
Parameters are resolved in schema order, so an activation condition can only
look at parameters that come before it. For each parameter:

1. Activation condition false  -> ``INACTIVE`` (overrides are ignored)
2. Override supplied           -> validated, ``InvalidParameterError`` if bad
3. Prompt callback given       -> asked, answer validated the same way
4. Otherwise                   -> default (existing-project aware)

Without a prompt callback the function is pure.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from configforge.errors import InvalidParameterError
from configforge.models import INACTIVE, Parameter, ParameterSet, ParameterValue


# Prompt callback: (parameter, suggested default) -> raw answer
PromptFunc = Callable[[Parameter, ParameterValue], object]

# Files whose presence means the target is an existing project
PROJECT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")


def detect_existing_project(target: Path) -> bool:
    """
    Check whether ``target`` already holds a Python project.

    Parameters
    ----------
    target : Path
        Directory configforge is about to apply to. It may not exist yet.

    Returns
    -------
    bool
        True if any of :data:`PROJECT_MARKERS` is present.
    """
    return any((target / marker).is_file() for marker in PROJECT_MARKERS)


def resolve(
    schema: Sequence[Parameter],
    overrides: Mapping[str, object] | None = None,
    existing_project: bool = False,
    *,
    prompt: PromptFunc | None = None,
) -> ParameterSet:
    """
    Resolve every schema parameter to a concrete value or ``INACTIVE``.

    Parameters
    ----------
    schema : Sequence[Parameter]
        Parameters in declaration order.

    overrides : Mapping[str, object] | None
        User-supplied values. Strings are coerced to the parameter's kind.

    existing_project : bool, default=False
        Selects ``existing_default`` over ``default`` where a parameter has
        one (relaxed type checking for existing projects).

    prompt : PromptFunc | None
        Called for every active parameter without an override. The returned
        answer is validated like an override.

    Returns
    -------
    ParameterSet
        Exactly one entry per schema parameter.

    Raises
    ------
    InvalidParameterError
        If an override (or prompted answer) fails validation, or an override
        names a parameter the schema does not have.

    Examples
    --------
    >>> from configforge.models import Manifest
    >>> params = resolve(Manifest.load().parameters, {"use_docker": "yes"})
    >>> params["docker_base_variant"]
    'slim'
    """
    overrides = dict(overrides or {})
    known = {parameter.name for parameter in schema}

    for name in overrides:
        if name not in known:
            raise InvalidParameterError(
                name, overrides[name], "a known parameter: " + ", ".join(sorted(known))
            )

    values: dict[str, object] = {}

    for parameter in schema:
        if parameter.when is not None and not parameter.when.holds(values):
            values[parameter.name] = INACTIVE
            continue

        if parameter.name in overrides:
            values[parameter.name] = parameter.coerce(overrides[parameter.name])
            continue

        default = parameter.default_for(existing_project)
        if prompt is not None:
            values[parameter.name] = parameter.coerce(prompt(parameter, default))
        else:
            values[parameter.name] = default

    return ParameterSet(values)
