"""
configforge.models - Pydantic Models for the Parameter Schema and Manifest
==========================================================================

This module defines the data model configforge works with. The bundled
``manifest.toml`` is parsed into these models, so every structural rule of
the schema (unique names, defaults that satisfy their own rule, safe
destination paths) is checked once, when the manifest is loaded.

Architecture Notes
------------------
The models are organized in a hierarchy:

    Manifest
    ├── version: int
    ├── parameters: tuple[Parameter, ...]
    │   ├── kind: ParameterKind (choice, boolean, text, integer)
    │   └── when: ActivationRule | None
    └── files: tuple[ManifestEntry, ...]
        └── when: ActivationRule | None

    ParameterSet   (immutable, produced by the resolver)

Usage Example
-------------
>>> from configforge.models import Manifest
>>> manifest = Manifest.load()
>>> manifest.parameter("python_version").choices
('3.11', '3.12', '3.13')
"""

from __future__ import annotations

import re
import tomllib
from collections.abc import Iterator, Mapping
from enum import Enum
from pathlib import Path, PurePosixPath, PureWindowsPath
from types import MappingProxyType
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
    model_validator,
)

from configforge.errors import InvalidParameterError, ManifestError
from configforge.templates import MANIFEST_PATH


ParameterValue = bool | int | str

_TRUE_WORDS = frozenset({"true", "yes", "on", "1", "y"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0", "n"})


# =============================================================================
# Enumerations
# =============================================================================

class ParameterKind(str, Enum):
    """
    Kinds of value a parameter can hold.

    Attributes
    ----------
    CHOICE : str
        One of a fixed set of strings (``choices``).

    BOOLEAN : str
        A yes/no toggle. Command-line strings such as ``yes`` or ``0`` are
        accepted and normalized to ``bool``.

    TEXT : str
        Free text that must fully match ``pattern``.

    INTEGER : str
        A whole number, optionally bounded by ``minimum``/``maximum``.
    """

    CHOICE = "choice"
    BOOLEAN = "boolean"
    TEXT = "text"
    INTEGER = "integer"


class _Inactive(Enum):
    INACTIVE = "inactive"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "INACTIVE"


# Value of a parameter whose activation condition did not hold.
INACTIVE = _Inactive.INACTIVE


# =============================================================================
# Schema Models
# =============================================================================

class ActivationRule(BaseModel):
    """
    Condition under which a parameter or file takes part in an invocation.

    The rule holds when the referenced parameter resolved to ``value``.
    A reference to an inactive parameter never holds.

    Examples
    --------
    >>> rule = ActivationRule(parameter="use_docker")
    >>> rule.holds({"use_docker": True})
    True
    >>> rule.holds({"use_docker": INACTIVE})
    False
    """

    model_config = ConfigDict(frozen=True)

    parameter: str
    value: ParameterValue = True

    def holds(self, values: Mapping[str, object]) -> bool:
        resolved = values.get(self.parameter, INACTIVE)
        if resolved is INACTIVE:
            return False
        return resolved == self.value


class Parameter(BaseModel):
    """
    A named, typed configuration value with a default and a validation rule.

    Attributes
    ----------
    name : str
        Identifier, unique within the schema and usable as a template name.

    kind : ParameterKind
        Determines which of ``choices``/``pattern``/``minimum``/``maximum``
        apply.

    default : bool | int | str
        Value used when nothing else is supplied.

    existing_default : bool | int | str | None
        Replaces ``default`` when the target is already a project. Only the
        strictness toggle uses this.

    help : str
        Question shown when prompting interactively.

    when : ActivationRule | None
        Earlier boolean parameter this one depends on.
    """

    model_config = ConfigDict(frozen=True)

    name: Annotated[str, Field(pattern=r"^[a-z_][a-z0-9_]*$")]
    kind: ParameterKind
    default: ParameterValue
    existing_default: ParameterValue | None = None
    help: str = ""
    choices: tuple[str, ...] | None = None
    pattern: str | None = None
    minimum: int | None = None
    maximum: int | None = None
    when: ActivationRule | None = None

    @model_validator(mode="after")
    def validate_rule_and_defaults(self) -> Parameter:
        """
        Check that the rule is complete and both defaults satisfy it.
        """
        if self.kind == ParameterKind.CHOICE and not self.choices:
            msg = f"Choice parameter '{self.name}' needs a non-empty 'choices' list."
            raise ValueError(msg)

        if self.kind == ParameterKind.TEXT and self.pattern is None:
            msg = f"Text parameter '{self.name}' needs a 'pattern'."
            raise ValueError(msg)

        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as e:
                msg = f"Invalid pattern for parameter '{self.name}': {e}"
                raise ValueError(msg) from e

        for label, value in (
            ("default", self.default),
            ("existing_default", self.existing_default),
        ):
            if value is None:
                continue
            error = self.validation_error(value)
            if error is not None:
                msg = f"The {label} of parameter '{self.name}' is invalid: {error}"
                raise ValueError(msg)

        return self

    @property
    def rule(self) -> str:
        """Human-readable description of the accepted values."""
        if self.kind == ParameterKind.CHOICE:
            return "one of " + ", ".join(self.choices or ())
        if self.kind == ParameterKind.BOOLEAN:
            return "a boolean (true/false, yes/no, on/off, 1/0)"
        if self.kind == ParameterKind.INTEGER:
            if self.minimum is not None and self.maximum is not None:
                return f"an integer between {self.minimum} and {self.maximum}"
            if self.minimum is not None:
                return f"an integer >= {self.minimum}"
            if self.maximum is not None:
                return f"an integer <= {self.maximum}"
            return "an integer"
        return f"text matching /{self.pattern}/"

    def _convert(self, raw: object) -> ParameterValue:
        if self.kind == ParameterKind.BOOLEAN:
            if isinstance(raw, bool):
                return raw
            text = str(raw).strip().lower()
            if text in _TRUE_WORDS:
                return True
            if text in _FALSE_WORDS:
                return False
            raise ValueError(self.rule)

        if self.kind == ParameterKind.INTEGER:
            if isinstance(raw, bool):
                raise ValueError(self.rule)
            try:
                number = raw if isinstance(raw, int) else int(str(raw).strip())
            except ValueError:
                raise ValueError(self.rule) from None
            if self.minimum is not None and number < self.minimum:
                raise ValueError(self.rule)
            if self.maximum is not None and number > self.maximum:
                raise ValueError(self.rule)
            return number

        if isinstance(raw, bool):
            raise ValueError(self.rule)
        text = str(raw).strip()
        if self.kind == ParameterKind.CHOICE:
            if text not in (self.choices or ()):
                raise ValueError(self.rule)
            return text
        if self.pattern is None or not re.fullmatch(self.pattern, text):
            raise ValueError(self.rule)
        return text

    def coerce(self, raw: object) -> ParameterValue:
        """
        Convert a raw value (typically a command-line string) and validate it.

        Parameters
        ----------
        raw : object
            Value as supplied by the user or read from an answers file.

        Returns
        -------
        bool | int | str
            The normalized value.

        Raises
        ------
        InvalidParameterError
            If the value does not satisfy :attr:`rule`.
        """
        try:
            return self._convert(raw)
        except ValueError:
            raise InvalidParameterError(self.name, raw, self.rule) from None

    def validation_error(self, raw: object) -> str | None:
        """Return ``None`` if ``raw`` is acceptable, else the expected rule."""
        try:
            self._convert(raw)
        except ValueError:
            return f"expected {self.rule}"
        return None

    def default_for(self, existing_project: bool) -> ParameterValue:
        """Default value, taking the existing-project override into account."""
        if existing_project and self.existing_default is not None:
            return self.existing_default
        return self.default


def _check_relative(value: str, what: str) -> str:
    path = PurePosixPath(value)
    if (
        not path.parts
        or path.is_absolute()
        or PureWindowsPath(value).drive
        or "\\" in value
        or ".." in path.parts
    ):
        msg = f"{what} '{value}' must be a relative path inside the target"
        raise ValueError(msg)
    return path.as_posix()


class ManifestEntry(BaseModel):
    """
    One output file configforge may produce.

    Attributes
    ----------
    destination : str
        POSIX path relative to the target directory. Unique in the manifest.

    source : str
        Payload file, relative to the manifest's directory.

    render : bool
        Render ``source`` as a Jinja2 template. When False the payload is
        copied byte for byte.

    protected : bool
        Never overwrite an existing file at ``destination``.

    executable : bool
        Mark the written file executable (``run.sh``).

    when : ActivationRule | None
        Only produce the file when this rule holds.
    """

    model_config = ConfigDict(frozen=True)

    destination: str
    source: str
    render: bool = True
    protected: bool = False
    executable: bool = False
    when: ActivationRule | None = None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        return _check_relative(v, "Destination")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        return _check_relative(v, "Source")

    def is_protected(self) -> bool:
        return self.protected

    def is_active(self, values: Mapping[str, object]) -> bool:
        return self.when is None or self.when.holds(values)


# =============================================================================
# Manifest
# =============================================================================

class Manifest(BaseModel):
    """
    The parameter schema and the list of candidate output files.

    Attributes
    ----------
    version : int
        Schema version, recorded in answers files so update mode can tell
        when the schema has evolved.

    parameters : tuple[Parameter, ...]
        Parameters in resolution (and prompting) order.

    files : tuple[ManifestEntry, ...]
        Output files in reporting order.

    See Also
    --------
    Manifest.load : Read and validate a manifest from disk.
    """

    model_config = ConfigDict(frozen=True)

    version: int = Field(ge=1)
    parameters: tuple[Parameter, ...]
    files: tuple[ManifestEntry, ...]

    _source_root: Path = PrivateAttr(default_factory=lambda: MANIFEST_PATH.parent)

    @model_validator(mode="after")
    def validate_references(self) -> Manifest:
        """
        Check uniqueness and that every activation rule points backwards
        at a boolean parameter.
        """
        seen: dict[str, Parameter] = {}
        for parameter in self.parameters:
            if parameter.name in seen:
                msg = f"Duplicate parameter '{parameter.name}'"
                raise ValueError(msg)
            if parameter.when is not None:
                _check_rule(parameter.when, seen, f"parameter '{parameter.name}'")
            seen[parameter.name] = parameter

        destinations: set[str] = set()
        for entry in self.files:
            if entry.destination in destinations:
                msg = f"Duplicate destination '{entry.destination}'"
                raise ValueError(msg)
            destinations.add(entry.destination)
            if entry.when is not None:
                _check_rule(entry.when, seen, f"file '{entry.destination}'")

        return self

    @property
    def source_root(self) -> Path:
        """Directory that payload ``source`` paths are relative to."""
        return self._source_root

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.parameters]

    def parameter(self, name: str) -> Parameter:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        raise KeyError(name)

    def payload_path(self, entry: ManifestEntry) -> Path:
        return self._source_root / entry.source

    @classmethod
    def load(cls, path: Path | None = None) -> Manifest:
        """
        Load a manifest from a TOML file.

        Parameters
        ----------
        path : Path | None
            Manifest file. Defaults to the one bundled with configforge.

        Returns
        -------
        Manifest
            Validated manifest whose payloads resolve next to ``path``.

        Raises
        ------
        ManifestError
            If the file is missing, is not valid TOML, or fails validation.
        """
        path = path or MANIFEST_PATH

        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ManifestError("manifest not found", path=path) from None
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"invalid TOML: {e}", path=path) from e

        try:
            manifest = cls.model_validate(data)
        except ValidationError as e:
            raise ManifestError(str(e), path=path) from e

        manifest._source_root = path.resolve().parent
        return manifest


def _check_rule(rule: ActivationRule, earlier: Mapping[str, Parameter], owner: str) -> None:
    target = earlier.get(rule.parameter)
    if target is None:
        msg = f"Activation rule of {owner} refers to unknown or later parameter '{rule.parameter}'"
        raise ValueError(msg)
    if target.kind != ParameterKind.BOOLEAN:
        msg = f"Activation rule of {owner} must refer to a boolean parameter, not '{rule.parameter}'"
        raise ValueError(msg)


# =============================================================================
# Resolved Parameters
# =============================================================================

class ParameterSet(Mapping[str, object]):
    """
    Immutable mapping of parameter name to resolved value.

    Produced once per invocation by :func:`configforge.resolver.resolve`. It
    covers every schema parameter; parameters whose activation condition did
    not hold map to :data:`INACTIVE`.

    Examples
    --------
    >>> params = ParameterSet({"use_docker": False, "docker_base_variant": INACTIVE})
    >>> params.is_active("docker_base_variant")
    False
    >>> params.active()
    {'use_docker': False}
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, object] | None = None) -> None:
        self._values = MappingProxyType(dict(values or {}))

    def __getitem__(self, name: str) -> object:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterSet({dict(self._values)!r})"

    def is_active(self, name: str) -> bool:
        return name in self._values and self._values[name] is not INACTIVE

    def active(self) -> dict[str, object]:
        """Active values only; this is the rendering context."""
        return {
            name: value
            for name, value in self._values.items()
            if value is not INACTIVE
        }
