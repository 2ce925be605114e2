"""
configforge.errors - Exception Hierarchy
========================================

Every failure configforge reports derives from :class:`ConfigforgeError`, so
the CLI can turn any of them into a readable message and a non-zero exit.

    ConfigforgeError
    ├── InvalidParameterError      - user-supplied value fails its rule
    ├── UnresolvedPlaceholderError - template names an unknown parameter
    ├── FilesystemError            - write failed or path escapes the target
    ├── ManifestError              - bundled manifest is unreadable/invalid
    └── AnswersFileError           - recorded answers are missing/unreadable

None of these are retried anywhere.
"""

from __future__ import annotations

from pathlib import Path


class ConfigforgeError(Exception):
    """Base exception for configforge."""


class InvalidParameterError(ConfigforgeError):
    """
    Raised when a parameter value does not satisfy its validation rule.

    Attributes
    ----------
    name : str
        Name of the offending parameter.

    value : object
        The rejected value, exactly as supplied.

    rule : str
        Human-readable description of what would have been accepted.
    """

    def __init__(self, name: str, value: object, rule: str):
        super().__init__(
            f"Invalid value {value!r} for parameter '{name}': expected {rule}"
        )
        self.name = name
        self.value = value
        self.rule = rule


class UnresolvedPlaceholderError(ConfigforgeError):
    """Raised when a payload references a parameter the set does not provide."""

    def __init__(self, placeholder: str, destination: str):
        super().__init__(
            f"Template for '{destination}' references unknown parameter "
            f"'{placeholder}'"
        )
        self.placeholder = placeholder
        self.destination = destination


class FilesystemError(ConfigforgeError):
    """Raised when a destination cannot be written or escapes the target."""

    def __init__(self, destination: str, cause: BaseException | str):
        super().__init__(f"Cannot write '{destination}': {cause}")
        self.destination = destination
        self.cause = cause


class ManifestError(ConfigforgeError):
    """Raised when the manifest or one of its payloads cannot be loaded."""

    def __init__(self, message: str, *, path: Path | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class AnswersFileError(ConfigforgeError):
    """Raised when the recorded answers of a previous run cannot be used."""

    def __init__(self, message: str, *, path: Path | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
