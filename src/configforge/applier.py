"""
configforge.applier - Template Application
==========================================

This module renders the manifest's payloads into a target directory. It is
the only part of configforge that writes to disk.

Architecture
------------
Application follows a pipeline pattern:

    1. Pre-flight: resolve destinations and collect template placeholders
       for every active entry (no writes happen if this fails)
    2. Per entry, in manifest order:
       a. activation check  -> skipped-inactive
       b. protection check  -> skipped-protected
       c. render with Jinja2
       d. write             -> written
    3. Record the applied parameters in the answers file

The pipeline is designed to be:
- **Idempotent**: Re-applying the same parameters yields the same bytes
- **Deterministic**: No timestamps or environment-dependent content
- **Forward-only**: A failure aborts the remaining entries; files written
  before it stay in place and re-running is the recovery path

Usage Example
-------------
>>> from pathlib import Path
>>> from configforge.applier import configure_project
>>> report = configure_project(Path("./myproject"), {"use_docker": "yes"})
>>> [(r.destination, r.outcome.value) for r in report.results][:2]
[('pyproject.toml', 'written'), ('.gitignore', 'written')]

See Also
--------
- resolver.py: Produces the ParameterSet consumed here
- templates/: Bundled manifest and payloads
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    UndefinedError,
    meta,
    select_autoescape,
)
from rich.console import Console
from rich.panel import Panel

from configforge.answers import answers_path, read_answers, write_answers
from configforge.errors import (
    AnswersFileError,
    FilesystemError,
    ManifestError,
    UnresolvedPlaceholderError,
)
from configforge.models import Manifest, ManifestEntry, ParameterSet
from configforge.resolver import PromptFunc, detect_existing_project, resolve


# =============================================================================
# Module-Level Configuration
# =============================================================================

# Console for rich output
console = Console()

# Jinja2 reports "'name' is undefined" for plain names and
# "'str object' has no attribute 'name'" for attribute or item lookups
_UNDEFINED_NAME = re.compile(
    r"'([^']+)' is undefined|has no (?:attribute|element) '?([^']+?)'?$"
)


# =============================================================================
# Result Data Classes
# =============================================================================

class Outcome(str, Enum):
    """What happened to one manifest entry."""

    WRITTEN = "written"
    SKIPPED_PROTECTED = "skipped-protected"
    SKIPPED_INACTIVE = "skipped-inactive"


@dataclass(frozen=True)
class ApplyResult:
    """
    Outcome for one manifest entry.

    Attributes
    ----------
    destination : str
        Path relative to the target, as declared in the manifest.

    outcome : Outcome
        written, skipped-protected or skipped-inactive.
    """

    destination: str
    outcome: Outcome


@dataclass
class ApplyReport:
    """
    Result of one configforge invocation.

    Attributes
    ----------
    target : Path
        Absolute path of the target directory.

    parameters : ParameterSet
        The resolved parameters that were applied.

    existing_project : bool
        Whether the target already held a project before this run.

    results : list[ApplyResult]
        One entry per manifest file, in manifest order.

    answers_path : Path | None
        Where the parameters were recorded (None for dry runs).

    dry_run : bool
        True if nothing was written.

    warnings : list[str]
        Non-fatal notices, e.g. dropped answers in update mode.
    """

    target: Path
    parameters: ParameterSet
    existing_project: bool = False
    results: list[ApplyResult] = field(default_factory=list)
    answers_path: Path | None = None
    dry_run: bool = False
    warnings: list[str] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    def outcome_for(self, destination: str) -> Outcome:
        for result in self.results:
            if result.destination == destination:
                return result.outcome
        raise KeyError(destination)


# =============================================================================
# Template Engine Setup
# =============================================================================

def create_jinja_env(search_path: Path) -> Environment:
    """
    Create the Jinja2 environment used for rendering payloads.

    The environment is configured with:
    - File-system loading rooted at the manifest's directory
    - Autoescaping disabled (we're generating config files, not HTML)
    - Trim blocks and lstrip_blocks for cleaner output
    - ``StrictUndefined`` so an unknown placeholder fails instead of
      rendering as an empty string

    Parameters
    ----------
    search_path : Path
        Directory holding the payloads.

    Returns
    -------
    Environment
        Configured Jinja2 environment.
    """
    env = Environment(
        loader=FileSystemLoader(search_path),
        autoescape=select_autoescape([]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )

    env.filters["nodot"] = lambda s: str(s).replace(".", "")

    return env


# =============================================================================
# Pre-flight Checks
# =============================================================================

def resolve_destination(target: Path, destination: str) -> Path:
    """
    Map a manifest destination to an absolute path inside ``target``.

    Parameters
    ----------
    target : Path
        Target directory.

    destination : str
        Relative destination from the manifest.

    Returns
    -------
    Path
        Absolute, symlink-resolved destination path.

    Raises
    ------
    FilesystemError
        If the path would land outside ``target`` (for example through a
        symlinked directory).
    """
    root = target.resolve()
    full_path = (root / destination).resolve()

    if not full_path.is_relative_to(root):
        raise FilesystemError(destination, f"path escapes the target directory {root}")

    return full_path


def is_present(path: Path) -> bool:
    """True if ``path`` exists or is a symlink, even a dangling one."""
    return path.is_symlink() or path.exists()


def collect_placeholders(env: Environment, entry: ManifestEntry) -> set[str]:
    """
    Return the names a template payload reads from its context.

    Raw payloads have no placeholders.

    Raises
    ------
    ManifestError
        If the payload is missing or is not a valid template.
    """
    if not entry.render:
        return set()

    try:
        source, _, _ = env.loader.get_source(env, entry.source)  # type: ignore[union-attr]
        ast = env.parse(source)
    except TemplateNotFound:
        raise ManifestError(f"payload '{entry.source}' not found") from None
    except TemplateError as e:
        raise ManifestError(f"payload '{entry.source}' is not a valid template: {e}") from e

    return meta.find_undeclared_variables(ast)


def preflight(
    manifest: Manifest,
    params: ParameterSet,
    target: Path,
    env: Environment,
) -> dict[str, Path]:
    """
    Validate every active entry before anything is written.

    Parameters
    ----------
    manifest : Manifest
        Manifest to check.

    params : ParameterSet
        Resolved parameters.

    target : Path
        Target directory.

    env : Environment
        Jinja2 environment for the manifest's payloads.

    Returns
    -------
    dict[str, Path]
        Path for each active destination. Protected destinations that are
        already present are returned as given, without resolving symlinks.

    Raises
    ------
    FilesystemError
        If the target is not a directory or a destination escapes it.
        Protected files that are already present are not checked.

    UnresolvedPlaceholderError
        If an active template references a name that is not an active
        parameter.

    ManifestError
        If a payload is missing or unparsable.
    """
    if target.exists() and not target.is_dir():
        raise FilesystemError(str(target), "target is not a directory")

    available = params.active()
    destinations: dict[str, Path] = {}

    for entry in manifest.files:
        if not entry.is_active(params):
            continue

        # A protected file already in place is skipped untouched, wherever it points
        kept = target / entry.destination
        if entry.is_protected() and is_present(kept):
            destinations[entry.destination] = kept
        else:
            destinations[entry.destination] = resolve_destination(target, entry.destination)

        if not entry.render and not manifest.payload_path(entry).is_file():
            raise ManifestError(f"payload '{entry.source}' not found")

        for name in sorted(collect_placeholders(env, entry)):
            if name not in available:
                raise UnresolvedPlaceholderError(name, entry.destination)

    return destinations


def decide(
    entry: ManifestEntry,
    params: Mapping[str, object],
    destination: Path | None,
) -> Outcome | None:
    """
    Decide the skip outcome for an entry, or None if it must be written.

    ``destination`` is only consulted for active, protected entries.
    """
    if not entry.is_active(params):
        return Outcome.SKIPPED_INACTIVE

    if entry.is_protected() and destination is not None and is_present(destination):
        return Outcome.SKIPPED_PROTECTED

    return None


# =============================================================================
# Rendering and Writing
# =============================================================================

def undefined_name(error: UndefinedError) -> str:
    """Name of the missing placeholder or attribute, or '<unknown>'."""
    match = _UNDEFINED_NAME.search(error.message or "")
    if match is None:
        return "<unknown>"
    return match.group(1) or match.group(2)


def render_entry(
    env: Environment,
    manifest: Manifest,
    entry: ManifestEntry,
    params: ParameterSet,
) -> bytes:
    """
    Produce the bytes for one entry.

    Templates are rendered with the active parameters as context; raw
    payloads are returned unchanged.

    Raises
    ------
    UnresolvedPlaceholderError
        If rendering hits an undefined name.

    ManifestError
        If the payload cannot be loaded.
    """
    if not entry.render:
        try:
            return manifest.payload_path(entry).read_bytes()
        except OSError as e:
            raise ManifestError(f"cannot read payload '{entry.source}': {e}") from e

    try:
        template = env.get_template(entry.source)
        content = template.render(**params.active())
    except UndefinedError as e:
        raise UnresolvedPlaceholderError(undefined_name(e), entry.destination) from e
    except TemplateNotFound:
        raise ManifestError(f"payload '{entry.source}' not found") from None
    except TemplateError as e:
        raise ManifestError(f"cannot render payload '{entry.source}': {e}") from e

    return content.encode("utf-8")


def write_entry(path: Path, content: bytes, entry: ManifestEntry) -> None:
    """
    Write ``content`` to ``path``, creating parent directories.

    Raises
    ------
    FilesystemError
        If the write fails (permissions, disk full, a directory in the way).
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if entry.executable:
            path.chmod(0o755)
    except OSError as e:
        raise FilesystemError(entry.destination, e) from e


# =============================================================================
# Apply / Plan
# =============================================================================

def plan(
    manifest: Manifest,
    params: ParameterSet,
    target: Path,
) -> list[ApplyResult]:
    """
    Work out what :func:`apply` would do, without rendering or writing.

    Runs the same pre-flight checks, so a plan fails exactly when an
    apply would fail before its first write.
    """
    env = create_jinja_env(manifest.source_root)
    destinations = preflight(manifest, params, target, env)

    results: list[ApplyResult] = []
    for entry in manifest.files:
        outcome = decide(entry, params, destinations.get(entry.destination))
        results.append(ApplyResult(entry.destination, outcome or Outcome.WRITTEN))

    return results


def apply(
    manifest: Manifest,
    params: ParameterSet,
    target: Path,
    *,
    verbose: bool = False,
) -> list[ApplyResult]:
    """
    Render and write every active manifest entry into ``target``.

    Parameters
    ----------
    manifest : Manifest
        Files to produce.

    params : ParameterSet
        Resolved parameters.

    target : Path
        Target directory. Created if it does not exist.

    verbose : bool, default=False
        Print one progress line per entry.

    Returns
    -------
    list[ApplyResult]
        One result per manifest entry, in manifest order.

    Raises
    ------
    UnresolvedPlaceholderError, FilesystemError, ManifestError
        Pre-flight failures abort before any write; a failure while
        writing aborts the remaining entries without undoing earlier ones.
    """
    env = create_jinja_env(manifest.source_root)
    destinations = preflight(manifest, params, target, env)

    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(str(target), e) from e

    results: list[ApplyResult] = []

    for entry in manifest.files:
        outcome = decide(entry, params, destinations.get(entry.destination))

        if outcome is None:
            content = render_entry(env, manifest, entry, params)
            write_entry(destinations[entry.destination], content, entry)
            outcome = Outcome.WRITTEN

        results.append(ApplyResult(entry.destination, outcome))

        if verbose:
            if outcome == Outcome.WRITTEN:
                console.print(f"  [green]✓[/] Wrote {entry.destination}")
            elif outcome == Outcome.SKIPPED_PROTECTED:
                console.print(f"  [yellow]•[/] Kept {entry.destination} (protected)")
            else:
                console.print(f"  [dim]- Skipped {entry.destination} (inactive)[/]")

    return results


# =============================================================================
# Main Entry Point
# =============================================================================

def existing_project_state(target: Path) -> tuple[bool, list[str]]:
    """
    Decide whether ``target`` counts as an existing project.

    A target configforge has configured before keeps the answer recorded
    on its first run, because the ``pyproject.toml`` written then would
    otherwise turn every later run into an existing-project run. Other
    targets are checked for project markers.

    Returns
    -------
    tuple[bool, list[str]]
        The decision and any warnings about an unusable answers file.
    """
    if answers_path(target).is_file():
        try:
            recorded = read_answers(target)
        except AnswersFileError as e:
            return detect_existing_project(target), [f"Ignoring recorded answers: {e}"]
        if recorded.existing_project is not None:
            return recorded.existing_project, []

    return detect_existing_project(target), []


def configure_project(
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
    Resolve parameters and apply the manifest to ``target``.

    This is the main entry point used by ``configforge apply``. It detects
    whether the target is an existing project, resolves the parameters,
    applies the manifest and records the answers for later updates.

    Parameters
    ----------
    target : Path
        Directory to configure.

    overrides : Mapping[str, object] | None
        User-supplied parameter values.

    manifest : Manifest | None
        Manifest to apply. Defaults to the bundled one.

    prompt : PromptFunc | None
        Asks for parameters without an override (interactive mode).

    confirm : Callable[[ParameterSet], None] | None
        Called with the resolved parameters before anything is written.
        It may raise to cancel the run.

    dry_run : bool, default=False
        Plan only; write nothing, not even the answers file.

    verbose : bool, default=False
        Display progress information to the console.

    Returns
    -------
    ApplyReport
        Resolved parameters and per-file outcomes.

    Raises
    ------
    ConfigforgeError
        Any resolution, rendering or filesystem failure.
    """
    manifest = manifest or Manifest.load()
    target = target.resolve()

    existing, warnings = existing_project_state(target)
    params = resolve(manifest.parameters, overrides, existing, prompt=prompt)

    if confirm is not None:
        confirm(params)

    report = ApplyReport(
        target=target,
        parameters=params,
        existing_project=existing,
        dry_run=dry_run,
        warnings=warnings,
    )

    if verbose:
        console.print()
        console.print(
            Panel(
                f"[bold blue]Configuring:[/] [green]{target}[/]\n"
                f"[dim]{'existing project' if existing else 'fresh project'} | "
                f"manifest v{manifest.version}[/]",
                title="[bold]configforge[/]",
                border_style="blue",
            )
        )
        console.print()

    if dry_run:
        report.results = plan(manifest, params, target)
        return report

    report.results = apply(manifest, params, target, verbose=verbose)
    report.answers_path = write_answers(target, params, manifest, existing_project=existing)

    if verbose:
        console.print(f"  [dim]Recorded answers in {report.answers_path.name}[/]")

    return report
