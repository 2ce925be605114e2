"""
configforge.cli - Command Line Interface
========================================

This module provides the command-line interface for configforge using Typer.

Architecture
------------
The CLI is structured around Typer's app pattern:

    app (main entry point)
    ├── apply   - Render the tooling configuration into a project
    ├── update  - Re-apply using the project's recorded answers
    └── show    - Print the bundled parameter schema and manifest

Commands are designed to be both interactive (with prompts) and
scriptable (with flags). The --yes flag skips all prompts for CI usage.

Usage Examples
--------------
Interactive mode (prompts for every parameter):
    $ configforge apply ./myproject

Non-interactive mode:
    $ configforge apply ./myproject --yes --set line_length=100

Preview without writing:
    $ configforge update ./myproject --yes --dry-run

See Also
--------
- applier.py: Template application
- updater.py: Update mode
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import questionary
import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from configforge import __version__
from configforge.applier import ApplyReport, Outcome, configure_project
from configforge.errors import ConfigforgeError
from configforge.models import INACTIVE, Manifest, Parameter, ParameterKind, ParameterSet, ParameterValue
from configforge.updater import update_project


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="configforge",
    help="Render ruff, mypy, pytest, pre-commit and CI configuration into a Python project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

# Console for rich output
console = Console()

OUTCOME_STYLES = {
    Outcome.WRITTEN: "green",
    Outcome.SKIPPED_PROTECTED: "yellow",
    Outcome.SKIPPED_INACTIVE: "dim",
}


# =============================================================================
# Version Callback
# =============================================================================

def version_callback(value: bool) -> None:
    """
    Display version information and exit.

    Parameters
    ----------
    value : bool
        True if --version was passed.
    """
    if value:
        console.print(Panel(
            f"[bold green]configforge[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Tooling configuration for Python projects[/]\n"
            f"[dim]Manifest version: {Manifest.load().version}[/]",
            border_style="green",
        ))
        raise typer.Exit()


# =============================================================================
# Helpers
# =============================================================================

def parse_overrides(pairs: list[str] | None) -> dict[str, str]:
    """
    Parse repeated ``--set KEY=VALUE`` options into a dict.

    Later occurrences of the same key win.

    Raises
    ------
    typer.BadParameter
        If an item has no ``=`` or an empty key.
    """
    overrides: dict[str, str] = {}

    for raw in pairs or []:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(
                f"Expected KEY=VALUE, got {raw!r}",
                param_hint="--set",
            )
        overrides[key] = value.strip()

    return overrides


def prompt_parameter(parameter: Parameter, default: ParameterValue) -> object:
    """
    Interactively ask for one parameter.

    Booleans become a yes/no confirm, choices a selection list, and
    everything else a text prompt validated against the parameter's rule.

    Returns
    -------
    object
        The raw answer; the resolver validates it again.
    """
    message = parameter.help or parameter.name

    if parameter.kind == ParameterKind.BOOLEAN:
        result = questionary.confirm(message, default=bool(default)).ask()
    elif parameter.kind == ParameterKind.CHOICE:
        result = questionary.select(
            message,
            choices=list(parameter.choices or ()),
            default=str(default),
        ).ask()
    else:
        result = questionary.text(
            message,
            default=str(default),
            validate=lambda v: parameter.validation_error(v) or True,
        ).ask()

    if result is None:
        raise typer.Abort()

    return result


def parameters_table(params: ParameterSet) -> Table:
    table = Table(title="Parameters", show_header=False)
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="green")

    for name, value in params.items():
        if value is INACTIVE:
            table.add_row(name, "[dim]inactive[/]")
        else:
            table.add_row(name, escape(str(value)))

    return table


def confirm_parameters(params: ParameterSet) -> None:
    """Show the resolved parameters and ask before writing anything."""
    console.print()
    console.print(parameters_table(params))
    console.print()

    if not questionary.confirm("Apply configuration with these settings?", default=True).ask():
        raise typer.Abort()


def print_report(report: ApplyReport) -> None:
    """Print one line per manifest entry plus a summary panel."""
    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/] {escape(warning)}")

    table = Table(
        title="Planned Changes" if report.dry_run else "Configuration Files",
        show_header=True,
    )
    table.add_column("File", style="cyan")
    table.add_column("Outcome")

    for result in report.results:
        style = OUTCOME_STYLES[result.outcome]
        table.add_row(result.destination, f"[{style}]{result.outcome.value}[/]")

    console.print(table)
    console.print()

    written = report.count(Outcome.WRITTEN)
    protected = report.count(Outcome.SKIPPED_PROTECTED)
    inactive = report.count(Outcome.SKIPPED_INACTIVE)

    if report.dry_run:
        console.print("[yellow]DRY RUN - No changes were made[/]")
        return

    console.print(Panel(
        f"[bold green]Configuration applied![/]\n\n"
        f"[dim]Location:[/] {report.target}\n"
        f"{written} written, {protected} protected, {inactive} inactive\n\n"
        f"[bold]Next steps:[/]\n"
        f"  ./run.sh install_dev\n"
        f"  ./run.sh lint\n"
        f"  ./run.sh test",
        title="[bold green]Success[/]",
        border_style="green",
    ))


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]configforge[/] - Tooling configuration for Python projects.

    Writes [cyan]ruff[/], [cyan]mypy[/], [cyan]pytest[/] and [cyan]pre-commit[/]
    configuration plus a [cyan]run.sh[/] task runner, without touching code.

    [bold]Quick Start:[/]

        configforge apply .

    [bold]Non-interactive:[/]

        configforge apply . --yes --set python_version=3.13
    """


# =============================================================================
# Shared Options
# =============================================================================

SetOption = Annotated[
    list[str] | None,
    typer.Option(
        "--set",
        "-s",
        metavar="KEY=VALUE",
        help="Set a parameter (repeatable), e.g. --set line_length=100",
    ),
]
YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip all prompts, use defaults and --set values",
    ),
]
DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Show what would be done without writing anything",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Show progress while applying",
    ),
]


def _run(
    command: str,
    target: Path,
    set_: list[str] | None,
    yes: bool,
    dry_run: bool,
    verbose: bool,
) -> None:
    overrides = parse_overrides(set_)
    runner = configure_project if command == "apply" else update_project

    try:
        report = runner(
            target,
            overrides,
            prompt=None if yes else prompt_parameter,
            confirm=None if yes else confirm_parameters,
            dry_run=dry_run,
            verbose=verbose,
        )
    except ConfigforgeError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)

    print_report(report)


# =============================================================================
# Apply Command
# =============================================================================

@app.command("apply")
def apply_command(
    target: Annotated[
        Path,
        typer.Argument(
            help="Project directory to configure",
            file_okay=False,
            dir_okay=True,
        ),
    ] = Path("."),
    set_: SetOption = None,
    yes: YesOption = False,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Apply the tooling configuration to a project.

    Existing [cyan]pyproject.toml[/] and [cyan].gitignore[/] files are kept;
    every other managed file is (re-)rendered.

    [bold]Examples:[/]

        # Interactive mode (prompts for every parameter)
        configforge apply ./myproject

        # Defaults only
        configforge apply ./myproject --yes

        # Docker and relaxed type checking
        configforge apply . --yes --set use_docker=yes --set strict_mypy=no
    """
    _run("apply", target, set_, yes, dry_run, verbose)


# =============================================================================
# Update Command
# =============================================================================

@app.command("update")
def update_command(
    target: Annotated[
        Path,
        typer.Argument(
            help="Previously configured project directory",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = Path("."),
    set_: SetOption = None,
    yes: YesOption = False,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Update a project using its recorded answers.

    Values from the last run are reused; only parameters that are new or
    whose recorded value is no longer valid are asked again.

    [bold]Examples:[/]

        configforge update .
        configforge update . --yes --set line_length=100
        configforge update ./myproject --yes --dry-run
    """
    _run("update", target, set_, yes, dry_run, verbose)


# =============================================================================
# Show Command
# =============================================================================

@app.command("show")
def show_command() -> None:
    """
    Show the bundled parameter schema and file manifest.
    """
    try:
        manifest = Manifest.load()
    except ConfigforgeError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)

    params_table = Table(title=f"Parameters (manifest v{manifest.version})", show_header=True)
    params_table.add_column("Name", style="cyan")
    params_table.add_column("Kind")
    params_table.add_column("Default", style="green")
    params_table.add_column("Accepts", style="dim")
    params_table.add_column("When")

    for parameter in manifest.parameters:
        default = str(parameter.default)
        if parameter.existing_default is not None:
            default += f" (existing project: {parameter.existing_default})"
        when = f"{parameter.when.parameter} = {parameter.when.value}" if parameter.when else ""
        params_table.add_row(
            parameter.name,
            parameter.kind.value,
            escape(default),
            escape(parameter.rule),
            when,
        )

    console.print(params_table)
    console.print()

    files_table = Table(title="Files", show_header=True)
    files_table.add_column("Destination", style="cyan")
    files_table.add_column("Source", style="dim")
    files_table.add_column("Protected")
    files_table.add_column("When")

    for entry in manifest.files:
        files_table.add_row(
            entry.destination,
            entry.source,
            "yes" if entry.is_protected() else "",
            f"{entry.when.parameter} = {entry.when.value}" if entry.when else "always",
        )

    console.print(files_table)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    app()
