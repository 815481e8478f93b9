"""Command-line interface for license_probe.

Provides commands to list a module's build tool dependencies and to check
their licenses against allow/deny lists.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from license_probe.config import DEFAULT_TIMEOUT, SourceConfig
from license_probe.models import Dependency, LicenseRecord
from license_probe.sources import BaseSource, get_source

app = typer.Typer(
    name="license-probe",
    help="Dependency and license inventories from a project's build tool.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("license_probe")

SourcePathOption = Annotated[
    Path,
    typer.Option(
        "--source-path",
        "-s",
        help="Module directory to scan",
        exists=True,
        file_okay=False,
    ),
]
RootOption = Annotated[
    Optional[Path],
    typer.Option(
        "--root",
        "-r",
        help="Project root (defaults to the module directory)",
        exists=True,
        file_okay=False,
    ),
]
ConfigurationOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--configuration",
        "-c",
        help="Build tool configuration to include (repeatable)",
    ),
]
TimeoutOption = Annotated[
    float,
    typer.Option("--timeout", help="Seconds allowed per build tool invocation"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose output"),
]


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("license_probe").setLevel(level)


def _build_config(
    source_path: Path,
    root: Optional[Path],
    configurations: Optional[list[str]],
    timeout: float,
) -> SourceConfig:
    """Build a SourceConfig from command line options, exiting on errors."""
    mapping: dict = {"source_path": source_path, "root": root or source_path}
    gradle: dict = {"timeout": timeout}
    if configurations:
        gradle["configurations"] = configurations
    mapping["gradle"] = gradle

    try:
        return SourceConfig.from_mapping(mapping)
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


async def _scan(
    config: SourceConfig, with_licenses: bool
) -> tuple[Optional[BaseSource], list[Dependency], dict[Dependency, LicenseRecord]]:
    """Enumerate dependencies and optionally resolve their licenses.

    This is shared logic used by both the list and check commands.

    Args:
        config: Settings for the module to scan.
        with_licenses: Whether to resolve license records.

    Returns:
        Tuple of (source or None if not enabled, dependencies, license records).
    """
    source = get_source(config)
    if source is None:
        return None, [], {}

    async with source:
        dependencies = await source.dependencies()
        licenses = await source.licenses() if with_licenses else {}

    return source, dependencies, licenses


def _run_scan(
    config: SourceConfig, with_licenses: bool
) -> tuple[Optional[BaseSource], list[Dependency], dict[Dependency, LicenseRecord]]:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Asking the build tool for dependencies...", total=None)
        return asyncio.run(_scan(config, with_licenses))


def _exit_if_unusable(source: Optional[BaseSource], config: SourceConfig) -> None:
    if source is None:
        err_console.print(
            f"[red]Error:[/red] No supported build tool found for {config.source_path}"
        )
        raise typer.Exit(code=1)

    if source.failures:
        for failure in source.failures:
            err_console.print(f"[red]Error:[/red] {failure}")
        raise typer.Exit(code=1)


@app.command("list")
def list_dependencies(
    source_path: SourcePathOption = Path("."),
    root: RootOption = None,
    configuration: ConfigurationOption = None,
    licenses: Annotated[
        bool,
        typer.Option("--licenses", "-l", help="Resolve and show license types"),
    ] = False,
    timeout: TimeoutOption = DEFAULT_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """List the module's resolved runtime dependencies."""
    _setup_logging(verbose)
    config = _build_config(source_path, root, configuration, timeout)

    source, dependencies, records = _run_scan(config, licenses)
    _exit_if_unusable(source, config)

    table = Table(title=f"{source.type()} dependencies of {config.source_path}")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Configuration")
    if licenses:
        table.add_column("License")

    for dependency in sorted(dependencies, key=lambda d: d.name.lower()):
        row = [dependency.name, dependency.version, dependency.configuration]
        if licenses:
            row.append(records[dependency].type)
        table.add_row(*row)

    console.print(table)
    console.print(f"Found [bold]{len(dependencies)}[/bold] dependencies")


@app.command()
def check(
    source_path: SourcePathOption = Path("."),
    root: RootOption = None,
    configuration: ConfigurationOption = None,
    forbidden: Annotated[
        Optional[str],
        typer.Option(
            "--forbidden",
            "-f",
            help="Comma-separated list of forbidden license keys",
        ),
    ] = None,
    allowed: Annotated[
        Optional[str],
        typer.Option(
            "--allowed",
            "-a",
            help="Comma-separated list of allowed license keys (whitelist mode)",
        ),
    ] = None,
    timeout: TimeoutOption = DEFAULT_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """Check dependency licenses against allow/deny lists.

    Exit codes:
        0 - All licenses compliant
        1 - Violations found or error occurred
    """
    _setup_logging(verbose)

    if not forbidden and not allowed:
        err_console.print(
            "[red]Error:[/red] Must specify either --forbidden or --allowed"
        )
        raise typer.Exit(code=1)

    if forbidden and allowed:
        err_console.print(
            "[red]Error:[/red] Cannot specify both --forbidden and --allowed"
        )
        raise typer.Exit(code=1)

    # License keys are lowercase
    forbidden_set = (
        {key.strip().lower() for key in forbidden.split(",")} if forbidden else set()
    )
    allowed_set = (
        {key.strip().lower() for key in allowed.split(",")} if allowed else set()
    )

    config = _build_config(source_path, root, configuration, timeout)
    source, dependencies, records = _run_scan(config, with_licenses=True)
    _exit_if_unusable(source, config)

    if not dependencies:
        console.print("[green]No dependencies to check[/green]")
        raise typer.Exit(code=0)

    console.print(f"Checking [bold]{len(dependencies)}[/bold] dependencies...")

    violations = []
    unknown = []

    for dependency, record in records.items():
        if record.is_unknown:
            unknown.append(dependency.name)
            continue

        if forbidden_set and record.type in forbidden_set:
            violations.append((dependency.name, dependency.version, record.type))
        elif allowed_set and record.type not in allowed_set:
            violations.append((dependency.name, dependency.version, record.type))

    if unknown:
        console.print(f"\n[yellow]Unknown licenses ({len(unknown)}):[/yellow]")
        for name in sorted(unknown):
            console.print(f"  - {name}")

    if violations:
        console.print(f"\n[red]Violations ({len(violations)}):[/red]")
        for name, version, key in sorted(violations):
            console.print(f"  - {name}:{version}: {key}")
        raise typer.Exit(code=1)
    else:
        console.print(
            f"\n[green]All {len(dependencies)} dependencies are compliant![/green]"
        )
        raise typer.Exit(code=0)


if __name__ == "__main__":
    app()
