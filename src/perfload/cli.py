"""perfload CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from perfload import __version__
from perfload.build import BuildInfo, MetadataError
from perfload.config import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    PerfloadConfig,
    generate_example_config_yaml,
    load_config,
)
from perfload.jenkins import JenkinsClient, JenkinsError
from perfload.store import StoreConnectionError
from perfload.upload import UploadSummary, Uploader

# Default config file name for auto-discovery
DEFAULT_CONFIG = "perfload.yaml"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="perfload",
    help="Load CI performance-test spreadsheets into a relational store",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Workflow: init -> run (download + upload), or upload a local directory[/dim]",
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def resolve_config_path(config_file: Path | None) -> Path:
    """Resolve config file path, using ./perfload.yaml as default."""
    if config_file is not None:
        return config_file

    default = Path(DEFAULT_CONFIG)
    if default.exists():
        return default

    console.print(f"[red]ERROR[/red] No config file specified and ./{DEFAULT_CONFIG} not found")
    console.print("[blue]INFO[/blue] Create one with: perfload init")
    raise typer.Exit(1)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]OK[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]ERROR[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]...[/blue] {message}")


def setup_logging(level: str, verbose: bool = False) -> None:
    """Configure root logging for a CLI invocation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )


def load_config_or_exit(config_file: Path | None) -> PerfloadConfig:
    """Load config, printing a readable error and exiting on failure."""
    path = resolve_config_path(config_file)
    try:
        return load_config(path)
    except ConfigFileNotFoundError as e:
        print_error(f"File not found: {e}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigValidationError as e:
        print_error("Config validation failed:")
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"])
            console.print(f"  [red]•[/red] {loc}: {err['msg']}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigError as e:
        print_error(f"Config error: {e}")
        raise typer.Exit(1)  # noqa: B904


def _run_upload(cfg: PerfloadConfig, build: BuildInfo, directory: Path) -> UploadSummary:
    """Run the orchestrator, converting a store failure into exit code 1."""
    try:
        return Uploader(build, cfg.database).upload_all(directory)
    except StoreConnectionError as e:
        logger.debug("Store connection failed", exc_info=True)
        print_error(f"Database connection failed: {e}")
        raise typer.Exit(1)  # noqa: B904


def _display_summary(summary: UploadSummary) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("File", style="cyan")
    table.add_column("Runs", justify="right")
    table.add_column("Results", justify="right")
    table.add_column("Time(s)", justify="right")
    table.add_column("Status")

    for outcome in summary.outcomes:
        if outcome.success:
            status = "[green]OK[/green]"
        else:
            status = f"[red]FAIL[/red] {escape(outcome.error or '')}"
        table.add_row(
            outcome.path.name,
            str(outcome.runs) if outcome.success else "-",
            f"{outcome.results:,}" if outcome.success else "-",
            f"{outcome.elapsed_seconds:.1f}",
            status,
        )
    console.print(table)


def _finish(summary: UploadSummary, output_format: str) -> None:
    if output_format == "json":
        console.print(json.dumps(summary.to_dict(), indent=2))
    else:
        _display_summary(summary)

    if not summary.success:
        print_error("All file uploads failed")
        raise typer.Exit(1)
    if summary.failed:
        print_warning(
            f"{len(summary.failed)} of {len(summary.outcomes)} files failed; see log for details"
        )
    print_success(f"Loaded {summary.total_runs} runs and {summary.total_results:,} results")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"perfload version {__version__}")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path for configuration",
        ),
    ] = Path(DEFAULT_CONFIG),
    name: Annotated[
        str,
        typer.Option(
            "--name",
            "-n",
            help="Name of the performance job",
        ),
    ] = "fpa-perf",
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite an existing file",
        ),
    ] = False,
) -> None:
    """Write an example configuration file."""
    if output.exists() and not force:
        print_error(f"{output} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    output.write_text(generate_example_config_yaml(name))
    print_success(f"Wrote {output}")


@app.command()
def upload(
    directory: Annotated[
        Path,
        typer.Argument(
            help="Directory holding the downloaded spreadsheets",
        ),
    ],
    metadata: Annotated[
        Path,
        typer.Option(
            "--metadata",
            "-m",
            help="Saved Jenkins build JSON (must carry fullDisplayName and id)",
        ),
    ],
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration YAML file (default: ./perfload.yaml)",
        ),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            help="Override database.path from the config",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table, json",
        ),
    ] = "table",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging",
        ),
    ] = False,
) -> None:
    """Load spreadsheets from a local directory.

    Succeeds when at least one of the three files loads; exits 1 only when
    every file failed or the database is unreachable.
    """
    cfg = load_config_or_exit(config_file)
    if database:
        cfg.database.path = database
    setup_logging(cfg.log_level.value, verbose)

    try:
        build = BuildInfo.load(metadata)
    except MetadataError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    console.print(
        Panel(
            f"[bold]Uploading:[/bold] {directory}\n"
            f"Job: {build.job_base_name} | Build: {build.build_number} | "
            f"Store: {cfg.database.path}",
            expand=False,
        )
    )
    _finish(_run_upload(cfg, build, directory), output_format)


@app.command()
def run(
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration YAML file (default: ./perfload.yaml)",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table, json",
        ),
    ] = "table",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging",
        ),
    ] = False,
) -> None:
    """Download the latest build's spreadsheets from Jenkins and load them."""
    cfg = load_config_or_exit(config_file)
    setup_logging(cfg.log_level.value, verbose)
    save_dir = cfg.get_save_dir()

    print_info(f"Downloading artifacts to {save_dir}")
    try:
        metadata = JenkinsClient(cfg.jenkins).download_artifacts(save_dir)
        build = BuildInfo.from_metadata(metadata)
    except JenkinsError as e:
        print_error(f"Artifact download failed: {e}")
        raise typer.Exit(1)  # noqa: B904
    except MetadataError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    print_success(f"Downloaded artifacts of {build.job_name}")

    _finish(_run_upload(cfg, build, save_dir), output_format)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
