"""importsniff CLI - unused and broken import detection for TypeScript/JavaScript."""

from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from importsniff import __version__
from importsniff.analysis.pipeline import analyze_project
from importsniff.config import (
    ConfigError,
    ImportsSettings,
    get_scan_excludes,
    load_project_config,
)
from importsniff.exclusion import FileExcluder, find_source_files
from importsniff.log import configure_logging, get_logger
from importsniff.models.results import ProjectReport
from importsniff.output.json_writer import dumps_report, write_report
from importsniff.output.tree import build_report_tree, build_summary_table, display_tree

# Exit codes
EXIT_OK = 0
EXIT_USAGE_ERROR = 1
EXIT_FINDINGS = 2

app = typer.Typer(
    name="importsniff",
    help="Find unused and broken imports in TypeScript/JavaScript projects",
    no_args_is_help=False,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"importsniff version {__version__}")
        raise typer.Exit()


@app.command()
def main(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the project to analyze",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a sniff.toml config file (default: looked up in PATH)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the report as JSON",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Also write the JSON report to this file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only print findings and the summary",
    ),
    include_ignored: bool = typer.Option(
        False,
        "--include-ignored",
        help="Include files normally excluded by .gitignore and the config file",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Worker threads for large projects (default: executor default)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Scan a project for unused and broken imports."""
    configure_logging(verbose=verbose, quiet=quiet or json_output, console=err_console)

    path = path.resolve()
    if not path.is_dir():
        err_console.print(f"[red]Not a directory:[/] {path}")
        raise typer.Exit(EXIT_USAGE_ERROR)

    try:
        config_data = load_project_config(path, config)
        settings = ImportsSettings.from_config(config_data)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/] {e}")
        raise typer.Exit(EXIT_USAGE_ERROR)

    if workers is not None:
        settings = replace(settings, max_workers=workers)
    if settings.auto_fix:
        logger.info("auto_fix is reserved and has no effect")

    report = run_scan(path, config_data, settings, include_ignored, show_progress=not json_output and not quiet)

    if output is not None:
        write_report(report, output)
        if not json_output:
            console.print(f"\n[green]Report saved to:[/] {output}")

    if json_output:
        typer.echo(dumps_report(report))
    else:
        _display_report(report, quiet)

    if report.has_findings:
        raise typer.Exit(EXIT_FINDINGS)


def run_scan(
    path: Path,
    config: dict,
    settings: ImportsSettings,
    include_ignored: bool = False,
    show_progress: bool = True,
) -> ProjectReport:
    """Discover source files under ``path`` and analyze their imports."""
    excluder = FileExcluder(
        path,
        include_ignored=include_ignored,
        extra_excludes=get_scan_excludes(config),
    )
    files = find_source_files(path, excluder)

    if show_progress:
        console.print(Panel.fit("[bold blue]importsniff - Import Analysis[/]"))
        console.print(f"\n[dim]Scanning:[/] {path}")
        console.print(f"[dim]Found {len(files)} source files to analyze[/]\n")

    # Small projects finish before a progress bar is worth drawing
    if not show_progress or len(files) <= settings.parallel_threshold:
        return analyze_project(path, files, settings)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Analyzing imports...", total=len(files))
        return analyze_project(
            path,
            files,
            settings,
            on_file_done=lambda _: progress.update(task, advance=1),
        )


def _display_report(report: ProjectReport, quiet: bool) -> None:
    """Display findings and the summary."""
    if report.has_findings or report.summary.files_with_errors:
        display_tree(build_report_tree(report), console)
    elif not quiet:
        console.print("[bold green]✓[/] No unused or broken imports found")

    console.print(
        Panel(build_summary_table(report.summary), title="[bold]Import Summary[/]", border_style="blue")
    )


if __name__ == "__main__":
    app()
