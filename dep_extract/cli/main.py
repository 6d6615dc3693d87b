"""Main CLI interface for DepExtract."""

from pathlib import Path
from typing import Dict, List, Optional
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import DepExtractConfig
from ..core.errors import DepExtractError
from ..core.parsers import build_registry
from ..core.parsers.base import ParsedDependencies
from ..output.formatters import ConsoleFormatter, JSONFormatter
from ..utils.logging import setup_logging, get_logger
from ..utils.path_utils import find_dependency_files

app = typer.Typer(
    name="depextract",
    help="Extract declared dependencies from package manager manifests and lockfiles",
    add_completion=False
)

console = Console()
logger = get_logger("CLI")


def _load_config(
    config_file: Optional[Path],
    swift_host: Optional[str],
    timeout: Optional[float]
) -> DepExtractConfig:
    """Build the effective configuration: file or environment, then CLI overrides."""
    config = DepExtractConfig.from_file(config_file) if config_file else DepExtractConfig.from_env()
    return config.merge(swift_parser_host=swift_host, remote_timeout=timeout)


@app.command()
def extract(
    path: Path = typer.Argument(
        Path("."),
        help="Dependency file, or project directory to search"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print JSON instead of tables"
    ),
    swift_host: Optional[str] = typer.Option(
        None,
        "--swift-host",
        help="Base URL of the Package.swift conversion service"
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Timeout in seconds for remote conversion calls"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        help="JSON configuration file"
    ),
    ignore_patterns: Optional[List[str]] = typer.Option(
        None,
        "--ignore",
        help="Additional ignore patterns"
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write log records to this file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    )
) -> None:
    """Extract dependencies from a file or every dependency file in a directory."""

    setup_logging(log_file=log_file, verbose=verbose)

    if not path.exists():
        console.print(f"[red]Error: Path does not exist: {escape(str(path))}[/red]")
        raise typer.Exit(1)

    try:
        config = _load_config(config_file, swift_host, timeout)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    registry = build_registry(config)
    dependency_files = find_dependency_files(path, registry, ignore_patterns)

    if not dependency_files:
        console.print("[yellow]No dependency files found[/yellow]")
        return

    results: List[ParsedDependencies] = []
    failures: Dict[str, str] = {}
    for dep_file in dependency_files:
        try:
            results.extend(registry.parse_file(dep_file.path))
        except (DepExtractError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to parse {dep_file.path}: {e}")
            failures[str(dep_file.path)] = str(e)

    json_formatter = JSONFormatter(output)
    if output or as_json:
        data = json_formatter.format_results(results, failures)
        if output:
            json_formatter.save_results(data)
        if as_json:
            console.print_json(data=data)
    if not as_json:
        ConsoleFormatter(console).format_results(results, failures)

    if failures:
        raise typer.Exit(1)


@app.command()
def info() -> None:
    """Show supported ecosystems and the files they parse."""

    console.print(Panel.fit(
        "[bold blue]DepExtract[/bold blue]\n"
        "Extracts declared dependencies from package manager\n"
        "manifests, lockfiles and SBOM exports",
        title="Information"
    ))

    registry = build_registry()
    for ecosystem in registry.get_supported_ecosystems():
        parser = registry.get_parser(ecosystem)

        table = Table(title=f"{ecosystem}")
        table.add_column("Files", style="cyan")
        table.add_column("Kind", style="green")
        table.add_column("Parser", style="magenta")
        table.add_column("Related to")

        for matcher, entry in parser.dispatch_table:
            table.add_row(
                escape(matcher.describe()),
                entry.kind,
                entry.parser_type,
                ", ".join(sorted(entry.related_to)) or "-",
            )
        console.print(table)

        multi = ", ".join(multi_parser.name for multi_parser in parser.multi_parsers)
        console.print(f"[bold]Multi-parsers:[/bold] {multi or 'none'}\n")


def main() -> None:
    """Main entry point for DepExtract CLI."""
    app()


if __name__ == "__main__":
    main()
