"""Output formatters for DepExtract results."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.parsers.base import ParsedDependencies
from ..utils.logging import get_logger


class ConsoleFormatter:
    """Rich console formatter for DepExtract output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()
        self.logger = get_logger("ConsoleFormatter")

    def format_results(
        self,
        results: List[ParsedDependencies],
        failures: Optional[Dict[str, str]] = None
    ) -> None:
        """Display one table per parsed file and a summary panel.

        Args:
            results: Parse results to display
            failures: Map of file path to error message for files that failed
        """
        for result in results:
            self.console.print(self._create_dependencies_table(result))

        self.console.print(self._create_summary_panel(results, failures or {}))

        for path, error in (failures or {}).items():
            self.format_error(f"{path}: {error}")

    def _create_dependencies_table(self, result: ParsedDependencies) -> Table:
        """Create the table for one parsed file.

        Args:
            result: Parse result

        Returns:
            Rich table with the file's dependencies
        """
        title = escape(f"{result.source_file or 'input'} ({result.ecosystem} {result.kind})")
        table = Table(title=title)

        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Requirement", style="magenta")
        table.add_column("Type", style="green")

        for dep in result.dependencies:
            table.add_row(escape(dep.name), escape(dep.requirement or "-"), dep.type.value)

        return table

    def _create_summary_panel(
        self,
        results: List[ParsedDependencies],
        failures: Dict[str, str]
    ) -> Panel:
        total = sum(len(result.dependencies) for result in results)
        files = len({result.source_file for result in results})
        style = "red" if failures else "green"

        content = (
            f"Files parsed: {files}\n"
            f"Dependencies found: {total}\n"
            f"Files failed: {len(failures)}"
        )
        return Panel(content, title="Extraction Summary", style=style)

    def format_error(self, error: str) -> None:
        """Format and display error message.

        Args:
            error: Error message
        """
        self.console.print(Panel(f"[bold red]Error:[/bold red] {escape(error)}", style="red"))


class JSONFormatter:
    """JSON formatter for DepExtract output."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: Optional output file path
        """
        self.output_file = output_file
        self.logger = get_logger("JSONFormatter")

    def format_results(
        self,
        results: List[ParsedDependencies],
        failures: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Format parse results as JSON.

        Args:
            results: Parse results
            failures: Map of file path to error message

        Returns:
            Formatted JSON data
        """
        result = {
            "summary": {
                "files_parsed": len({r.source_file for r in results}),
                "total_dependencies": sum(len(r.dependencies) for r in results),
                "files_failed": len(failures or {}),
                "timestamp": datetime.now().isoformat()
            },
            "results": [r.to_dict() for r in results],
            "errors": [
                {"file": path, "message": message}
                for path, message in (failures or {}).items()
            ],
        }

        return result

    def save_results(
        self,
        results: Dict[str, Any],
        output_file: Optional[Path] = None
    ) -> None:
        """Save results to JSON file.

        Args:
            results: Results dictionary
            output_file: Output file path (uses instance default if None)
        """
        file_path = output_file or self.output_file
        if not file_path:
            raise ValueError("No output file specified")

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(results, f, indent=2, ensure_ascii=False)

            self.logger.info(f"Results saved to {file_path}")
        except IOError as e:
            self.logger.error(f"Failed to save results to {file_path}: {e}")
            raise
