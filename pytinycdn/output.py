"""Output formatting for the TinyCDN CLI."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from .utils import format_size


class OutputFormatter:
    """Prints human-readable or JSON output for CLI commands."""

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize the formatter.

        Args:
            json_output: Print machine-readable JSON instead of text
            quiet: Suppress informational messages
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console()
        self.err_console = Console(stderr=True)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, highlight=False)

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[green]{message}[/green]", highlight=False)

    def warning(self, message: str) -> None:
        if not self.quiet:
            self.err_console.print(f"[yellow]{message}[/yellow]", highlight=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {message}", highlight=False)

    def progress_message(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[cyan]{message}[/cyan]", highlight=False)

    def format_size(self, size_bytes: int) -> str:
        return format_size(size_bytes)

    def output_json(self, data: Any) -> None:
        """Print data as JSON on stdout."""
        print(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def output_table(
        self,
        rows: list[dict[str, Any]],
        columns: list[str],
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        """Print rows as a table, or as a JSON list in JSON mode.

        Args:
            rows: Row dictionaries
            columns: Keys to show, in order
            headers: Optional column key to header text mapping
        """
        if self.json_output:
            self.output_json([{col: row.get(col) for col in columns} for row in rows])
            return

        headers = headers or {}
        table = Table(show_header=True, header_style="bold")
        for col in columns:
            table.add_column(headers.get(col, col))
        for row in rows:
            table.add_row(
                *("" if row.get(col) is None else str(row.get(col)) for col in columns)
            )
        self.console.print(table)

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a titled list of label/value pairs."""
        if self.json_output:
            return
        self.console.print(f"\n[bold]{title}[/bold]")
        for label, value in items:
            self.console.print(f"  {label}: {value}", highlight=False)
