"""Terminal output for the CLI."""

import json
from typing import Any

from rich.console import Console


class OutputFormatter:
    """Prints human-readable or JSON output.

    Informational messages are suppressed in quiet and JSON modes; errors
    and warnings always go to stderr.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize the formatter.

        Args:
            json_output: Emit machine-readable JSON instead of text
            quiet: Suppress non-essential output
        """
        self.json_output = json_output
        self.quiet = quiet or json_output
        self.console = Console(highlight=False, soft_wrap=True)
        self.err_console = Console(stderr=True, highlight=False, soft_wrap=True)

    def print(self, message: str = "") -> None:
        """Print a plain line unless quiet."""
        if not self.quiet:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message unless quiet."""
        if not self.quiet:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        """Print a success message unless quiet."""
        if not self.quiet:
            self.console.print(f"✓ {message}", style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        self.err_console.print(f"⚠ {message}", style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error to stderr."""
        self.err_console.print(f"Error: {message}", style="red", markup=False)

    def output_json(self, data: Any) -> None:
        """Print data as JSON regardless of quiet mode."""
        self.console.print_json(json.dumps(data))
