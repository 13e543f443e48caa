"""Output formatting for shlock CLI."""

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape


@dataclass
class OutputContext:
    """Context for operator-facing diagnostics.

    The console writes to stderr; stdout belongs to the locked command.
    """

    console: Console

    def error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]Error: {escape(message)}[/red]")

