"""Console output for CLI commands and interactive sessions."""

import asyncio

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from softcascade.exceptions import InvalidInputError, SoftCascadeError
from softcascade.session.engine import SessionSummary

console = Console()


class OutputFormatter:
    """Renders session messages with Rich.

    Implements the console the decision engine reports to, and reads
    operator input for it.
    """

    def info(self, message: str) -> None:
        console.print(escape(message))

    def success(self, message: str) -> None:
        console.print(f"✓ {escape(message)}", style="green")

    def warning(self, message: str) -> None:
        console.print(escape(message), style="yellow")

    def error(self, error: Exception) -> None:
        # Menu mistakes are routine, keep them to one line
        if isinstance(error, InvalidInputError):
            console.print(escape(error.message), style="red")
        else:
            self.print_error(error)

    def menu(self, entries: list[tuple[str, str]]) -> None:
        for key, description in entries:
            console.print(f"{escape(key)} - {escape(description)}")

    async def read_line(self, prompt: str) -> str | None:
        """Print ``prompt`` and read one line; None at end of input."""
        try:
            return await asyncio.to_thread(console.input, escape(prompt))
        except EOFError:
            return None

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        error_text = str(error)
        if isinstance(error, SoftCascadeError) and error.context:
            context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
            error_text = f"{error_text}\n\n{context_str}"

        panel = Panel(
            escape(error_text),
            title="[red]Error[/red]",
            border_style="red",
        )
        console.print(panel)

    def print_summary(self, summary: SessionSummary) -> None:
        """Print what the session did with each discovered relation."""
        table = Table(title="Session summary", show_header=True, header_style="bold magenta")
        table.add_column("Relations")
        table.add_column("Count", justify="right")
        table.add_row("Discovered", str(summary.discovered))
        table.add_row("Already covered", str(summary.covered))
        table.add_row("Triggers created", str(summary.created))
        table.add_row("Failed", str(summary.failed))
        table.add_row("Skipped", str(summary.skipped))
        table.add_row("Not processed", str(summary.remaining))
        console.print(table)

    def print_sql(self, sql: str) -> None:
        console.print(Syntax(sql, "sql", theme="ansi_dark", word_wrap=True))
