"""softcascade CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import softcascade
from softcascade.cli.context import CLIContext

# Create main Typer app
app = typer.Typer(
    name="softcascade",
    help="softcascade - cascade soft deletes through database triggers",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    echo: Annotated[
        bool,
        typer.Option(
            "--echo",
            "-e",
            help="Echo SQL statements to console",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log progress to stderr",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = CLIContext(echo=echo, verbose=verbose)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"softcascade v{softcascade.__version__}")


# Register commands
from softcascade.cli.commands import scan, trigger

app.command(name="scan")(scan.scan_command)
app.command(name="trigger")(trigger.trigger_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
