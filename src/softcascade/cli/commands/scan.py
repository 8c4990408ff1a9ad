"""Interactive scan command."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from softcascade.cli.context import CLIContext, get_config_path, load_session_config
from softcascade.cli.output import OutputFormatter
from softcascade.core.connection import DatabaseConnection
from softcascade.core.types import SessionConfig
from softcascade.exceptions import SoftCascadeError
from softcascade.migration.interface import SQLAlchemyQueryInterface
from softcascade.schema.introspection import SchemaIntrospector
from softcascade.session.engine import DecisionEngine, SessionSummary
from softcascade.session.runner import LineReader, pump_lines


async def run_scan_session(
    config: SessionConfig,
    formatter: OutputFormatter,
    echo: bool = False,
    read_line: LineReader | None = None,
) -> SessionSummary:
    """Connect, then drive an interactive session until it closes.

    Args:
        config: Connection parameters and filters
        formatter: Console for session output
        echo: Echo SQL statements
        read_line: Line source (defaults to the terminal)

    Returns:
        The session summary
    """
    connection = DatabaseConnection(config.url(), echo=echo)
    try:
        await connection.test_connection()
        engine = DecisionEngine(
            SchemaIntrospector(connection.engine, config.deleted_at_column),
            SQLAlchemyQueryInterface(connection.engine),
            config,
            formatter,
            deleted_at_column=config.deleted_at_column,
        )
        return await pump_lines(engine, read_line or formatter.read_line)
    finally:
        await connection.close()


def scan_command(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            envvar="SOFTCASCADE_CONFIG",
            help="One-line JSON session config (default: ./.spdrc)",
        ),
    ] = None,
) -> None:
    """Scan the database and choose, relation by relation, which cascades to install.

    Relations whose trigger already exists are skipped, so the scan can be
    repeated safely. The command exits 0 when the session closes, however
    many relations were left unprocessed.

    Examples:

        softcascade scan
        softcascade scan --config ./config/.spdrc
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter()

    try:
        config = load_session_config(get_config_path(config_path))
        summary = asyncio.run(run_scan_session(config, formatter, echo=cli_ctx.echo))
    except SoftCascadeError as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    formatter.print_summary(summary)
