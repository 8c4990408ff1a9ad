"""Print trigger SQL without touching a database."""

from typing import Annotated

import typer

from softcascade.cli.output import OutputFormatter
from softcascade.core.types import DEFAULT_DELETED_AT_COLUMN, DEFAULT_PRIMARY_KEY
from softcascade.exceptions import SoftCascadeError
from softcascade.triggers.statements import (
    build_create_trigger_statement,
    build_exists_trigger_statement,
)


def trigger_command(
    parent_table: Annotated[str, typer.Argument(help="Table whose soft delete cascades")],
    child_table: Annotated[str, typer.Argument(help="Table that references the parent")],
    child_key: Annotated[str, typer.Argument(help="Foreign key column on the child table")],
    parent_key: Annotated[
        str,
        typer.Option("--parent-key", "-p", help="Referenced column on the parent table"),
    ] = DEFAULT_PRIMARY_KEY,
    dialect: Annotated[
        str,
        typer.Option("--dialect", help="SQL dialect (mysql or sqlite)"),
    ] = "mysql",
    deleted_at_column: Annotated[
        str,
        typer.Option("--deleted-at-column", help="Soft-delete timestamp column"),
    ] = DEFAULT_DELETED_AT_COLUMN,
    schema: Annotated[
        str | None,
        typer.Option("--schema", help="Schema holding both tables (default: the current one)"),
    ] = None,
    exists: Annotated[
        bool,
        typer.Option("--exists", help="Print the existence check instead"),
    ] = False,
) -> None:
    """Print the SQL that installs (or checks for) a cascade trigger.

    Examples:

        softcascade trigger customers orders customer_id
        softcascade trigger customers orders customer_id --dialect sqlite --exists
    """
    formatter = OutputFormatter()

    try:
        if exists:
            sql = build_exists_trigger_statement(
                parent_table, child_table, dialect=dialect, schema=schema
            )
        else:
            sql = build_create_trigger_statement(
                parent_table,
                parent_key,
                child_table,
                child_key,
                dialect=dialect,
                deleted_at_column=deleted_at_column,
                schema=schema,
            )
    except SoftCascadeError as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    formatter.print_sql(sql)
