"""SQL for soft-delete cascade triggers.

Pure functions, no I/O. A trigger is installed on the parent table and fires
after an update that moves the parent's soft-delete column from NULL to a
timestamp; it then stamps every child row pointing at that parent.

Trigger names are derived from the (parent, child) table pair only, so there is
at most one trigger per pair no matter how many child columns reference the
parent.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.dialects import mysql, sqlite
from sqlalchemy.sql.compiler import IdentifierPreparer

from softcascade.core.types import DEFAULT_DELETED_AT_COLUMN
from softcascade.exceptions import UnsupportedDialectError

_PREPARERS: dict[str, IdentifierPreparer] = {
    "mysql": mysql.dialect().identifier_preparer,
    "sqlite": sqlite.dialect().identifier_preparer,
}


def _preparer(dialect: str) -> IdentifierPreparer:
    try:
        return _PREPARERS[dialect]
    except KeyError:
        raise UnsupportedDialectError(dialect) from None


def _literal(value: str) -> str:
    """Render a SQL string literal."""
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def _qualified(quote: Callable[[str], str], schema: str | None, name: str) -> str:
    if schema:
        return f"{quote(schema)}.{quote(name)}"
    return quote(name)


def build_trigger_name(parent_table: str, child_table: str) -> str:
    """Build the deterministic trigger name for a (parent, child) pair.

    Args:
        parent_table: Table whose soft delete fires the trigger
        child_table: Table whose rows get stamped

    Returns:
        Trigger name, e.g. "on_customers_delete_update_orders"
    """
    return f"on_{parent_table}_delete_update_{child_table}"


def build_create_trigger_statement(
    parent_table: str,
    parent_key: str,
    child_table: str,
    child_key: str,
    dialect: str = "mysql",
    deleted_at_column: str = DEFAULT_DELETED_AT_COLUMN,
    schema: str | None = None,
) -> str:
    """Build the CREATE TRIGGER statement cascading a soft delete.

    The statement is not idempotent. Check for an existing trigger with
    :func:`build_exists_trigger_statement` before running it.

    Args:
        parent_table: Referenced table
        parent_key: Referenced column on the parent, usually its primary key
        child_table: Dependent table
        child_key: Foreign key column on the child
        dialect: "mysql" or "sqlite"
        deleted_at_column: Soft-delete timestamp column present on both tables
        schema: Schema (MySQL database, SQLite attached database) holding both
            tables; None for the connection's default

    Returns:
        SQL text

    Raises:
        UnsupportedDialectError: If the dialect cannot be rendered
    """
    quote = _preparer(dialect).quote_identifier
    name = _qualified(quote, schema, build_trigger_name(parent_table, child_table))
    deleted_at = quote(deleted_at_column)

    if dialect == "sqlite":
        # SQLite has no procedural IF, the guard goes into the WHEN clause.
        # Tables inside a trigger must be unqualified and live in the trigger's schema.
        return f"""
CREATE TRIGGER {name}
AFTER UPDATE
ON {quote(parent_table)} FOR EACH ROW
WHEN OLD.{deleted_at} IS NULL AND NEW.{deleted_at} IS NOT NULL
BEGIN
  UPDATE {quote(child_table)}
    SET {deleted_at} = CURRENT_TIMESTAMP
  WHERE {quote(child_key)} = NEW.{quote(parent_key)};
END
""".strip()

    child = quote(child_table)
    return f"""
CREATE TRIGGER {name}
AFTER UPDATE
ON {_qualified(quote, schema, parent_table)} FOR EACH ROW
BEGIN
  IF OLD.{deleted_at} IS NULL AND NEW.{deleted_at} IS NOT NULL THEN
    UPDATE {_qualified(quote, schema, child_table)}
      SET {child}.{deleted_at} = NOW()
    WHERE {child}.{quote(child_key)} = NEW.{quote(parent_key)};
  END IF;
END
""".strip()


def build_exists_trigger_statement(
    parent_table: str,
    child_table: str,
    dialect: str = "mysql",
    schema: str | None = None,
) -> str:
    """Build a query returning a single truthy row if the pair's trigger exists.

    Args:
        parent_table: Referenced table
        child_table: Dependent table
        dialect: "mysql" or "sqlite"
        schema: Schema to look in; None for the connection's default

    Returns:
        SQL text yielding ``1`` or no rows

    Raises:
        UnsupportedDialectError: If the dialect cannot be rendered
    """
    quote = _preparer(dialect).quote_identifier
    name = _literal(build_trigger_name(parent_table, child_table))

    if dialect == "sqlite":
        master = _qualified(quote, schema, "sqlite_master") if schema else "sqlite_master"
        return f"SELECT 1 FROM {master} WHERE type = 'trigger' AND name = {name}"

    scope = _literal(schema) if schema else "DATABASE()"
    return (
        "SELECT 1 FROM information_schema.TRIGGERS "
        f"WHERE TRIGGER_SCHEMA = {scope} AND TRIGGER_NAME = {name}"
    )
