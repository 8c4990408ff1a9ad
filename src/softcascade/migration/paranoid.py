"""Query interface decorator that installs soft-delete cascade triggers.

Wrap the interface a migration runs against::

    qi = paranoid_query_interface(SQLAlchemyQueryInterface(engine))
    await qi.create_table(
        "orders",
        {
            "id": {"type": Integer, "primaryKey": True},
            "customer_id": {
                "type": Integer,
                "references": "customers",
                "onDelete": CascadePolicy.PARANOID_CASCADE,
            },
        },
    )

After the table exists, ``on_customers_delete_update_orders`` is created.
No existence check is made here: declaring the same cascade twice across
migrations creates the trigger twice and fails on the second attempt.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from softcascade.core.types import (
    DEFAULT_DELETED_AT_COLUMN,
    DEFAULT_PRIMARY_KEY,
    CascadePolicy,
    ColumnSpec,
)
from softcascade.migration.interface import ColumnSpecInput, QueryInterface
from softcascade.triggers.statements import build_create_trigger_statement

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

PrimaryKeyResolver = Callable[[str], str | None]


def _requests_paranoid_cascade(spec: ColumnSpecInput) -> bool:
    """Check the ``onDelete`` value without validating the rest of the spec."""
    if isinstance(spec, ColumnSpec):
        return spec.is_paranoid_cascade
    if isinstance(spec, Mapping):
        on_delete = spec.get("onDelete", spec.get("on_delete"))
        return isinstance(on_delete, str) and on_delete == CascadePolicy.PARANOID_CASCADE
    return False


def resolve_cascade_parent(
    spec: ColumnSpecInput,
    get_primary_key: PrimaryKeyResolver | None = None,
) -> tuple[str, str] | None:
    """Find the parent table and key of a paranoid cascade column.

    The key is the explicit ``references.key``, else the resolver's answer for
    the parent table, else ``id``. Specs without the annotation are not
    parsed, so their validation is left to the wrapped interface.

    Returns:
        ``(parent_table, parent_key)``, or None when the column carries no
        paranoid cascade annotation
    """
    if not _requests_paranoid_cascade(spec):
        return None

    column = ColumnSpec.coerce(spec)

    parent_table = column.referenced_table
    if parent_table is None:
        return None

    parent_key = column.referenced_key
    if parent_key is None and get_primary_key is not None:
        parent_key = get_primary_key(parent_table)
    return parent_table, parent_key or DEFAULT_PRIMARY_KEY


class ParanoidQueryInterface(QueryInterface):
    """Forwards every operation to the wrapped interface.

    ``add_column`` and ``create_table`` additionally create a cascade trigger
    for each column annotated with ``CascadePolicy.PARANOID_CASCADE``, once the
    wrapped operation has completed. A failing operation propagates unchanged
    and no trigger is attempted.
    """

    def __init__(
        self,
        inner: QueryInterface,
        get_primary_key: PrimaryKeyResolver | None = None,
        deleted_at_column: str = DEFAULT_DELETED_AT_COLUMN,
    ) -> None:
        self._inner = inner
        self._get_primary_key = get_primary_key
        self._deleted_at_column = deleted_at_column

    @property
    def engine(self) -> AsyncEngine:
        return self._inner.engine

    @property
    def dialect(self) -> str:
        return self._inner.dialect

    def _trigger_statement(
        self, parent_table: str, parent_key: str, child_table: str, child_key: str
    ) -> str:
        return build_create_trigger_statement(
            parent_table,
            parent_key,
            child_table,
            child_key,
            dialect=self._inner.dialect,
            deleted_at_column=self._deleted_at_column,
        )

    async def execute(self, sql: str) -> list[tuple[Any, ...]]:
        return await self._inner.execute(sql)

    async def add_column(self, table_name: str, column_name: str, spec: ColumnSpecInput) -> None:
        parent = resolve_cascade_parent(spec, self._get_primary_key)
        result = await self._inner.add_column(table_name, column_name, spec)

        if parent is not None:
            parent_table, parent_key = parent
            statement = self._trigger_statement(parent_table, parent_key, table_name, column_name)
            await self._inner.execute(statement)
            logger.info(
                f"Created cascade trigger {parent_table}.{parent_key} -> {table_name}.{column_name}"
            )

        return result

    async def create_table(self, table_name: str, columns: Mapping[str, ColumnSpecInput]) -> None:
        parents = {
            column_name: parent
            for column_name, spec in columns.items()
            if (parent := resolve_cascade_parent(spec, self._get_primary_key)) is not None
        }
        result = await self._inner.create_table(table_name, columns)

        statements = [
            self._trigger_statement(parent_table, parent_key, table_name, column_name)
            for column_name, (parent_table, parent_key) in parents.items()
        ]
        if statements:
            await asyncio.gather(*(self._inner.execute(statement) for statement in statements))
            logger.info(f"Created {len(statements)} cascade trigger(s) for table {table_name}")

        return result

    async def remove_column(self, table_name: str, column_name: str) -> None:
        return await self._inner.remove_column(table_name, column_name)

    async def rename_column(self, table_name: str, old_name: str, new_name: str) -> None:
        return await self._inner.rename_column(table_name, old_name, new_name)

    async def drop_table(self, table_name: str) -> None:
        return await self._inner.drop_table(table_name)

    async def add_index(
        self,
        table_name: str,
        columns: list[str],
        name: str | None = None,
        unique: bool = False,
    ) -> None:
        return await self._inner.add_index(table_name, columns, name=name, unique=unique)

    async def remove_index(self, table_name: str, name: str) -> None:
        return await self._inner.remove_index(table_name, name)


def paranoid_query_interface(
    query_interface: QueryInterface,
    get_primary_key: PrimaryKeyResolver | None = None,
    deleted_at_column: str = DEFAULT_DELETED_AT_COLUMN,
) -> ParanoidQueryInterface:
    """Decorate a query interface with paranoid cascade trigger synthesis.

    Args:
        query_interface: Interface the migrations run against
        get_primary_key: Optional resolver from parent table name to its key column
        deleted_at_column: Soft-delete timestamp column name

    Returns:
        Interface with the same operations plus trigger side effects
    """
    return ParanoidQueryInterface(
        query_interface,
        get_primary_key=get_primary_key,
        deleted_at_column=deleted_at_column,
    )
