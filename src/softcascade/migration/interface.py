"""Schema migration interface and its SQLAlchemy implementation.

:class:`QueryInterface` is the operation set migrations are written against.
:class:`SQLAlchemyQueryInterface` renders those operations as DDL on an
``AsyncEngine``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, ForeignKey, MetaData, Table, literal
from sqlalchemy.sql.elements import ClauseElement
from sqlalchemy.schema import CreateColumn

from softcascade.core.types import DEFAULT_PRIMARY_KEY, CascadePolicy, ColumnSpec

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

ColumnSpecInput = ColumnSpec | Mapping[str, Any] | Any


class QueryInterface(ABC):
    """Asynchronous schema migration operations.

    Implementations propagate failures from the database unchanged.
    """

    @property
    @abstractmethod
    def engine(self) -> AsyncEngine:
        """The raw execution capability behind this interface."""

    @property
    @abstractmethod
    def dialect(self) -> str:
        """Name of the database dialect, e.g. "mysql" or "sqlite"."""

    @abstractmethod
    async def execute(self, sql: str) -> list[tuple[Any, ...]]:
        """Run one SQL statement and return its rows (empty when none)."""

    @abstractmethod
    async def add_column(self, table_name: str, column_name: str, spec: ColumnSpecInput) -> None:
        """Add a column to an existing table."""

    @abstractmethod
    async def remove_column(self, table_name: str, column_name: str) -> None:
        """Drop a column."""

    @abstractmethod
    async def rename_column(self, table_name: str, old_name: str, new_name: str) -> None:
        """Rename a column."""

    @abstractmethod
    async def create_table(self, table_name: str, columns: Mapping[str, ColumnSpecInput]) -> None:
        """Create a table from a mapping of column name to column spec."""

    @abstractmethod
    async def drop_table(self, table_name: str) -> None:
        """Drop a table."""

    @abstractmethod
    async def add_index(
        self,
        table_name: str,
        columns: list[str],
        name: str | None = None,
        unique: bool = False,
    ) -> None:
        """Create an index over one or more columns."""

    @abstractmethod
    async def remove_index(self, table_name: str, name: str) -> None:
        """Drop an index."""


def _server_default(value: Any) -> str | ClauseElement | None:
    """Wrap a plain Python default so the DDL compiler renders it as a literal."""
    if value is None or isinstance(value, str | ClauseElement):
        return value
    return literal(value)


def _build_column(column_name: str, spec: ColumnSpec) -> Column[Any]:
    """Build a SQLAlchemy column from a column spec.

    A paranoid cascade is enforced by trigger, so its foreign key carries no
    database ON DELETE action.
    """
    args: list[Any] = []
    if spec.type is not None:
        args.append(spec.type)
    if spec.referenced_table is not None:
        on_delete = None
        if spec.on_delete is not None and spec.on_delete is not CascadePolicy.PARANOID_CASCADE:
            on_delete = spec.on_delete.value
        on_update = spec.on_update.value if spec.on_update is not None else None
        key = spec.referenced_key or DEFAULT_PRIMARY_KEY
        args.append(
            ForeignKey(f"{spec.referenced_table}.{key}", ondelete=on_delete, onupdate=on_update)
        )

    return Column(
        column_name,
        *args,
        primary_key=spec.primary_key,
        nullable=spec.allow_null and not spec.primary_key,
        unique=spec.unique or None,
        autoincrement=True if spec.auto_increment else "auto",
        server_default=_server_default(spec.default),
    )


def _reflect_referenced(
    conn: Connection, metadata: MetaData, specs: Iterable[ColumnSpec], skip: str | None = None
) -> None:
    """Load referenced tables into ``metadata`` so foreign keys can resolve."""
    for spec in specs:
        parent = spec.referenced_table
        if parent is None or parent == skip or parent in metadata.tables:
            continue
        Table(parent, metadata, autoload_with=conn)


class SQLAlchemyQueryInterface(QueryInterface):
    """Query interface backed by a SQLAlchemy ``AsyncEngine``.

    Each operation runs in its own transaction.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize the interface.

        Args:
            engine: Async SQLAlchemy engine
        """
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def dialect(self) -> str:
        return self._engine.dialect.name

    def _quote(self, identifier: str) -> str:
        return self._engine.dialect.identifier_preparer.quote(identifier)

    async def _run_ddl(self, statement: str) -> None:
        async with self._engine.begin() as conn:
            await conn.exec_driver_sql(statement)

    async def execute(self, sql: str) -> list[tuple[Any, ...]]:
        async with self._engine.begin() as conn:
            result = await conn.exec_driver_sql(sql)
            if not result.returns_rows:
                return []
            return [tuple(row) for row in result.fetchall()]

    async def add_column(self, table_name: str, column_name: str, spec: ColumnSpecInput) -> None:
        column_spec = ColumnSpec.coerce(spec)

        def _add(conn: Connection) -> None:
            metadata = MetaData()
            _reflect_referenced(conn, metadata, [column_spec])
            column = _build_column(column_name, column_spec)
            Table(table_name, metadata, column, extend_existing=True)

            preparer = conn.dialect.identifier_preparer
            references = []
            for fk in column.foreign_keys:
                target = fk.column
                reference = (
                    f"REFERENCES {preparer.quote(target.table.name)} "
                    f"({preparer.quote(target.name)})"
                )
                if fk.ondelete:
                    reference += f" ON DELETE {fk.ondelete}"
                if fk.onupdate:
                    reference += f" ON UPDATE {fk.onupdate}"
                references.append(reference)

            column_ddl = str(CreateColumn(column).compile(dialect=conn.dialect))
            statement = f"ALTER TABLE {preparer.quote(table_name)} ADD COLUMN {column_ddl}"
            for reference in references:
                if conn.dialect.name == "sqlite":
                    # SQLite only accepts the constraint inline on the new column
                    statement += f" {reference}"
                else:
                    statement += f", ADD FOREIGN KEY ({preparer.quote(column_name)}) {reference}"

            logger.debug(f"Adding column {table_name}.{column_name}")
            conn.exec_driver_sql(statement)

        async with self._engine.begin() as conn:
            await conn.run_sync(_add)

    async def remove_column(self, table_name: str, column_name: str) -> None:
        await self._run_ddl(
            f"ALTER TABLE {self._quote(table_name)} DROP COLUMN {self._quote(column_name)}"
        )

    async def rename_column(self, table_name: str, old_name: str, new_name: str) -> None:
        await self._run_ddl(
            f"ALTER TABLE {self._quote(table_name)} "
            f"RENAME COLUMN {self._quote(old_name)} TO {self._quote(new_name)}"
        )

    async def create_table(self, table_name: str, columns: Mapping[str, ColumnSpecInput]) -> None:
        specs = {name: ColumnSpec.coerce(spec) for name, spec in columns.items()}

        def _create(conn: Connection) -> None:
            metadata = MetaData()
            _reflect_referenced(conn, metadata, specs.values(), skip=table_name)
            table = Table(
                table_name,
                metadata,
                *[_build_column(name, spec) for name, spec in specs.items()],
            )
            logger.debug(f"Creating table {table_name}")
            table.create(conn)

        async with self._engine.begin() as conn:
            await conn.run_sync(_create)

    async def drop_table(self, table_name: str) -> None:
        await self._run_ddl(f"DROP TABLE {self._quote(table_name)}")

    async def add_index(
        self,
        table_name: str,
        columns: list[str],
        name: str | None = None,
        unique: bool = False,
    ) -> None:
        index_name = name or f"{table_name}_{'_'.join(columns)}"
        column_list = ", ".join(self._quote(column) for column in columns)
        kind = "UNIQUE INDEX" if unique else "INDEX"
        await self._run_ddl(
            f"CREATE {kind} {self._quote(index_name)} "
            f"ON {self._quote(table_name)} ({column_list})"
        )

    async def remove_index(self, table_name: str, name: str) -> None:
        if self.dialect == "mysql":
            await self._run_ddl(f"DROP INDEX {self._quote(name)} ON {self._quote(table_name)}")
        else:
            await self._run_ddl(f"DROP INDEX {self._quote(name)}")
