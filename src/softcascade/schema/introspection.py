"""Read-only schema queries used to discover soft-delete relations."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import DateTime, inspect
from sqlalchemy.exc import SQLAlchemyError

from softcascade.core.types import DEFAULT_DELETED_AT_COLUMN, ForeignKeyRelation
from softcascade.exceptions import SetupError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


class Introspector(Protocol):
    """What the decision engine needs to know about a schema."""

    async def get_soft_delete_table_names(self, schema: str | None) -> set[str]: ...

    async def get_foreign_keys_table_relations(
        self, table_names: Iterable[str], schema: str | None
    ) -> list[ForeignKeyRelation]: ...


class SchemaIntrospector:
    """Introspects a live database through SQLAlchemy's inspector."""

    def __init__(
        self, engine: AsyncEngine, deleted_at_column: str = DEFAULT_DELETED_AT_COLUMN
    ) -> None:
        """Initialize the introspector.

        Args:
            engine: Async SQLAlchemy engine
            deleted_at_column: Name of the soft-delete timestamp column
        """
        self._engine = engine
        self._deleted_at_column = deleted_at_column

    async def get_soft_delete_table_names(self, schema: str | None) -> set[str]:
        """Get tables carrying a nullable soft-delete timestamp column.

        Args:
            schema: Schema to scan (None for the connection's default)

        Returns:
            Set of table names

        Raises:
            SetupError: If the schema cannot be read
        """

        def _scan(conn: Connection) -> set[str]:
            inspector = inspect(conn)
            names = set()
            for table_name in inspector.get_table_names(schema=schema):
                for column in inspector.get_columns(table_name, schema=schema):
                    if (
                        column["name"] == self._deleted_at_column
                        and column["nullable"]
                        and isinstance(column["type"], DateTime)
                    ):
                        names.add(table_name)
                        break
            return names

        try:
            async with self._engine.connect() as conn:
                names = await conn.run_sync(_scan)
        except SQLAlchemyError as e:
            raise SetupError("list soft-delete tables", str(e)) from e

        logger.info(f"Found {len(names)} table(s) with a {self._deleted_at_column} column")
        return names

    async def get_foreign_keys_table_relations(
        self, table_names: Iterable[str], schema: str | None
    ) -> list[ForeignKeyRelation]:
        """Get foreign keys whose source table is one of ``table_names``.

        Composite foreign keys yield one relation per column pair.

        Raises:
            SetupError: If the schema cannot be read
        """
        tables = sorted(table_names)

        def _scan(conn: Connection) -> list[ForeignKeyRelation]:
            inspector = inspect(conn)
            relations = []
            for table_name in tables:
                for fk in inspector.get_foreign_keys(table_name, schema=schema):
                    pairs = zip(fk["constrained_columns"], fk["referred_columns"], strict=False)
                    for column_name, referenced_column_name in pairs:
                        if referenced_column_name is None:
                            continue
                        relations.append(
                            ForeignKeyRelation(
                                table_name=table_name,
                                column_name=column_name,
                                referenced_table_name=fk["referred_table"],
                                referenced_column_name=referenced_column_name,
                            )
                        )
            return relations

        try:
            async with self._engine.connect() as conn:
                relations = await conn.run_sync(_scan)
        except SQLAlchemyError as e:
            raise SetupError("list foreign keys", str(e)) from e

        logger.debug(f"Found {len(relations)} foreign key relation(s)")
        return relations
