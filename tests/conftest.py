"""Shared test fixtures for softcascade."""

import asyncio
import re
from collections.abc import Iterable, Mapping
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from softcascade.core.types import ForeignKeyRelation
from softcascade.exceptions import SetupError
from softcascade.migration.interface import QueryInterface

_CREATED_NAME = re.compile(r"CREATE TRIGGER (?:[`\"]\w+[`\"]\.)?[`\"](\w+)[`\"]")
_CHECKED_NAME = re.compile(r"name = '(\w+)'", re.IGNORECASE)


class RecordingQueryInterface(QueryInterface):
    """In-memory query interface that records every call.

    Existence checks answer from the set of triggers it has "created", so
    repeated sessions against one instance behave like a real database.
    """

    def __init__(
        self,
        dialect: str = "mysql",
        existing_triggers: Iterable[str] = (),
        fail_operations: Iterable[str] = (),
        fail_triggers: Iterable[str] = (),
        fail_checks: bool = False,
    ) -> None:
        self._dialect = dialect
        self.triggers = set(existing_triggers)
        self.fail_operations = set(fail_operations)
        self.fail_triggers = set(fail_triggers)
        self.fail_checks = fail_checks
        self.calls: list[tuple[Any, ...]] = []
        self.executed: list[str] = []
        self.active = 0
        self.max_active = 0

    @property
    def engine(self) -> Any:
        return "raw-engine"

    @property
    def dialect(self) -> str:
        return self._dialect

    @property
    def create_statements(self) -> list[str]:
        return [sql for sql in self.executed if sql.startswith("CREATE TRIGGER")]

    @property
    def exists_statements(self) -> list[str]:
        return [sql for sql in self.executed if sql.startswith("SELECT")]

    def _record(self, *call: Any) -> None:
        self.calls.append(call)
        if call[0] in self.fail_operations:
            raise RuntimeError(f"{call[0]} failed")

    async def execute(self, sql: str) -> list[tuple[Any, ...]]:
        self.executed.append(sql)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if sql.startswith("SELECT"):
                if self.fail_checks:
                    raise OperationalError(sql, {}, Exception("lost connection"))
                match = _CHECKED_NAME.search(sql)
                return [(1,)] if match and match.group(1) in self.triggers else []
            created = _CREATED_NAME.search(sql)
            if created:
                name = created.group(1)
                if name in self.fail_triggers or name in self.triggers:
                    raise RuntimeError(f"Trigger {name} cannot be created")
                self.triggers.add(name)
            return []
        finally:
            self.active -= 1

    async def add_column(self, table_name: str, column_name: str, spec: Any) -> None:
        self._record("add_column", table_name, column_name, spec)

    async def remove_column(self, table_name: str, column_name: str) -> None:
        self._record("remove_column", table_name, column_name)

    async def rename_column(self, table_name: str, old_name: str, new_name: str) -> None:
        self._record("rename_column", table_name, old_name, new_name)

    async def create_table(self, table_name: str, columns: Mapping[str, Any]) -> None:
        self._record("create_table", table_name, columns)

    async def drop_table(self, table_name: str) -> None:
        self._record("drop_table", table_name)

    async def add_index(
        self,
        table_name: str,
        columns: list[str],
        name: str | None = None,
        unique: bool = False,
    ) -> None:
        self._record("add_index", table_name, columns, name, unique)

    async def remove_index(self, table_name: str, name: str) -> None:
        self._record("remove_index", table_name, name)


class StaticIntrospector:
    """Introspector answering from fixed data."""

    def __init__(
        self,
        soft_delete_tables: Iterable[str],
        relations: Iterable[ForeignKeyRelation],
        fail: bool = False,
    ) -> None:
        self.soft_delete_tables = set(soft_delete_tables)
        self.relations = list(relations)
        self.fail = fail
        self.requested_tables: list[set[str]] = []
        self.scans = 0

    async def get_soft_delete_table_names(self, schema: str | None) -> set[str]:
        self.scans += 1
        if self.fail:
            raise SetupError("list soft-delete tables", "connection lost")
        return set(self.soft_delete_tables)

    async def get_foreign_keys_table_relations(
        self, table_names: Iterable[str], schema: str | None
    ) -> list[ForeignKeyRelation]:
        requested = set(table_names)
        self.requested_tables.append(requested)
        return [r for r in self.relations if r.table_name in requested]


class RecordingOutput:
    """Session console that keeps every message."""

    def __init__(self) -> None:
        self.infos: list[str] = []
        self.successes: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[Exception] = []
        self.menus: list[list[tuple[str, str]]] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def success(self, message: str) -> None:
        self.successes.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, error: Exception) -> None:
        self.errors.append(error)

    def menu(self, entries: list[tuple[str, str]]) -> None:
        self.menus.append(entries)


def relation(
    table_name: str,
    column_name: str,
    referenced_table_name: str,
    referenced_column_name: str = "id",
) -> ForeignKeyRelation:
    return ForeignKeyRelation(
        table_name=table_name,
        column_name=column_name,
        referenced_table_name=referenced_table_name,
        referenced_column_name=referenced_column_name,
    )


@pytest.fixture
def query_interface() -> RecordingQueryInterface:
    return RecordingQueryInterface()


@pytest.fixture
def output() -> RecordingOutput:
    return RecordingOutput()


@pytest.fixture
def shop_introspector() -> StaticIntrospector:
    """customers <- orders, both soft-deletable, no trigger installed yet."""
    return StaticIntrospector(
        soft_delete_tables={"customers", "orders"},
        relations=[relation("orders", "customer_id", "customers")],
    )
