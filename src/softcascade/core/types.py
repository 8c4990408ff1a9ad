"""Core types for softcascade.

Models accept the camelCase keys used in JSON configuration files and in
migration column definitions, as well as their snake_case field names.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.engine import URL

from softcascade.exceptions import ConfigurationError

DialectName = Literal["mysql", "sqlite"]

DEFAULT_DELETED_AT_COLUMN = "deletedAt"
DEFAULT_PRIMARY_KEY = "id"


class CascadePolicy(StrEnum):
    """Referential actions accepted as the ``onDelete`` of a column spec."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"
    PARANOID_CASCADE = "PARANOID CASCADE"  # Soft-delete cascade through a trigger

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid policy values."""
        return [p.value for p in cls]


class ForeignKeyRelation(BaseModel):
    """One foreign key from ``table_name.column_name`` to the referenced column."""

    table_name: str
    column_name: str
    referenced_table_name: str
    referenced_column_name: str

    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        return (
            f"{self.table_name}.{self.column_name} -> "
            f"{self.referenced_table_name}.{self.referenced_column_name}"
        )


class FilterConfig(BaseModel):
    """Which soft-delete tables and relations an interactive scan considers."""

    schema_name: str | None = Field(default=None, alias="schema")
    allow_list_tables: list[str] | None = Field(default=None, alias="allowListTables")
    deny_list_tables: list[str] | None = Field(default=None, alias="denyListTables")
    tenant_columns: list[str] | None = Field(default=None, alias="tenantColumns")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def ensure_exclusive(self) -> None:
        """Reject configurations that set both table lists.

        Raises:
            ConfigurationError: If allow and deny lists are both set
        """
        if self.allow_list_tables is not None and self.deny_list_tables is not None:
            raise ConfigurationError(
                "You can only use either allowListTables or denyListTables, not both",
                {
                    "allow_list_tables": self.allow_list_tables,
                    "deny_list_tables": self.deny_list_tables,
                },
            )

    def includes_table(self, table_name: str) -> bool:
        """Check a soft-delete table against the allow or deny list."""
        if self.allow_list_tables is not None:
            return table_name in self.allow_list_tables
        if self.deny_list_tables is not None:
            return table_name not in self.deny_list_tables
        return True

    def includes_relation(self, relation: ForeignKeyRelation) -> bool:
        """Relations that point at a tenant key never cascade."""
        if self.tenant_columns is not None:
            return relation.referenced_column_name not in self.tenant_columns
        return True


class SessionConfig(FilterConfig):
    """Connection parameters plus filters, as read from the ``.spdrc`` file."""

    dbname: str
    username: str | None = None
    password: str | None = None
    host: str | None = None
    port: int | None = None
    dialect: DialectName = "mysql"
    deleted_at_column: str = Field(default=DEFAULT_DELETED_AT_COLUMN, alias="deletedAtColumn")

    def url(self) -> URL:
        """Build the async SQLAlchemy URL for this configuration."""
        if self.dialect == "sqlite":
            return URL.create("sqlite+aiosqlite", database=self.dbname)
        return URL.create(
            "mysql+aiomysql",
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.dbname,
        )


class ColumnReference(BaseModel):
    """Target of a foreign key column: a table and, optionally, its key column."""

    model: str
    key: str | None = None

    model_config = ConfigDict(frozen=True)


class ColumnSpec(BaseModel):
    """Column definition passed to ``add_column`` and ``create_table``.

    ``type`` is a SQLAlchemy type class or instance. ``on_delete`` is parsed into
    a :class:`CascadePolicy`, so a misspelled policy fails loudly instead of
    silently skipping trigger synthesis.
    """

    type: Any = None
    allow_null: bool = Field(default=True, alias="allowNull")
    primary_key: bool = Field(default=False, alias="primaryKey")
    auto_increment: bool = Field(default=False, alias="autoIncrement")
    unique: bool = False
    default: Any = Field(default=None, alias="defaultValue")
    references: str | ColumnReference | None = None
    on_delete: CascadePolicy | None = Field(default=None, alias="onDelete")
    on_update: CascadePolicy | None = Field(default=None, alias="onUpdate")

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, frozen=True)

    @classmethod
    def coerce(cls, spec: ColumnSpec | Mapping[str, Any] | Any) -> ColumnSpec:
        """Turn a spec, a mapping, or a bare column type into a ColumnSpec."""
        if isinstance(spec, ColumnSpec):
            return spec
        if isinstance(spec, Mapping):
            return cls.model_validate(dict(spec))
        return cls(type=spec)

    @property
    def is_paranoid_cascade(self) -> bool:
        return self.on_delete is CascadePolicy.PARANOID_CASCADE

    @property
    def referenced_table(self) -> str | None:
        if isinstance(self.references, ColumnReference):
            return self.references.model
        return self.references

    @property
    def referenced_key(self) -> str | None:
        if isinstance(self.references, ColumnReference):
            return self.references.key
        return None
