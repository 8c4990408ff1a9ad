"""Core types and connection management for softcascade."""

from softcascade.core.connection import DatabaseConnection
from softcascade.core.types import (
    DEFAULT_DELETED_AT_COLUMN,
    DEFAULT_PRIMARY_KEY,
    CascadePolicy,
    ColumnReference,
    ColumnSpec,
    DialectName,
    FilterConfig,
    ForeignKeyRelation,
    SessionConfig,
)

__all__ = [
    "DEFAULT_DELETED_AT_COLUMN",
    "DEFAULT_PRIMARY_KEY",
    "CascadePolicy",
    "ColumnReference",
    "ColumnSpec",
    "DatabaseConnection",
    "DialectName",
    "FilterConfig",
    "ForeignKeyRelation",
    "SessionConfig",
]
