"""Migration interface and the paranoid cascade decorator."""

from softcascade.migration.interface import QueryInterface, SQLAlchemyQueryInterface
from softcascade.migration.paranoid import (
    ParanoidQueryInterface,
    paranoid_query_interface,
    resolve_cascade_parent,
)

__all__ = [
    "ParanoidQueryInterface",
    "QueryInterface",
    "SQLAlchemyQueryInterface",
    "paranoid_query_interface",
    "resolve_cascade_parent",
]
