"""Relation discovery: filter, exclude tenant keys, and deduplicate."""

from __future__ import annotations

from collections.abc import Iterable

from softcascade.core.types import FilterConfig, ForeignKeyRelation
from softcascade.schema.introspection import Introspector
from softcascade.triggers.statements import build_trigger_name


def relation_key(relation: ForeignKeyRelation) -> str:
    """Deduplication key of a relation: the name of its trigger."""
    return build_trigger_name(relation.referenced_table_name, relation.table_name)


def dedupe(relations: Iterable[ForeignKeyRelation]) -> list[ForeignKeyRelation]:
    """Keep one relation per (referenced table, table) pair.

    The last relation seen for a pair wins, placed where the pair first
    appeared. Only one trigger is created per pair, so which of several
    columns produced it does not matter.
    """
    uniques: dict[str, ForeignKeyRelation] = {}
    for relation in relations:
        uniques[relation_key(relation)] = relation
    return list(uniques.values())


async def discover_relations(
    introspector: Introspector, config: FilterConfig
) -> list[ForeignKeyRelation]:
    """Find the cascade candidates for an interactive session.

    Args:
        introspector: Schema source
        config: Table lists and tenant columns to apply

    Returns:
        Deduplicated relations between soft-delete tables
    """
    table_names = {
        name
        for name in await introspector.get_soft_delete_table_names(config.schema_name)
        if config.includes_table(name)
    }
    relations = await introspector.get_foreign_keys_table_relations(
        table_names, config.schema_name
    )
    return dedupe(relation for relation in relations if config.includes_relation(relation))
