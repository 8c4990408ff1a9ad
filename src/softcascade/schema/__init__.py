"""Schema introspection and relation discovery."""

from softcascade.schema.introspection import Introspector, SchemaIntrospector
from softcascade.schema.relations import dedupe, discover_relations, relation_key

__all__ = ["Introspector", "SchemaIntrospector", "dedupe", "discover_relations", "relation_key"]
