"""Trigger statement builders."""

from softcascade.triggers.statements import (
    build_create_trigger_statement,
    build_exists_trigger_statement,
    build_trigger_name,
)

__all__ = [
    "build_create_trigger_statement",
    "build_exists_trigger_statement",
    "build_trigger_name",
]
