"""Interactive decision engine.

Drives a scan session one relation at a time: the operator confirms a scan,
then decides per relation whether to install a cascade trigger. Relations
whose trigger already exists are dropped before they are offered, so running
a session twice never offers the same relation again.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError

from softcascade.core.types import DEFAULT_DELETED_AT_COLUMN, FilterConfig, ForeignKeyRelation
from softcascade.exceptions import InvalidInputError, SetupError, TriggerCreationError
from softcascade.migration.interface import QueryInterface
from softcascade.schema.introspection import Introspector
from softcascade.schema.relations import discover_relations
from softcascade.session.machine import Decision, Effect, SessionState, Transition, transition
from softcascade.triggers.statements import (
    build_create_trigger_statement,
    build_exists_trigger_statement,
    build_trigger_name,
)

logger = logging.getLogger(__name__)

CLOSE_MESSAGE = "There are no more relations to process. Exiting..."
NOT_IMPLEMENTED_MESSAGE = "Not implemented yet."


class SessionOutput(Protocol):
    """Console the engine reports to."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, error: Exception) -> None: ...

    def menu(self, entries: list[tuple[str, str]]) -> None: ...


@dataclass
class SessionSummary:
    """What happened to the relations of one session."""

    discovered: int = 0
    covered: int = 0
    created: int = 0
    failed: int = 0
    skipped: int = 0
    remaining: int = 0


def scan_prompt(deleted_at_column: str = DEFAULT_DELETED_AT_COLUMN) -> str:
    return (
        f"Database will be scanned for tables with {deleted_at_column} column. "
        "Do you want to continue? (y/n) "
    )


def relation_prompt(relation: ForeignKeyRelation) -> str:
    keys = ",".join([*(d.value for d in Decision), "q", "?"])
    return (
        f"What do you want to do with {relation.table_name} "
        f"when {relation.referenced_table_name} is deleted [{keys}]? "
    )


def _first_value(rows: list[tuple[Any, ...]] | None) -> Any:
    if not rows or not rows[0]:
        return None
    return rows[0][0]


class DecisionEngine:
    """Executes the effects of :func:`transition` against a database."""

    def __init__(
        self,
        introspector: Introspector,
        query_interface: QueryInterface,
        config: FilterConfig,
        output: SessionOutput,
        deleted_at_column: str = DEFAULT_DELETED_AT_COLUMN,
    ) -> None:
        """Initialize the engine.

        Args:
            introspector: Source of soft-delete tables and foreign keys
            query_interface: Executes existence checks and trigger statements
            config: Table filters and tenant columns
            output: Console to report to
            deleted_at_column: Soft-delete timestamp column name

        Raises:
            ConfigurationError: If both allow and deny lists are set
        """
        config.ensure_exclusive()
        self._introspector = introspector
        self._query_interface = query_interface
        self._config = config
        self._output = output
        self._deleted_at_column = deleted_at_column
        self._queue: deque[ForeignKeyRelation] = deque()
        self.state = SessionState.AWAITING_SCAN_CONFIRMATION
        self.summary = SessionSummary()
        self._closed_reported = False

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def pending(self) -> tuple[ForeignKeyRelation, ...]:
        """Relations still queued, head first."""
        return tuple(self._queue)

    @property
    def current(self) -> ForeignKeyRelation | None:
        return self._queue[0] if self._queue else None

    @property
    def prompt_text(self) -> str:
        if self.state is SessionState.AWAITING_DECISION and self._queue:
            return relation_prompt(self._queue[0])
        return scan_prompt(self._deleted_at_column)

    async def handle(self, line: str) -> SessionState:
        """Process one line of operator input.

        Raises:
            SetupError: If the scan cannot read the schema or an existence check fails
        """
        step = transition(self.state, line)
        self.state = step.state
        for effect in step.effects:
            await self._apply(effect, step, line)
        return self.state

    async def close(self) -> None:
        """Close the session, reporting once."""
        if self._closed_reported:
            return
        self.state = SessionState.CLOSED
        self._closed_reported = True
        self.summary.remaining = len(self._queue)
        self._output.info(CLOSE_MESSAGE)

    async def _apply(self, effect: Effect, step: Transition, line: str) -> None:
        if effect is Effect.SCAN:
            await self._scan()
        elif effect is Effect.CREATE_TRIGGER:
            await self._create_trigger()
        elif effect is Effect.DEQUEUE:
            self._queue.popleft()
            if step.decision is Decision.SKIP:
                self.summary.skipped += 1
        elif effect is Effect.ADVANCE:
            await self._advance()
        elif effect is Effect.RESERVED:
            logger.debug(f"Reserved decision '{step.decision}' selected")
            self._output.warning(NOT_IMPLEMENTED_MESSAGE)
        elif effect is Effect.SHOW_MENU:
            self._output.menu([(d.value, f"{d.description}.") for d in Decision])
        elif effect is Effect.INVALID:
            error = InvalidInputError(line.strip(), str(self.state))
            logger.debug(f"Invalid input {line.strip()!r} in state {self.state}")
            self._output.error(error)
        elif effect is Effect.CLOSE:
            await self.close()

    async def _scan(self) -> None:
        relations = await discover_relations(self._introspector, self._config)
        self._queue = deque(relations)
        self.summary.discovered = len(relations)
        logger.info(f"Scan found {len(relations)} candidate relation(s)")

    async def _create_trigger(self) -> None:
        relation = self._queue[0]
        statement = build_create_trigger_statement(
            relation.referenced_table_name,
            relation.referenced_column_name,
            relation.table_name,
            relation.column_name,
            dialect=self._query_interface.dialect,
            deleted_at_column=self._deleted_at_column,
            schema=self._config.schema_name,
        )
        try:
            await self._query_interface.execute(statement)
        except Exception as e:
            error = TriggerCreationError(
                build_trigger_name(relation.referenced_table_name, relation.table_name), str(e)
            )
            logger.error(f"{error.message} ({relation.describe()})")
            self._output.error(error)
            self.summary.failed += 1
            return

        self.summary.created += 1
        logger.info(f"Created trigger for {relation.describe()}")
        self._output.success(
            f"Created trigger for {relation.table_name} "
            f"when {relation.referenced_table_name} is marked as deleted."
        )

    async def _advance(self) -> None:
        relation = await self._next_uncovered()
        if relation is None:
            await self.close()
        else:
            self.state = SessionState.AWAITING_DECISION

    async def _next_uncovered(self) -> ForeignKeyRelation | None:
        """Drop relations whose trigger already exists; return the new head."""
        while self._queue:
            relation = self._queue[0]
            statement = build_exists_trigger_statement(
                relation.referenced_table_name,
                relation.table_name,
                dialect=self._query_interface.dialect,
                schema=self._config.schema_name,
            )
            try:
                rows = await self._query_interface.execute(statement)
            except SQLAlchemyError as e:
                name = build_trigger_name(relation.referenced_table_name, relation.table_name)
                raise SetupError(f"check trigger {name}", str(e)) from e
            if not _first_value(rows):
                return relation

            logger.info(f"Trigger already covers {relation.describe()}, skipping")
            self._queue.popleft()
            self.summary.covered += 1
        return None
