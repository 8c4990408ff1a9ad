"""States, menu keys and the pure transition function of a scan session."""

from __future__ import annotations

from enum import StrEnum
from typing import NamedTuple


class SessionState(StrEnum):
    """Lifecycle of an interactive session."""

    AWAITING_SCAN_CONFIRMATION = "awaiting_scan_confirmation"
    SCANNING = "scanning"
    AWAITING_DECISION = "awaiting_decision"
    CLOSED = "closed"


class Decision(StrEnum):
    """What to do with the relation under consideration."""

    CASCADE = "c"
    NO_ACTION = "na"  # Reserved
    SET_NULL = "sn"  # Reserved
    SET_DEFAULT = "st"  # Reserved
    SKIP = "s"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def is_reserved(self) -> bool:
        return self in (Decision.NO_ACTION, Decision.SET_NULL, Decision.SET_DEFAULT)


_DESCRIPTIONS = {
    Decision.CASCADE: "cascade",
    Decision.NO_ACTION: "no action",
    Decision.SET_NULL: "set null",
    Decision.SET_DEFAULT: "set default",
    Decision.SKIP: "skip",
}

CONFIRM = "y"
DECLINE = "n"
QUIT = "q"
HELP = "?"


class Effect(StrEnum):
    """Side effects the engine performs, in order, after a transition."""

    SCAN = "scan"  # Introspect, filter, dedupe and fill the queue
    CREATE_TRIGGER = "create_trigger"  # For the head of the queue
    DEQUEUE = "dequeue"
    ADVANCE = "advance"  # Drop covered relations, then wait for a decision or close
    RESERVED = "reserved"
    SHOW_MENU = "show_menu"
    INVALID = "invalid"
    CLOSE = "close"


class Transition(NamedTuple):
    state: SessionState
    effects: tuple[Effect, ...]
    decision: Decision | None = None


def _parse_decision(key: str) -> Decision | None:
    try:
        return Decision(key)
    except ValueError:
        return None


def transition(state: SessionState, line: str) -> Transition:
    """Compute the next state and the effects to run for one input line.

    ``ADVANCE`` decides between ``AWAITING_DECISION`` and ``CLOSED`` once the
    queue has been checked, so transitions that advance keep or enter a
    provisional state until the engine resolves it.
    """
    key = line.strip()

    if state is SessionState.AWAITING_SCAN_CONFIRMATION:
        if key == CONFIRM:
            return Transition(SessionState.SCANNING, (Effect.SCAN, Effect.ADVANCE))
        if key == DECLINE:
            return Transition(SessionState.CLOSED, (Effect.CLOSE,))

    elif state is SessionState.AWAITING_DECISION:
        if key == QUIT:
            return Transition(SessionState.CLOSED, (Effect.CLOSE,))
        if key == HELP:
            return Transition(state, (Effect.SHOW_MENU,))

        decision = _parse_decision(key)
        if decision is Decision.CASCADE:
            return Transition(
                state, (Effect.CREATE_TRIGGER, Effect.DEQUEUE, Effect.ADVANCE), decision
            )
        if decision is Decision.SKIP:
            return Transition(state, (Effect.DEQUEUE, Effect.ADVANCE), decision)
        if decision is not None:
            return Transition(state, (Effect.RESERVED,), decision)

    elif state is SessionState.CLOSED:
        return Transition(state, ())

    return Transition(state, (Effect.INVALID,))
