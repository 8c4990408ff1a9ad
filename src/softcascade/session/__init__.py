"""Interactive trigger installation sessions."""

from softcascade.session.engine import DecisionEngine, SessionOutput, SessionSummary
from softcascade.session.machine import Decision, Effect, SessionState, Transition, transition
from softcascade.session.runner import LineReader, pump_lines

__all__ = [
    "Decision",
    "DecisionEngine",
    "Effect",
    "LineReader",
    "SessionOutput",
    "SessionState",
    "SessionSummary",
    "Transition",
    "pump_lines",
    "transition",
]
