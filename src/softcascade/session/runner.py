"""Feeds terminal lines into a decision engine."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from softcascade.session.engine import DecisionEngine, SessionSummary

# Returns the next line, or None once input is exhausted
LineReader = Callable[[str], Awaitable[str | None]]


async def pump_lines(engine: DecisionEngine, read_line: LineReader) -> SessionSummary:
    """Prompt and read lines until the session closes.

    End of input closes the session the same way ``q`` does.

    Args:
        engine: Session to drive
        read_line: Prints the prompt and reads one line

    Returns:
        The session summary
    """
    while not engine.closed:
        line = await read_line(engine.prompt_text)
        if line is None:
            await engine.close()
            break
        await engine.handle(line)
    return engine.summary
