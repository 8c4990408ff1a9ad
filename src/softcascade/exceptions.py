"""Custom exceptions for softcascade.

Every error carries a human readable message that says what went wrong and,
where possible, how to fix it, plus a JSON-serializable context dict.
"""

from __future__ import annotations

from typing import Any


class SoftCascadeError(Exception):
    """Base exception for all softcascade errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(SoftCascadeError):
    """Invalid session configuration."""

    pass


class ConnectionError(SoftCascadeError):
    """Failed to connect to the database."""

    pass


class SetupError(SoftCascadeError):
    """Reading the schema or its triggers failed during an interactive session."""

    def __init__(self, operation: str, reason: str) -> None:
        message = f"Failed to {operation}: {reason}"
        super().__init__(message, {"operation": operation, "reason": reason})
        self.operation = operation
        self.reason = reason


class TriggerCreationError(SoftCascadeError):
    """Installing a cascade trigger failed."""

    def __init__(self, trigger_name: str, reason: str) -> None:
        message = f"Could not create trigger '{trigger_name}': {reason}"
        super().__init__(message, {"trigger_name": trigger_name, "reason": reason})
        self.trigger_name = trigger_name
        self.reason = reason


class InvalidInputError(SoftCascadeError):
    """Unrecognized menu key, or a key that is not valid in the current state."""

    def __init__(self, line: str, state: str) -> None:
        super().__init__("Invalid option.", {"input": line, "state": state})
        self.line = line
        self.state = state


class UnsupportedDialectError(SoftCascadeError):
    """Dialect without trigger support in this tool."""

    SUPPORTED_DIALECTS = ["mysql", "sqlite"]

    def __init__(self, dialect: str) -> None:
        message = (
            f"Unsupported dialect '{dialect}'. "
            f"Supported: {', '.join(self.SUPPORTED_DIALECTS)}"
        )
        super().__init__(
            message, {"dialect": dialect, "supported_dialects": self.SUPPORTED_DIALECTS}
        )
        self.dialect = dialect
