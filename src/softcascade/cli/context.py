"""CLI context and configuration file loading."""

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from softcascade.core.types import SessionConfig
from softcascade.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = ".spdrc"


def get_config_path(path: Path | None) -> Path:
    """Resolve the session config file from CLI arg, environment variable, or default.

    Priority:
    1. Explicit path argument
    2. SOFTCASCADE_CONFIG environment variable
    3. Default: ./.spdrc
    """
    if path:
        return path
    if env_path := os.getenv("SOFTCASCADE_CONFIG"):
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_session_config(path: Path) -> SessionConfig:
    """Read and validate a one-line JSON session config.

    Raises:
        ConfigurationError: If the file is missing, malformed, or sets both table lists
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read config file '{path}': {e.strerror or e}", {"path": str(path)}
        ) from e

    try:
        config = SessionConfig.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid config file '{path}': {e.error_count()} error(s)",
            {"path": str(path), "errors": [err["msg"] for err in e.errors()]},
        ) from e

    config.ensure_exclusive()
    return config


@dataclass
class CLIContext:
    """Shared options for CLI commands."""

    echo: bool
    verbose: bool
