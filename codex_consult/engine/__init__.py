"""Consult engine: role checks, context assembly, prompt composition and Codex execution."""
from .config import ConsultConfig
from .models import (
    ConsultRole,
    ContextFile,
    OutputEvent,
    OutputEventKind,
    ToolResponse,
)
from .errors import (
    ConfigError,
    ConsultError,
    EngineExitError,
    EngineInputError,
    EngineSpawnError,
    EngineTimeoutError,
    EngineUnavailableError,
    InvalidRoleError,
    TooManyContextFilesError,
)

__all__ = [
    "ConsultConfig",
    # Models
    "ConsultRole",
    "ContextFile",
    "OutputEvent",
    "OutputEventKind",
    "ToolResponse",
    # Errors
    "ConfigError",
    "ConsultError",
    "EngineExitError",
    "EngineInputError",
    "EngineSpawnError",
    "EngineTimeoutError",
    "EngineUnavailableError",
    "InvalidRoleError",
    "TooManyContextFilesError",
]
