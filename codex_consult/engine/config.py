"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via CODEX_CONSULT_* env
vars, or via a YAML file (see yaml_config). The resulting ConsultConfig
is built once at startup and never mutated.
"""
from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

ENV_PREFIX = "CODEX_CONSULT_"

DEFAULT_COMMAND = "codex"
DEFAULT_MODEL = "gpt-5.2"

DEFAULT_TIMEOUT_MS = 180_000
MIN_TIMEOUT_MS = 5_000
MAX_TIMEOUT_MS = 600_000

MAX_CONTEXT_FILES = 20
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB per file

# Leading integer only: "300000ms" -> 300000, "12.5" -> 12
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def clamp_timeout_ms(raw: Any) -> int:
    """Parse a timeout in milliseconds and clamp it to the allowed range.

    Only the leading integer is read; values without one, and zero,
    fall back to the default.
    """
    match = _LEADING_INT_RE.match(str(raw)) if raw is not None else None
    value = int(match.group(1)) if match else 0
    if value == 0:
        if raw not in (None, ""):
            logger.warning(
                "Ignoring timeout %r; using default %dms",
                raw, DEFAULT_TIMEOUT_MS,
            )
        value = DEFAULT_TIMEOUT_MS
    return min(max(MIN_TIMEOUT_MS, value), MAX_TIMEOUT_MS)


def _positive_int(raw: Any, default: int, name: str) -> int:
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring %s=%r (not an integer)", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r (must be positive)", name, raw)
        return default
    return value


@dataclass(frozen=True)
class ConsultConfig:
    """Process-wide consult settings."""

    command: str = DEFAULT_COMMAND
    default_model: str = DEFAULT_MODEL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_context_files: int = MAX_CONTEXT_FILES
    # Safety bound, not user configurable
    max_file_size: int = MAX_FILE_SIZE
    # Optional directory of <role>.md system prompt overrides
    prompts_dir: str | None = None
    log_level: str = "INFO"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConsultConfig:
        """Build a config from loosely-typed values (env or YAML)."""
        return cls(
            command=str(data.get("command") or cls.command),
            default_model=str(data.get("default_model") or cls.default_model),
            timeout_ms=clamp_timeout_ms(data.get("timeout_ms")),
            max_context_files=_positive_int(
                data.get("max_context_files"),
                cls.max_context_files,
                "max_context_files",
            ),
            prompts_dir=str(data["prompts_dir"]) if data.get("prompts_dir") else None,
            log_level=str(data.get("log_level") or cls.log_level).upper(),
        )

    @classmethod
    def from_env(cls) -> ConsultConfig:
        """Load configuration from CODEX_CONSULT_* environment variables."""
        consult_vars = {
            k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)
        }
        if consult_vars:
            logger.info(
                "ConsultConfig.from_env: env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(consult_vars.items())),
            )
        else:
            logger.debug("ConsultConfig.from_env: no %s* env vars set, using defaults", ENV_PREFIX)

        config = cls.from_mapping({
            "command": os.getenv(f"{ENV_PREFIX}COMMAND"),
            "default_model": os.getenv(f"{ENV_PREFIX}DEFAULT_MODEL"),
            "timeout_ms": os.getenv(f"{ENV_PREFIX}TIMEOUT_MS"),
            "max_context_files": os.getenv(f"{ENV_PREFIX}MAX_CONTEXT_FILES"),
            "prompts_dir": os.getenv(f"{ENV_PREFIX}PROMPTS_DIR"),
            "log_level": os.getenv(f"{ENV_PREFIX}LOG_LEVEL"),
        })
        logger.info(
            "ConsultConfig.from_env: command=%s model=%s timeout_ms=%d max_files=%d",
            config.command, config.default_model,
            config.timeout_ms, config.max_context_files,
        )
        return config
