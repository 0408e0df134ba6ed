"""YAML configuration loader.

Loads a single YAML file that replaces the CODEX_CONSULT_* env vars.
When no YAML is provided, ConsultConfig.from_env() is used instead.

Example YAML:
    codex:
      command: codex
      default_model: gpt-5.2
      timeout_ms: 300000
      max_context_files: 20
      prompts_dir: ./prompts     # relative to this file

    log_level: DEBUG
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .config import ConsultConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)


def load_yaml_config(path: str | Path) -> ConsultConfig:
    """Load and parse a YAML config file into a ConsultConfig.

    Raises ConfigError when the file is missing, unparsable, or the
    ``codex`` section is not a mapping.
    """
    path = Path(path)
    logger.info(
        "load_yaml_config: loading config from %s (exists=%s)",
        path, path.exists(),
    )
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        logger.error(
            "load_yaml_config: config file not found at %s", path.absolute(),
        )
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    section = raw.get("codex") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: 'codex' section must be a mapping")

    data = dict(section)
    if raw.get("log_level"):
        data["log_level"] = raw["log_level"]

    prompts_dir = data.get("prompts_dir")
    if prompts_dir:
        prompts_path = Path(str(prompts_dir)).expanduser()
        if not prompts_path.is_absolute():
            prompts_path = path.parent / prompts_path
        data["prompts_dir"] = str(prompts_path)

    config = ConsultConfig.from_mapping(data)
    logger.info(
        "Parsed YAML config %s: command=%s model=%s timeout_ms=%d",
        path.name, config.command, config.default_model, config.timeout_ms,
    )
    return config
