"""Consult roles: allow-list validation and system prompt resolution.

Codex is consulted for analytical and planning work only, so the
allow-list holds review/planning personas. Each role maps to a system
prompt, taken from ``<prompts_dir>/<role>.md`` when present and from
the bundled ``prompts/roles.yaml`` otherwise.
"""
from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path

import yaml

from .errors import ConfigError, InvalidRoleError
from .models import ConsultRole

logger = logging.getLogger(__name__)

VALID_ROLES: tuple[str, ...] = tuple(role.value for role in ConsultRole)

_BUNDLED_PROMPTS_PATH = Path(__file__).parent / "prompts" / "roles.yaml"
_FRONT_MATTER_RE = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)


def validate_role(role: object) -> ConsultRole:
    """Return the ConsultRole for *role*, or raise InvalidRoleError."""
    if not role or not isinstance(role, str) or role not in VALID_ROLES:
        raise InvalidRoleError(role, VALID_ROLES)
    return ConsultRole(role)


@lru_cache(maxsize=1)
def _bundled_prompts() -> dict[str, str]:
    try:
        with open(_BUNDLED_PROMPTS_PATH, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(
            f"Cannot load bundled role prompts from {_BUNDLED_PROMPTS_PATH}: {exc}"
        ) from exc
    return {str(k): str(v).strip() for k, v in raw.items()}


def strip_front_matter(text: str) -> str:
    """Remove a leading YAML front matter block from a markdown prompt."""
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return text.strip()
    try:
        meta = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        # Not front matter after all; keep the text as written.
        return text.strip()
    if meta is not None and not isinstance(meta, dict):
        return text.strip()
    return text[match.end():].strip()


def resolve_system_prompt(
    role: ConsultRole | str,
    prompts_dir: str | Path | None = None,
) -> str:
    """Resolve the system prompt for a validated role."""
    name = role.value if isinstance(role, ConsultRole) else role
    if prompts_dir:
        override = Path(prompts_dir) / f"{name}.md"
        if override.is_file():
            try:
                body = strip_front_matter(override.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(
                    "Cannot read prompt override %s (%s); using bundled prompt",
                    override, exc,
                )
            else:
                if body:
                    logger.debug("Using prompt override %s for role %s", override, name)
                    return body
    return _bundled_prompts().get(name, "")
