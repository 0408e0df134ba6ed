"""Tool handler for Codex consultations.

ConsultTools.ask_codex runs the whole pipeline for one request:

    role check -> context file count -> CLI availability -> system prompt
    -> context files
    -> prompt composition -> codex exec -> output parsing

Each stage can short-circuit with an error response. The handler
always returns a ToolResponse; nothing is raised to the caller.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..context import build_file_context
from ..errors import (
    ConsultError,
    EngineUnavailableError,
    TooManyContextFilesError,
)
from ..models import ToolResponse
from ..prompt import build_prompt_with_system_context
from ..providers.codex_provider import CodexProvider
from ..roles import resolve_system_prompt, validate_role

if TYPE_CHECKING:
    from ..config import ConsultConfig
    from ..providers.base import Provider

logger = logging.getLogger(__name__)


def _text(text: str) -> ToolResponse:
    """Format a successful text response."""
    return ToolResponse(content=[{"type": "text", "text": text}])


def _error(text: str) -> ToolResponse:
    """Format an error response."""
    return ToolResponse(content=[{"type": "text", "text": text}], is_error=True)


class ConsultTools:
    """Container for the consult tool handlers.

    Holds the process-wide config and the provider built from it at
    startup. Both are shared read-only across requests.
    """

    def __init__(
        self,
        config: ConsultConfig,
        provider: Provider | None = None,
    ) -> None:
        self._config = config
        self._provider = provider or CodexProvider.from_config(config)

    @property
    def config(self) -> ConsultConfig:
        return self._config

    @property
    def provider(self) -> Provider:
        return self._provider

    async def ask_codex(
        self,
        prompt: str,
        agent_role: str,
        model: str | None = None,
        context_files: Sequence[object] | None = None,
    ) -> ToolResponse:
        """Consult Codex in the given role and return its answer."""
        try:
            role = validate_role(agent_role)
            if context_files and len(context_files) > self._config.max_context_files:
                raise TooManyContextFilesError(
                    len(context_files), self._config.max_context_files,
                )

            detection = self._provider.detect()
            if not detection.available:
                raise EngineUnavailableError(
                    detection.error or "unknown error", detection.install_hint,
                )

            system_prompt = resolve_system_prompt(role, self._config.prompts_dir)
            file_context = build_file_context(
                context_files,
                max_files=self._config.max_context_files,
                max_file_size=self._config.max_file_size,
            )
        except ConsultError as exc:
            logger.info("ask_codex rejected: %s", exc)
            return _error(str(exc))

        full_prompt = build_prompt_with_system_context(
            prompt, file_context, system_prompt,
        )
        logger.info(
            "ask_codex role=%s model=%s context_files=%d",
            role.value, model or self._config.default_model,
            len(context_files or ()),
        )

        try:
            result = await self._provider.execute(
                full_prompt, model_id=model or self._config.default_model,
            )
        except Exception as exc:
            logger.exception("ask_codex: unexpected provider failure")
            return _error(f"Codex CLI error: {exc}")

        if not result.success:
            return _error(f"Codex CLI error: {result.text}")
        return _text(result.text)
