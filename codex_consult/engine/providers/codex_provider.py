"""OpenAI Codex CLI provider.

Runs `codex exec` once per request with the prompt on stdin and JSONL
output on stdout. There is no session reuse: every call is a fresh,
stateless process.
"""
from __future__ import annotations

import logging
import shutil

from ..config import DEFAULT_COMMAND, DEFAULT_MODEL, DEFAULT_TIMEOUT_MS, ConsultConfig
from ..errors import ConsultError
from .base import CliDetection, Provider, ProviderResult
from .codex_output import parse_codex_output
from .invocation import Invocation

logger = logging.getLogger(__name__)

INSTALL_HINT = "Install Codex CLI: npm install -g @openai/codex"


class CodexProvider(Provider):
    """Provider backed by the OpenAI Codex CLI.

    The argument shape is fixed: exec mode, the model, JSONL output and
    full-auto so the CLI never stops for an interactive approval.
    """

    def __init__(
        self,
        command: str = DEFAULT_COMMAND,
        default_model: str = DEFAULT_MODEL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        self._command = self.resolve_command(command, DEFAULT_COMMAND)
        self._default_model = default_model
        self._timeout_ms = timeout_ms

    @classmethod
    def from_config(cls, config: ConsultConfig) -> CodexProvider:
        return cls(
            command=config.command,
            default_model=config.default_model,
            timeout_ms=config.timeout_ms,
        )

    @property
    def name(self) -> str:
        return "codex"

    @property
    def command(self) -> str:
        return self._command

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @staticmethod
    def build_exec_args(model: str) -> list[str]:
        return ["exec", "-m", model, "--json", "--full-auto"]

    def detect(self) -> CliDetection:
        """Check if codex CLI is installed."""
        path = shutil.which(self._command)
        if path is None:
            return CliDetection(
                available=False,
                error=f"'{self._command}' not found on PATH",
                install_hint=INSTALL_HINT,
            )
        return CliDetection(available=True, path=path, install_hint=INSTALL_HINT)

    async def execute(
        self,
        prompt: str,
        *,
        model_id: str | None = None,
    ) -> ProviderResult:
        model = model_id or self._default_model
        invocation = Invocation(
            self._command,
            self.build_exec_args(model),
            timeout_ms=self._timeout_ms,
        )
        logger.info(
            "Running %s exec (model=%s, prompt=%d chars, timeout=%dms)",
            self._command, model, len(prompt), self._timeout_ms,
        )
        try:
            stdout = await invocation.run(prompt)
        except ConsultError as exc:
            logger.warning(
                "Codex invocation failed (state=%s): %s",
                invocation.state.value, exc,
            )
            return ProviderResult(
                text=str(exc),
                success=False,
                metadata={"state": invocation.state.value, "model": model},
            )

        outcome = invocation.outcome
        return ProviderResult(
            text=parse_codex_output(stdout),
            success=True,
            metadata={
                "state": invocation.state.value,
                "model": model,
                "exit_code": outcome.exit_code if outcome else None,
            },
        )
