"""Abstract base for consult providers.

Each provider wraps one external reasoning CLI. The tool layer calls
detect() before doing any work and execute() for the single
request/response round trip.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass, field
import logging
import shutil
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ProviderResult:
    """Result from a provider invocation."""
    text: str
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class CliDetection:
    """Whether a provider's CLI can be launched."""
    available: bool
    path: str | None = None
    error: str | None = None
    install_hint: str = ""


class Provider(abc.ABC):
    """Abstract provider interface."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short provider name (e.g. 'codex')."""

    @abc.abstractmethod
    def detect(self) -> CliDetection:
        """Check whether the provider CLI is installed.

        Must not spawn the CLI.
        """

    @abc.abstractmethod
    async def execute(
        self,
        prompt: str,
        *,
        model_id: str | None = None,
    ) -> ProviderResult:
        """Run one stateless request and return the extracted answer.

        Never raises for engine failures; they come back as
        ProviderResult(success=False).
        """

    def is_available(self) -> bool:
        return self.detect().available

    def resolve_command(self, command: str, fallback: str | None = None) -> str:
        """Resolve a provider binary by preferring explicit command, then fallback.

        The command may point to a CLI that is not on PATH when using
        custom wrappers or tests. In that case, keep the raw value so
        callers can surface the configured command in error messages.
        """
        if command:
            if shutil.which(command):
                return command
            if fallback and shutil.which(fallback):
                logger.debug(
                    "Command %s not found; falling back to %s for provider %s",
                    command, fallback, self.name,
                )
                return fallback
            return command
        return fallback or command
