"""Provider abstraction for external reasoning CLIs."""
from .base import CliDetection, Provider, ProviderResult
from .codex_provider import CodexProvider
from .invocation import Invocation, InvocationOutcome, InvocationState

__all__ = [
    "CliDetection",
    "Provider",
    "ProviderResult",
    "CodexProvider",
    "Invocation",
    "InvocationOutcome",
    "InvocationState",
]
