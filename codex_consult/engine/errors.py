"""Exception hierarchy for the consult pipeline.

Specific exceptions for each failure mode. None of these cross the
tool boundary: the handler converts them into error responses.
"""
from __future__ import annotations


class ConsultError(Exception):
    """Base exception for all consult pipeline errors."""


class ConfigError(ConsultError):
    """Configuration file could not be loaded or is malformed."""


class InvalidRoleError(ConsultError):
    """Requested agent role is not on the allow-list."""
    def __init__(self, role: object, valid_roles: tuple[str, ...]):
        self.role = role
        self.valid_roles = valid_roles
        super().__init__(
            f'Invalid agent_role: "{role if role is not None else ""}". '
            f"Codex requires one of: {', '.join(valid_roles)}"
        )


class TooManyContextFilesError(ConsultError):
    """More context files were requested than the configured maximum."""
    def __init__(self, count: int, max_files: int):
        self.count = count
        self.max_files = max_files
        super().__init__(
            f"Too many context files (max {max_files}, got {count})"
        )


class EngineUnavailableError(ConsultError):
    """The engine CLI is not installed or not on PATH."""
    def __init__(self, reason: str, install_hint: str):
        self.reason = reason
        self.install_hint = install_hint
        super().__init__(
            f"Codex CLI is not available: {reason}\n\n{install_hint}"
        )


class EngineSpawnError(ConsultError):
    """The engine process could not be launched."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to spawn Codex CLI: {reason}")


class EngineInputError(ConsultError):
    """Writing the prompt to the engine's stdin failed."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Stdin write error: {reason}")


class EngineTimeoutError(ConsultError):
    """The engine did not finish within the configured timeout."""
    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Codex timed out after {timeout_ms}ms")


class EngineExitError(ConsultError):
    """The engine exited non-zero without producing any stdout."""
    def __init__(self, exit_code: int | None, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f"Codex exited with code {exit_code}: {stderr or 'No output'}"
        )
