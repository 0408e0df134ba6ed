"""Core data models for the consult pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConsultRole(str, Enum):
    """Operating personas Codex may be consulted as.

    All of them analyse, plan or review. None of them execute.
    """
    ARCHITECT = "architect"
    PLANNER = "planner"
    CRITIC = "critic"
    CODE_REVIEWER = "code-reviewer"
    SECURITY_REVIEWER = "security-reviewer"


@dataclass
class ContextFile:
    """A requested context path and the block it resolved to."""
    path: object  # As supplied by the caller; may not be a str
    block: str
    included: bool = False


class OutputEventKind(str, Enum):
    MESSAGE = "message"
    OUTPUT_TEXT = "output_text"
    IGNORED = "ignored"


@dataclass
class OutputEvent:
    """One decoded line of the engine's JSONL stream."""
    kind: OutputEventKind
    fragments: list[str] = field(default_factory=list)


@dataclass
class ToolResponse:
    """Caller-facing result envelope.

    Returned on every path, success or failure.
    """
    content: list[dict[str, str]]
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(block["text"] for block in self.content)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the MCP tool-result shape."""
        result: dict[str, Any] = {"content": [dict(b) for b in self.content]}
        if self.is_error:
            result["isError"] = True
        return result
