"""MCP tool definitions for Codex consultations.

Exposed:
    ask_codex
"""
from __future__ import annotations

from mcp.server.fastmcp import FastMCP, Context

from ..models import ToolResponse
from ..roles import VALID_ROLES


def _extract_text(response: ToolResponse) -> str:
    """Convert a ToolResponse to the plain string FastMCP expects.

    If is_error is set, raise ValueError so FastMCP marks it as error.
    FastMCP prefixes the message it returns to the client with
    "Error executing tool ask_codex: ".
    """
    if response.is_error:
        raise ValueError(response.text)
    return response.text


def _get_tools(ctx: Context):
    """Get ConsultTools from lifespan context."""
    return ctx.request_context.lifespan_context["consult_tools"]


def register_tools(mcp: FastMCP) -> None:
    """Register the consult tools with the FastMCP instance."""

    @mcp.tool(
        name="ask_codex",
        description=(
            "Consult OpenAI Codex for analysis, planning or review. "
            "Codex runs non-interactively with the chosen role's system "
            "instructions and returns a single text answer; there is no "
            "conversation memory between calls. "
            f"agent_role must be one of: {', '.join(VALID_ROLES)}. "
            "context_files is an optional list of file paths (max 20, "
            "5MB each) whose contents are included before the prompt."
        ),
    )
    async def ask_codex(
        prompt: str,
        agent_role: str,
        model: str | None = None,
        context_files: list[str] | None = None,
        ctx: Context = None,
    ) -> str:
        tools = _get_tools(ctx)
        response = await tools.ask_codex(
            prompt, agent_role, model=model, context_files=context_files,
        )
        return _extract_text(response)
