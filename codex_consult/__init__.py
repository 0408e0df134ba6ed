"""Codex consult: bounded, stateless consultations of the Codex CLI over MCP."""

__version__ = "0.1.0"
