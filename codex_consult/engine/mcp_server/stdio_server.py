"""Stdio MCP server exposing the ask_codex tool.

Usage:
    codex-consult-mcp
    codex-consult-mcp --config .codex-consult.yaml
    python -m codex_consult.engine.mcp_server.stdio_server --verbose
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from ..config import ConsultConfig
from ..yaml_config import load_yaml_config
from .tools import ConsultTools

logger = logging.getLogger(__name__)

# Parsed CLI args, set in main() before the server starts
_parsed_args: argparse.Namespace | None = None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI args for the MCP server process."""
    parser = argparse.ArgumentParser(
        prog="codex-consult-mcp",
        description="MCP server that consults the Codex CLI",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=(
            "YAML config file (replaces CODEX_CONSULT_* env vars). "
            "Also reads CODEX_CONSULT_CONFIG_FILE env var."
        ),
    )
    parser.add_argument(
        "--prompts-dir",
        default=None,
        help="Directory of <role>.md system prompt overrides",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ConsultConfig:
    """Build the process-wide config from CLI args, YAML or env."""
    config_file = args.config or os.getenv("CODEX_CONSULT_CONFIG_FILE")
    if config_file:
        logger.info(
            "Config source: %s (from %s)",
            config_file,
            "--config" if args.config else "CODEX_CONSULT_CONFIG_FILE env",
        )
        config = load_yaml_config(config_file)
    else:
        logger.info("No config file specified; using env vars / defaults")
        config = ConsultConfig.from_env()

    if args.prompts_dir:
        config = dataclasses.replace(config, prompts_dir=args.prompts_dir)
    return config


@asynccontextmanager
async def consult_lifespan(server: FastMCP):
    """Build config, provider and tool handlers once for the server lifetime.

    Yields context dict accessible via ctx.request_context.lifespan_context
    in tool handlers.
    """
    global _parsed_args
    if _parsed_args is None:
        _parsed_args = _parse_args([])

    config = load_config(_parsed_args)
    if not _parsed_args.verbose:
        logging.getLogger().setLevel(
            getattr(logging, config.log_level, logging.INFO)
        )

    consult_tools = ConsultTools(config)
    detection = consult_tools.provider.detect()
    if not detection.available:
        logger.warning(
            "Codex CLI not found (%s); ask_codex will fail until it is installed",
            detection.error,
        )

    logger.info(
        "Codex consult MCP server initialized "
        "(command=%s, default_model=%s, timeout_ms=%d, available=%s)",
        config.command,
        config.default_model,
        config.timeout_ms,
        detection.available,
    )

    try:
        yield {
            "config": config,
            "consult_tools": consult_tools,
        }
    finally:
        logger.info("Codex consult MCP server shut down")


# Create the FastMCP instance
mcp = FastMCP(
    name="codex-consult",
    instructions=(
        "Consult OpenAI Codex as a second opinion. Use ask_codex with an "
        "analytical role (architect, planner, critic, code-reviewer, "
        "security-reviewer) and pass relevant file paths in "
        "context_files. Each call is independent; include everything "
        "Codex needs in the prompt."
    ),
    lifespan=consult_lifespan,
)

from .consult_tools import register_tools  # noqa: E402

register_tools(mcp)


def main() -> None:
    """Entry point for the MCP server."""
    global _parsed_args
    _parsed_args = _parse_args()

    # Logging must go to stderr (stdout is the stdio transport)
    logging.basicConfig(
        level=logging.DEBUG if _parsed_args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # Best-effort persistent logging for debugging stdio stream closures.
    try:
        log_dir = Path.home() / ".codex-consult" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"consult-stdio-{os.getpid()}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logging.getLogger().addHandler(file_handler)
        logger.info(
            "Starting stdio MCP server (pid=%s, argv=%s)", os.getpid(), sys.argv
        )
    except OSError:
        logger.debug("File logging unavailable", exc_info=True)

    try:
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal stdio MCP server error (pid=%s)", os.getpid())
        raise


if __name__ == "__main__":
    main()
