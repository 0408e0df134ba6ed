"""Parsing of `codex exec --json` output.

Codex writes one JSON event per line, interleaved with progress and
diagnostic lines that are not JSON. Lines are decoded one at a time;
anything that does not decode is skipped.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterator

from ..models import OutputEvent, OutputEventKind

logger = logging.getLogger(__name__)


def decode_line(line: str) -> OutputEvent | None:
    """Decode one output line, or return None if it is not a JSON event."""
    try:
        event = json.loads(line)
    except (json.JSONDecodeError, RecursionError):
        return None
    if not isinstance(event, dict):
        return None

    event_type = event.get("type")
    if event_type == OutputEventKind.MESSAGE.value:
        content = event.get("content")
        fragments: list[str] = []
        if isinstance(content, str):
            if content:
                fragments.append(content)
        elif isinstance(content, list):
            for part in content:
                if (
                    isinstance(part, dict)
                    and part.get("type") == "text"
                    and isinstance(part.get("text"), str)
                    and part["text"]
                ):
                    fragments.append(part["text"])
        return OutputEvent(kind=OutputEventKind.MESSAGE, fragments=fragments)

    if event_type == OutputEventKind.OUTPUT_TEXT.value:
        text = event.get("text")
        fragments = [text] if isinstance(text, str) and text else []
        return OutputEvent(kind=OutputEventKind.OUTPUT_TEXT, fragments=fragments)

    return OutputEvent(kind=OutputEventKind.IGNORED)


def iter_events(output: str) -> Iterator[OutputEvent]:
    """Yield every decodable event in *output*, in order."""
    # Split on "\n" only: JSON strings may carry raw U+2028, U+0085 etc.
    for raw_line in output.split("\n"):
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue
        event = decode_line(line)
        if event is not None:
            yield event


def parse_codex_output(output: str) -> str:
    """Extract the response text from Codex JSONL output.

    Falls back to the raw output when no text-bearing events are found,
    so plain-text output from the CLI still reaches the caller.
    """
    fragments: list[str] = []
    for event in iter_events(output):
        fragments.extend(event.fragments)
    if not fragments:
        if output.strip():
            logger.debug("No text events in Codex output; returning raw output")
        return output
    return "\n".join(fragments)
