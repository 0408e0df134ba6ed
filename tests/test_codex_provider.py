"""Tests for CodexProvider."""
from __future__ import annotations

import asyncio
import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from codex_consult.engine.config import ConsultConfig
from codex_consult.engine.providers.codex_provider import INSTALL_HINT, CodexProvider


async def _never(*_args, **_kwargs) -> bytes:
    await asyncio.Event().wait()
    return b""


def _fake_process(stdout: bytes = b"", *, hang: bool = False) -> MagicMock:
    proc = MagicMock()
    proc.pid = 99
    proc.returncode = None
    proc.stdin = MagicMock()
    proc.stdin.drain = AsyncMock()
    proc.stdin.wait_closed = AsyncMock()
    proc.stdout = MagicMock()
    proc.stderr = MagicMock()
    if hang:
        proc.stdout.read = AsyncMock(side_effect=_never)
        proc.stderr.read = AsyncMock(side_effect=_never)
    else:
        proc.stdout.read = AsyncMock(side_effect=[stdout, b""] if stdout else [b""])
        proc.stderr.read = AsyncMock(return_value=b"")
    proc.wait = AsyncMock(return_value=0)
    return proc


def test_provider_name() -> None:
    assert CodexProvider().name == "codex"


def test_exec_args_have_fixed_shape() -> None:
    assert CodexProvider.build_exec_args("gpt-5.2") == [
        "exec", "-m", "gpt-5.2", "--json", "--full-auto",
    ]


def test_from_config_copies_settings() -> None:
    config = ConsultConfig(default_model="o3", timeout_ms=30_000)
    provider = CodexProvider.from_config(config)
    assert provider.timeout_ms == 30_000
    assert provider.command == "codex"


def test_detect_reports_missing_cli_with_install_hint() -> None:
    with patch("shutil.which", return_value=None):
        provider = CodexProvider(command="codex")
        detection = provider.detect()
        assert provider.is_available() is False

    assert detection.available is False
    assert detection.error == "'codex' not found on PATH"
    assert detection.install_hint == INSTALL_HINT


def test_detect_reports_installed_cli() -> None:
    with patch("shutil.which", return_value="/usr/local/bin/codex"):
        detection = CodexProvider().detect()
    assert detection.available is True
    assert detection.path == "/usr/local/bin/codex"


@pytest.mark.asyncio
async def test_execute_parses_jsonl_into_text() -> None:
    stdout = "\n".join([
        "Reading prompt from stdin...",
        json.dumps({"type": "message", "content": [{"type": "text", "text": "Use a queue."}]}),
        json.dumps({"type": "output_text", "text": "Done."}),
    ]).encode("utf-8")
    proc = _fake_process(stdout)
    provider = CodexProvider(command="codex", default_model="gpt-5.2")

    with patch(
        "asyncio.create_subprocess_exec", AsyncMock(return_value=proc),
    ) as mock_exec:
        result = await provider.execute("Design a cache")

    assert result.success is True
    assert result.text == "Use a queue.\nDone."
    assert result.metadata["exit_code"] == 0
    args, _ = mock_exec.call_args
    assert args[1:] == ("exec", "-m", "gpt-5.2", "--json", "--full-auto")
    proc.stdin.write.assert_called_once_with(b"Design a cache")


@pytest.mark.asyncio
async def test_execute_model_override() -> None:
    proc = _fake_process(b"plain text answer")
    provider = CodexProvider(command="codex", default_model="gpt-5.2")

    with patch(
        "asyncio.create_subprocess_exec", AsyncMock(return_value=proc),
    ) as mock_exec:
        result = await provider.execute("q", model_id="o3")

    assert result.text == "plain text answer"
    args, _ = mock_exec.call_args
    assert args[args.index("-m") + 1] == "o3"


@pytest.mark.asyncio
async def test_execute_timeout_returns_failure_and_terminates() -> None:
    proc = _fake_process(hang=True)
    provider = CodexProvider(command="codex", timeout_ms=50)

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
        result = await provider.execute("q")
    await asyncio.sleep(0)

    assert result.success is False
    assert result.text == "Codex timed out after 50ms"
    assert result.metadata["state"] == "timed_out"
    proc.terminate.assert_called_once()


@pytest.mark.asyncio
async def test_execute_nonzero_exit_returns_failure() -> None:
    # The Python interpreter rejects the exec arguments and exits non-zero
    # with a message on stderr only.
    provider = CodexProvider(command=sys.executable, timeout_ms=30_000)

    result = await provider.execute("q")

    assert result.success is False
    assert result.text.startswith("Codex exited with code 2: ")
    assert "exec" in result.text


@pytest.mark.asyncio
async def test_execute_spawn_failure_returns_failure() -> None:
    provider = CodexProvider(command="codex")

    with patch(
        "asyncio.create_subprocess_exec",
        AsyncMock(side_effect=FileNotFoundError(2, "No such file or directory")),
    ):
        result = await provider.execute("q")

    assert result.success is False
    assert result.text == "Failed to spawn Codex CLI: [Errno 2] No such file or directory"
    assert result.metadata["state"] == "spawn_failed"
