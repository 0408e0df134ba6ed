"""Tests for ConsultConfig env loading, clamping and YAML config."""
from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from codex_consult.engine.config import (
    DEFAULT_TIMEOUT_MS,
    MAX_FILE_SIZE,
    ConsultConfig,
    clamp_timeout_ms,
)
from codex_consult.engine.errors import ConfigError
from codex_consult.engine.yaml_config import load_yaml_config


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, 180_000),
        ("", 180_000),
        ("abc", 180_000),
        ("0", 180_000),
        ("1000", 5_000),
        ("-20", 5_000),
        ("60000", 60_000),
        (" 90000 ", 90_000),
        ("999999", 600_000),
        (240_000, 240_000),
        ("300000ms", 300_000),
        ("12.5", 5_000),
    ],
)
def test_clamp_timeout_ms(raw: object, expected: int) -> None:
    assert clamp_timeout_ms(raw) == expected


def test_defaults_without_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "COMMAND", "DEFAULT_MODEL", "TIMEOUT_MS",
        "MAX_CONTEXT_FILES", "PROMPTS_DIR", "LOG_LEVEL",
    ):
        monkeypatch.delenv(f"CODEX_CONSULT_{name}", raising=False)

    config = ConsultConfig.from_env()

    assert config.command == "codex"
    assert config.default_model == "gpt-5.2"
    assert config.timeout_ms == DEFAULT_TIMEOUT_MS
    assert config.timeout_seconds == 180.0
    assert config.max_context_files == 20
    assert config.max_file_size == MAX_FILE_SIZE == 5 * 1024 * 1024
    assert config.prompts_dir is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CODEX_CONSULT_DEFAULT_MODEL", "o3")
    monkeypatch.setenv("CODEX_CONSULT_TIMEOUT_MS", "700000")
    monkeypatch.setenv("CODEX_CONSULT_COMMAND", "/opt/codex/bin/codex")
    monkeypatch.setenv("CODEX_CONSULT_MAX_CONTEXT_FILES", "5")
    monkeypatch.setenv("CODEX_CONSULT_LOG_LEVEL", "debug")

    config = ConsultConfig.from_env()

    assert config.default_model == "o3"
    assert config.timeout_ms == 600_000
    assert config.command == "/opt/codex/bin/codex"
    assert config.max_context_files == 5
    assert config.log_level == "DEBUG"


def test_bad_max_context_files_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CODEX_CONSULT_MAX_CONTEXT_FILES", "-3")
    assert ConsultConfig.from_env().max_context_files == 20


def test_config_is_immutable() -> None:
    config = ConsultConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.timeout_ms = 1  # type: ignore[misc]


def test_yaml_config_loads_codex_section(tmp_path: Path) -> None:
    path = tmp_path / "consult.yaml"
    path.write_text(
        "codex:\n"
        "  default_model: gpt-5.2-codex\n"
        "  timeout_ms: 2000\n"
        "  prompts_dir: prompts\n"
        "log_level: warning\n"
    )

    config = load_yaml_config(path)

    assert config.default_model == "gpt-5.2-codex"
    assert config.timeout_ms == 5_000
    assert config.prompts_dir == str(tmp_path / "prompts")
    assert config.log_level == "WARNING"
    assert config.command == "codex"


def test_empty_yaml_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_yaml_config(path) == ConsultConfig()


def test_missing_yaml_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_yaml_config(tmp_path / "absent.yaml")


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("codex: [unclosed\n")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_yaml_config(path)


def test_codex_section_must_be_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("codex:\n  - a\n  - b\n")
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_yaml_config(path)
