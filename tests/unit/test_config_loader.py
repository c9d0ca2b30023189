# tests/unit/test_config_loader.py

from __future__ import annotations
import sys
from pathlib import Path
import pytest
from textwrap import dedent

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from collabnest.config_loader import load_config, ConfigError  # type: ignore


def write_yaml(p: Path, text: str) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(dedent(text).lstrip("\n").rstrip() + "\n", encoding="utf-8")
    return p


def test_load_config_ok(tmp_path: Path):
    cfg = write_yaml(
        tmp_path / "config" / "default.yaml",
        """
        model: { provider: GEMINI, name: gemini-2.5-flash }
        retry: { max_retries: 3, base_delay_ms: 500 }
        logging: { level: debug }
        """,
    )
    data = load_config(cfg)
    assert data["model"]["provider"] == "gemini"   # normalised
    assert data["logging"]["level"] == "DEBUG"     # normalised
    assert data["retry"]["max_retries"] == 3


def test_load_config_missing_key(tmp_path: Path):
    cfg = write_yaml(
        tmp_path / "config" / "default.yaml",
        """
        model: { name: gemini-2.5-flash }         # missing provider
        """,
    )
    with pytest.raises(ConfigError):
        load_config(cfg)


def test_load_config_unknown_provider(tmp_path: Path):
    cfg = write_yaml(tmp_path / "c.yaml", "model: { provider: openai, name: gpt }")
    with pytest.raises(ConfigError):
        load_config(cfg)


@pytest.mark.parametrize(
    "extra",
    [
        "retry: { max_retries: 0 }",
        "retry: { max_retries: true }",
        "retry: { base_delay_ms: fast }",
        "api: { timeout: soon }",
        "logging: { level: LOUD }",
        "retry: 5",
    ],
)
def test_load_config_bad_optional_values(tmp_path: Path, extra: str):
    cfg = write_yaml(tmp_path / "c.yaml", "model: { provider: echo, name: e }\n" + extra)
    with pytest.raises(ConfigError):
        load_config(cfg)


def test_load_config_empty_and_missing(tmp_path: Path):
    empty = write_yaml(tmp_path / "empty.yaml", "")
    with pytest.raises(ConfigError):
        load_config(empty)
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "secrets",
    [
        "secrets: { method: vault }",
        "secrets: { method: [env, vault] }",
        "secrets: { method: [] }",
        "secrets: { method: env, mapping: [GEMINI_API_KEY] }",
    ],
)
def test_load_config_bad_secrets(tmp_path: Path, secrets: str):
    cfg = write_yaml(tmp_path / "c.yaml", "model: { provider: echo, name: e }\n" + secrets)
    with pytest.raises(ConfigError):
        load_config(cfg)


def test_load_config_secrets_methods_ok(tmp_path: Path):
    cfg = write_yaml(tmp_path / "c.yaml", "model: { provider: echo, name: e }\nsecrets: { method: [ENV, keyring] }")
    assert load_config(cfg)["secrets"]["method"] == ["ENV", "keyring"]
