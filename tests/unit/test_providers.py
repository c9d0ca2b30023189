# tests/unit/test_providers.py

from __future__ import annotations
import asyncio
import sys
from pathlib import Path
import pytest

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from collabnest.config_loader import ConfigError
from collabnest.core.request import GenerationRequest
from collabnest.providers.echo import EchoClient
from collabnest.providers.gemini import GeminiClient, gemini_endpoint
from collabnest.secrets.sources import SecretsResolver


def test_gemini_endpoint():
    assert gemini_endpoint("gemini-2.5-flash") == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
    )
    assert gemini_endpoint("m", "http://localhost:9000/v1/") == "http://localhost:9000/v1/models/m:generateContent"


def test_gemini_create_reads_key_and_retry_cfg(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "g-key")
    client = GeminiClient.create(
        model_name="gemini-x",
        provider_cfg={"timeout": 5},
        retry_cfg={"max_retries": 3, "base_delay_ms": 200},
        secrets=SecretsResolver(method="env"),
    )
    assert client.model == "gemini-x"
    assert client.endpoint.endswith("/models/gemini-x:generateContent")
    assert (client.max_retries, client.base_delay_ms, client.timeout) == (3, 200, 5)
    assert client._headers()["x-goog-api-key"] == "g-key"


def test_gemini_create_without_key_fails(monkeypatch):
    for var in ("gemini", "GEMINI_API_KEY", "GEMINI"):
        monkeypatch.delenv(var, raising=False)
    with pytest.raises(ConfigError):
        GeminiClient.create(model_name="m", provider_cfg={}, secrets=SecretsResolver(method="env"))


def test_echo_client_text_and_json():
    client = EchoClient(words=["hi", "there"])
    text = asyncio.run(client.generate(GenerationRequest.from_prompt("x")))
    assert text == "hi there"

    as_json = GenerationRequest.from_prompt("x", response_mime_type="application/json")
    assert asyncio.run(client.generate(as_json)) == "[]"


def test_echo_client_rejects_empty_contents():
    from collabnest.core.errors import ClientRequestError

    with pytest.raises(ClientRequestError) as ei:
        asyncio.run(EchoClient().generate({"contents": []}))
    assert ei.value.status == 400
