# tests/unit/test_request.py

from __future__ import annotations
import sys
from pathlib import Path
import pytest

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from collabnest.core.request import GenerationRequest, Turn, extract_text, serialize_request


def test_plain_prompt_payload():
    req = GenerationRequest.from_prompt("hello")
    assert req.to_payload() == {"contents": [{"role": "user", "parts": [{"text": "hello"}]}]}


def test_system_instruction_and_schema():
    req = GenerationRequest(
        contents=[Turn("model", "Hi!"), Turn("user", "help")],
        system_instruction="be nice",
        response_mime_type="application/json",
        response_schema={"type": "ARRAY"},
    )
    body = req.to_payload()
    assert [c["role"] for c in body["contents"]] == ["model", "user"]
    assert body["systemInstruction"] == {"role": "system", "parts": [{"text": "be nice"}]}
    assert body["generationConfig"] == {"responseMimeType": "application/json", "responseSchema": {"type": "ARRAY"}}


def test_extra_config_merged():
    req = GenerationRequest.from_prompt("x", extra_config={"temperature": 0.2})
    assert req.to_payload()["generationConfig"] == {"temperature": 0.2}


def test_serialize_passes_dicts_through():
    raw = {"contents": [], "anything": 1}
    assert serialize_request(raw) is raw
    with pytest.raises(TypeError):
        serialize_request("nope")  # type: ignore[arg-type]


def test_extract_text():
    good = {"candidates": [{"content": {"parts": [{"text": "yo"}, {"text": "ignored"}]}}]}
    assert extract_text(good) == "yo"
    assert extract_text(None) is None
    assert extract_text({"candidates": [{"content": {}}]}) is None
    assert extract_text({"candidates": [{"content": {"parts": [{"text": 3}]}}]}) is None
    assert extract_text(["not", "a", "dict"]) is None
