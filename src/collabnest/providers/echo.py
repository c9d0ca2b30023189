from __future__ import annotations
import json
from typing import Any, Dict, List, Optional

import httpx

from collabnest.providers.registry import ProviderRegistry
from collabnest.resilience.retrying_client import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    RetryingCompletionClient,
)

_LOREM_50 = (
    "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua Curabitur non nulla sit amet nisl "
    "tempor convallis quis ac lectus Phasellus viverra nulla ut metus varius laoreet "
    "Quisque rutrum Aenean imperdiet Etiam ultricies nisi vel augue Curabitur ullamcorper ultricies nisi"
).split()

ECHO_ENDPOINT = "http://echo.invalid/models/echo-lorem:generateContent"


def candidate_body(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def echo_transport(words: Optional[List[str]] = None) -> httpx.MockTransport:
    """
    Offline stand-in for generateContent.
    Answers with a fixed 50-word lorem ipsum, or "[]" when JSON output was requested.
    """
    words = list(words) if words is not None else list(_LOREM_50)

    def handler(request: httpx.Request) -> httpx.Response:
        try:
            payload = json.loads(request.content or b"{}")
        except ValueError:
            return httpx.Response(400, json={"error": {"code": 400, "message": "Invalid JSON payload"}})
        if not payload.get("contents"):
            return httpx.Response(400, json={"error": {"code": 400, "message": "contents is required"}})

        mime = (payload.get("generationConfig") or {}).get("responseMimeType")
        text = "[]" if mime == "application/json" else " ".join(words)
        return httpx.Response(200, json=candidate_body(text))

    return httpx.MockTransport(handler)


@ProviderRegistry.register("echo")
class EchoClient(RetryingCompletionClient):
    """Retrying client wired to echo_transport(); needs no key and no network."""

    def __init__(self, words: Optional[List[str]] = None, **kwargs: Any):
        kwargs.setdefault("model", "echo-lorem")
        super().__init__(ECHO_ENDPOINT, None, transport=echo_transport(words), **kwargs)

    @classmethod
    def create(cls, *, model_name: str, provider_cfg: Dict[str, Any], retry_cfg=None, secrets=None) -> "EchoClient":
        retry_cfg = retry_cfg or {}
        return cls(
            words=(provider_cfg or {}).get("words"),
            model=model_name,
            max_retries=int(retry_cfg.get("max_retries", DEFAULT_MAX_RETRIES)),
            base_delay_ms=int(retry_cfg.get("base_delay_ms", DEFAULT_BASE_DELAY_MS)),
        )
