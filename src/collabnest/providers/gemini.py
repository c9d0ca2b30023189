# src/collabnest/providers/gemini.py
from __future__ import annotations
from typing import Any, Dict, Optional

from collabnest.config_loader import ConfigError
from collabnest.providers.registry import ProviderRegistry
from collabnest.resilience.retrying_client import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    RetryingCompletionClient,
)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def gemini_endpoint(model: str, base_url: Optional[str] = None) -> str:
    base = (base_url or DEFAULT_BASE_URL).rstrip("/")
    return f"{base}/models/{model}:generateContent"


@ProviderRegistry.register("gemini")
class GeminiClient(RetryingCompletionClient):
    """
    Retrying client bound to the Gemini generateContent REST endpoint.
    The key travels in the x-goog-api-key header, never in the URL.
    """

    @classmethod
    def create(
        cls,
        *,
        model_name: str,
        provider_cfg: Dict[str, Any],
        retry_cfg: Optional[Dict[str, Any]] = None,
        secrets,
    ) -> "GeminiClient":
        api_key = secrets.secret("gemini", "api_key")
        if not api_key:
            raise ConfigError("No API key for 'gemini'")

        provider_cfg = provider_cfg or {}
        retry_cfg = retry_cfg or {}
        return cls(
            gemini_endpoint(model_name, provider_cfg.get("base_url")),
            api_key,
            model=model_name,
            timeout=provider_cfg.get("timeout", 60.0),
            max_retries=int(retry_cfg.get("max_retries", DEFAULT_MAX_RETRIES)),
            base_delay_ms=int(retry_cfg.get("base_delay_ms", DEFAULT_BASE_DELAY_MS)),
        )
