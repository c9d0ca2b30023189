# tests/unit/test_registry.py

from __future__ import annotations
import sys
from pathlib import Path

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from collabnest.providers.registry import ProviderRegistry  # type: ignore


def test_registry_register_and_get():
    @ProviderRegistry.register("Dummy")
    class DummyClient:
        @classmethod
        def create(cls, *, model_name, provider_cfg, retry_cfg=None, secrets=None):
            return cls()
        async def generate(self, request, max_retries=None, *, cancel=None):
            return "ok"

    # Case-insensitive lookup
    assert ProviderRegistry.get("dummy") is DummyClient
    assert ProviderRegistry.get("DUMMY") is DummyClient


def test_builtins_register_on_import():
    ProviderRegistry.ensure_imports()
    assert {"gemini", "echo"} <= set(ProviderRegistry.names())


def test_registry_unknown_raises():
    try:
        ProviderRegistry.get("does-not-exist")
        assert False, "Expected KeyError"
    except KeyError:
        pass
