# src/collabnest/secrets/sources.py

from __future__ import annotations
from typing import Protocol, Optional, Dict, Iterable, List, Union
import getpass
import os

try:
    import keyring as _keyring
except Exception:
    _keyring = None  # optional


class SecretSource(Protocol):
    def get(self, service: str) -> Optional[str]: ...


class EnvSource:
    """
    Looks the service up as an exact env var first ("GEMINI_API_KEY"),
    then as a derived name ("gemini" -> GEMINI_API_KEY, GEMINI).
    """
    def get(self, service: str) -> Optional[str]:
        for key in (service, f"{service.upper()}_API_KEY", service.upper()):
            val = os.getenv(key)
            if val and val.strip():
                return val.strip()
        return None


class SystemKeyringSource:
    """Reads from the OS keychain via `keyring`; silent miss when keyring isn't installed."""

    def _accounts(self, service: str) -> List[str]:
        return ["API_KEY", f"{service.upper()}_API_KEY", "default", service, getpass.getuser()]

    def get(self, service: str) -> Optional[str]:
        if _keyring is None:
            return None
        if hasattr(_keyring, "get_credential"):
            try:
                cred = _keyring.get_credential(service, None)  # type: ignore[arg-type]
                if cred and getattr(cred, "password", None):
                    return cred.password.strip()
            except Exception:
                pass
        for account in self._accounts(service):
            try:
                val = _keyring.get_password(service, account)
                if val:
                    return val.strip()
            except Exception:
                pass
        return None


_ALLOWED_METHODS = {"env", "keyring"}


def _normalise_methods(method: Union[str, Iterable[str]]) -> List[str]:
    methods = [method] if isinstance(method, str) else list(method)
    norm: List[str] = []
    for m in methods:
        key = str(m).strip().lower()
        if key not in _ALLOWED_METHODS:
            raise ValueError(f"Unknown secrets method '{m}'. Allowed: {sorted(_ALLOWED_METHODS)}")
        if key not in norm:
            norm.append(key)
    return norm


def build_secret_sources(method: Union[str, Iterable[str]]) -> List[SecretSource]:
    sources: List[SecretSource] = []
    for name in _normalise_methods(method):
        sources.append(EnvSource() if name == "env" else SystemKeyringSource())
    return sources


class SecretsResolver:
    """
    Resolve secrets using one or more methods in order.
    mapping: per-provider map of names -> service/env-key
      e.g. { "gemini": { "api_key": "gemini" } } or { "gemini": { "api_key": "GEMINI_API_KEY" } }
    """
    def __init__(self, method: Union[str, Iterable[str]], mapping: Dict[str, Dict[str, str]] | None = None):
        self._sources = build_secret_sources(method)
        self._map = mapping or {}

    def secret(self, provider: str, name: str = "api_key") -> Optional[str]:
        service = (self._map.get(provider) or {}).get(name, provider)
        for src in self._sources:
            val = src.get(service)
            if val:
                return val
        return None
