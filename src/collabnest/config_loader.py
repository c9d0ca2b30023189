# src/collabnest/config_loader.py

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import yaml

PROVIDERS = ("gemini", "echo")
SECRET_METHODS = ("env", "keyring")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    pass


def _require(d: Dict[str, Any], dotted: str, typ: type) -> Any:
    cur: Any = d
    for k in dotted.split("."):
        if not isinstance(cur, dict) or k not in cur:
            raise ConfigError(f"Missing config key: {dotted}")
        cur = cur[k]
    if typ is str and not isinstance(cur, str):
        raise ConfigError(f"'{dotted}' must be a string")
    return cur


def _optional_int(d: Dict[str, Any], section: str, key: str, minimum: int) -> None:
    val = (d.get(section) or {}).get(key)
    if val is None:
        return
    # bool is an int subclass; reject it explicitly
    if isinstance(val, bool) or not isinstance(val, int):
        raise ConfigError(f"'{section}.{key}' must be an integer")
    if val < minimum:
        raise ConfigError(f"'{section}.{key}' must be >= {minimum}")


def load_config(path: Path) -> Dict[str, Any]:
    if not path or not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    raw = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict) or not raw:
        raise ConfigError(f"Config is empty or invalid YAML: {path}")

    # Required keys (no defaults here)
    _require(raw, "model.provider", str)
    _require(raw, "model.name", str)

    provider = str(raw["model"]["provider"]).lower()
    if provider not in PROVIDERS:
        raise ConfigError(f"Unknown model.provider '{provider}' (expected one of {', '.join(PROVIDERS)}).")
    raw["model"]["provider"] = provider

    # Optional sections are validated when present
    for section in ("api", "retry", "secrets", "logging"):
        if raw.get(section) is not None and not isinstance(raw[section], dict):
            raise ConfigError(f"'{section}' must be a mapping")

    _optional_int(raw, "retry", "max_retries", 1)
    _optional_int(raw, "retry", "base_delay_ms", 0)

    secrets = raw.get("secrets") or {}
    methods = secrets.get("method", "env")
    methods = [methods] if isinstance(methods, str) else methods
    if not isinstance(methods, list) or not methods:
        raise ConfigError("'secrets.method' must be a string or a non-empty list")
    unknown = [m for m in methods if str(m).strip().lower() not in SECRET_METHODS]
    if unknown:
        raise ConfigError(f"Unknown secrets.method {unknown} (expected any of {', '.join(SECRET_METHODS)}).")
    if secrets.get("mapping") is not None and not isinstance(secrets["mapping"], dict):
        raise ConfigError("'secrets.mapping' must be a mapping")

    timeout = (raw.get("api") or {}).get("timeout")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
        raise ConfigError("'api.timeout' must be a number")

    level = (raw.get("logging") or {}).get("level")
    if level is not None:
        level = str(level).upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"Unknown logging.level '{level}' (expected one of {', '.join(LOG_LEVELS)}).")
        raw["logging"]["level"] = level

    return raw
