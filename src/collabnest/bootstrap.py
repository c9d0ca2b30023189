from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

from .config_loader import load_config
from .logging_setup import setup_logging
from .providers.registry import ProviderRegistry
from .secrets.sources import SecretsResolver


def build_client(cfg: Dict[str, Any]):
    """Build the retrying completion client named by cfg['model']['provider']."""
    ProviderRegistry.ensure_imports()  # make sure built-ins register

    provider_name = cfg["model"]["provider"]
    model_name = cfg["model"]["name"]

    secrets_cfg = cfg.get("secrets") or {}
    resolver = SecretsResolver(
        method=secrets_cfg.get("method", "env"),
        mapping=secrets_cfg.get("mapping") or {},
    )

    Client = ProviderRegistry.get(provider_name)
    return Client.create(
        model_name=model_name,
        provider_cfg=cfg.get("api") or {},
        retry_cfg=cfg.get("retry") or {},
        secrets=resolver,
    )


def build_app(config_path: Path, *, log_level: Optional[str] = None, with_client: bool = True) -> Dict[str, Any]:
    """
    Composition root: load .env and YAML, configure logging, build the client.
    Returns: dict with cfg, paths, client (None when with_client is False).
    """
    load_dotenv()
    cfg = load_config(config_path)

    level = log_level or (cfg.get("logging") or {}).get("level") or "INFO"
    setup_logging(level)

    client = build_client(cfg) if with_client else None
    return {
        "cfg": cfg,
        "paths": {"config_dir": config_path.resolve().parent},
        "client": client,
    }
