"""
Configuration loader for MemberHub.

Loads an optional config.yaml, applies environment overrides, validates
against the Pydantic schema and caches the result for the process.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from memberhub.config.schema import AppConfig
from memberhub.exceptions import ConfigurationError

# Environment variable -> AppConfig field
ENV_OVERRIDES: dict[str, str] = {
    "POCKETBASE_URL": "backend_url",
    "MEMBERHUB_BACKEND_URL": "backend_url",
    "MEMBERHUB_REQUEST_TIMEOUT": "request_timeout",
    "MEMBERHUB_TENANT_HEADER": "tenant_header",
    "MEMBERHUB_TENANT_QUERY_PARAM": "tenant_query_param",
    "MEMBERHUB_STORAGE_PATH": "storage_path",
    "MEMBERHUB_AUTH_STORE_PATH": "auth_store_path",
    "MEMBERHUB_EXPIRING_WINDOW_DAYS": "expiring_window_days",
    "MEMBERHUB_ENV": "environment",
}

_loaded_config: Optional[AppConfig] = None


def find_config_file() -> Optional[Path]:
    """Locate config.yaml via MEMBERHUB_CONFIG or the working directory."""
    explicit = os.environ.get("MEMBERHUB_CONFIG")
    if explicit:
        return Path(explicit)
    candidate = Path.cwd() / "config.yaml"
    return candidate if candidate.exists() else None


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, field in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value is not None and value.strip():
            overrides[field] = value.strip()

    dev_hosts = os.environ.get("MEMBERHUB_DEV_HOSTS")
    if dev_hosts:
        overrides["dev_hosts"] = [h for h in dev_hosts.split(",") if h.strip()]
    return overrides


def load_config(
    config_path: Optional[str | Path] = None,
    *,
    use_cache: bool = True,
) -> AppConfig:
    """
    Load and validate the application configuration.

    Args:
        config_path: Optional explicit path to a YAML file. If not given,
                     MEMBERHUB_CONFIG or ./config.yaml is used when present.
        use_cache: Return the cached config from an earlier call.

    Returns:
        Validated AppConfig instance.

    Raises:
        ConfigurationError: If the file is missing, empty or invalid.
    """
    global _loaded_config
    if use_cache and config_path is None and _loaded_config is not None:
        return _loaded_config

    raw: dict[str, Any] = {}
    path = Path(config_path) if config_path is not None else find_config_file()

    if path is not None:
        if not path.exists():
            raise ConfigurationError(
                f"Config not found: {path}", config_path=str(path)
            )
        with open(path, "r") as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            raise ConfigurationError(
                f"Config file is empty: {path}", config_path=str(path)
            )
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping: {path}",
                config_path=str(path),
            )
        raw.update(loaded)

    raw.update(_env_overrides())

    try:
        config = AppConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration:\n{e}",
            config_path=str(path) if path else None,
        ) from e

    if config_path is None:
        _loaded_config = config
    return config


def clear_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _loaded_config
    _loaded_config = None
