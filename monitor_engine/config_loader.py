# monitor_engine/config_loader.py

"""
Utility helpers for loading Genzex Monitor configuration and ensuring runtime
directories exist. Centralizes resolution of server configs (CLI/json files)
and shared ~/.genzex settings used by the classifier, store and CLI layers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple

PROJECT_ROOT = Path(__file__).resolve().parents[1]
APP_ROOT = Path.home() / ".genzex"
DATA_DIR = APP_ROOT / "data"
LOG_DIR = APP_ROOT / "logs"
MODELS_DIR = APP_ROOT / "models"
DEFAULT_SETTINGS_FILE = DATA_DIR / "settings.json"

DEFAULT_SHARED_SETTINGS: Dict[str, Any] = {
    "monitoring_enabled": True,
    "threat_detection_enabled": True,
    "firewall_mode": False,
    "tick_interval": 3,
    "max_connections": 50,
    "max_logs": 200,
    "seed_count": 15,
    "model_path": None,
    "api_url": "http://127.0.0.1:5000",
    "log_max_bytes": 5 * 1024 * 1024,
    "log_backup_count": 5,
}

logger = logging.getLogger("genzex.config")


def ensure_runtime_dirs() -> None:
    """Ensure ~/.genzex data/log/model directories exist."""
    for path in (DATA_DIR, LOG_DIR, MODELS_DIR):
        path.mkdir(parents=True, exist_ok=True)


ensure_runtime_dirs()


def _resolve_path(path: str) -> Path:
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = (PROJECT_ROOT / candidate).resolve()
    return candidate


def _load_json(path: Path) -> Dict[str, Any]:
    with open(path, "r") as handle:
        return json.load(handle)


def load_settings(defaults: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """
    Load shared settings from ~/.genzex/data/settings.json.
    Returns defaults merged with file contents when available.
    """
    config = defaults.copy() if defaults else {}
    if DEFAULT_SETTINGS_FILE.exists():
        try:
            config.update(_load_json(DEFAULT_SETTINGS_FILE))
        except Exception as exc:
            logger.warning("Failed to read settings.json: %s", exc)
    return config


def load_server_config(
    config_path: str | None,
    defaults: Dict[str, Any] | None = None,
    include_settings: bool = True,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Load a server configuration JSON from the provided path.
    Returns a tuple of (server_config, global_settings).
    """
    config: Dict[str, Any] = {}
    if defaults:
        config.update(defaults)

    if config_path:
        resolved = _resolve_path(config_path)
        try:
            config.update(_load_json(resolved))
        except Exception as exc:
            raise RuntimeError(f"Failed to load server config '{config_path}': {exc}") from exc

    settings: Dict[str, Any] = {}
    if include_settings:
        settings = load_settings(defaults=DEFAULT_SHARED_SETTINGS)

    return config, settings


def resolve_option(name: str, config: Dict[str, Any], settings: Dict[str, Any], default: Any = None) -> Any:
    """Server config wins over shared settings, which win over ``default``."""
    if config.get(name) is not None:
        return config[name]
    if settings.get(name) is not None:
        return settings[name]
    return default


__all__ = [
    "APP_ROOT",
    "DATA_DIR",
    "LOG_DIR",
    "MODELS_DIR",
    "DEFAULT_SHARED_SETTINGS",
    "load_settings",
    "load_server_config",
    "resolve_option",
    "ensure_runtime_dirs",
]
