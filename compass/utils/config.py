# compass/utils/config.py
from __future__ import annotations
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .paths import DB_PATH, SETTINGS_FILE

log = logging.getLogger(__name__)

_DEFAULTS: Dict[str, Any] = {
    "database": {
        "path": str(DB_PATH),
        "wal": True,
        "busy_timeout_ms": 5000,
    },
    "logging": {
        "level": "INFO",
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Defaults, then settings.json, then COMPASS_DB / COMPASS_LOG_LEVEL."""
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    data = copy.deepcopy(_DEFAULTS)
    if settings_file.exists():
        try:
            data = _merge(_DEFAULTS, json.loads(settings_file.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError) as exc:
            log.warning("Ignoring unreadable settings %s: %s", settings_file, exc)

    if os.environ.get("COMPASS_DB"):
        data["database"]["path"] = os.environ["COMPASS_DB"]
    if os.environ.get("COMPASS_LOG_LEVEL"):
        data["logging"]["level"] = os.environ["COMPASS_LOG_LEVEL"]
    return data


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
