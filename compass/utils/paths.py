# Rev 0.1.0

"""Paths and XDG helpers (Rev 0.1.0)
- Uses XDG Base Directory spec for data and config; logs resolve XDG_STATE_HOME at setup time
- Default DB lives at $XDG_DATA_HOME/compass/compass.db
- Schema ships inside the package under compass/data
"""
from __future__ import annotations
import os
from pathlib import Path


APP_NAME = "compass"


XDG_DATA_HOME = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
XDG_CONFIG_HOME = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


DATA_DIR = XDG_DATA_HOME / APP_NAME
CONFIG_DIR = XDG_CONFIG_HOME / APP_NAME


PACKAGE_ROOT = Path(__file__).resolve().parents[1]
SCHEMA_PATH = PACKAGE_ROOT / "data" / "schema.sql"


DB_PATH = DATA_DIR / "compass.db"
SETTINGS_FILE = CONFIG_DIR / "settings.json"
