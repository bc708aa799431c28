from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "Dayslots"
DATA_DIR_ENV = "DAYSLOTS_DATA_DIR"


def data_directory() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override)
    local_appdata = os.environ.get("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME.lower()


def database_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / "dayslots.sqlite3"


def config_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / "config.json"


def ensure_directories(base: Path | None = None) -> Path:
    directory = base or data_directory()
    directory.mkdir(parents=True, exist_ok=True)
    return directory
