"""
Configuration for the day layout and the activity code list.

Settings live in an optional ``config.json`` inside the data directory. Keys
that are missing fall back to the defaults below; a file that cannot be read
or parsed is ignored with a warning.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .codes import DEFAULT_CODES, CodeCatalog
from .models import ActivityCode, RootSlot
from .schema import (
    DEFAULT_DAY_END,
    DEFAULT_DAY_START,
    DEFAULT_LEVEL_DURATIONS,
    LevelSchema,
    build_root_schedule,
    format_clock_label,
    parse_clock,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    levels: tuple[int, ...] = DEFAULT_LEVEL_DURATIONS
    day_start: int = DEFAULT_DAY_START
    day_end: int = DEFAULT_DAY_END
    codes: tuple[ActivityCode, ...] = field(default_factory=lambda: DEFAULT_CODES)

    def schema(self) -> LevelSchema:
        return LevelSchema(self.levels)

    def root_schedule(self) -> list[RootSlot]:
        return build_root_schedule(self.schema(), self.day_start, self.day_end)

    def catalog(self) -> CodeCatalog:
        return CodeCatalog(self.codes)


def _default_config() -> dict[str, Any]:
    return {
        "levels": list(DEFAULT_LEVEL_DURATIONS),
        "day_start": format_clock_label(DEFAULT_DAY_START),
        "day_end": format_clock_label(DEFAULT_DAY_END),
        "codes": {item.code: item.description for item in DEFAULT_CODES},
    }


def _load_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            loaded = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Error loading config %s: %s", path, exc)
        return {}
    if not isinstance(loaded, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return {}
    return loaded


def config_from_dict(raw: dict[str, Any]) -> AppConfig:
    """Build and validate an ``AppConfig``; raises ``ValueError`` on bad values."""
    merged = {**_default_config(), **raw}

    codes_raw = merged["codes"]
    if isinstance(codes_raw, dict):
        codes = tuple(ActivityCode(str(code), str(desc)) for code, desc in codes_raw.items())
    elif isinstance(codes_raw, list):
        codes = tuple(
            ActivityCode(str(item.get("code", "")), str(item.get("description", "")))
            for item in codes_raw
            if isinstance(item, dict)
        )
    else:
        raise ValueError("'codes' must be an object or a list of {code, description}.")

    try:
        levels = tuple(int(value) for value in merged["levels"])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'levels' must be a list of seconds: {exc}") from exc

    config = AppConfig(
        levels=levels,
        day_start=parse_clock(str(merged["day_start"])),
        day_end=parse_clock(str(merged["day_end"])),
        codes=codes,
    )
    config.root_schedule()
    config.catalog()
    return config


def load_config(path: Path | None) -> AppConfig:
    if path is None:
        return AppConfig()
    return config_from_dict(_load_file(Path(path)))


def write_config(path: Path, config: AppConfig) -> None:
    payload = {
        "levels": list(config.levels),
        "day_start": format_clock_label(config.day_start),
        "day_end": format_clock_label(config.day_end),
        "codes": {item.code: item.description for item in config.codes},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
