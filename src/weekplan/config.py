# src/weekplan/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a default.
- Paths default under a local (gitignored) data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "WEEKPLAN"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Front end ----
    console_enabled: bool

    # ---- Grid geometry ----
    slot_px: float
    column_px: float
    drag_threshold_px: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_path: Path
    colors_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "weekplan") or "weekplan"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        slot_px = max(1.0, _env_float(_k("SLOT_PX"), 24.0))
        column_px = max(1.0, _env_float(_k("COLUMN_PX"), 160.0))
        drag_threshold_px = max(0.0, _env_float(_k("DRAG_THRESHOLD_PX"), 3.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/weekplan"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")
        colors_path = _env_path(_k("COLORS_PATH"), data_dir / "client_colors.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            slot_px=slot_px,
            column_px=column_px,
            drag_threshold_px=drag_threshold_px,
            data_dir=data_dir,
            tasks_path=tasks_path,
            colors_path=colors_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
