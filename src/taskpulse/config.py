# src/taskpulse/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required at import time; every value has a local default.
- Components receive settings by injection; get_settings() is only used by the composition root.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKPULSE"

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


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


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

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    notification_settings_path: Path

    # ---- Reminder engine ----
    reminder_tick_seconds: float
    ledger_cleanup_every_ticks: int
    ledger_retention_days: int
    channel_timeout_seconds: float
    notification_title: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskpulse").strip() or "taskpulse"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskpulse"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "todo.db")
        notification_settings_path = _env_path(
            _k("NOTIFICATION_SETTINGS_PATH"),
            data_dir / "notification_settings.json",
        )

        # Clamp to sane minimums: a zero tick would spin, a zero window would wipe the ledger.
        reminder_tick_seconds = max(0.5, _env_float(_k("REMINDER_TICK_SECONDS"), 30.0))
        ledger_cleanup_every_ticks = max(1, _env_int(_k("LEDGER_CLEANUP_EVERY_TICKS"), 120))
        ledger_retention_days = max(1, _env_int(_k("LEDGER_RETENTION_DAYS"), 30))
        channel_timeout_seconds = max(1.0, _env_float(_k("CHANNEL_TIMEOUT_SECONDS"), 10.0))
        notification_title = _env(_k("NOTIFICATION_TITLE"), "Task reminder").strip() or "Task reminder"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            notification_settings_path=notification_settings_path,
            reminder_tick_seconds=reminder_tick_seconds,
            ledger_cleanup_every_ticks=ledger_cleanup_every_ticks,
            ledger_retention_days=ledger_retention_days,
            channel_timeout_seconds=channel_timeout_seconds,
            notification_title=notification_title,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env for everything; config_local.py is only for safe overrides.
try:
    import config_local as _config_local  # type: ignore

    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
except ImportError:
    pass


def get_settings() -> Settings:
    return SETTINGS
