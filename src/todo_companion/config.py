# src/todo_companion/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time; `Settings.validate()` is called by the
  entrypoint and turns missing required values into a startup error.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from .core.errors import ConfigurationError

ENV_PREFIX = "TODO"

CONNECTORS = ("telegram", "console")
DEFAULT_REMINDER_TIMES = "08:00,20:00"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


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


def parse_reminder_times(raw: str) -> List[time]:
    """
    Parse "HH:MM" values separated by commas or spaces.

    Raises ConfigurationError on malformed entries. The result is sorted and
    de-duplicated.
    """
    out: set[time] = set()
    for part in raw.replace(",", " ").split():
        try:
            hh, mm = part.split(":", 1)
            out.add(time(hour=int(hh), minute=int(mm)))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid reminder time {part!r} (expected HH:MM)") from exc
    return sorted(out)


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector ----
    connector: str
    bot_token: str | None
    console_user_id: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Store tuning ----
    db_pool_size: int
    db_timeout_seconds: float

    # ---- Dialogs / reminders ----
    session_timeout_seconds: float
    reminders_enabled: bool
    reminder_times_raw: str

    @property
    def reminder_times(self) -> List[time]:
        return parse_reminder_times(self.reminder_times_raw)

    def validate(self) -> None:
        """Raise ConfigurationError if the app cannot start with these settings."""
        if self.connector not in CONNECTORS:
            raise ConfigurationError(
                f"Unknown connector {self.connector!r}; expected one of: {', '.join(CONNECTORS)}"
            )
        if self.connector == "telegram" and not self.bot_token:
            raise ConfigurationError("Bot token is missing: set TODO_BOT_TOKEN (or BOT_TOKEN)")
        if self.db_pool_size < 1:
            raise ConfigurationError("TODO_DB_POOL_SIZE must be >= 1")
        if self.reminders_enabled and not self.reminder_times:
            raise ConfigurationError("TODO_REMINDER_TIMES is empty while reminders are enabled")

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todo-companion") or "todo-companion"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        connector = _env(_k("CONNECTOR"), "telegram").strip().lower()
        bot_token = _first_env(_k("BOT_TOKEN"), "BOT_TOKEN", default=None)
        if bot_token is not None:
            bot_token = bot_token.strip() or None
        console_user_id = _env(_k("CONSOLE_USER_ID"), "console").strip() or "console"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo"))
        # DB_NAME is the database name used by older deployments; map it to a file name.
        db_name = (_first_env("DB_NAME", default="tasks") or "tasks").strip()
        tasks_db_path = _env_path(_k("DB_PATH"), data_dir / f"{db_name}.sqlite3")

        db_pool_size = _env_int(_k("DB_POOL_SIZE"), 10)
        db_timeout_seconds = _env_float(_k("DB_TIMEOUT_SECONDS"), 10.0)

        session_timeout_seconds = _env_float(_k("SESSION_TIMEOUT_SECONDS"), 600.0)
        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), True)
        reminder_times_raw = _env(_k("REMINDER_TIMES"), DEFAULT_REMINDER_TIMES)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            connector=connector,
            bot_token=bot_token,
            console_user_id=console_user_id,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            db_pool_size=db_pool_size,
            db_timeout_seconds=db_timeout_seconds,
            session_timeout_seconds=session_timeout_seconds,
            reminders_enabled=reminders_enabled,
            reminder_times_raw=reminder_times_raw,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
