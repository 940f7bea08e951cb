# src/weekplan/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Local data (SQLite records, identity file, logs) lives under one data dir.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "WEEKPLAN"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
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

    # ---- Identity ----
    user_name: str | None

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    identity_path: Path

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "Week Plan")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        user_name = _first_env(_k("USER_NAME"), default=None)
        if user_name is not None:
            user_name = user_name.strip()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/weekplan"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        identity_path = _env_path(_k("IDENTITY_PATH"), data_dir / "identity.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            user_name=user_name,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            identity_path=identity_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
