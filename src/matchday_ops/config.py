# src/matchday_ops/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every key has a working default.
- Risk thresholds live here so dashboards and tests agree on the same numbers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "MATCHDAY"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


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

    # ---- Club context for the console ----
    club_id: str
    operator_id: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- Risk thresholds (hours) ----
    risk_critical_hours: float
    risk_warning_hours: float
    risk_unassigned_critical_hours: float
    risk_unassigned_warning_hours: float
    risk_window_days: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "matchday").strip() or "matchday"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        club_id = _env(_k("CLUB_ID"), "demo-club").strip() or "demo-club"
        operator_id = _env(_k("OPERATOR_ID"), "console").strip() or "console"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/matchday"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "matchday.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            club_id=club_id,
            operator_id=operator_id,
            data_dir=data_dir,
            db_path=db_path,
            risk_critical_hours=_env_float(_k("RISK_CRITICAL_HOURS"), 0.0),
            risk_warning_hours=_env_float(_k("RISK_WARNING_HOURS"), 1.0),
            risk_unassigned_critical_hours=_env_float(_k("RISK_UNASSIGNED_CRITICAL_HOURS"), 2.0),
            risk_unassigned_warning_hours=_env_float(_k("RISK_UNASSIGNED_WARNING_HOURS"), 24.0),
            risk_window_days=_env_int(_k("RISK_WINDOW_DAYS"), 7),
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for safe overrides of the console context.
try:
    import config_local as _config_local  # type: ignore

    if hasattr(_config_local, "CLUB_ID"):
        object.__setattr__(SETTINGS, "club_id", str(_config_local.CLUB_ID))  # type: ignore[misc]
    if hasattr(_config_local, "OPERATOR_ID"):
        object.__setattr__(SETTINGS, "operator_id", str(_config_local.OPERATOR_ID))  # type: ignore[misc]
except ImportError:
    pass


def get_settings() -> Settings:
    return SETTINGS
