# src/matchday_ops/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite adapters and risk thresholds into AppState.
"""

from __future__ import annotations

import logging

from ..audit.audit_log import AuditLog
from ..config import get_settings
from ..core.ports import Clock, utc_now
from ..core.state import AppState
from ..directory.club_store import ClubStore
from ..tasks.risk import RiskThresholds
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock = utc_now) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    state = AppState(
        settings=settings,
        task_store=TaskStore(settings.db_path),
        club_store=ClubStore(settings.db_path, clock=clock),
        audit_log=AuditLog(settings.db_path),
        clock=clock,
        thresholds=RiskThresholds.from_settings(settings),
    )
    logger.info("State ready club=%s db=%s", state.club_id, settings.db_path)
    return state
