# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from matchday_ops.audit.audit_log import AuditLog
from matchday_ops.core.state import AppState
from matchday_ops.directory.club_store import ClubStore
from matchday_ops.tasks.risk import RiskThresholds
from matchday_ops.tasks.task_store import TaskStore

from .fakes import FixedClock


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    A SimpleNamespace, not real config: tests never read the developer's .env.
    """
    return SimpleNamespace(
        app_name="matchday-test",
        log_level="DEBUG",
        club_id="club-1",
        operator_id="op",
        data_dir=tmp_path,
        db_path=tmp_path / "matchday.sqlite3",
        risk_critical_hours=0.0,
        risk_warning_hours=1.0,
        risk_unassigned_critical_hours=2.0,
        risk_unassigned_warning_hours=24.0,
        risk_window_days=7,
    )


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FixedClock) -> AppState:
    """
    AppState wired with a fixed clock.

    NOTE: We keep real SQLite stores here because their correctness is part
    of what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=TaskStore(settings.db_path),
        club_store=ClubStore(settings.db_path, clock=clock),
        audit_log=AuditLog(settings.db_path),
        clock=clock,
        thresholds=RiskThresholds.from_settings(settings),
    )
