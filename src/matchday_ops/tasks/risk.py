# src/matchday_ops/tasks/risk.py

from __future__ import annotations

"""
Risk classification for open tasks.

assess_task_risk() is a pure function of (task, fixture, now). Two axes are
evaluated independently and the worst level wins; reasons accumulate:

- deadline: due_at already passed -> critical "Overdue",
  due within the warning window -> warning "Due in N minutes";
- ownership: no owner and kickoff very close -> critical,
  no owner and kickoff within a day -> warning.
  Without fixture context an unowned task is always a warning.

RiskMonitor aggregates this over the fixtures of the coming week.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.ports import Clock, FixtureDirectory, TaskRepo, as_utc, utc_now
from .task_models import Fixture, FixtureStatus, RiskAssessment, RiskLevel, RiskSummary, Task

logger = logging.getLogger(__name__)

_SEVERITY = {RiskLevel.OK: 0, RiskLevel.WARNING: 1, RiskLevel.CRITICAL: 2}


@dataclass(slots=True, frozen=True)
class RiskThresholds:
    critical_hours: float = 0.0
    warning_hours: float = 1.0
    unassigned_critical_hours: float = 2.0
    unassigned_warning_hours: float = 24.0
    window_days: int = 7

    @classmethod
    def from_settings(cls, settings) -> RiskThresholds:
        return cls(
            critical_hours=float(getattr(settings, "risk_critical_hours", 0.0)),
            warning_hours=float(getattr(settings, "risk_warning_hours", 1.0)),
            unassigned_critical_hours=float(getattr(settings, "risk_unassigned_critical_hours", 2.0)),
            unassigned_warning_hours=float(getattr(settings, "risk_unassigned_warning_hours", 24.0)),
            window_days=int(getattr(settings, "risk_window_days", 7)),
        )


DEFAULT_THRESHOLDS = RiskThresholds()


def _hours_between(later: datetime, earlier: datetime) -> float:
    return (as_utc(later) - as_utc(earlier)).total_seconds() / 3600.0


def _raise_to(current: RiskLevel, candidate: RiskLevel) -> RiskLevel:
    return candidate if _SEVERITY[candidate] > _SEVERITY[current] else current


def assess_task_risk(
    task: Task,
    fixture: Fixture | None = None,
    *,
    now: datetime | None = None,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskAssessment:
    if task.is_completed:
        return RiskAssessment(task=task, level=RiskLevel.OK, reasons=[], fixture=fixture)

    if now is None:
        now = utc_now()

    level = RiskLevel.OK
    reasons: list[str] = []

    if task.due_at is not None:
        hours_until_due = _hours_between(task.due_at, now)
        if hours_until_due < thresholds.critical_hours:
            level = _raise_to(level, RiskLevel.CRITICAL)
            reasons.append("Overdue")
        elif hours_until_due < thresholds.warning_hours:
            level = _raise_to(level, RiskLevel.WARNING)
            # Half-minutes round up.
            minutes = math.floor(hours_until_due * 60 + 0.5)
            reasons.append(f"Due in {minutes} minutes")

    if not task.owner_user_id:
        if fixture is not None:
            hours_until_kickoff = _hours_between(fixture.kickoff_time, now)
            if hours_until_kickoff < thresholds.unassigned_critical_hours:
                level = _raise_to(level, RiskLevel.CRITICAL)
                reasons.append("Unassigned with kickoff soon")
            elif hours_until_kickoff < thresholds.unassigned_warning_hours:
                level = _raise_to(level, RiskLevel.WARNING)
                reasons.append("Unassigned")
        else:
            level = _raise_to(level, RiskLevel.WARNING)
            reasons.append("Unassigned")

    return RiskAssessment(task=task, level=level, reasons=reasons, fixture=fixture)


def format_risk_reason(assessment: RiskAssessment) -> str:
    if not assessment.reasons:
        return "At risk"
    return ", ".join(assessment.reasons)


class RiskMonitor:
    """Club-wide risk views. Read-only; failures degrade to empty results."""

    def __init__(
        self,
        fixtures: FixtureDirectory,
        tasks: TaskRepo,
        *,
        clock: Clock = utc_now,
        thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self._fixtures = fixtures
        self._tasks = tasks
        self._clock = clock
        self._thresholds = thresholds

    def _in_window(self, fixture: Fixture, now: datetime) -> bool:
        if fixture.status == FixtureStatus.CANCELLED:
            return False
        kickoff = as_utc(fixture.kickoff_time)
        return now <= kickoff <= now + timedelta(days=self._thresholds.window_days)

    async def summarize(self, club_id: str) -> RiskSummary:
        try:
            now = as_utc(self._clock())
            upcoming = [f for f in await self._fixtures.list_upcoming(club_id) if self._in_window(f, now)]
            if not upcoming:
                return RiskSummary()

            upcoming.sort(key=lambda f: as_utc(f.kickoff_time))
            by_id = {f.id: f for f in upcoming}
            tasks = await self._tasks.list_by_fixture_ids(list(by_id))

            risks = [
                assess_task_risk(t, by_id.get(t.fixture_id), now=now, thresholds=self._thresholds)
                for t in tasks
                if t.is_open
            ]
            # Stable: keeps the store's sort_order within one fixture.
            risks.sort(key=lambda r: as_utc(r.fixture.kickoff_time) if r.fixture else now)

            summary = RiskSummary(total=len(risks))
            for r in risks:
                if r.level == RiskLevel.CRITICAL:
                    summary.critical_tasks.append(r)
                elif r.level == RiskLevel.WARNING:
                    summary.warning_tasks.append(r)
                else:
                    summary.ok += 1
            summary.critical = len(summary.critical_tasks)
            summary.warning = len(summary.warning_tasks)
            return summary
        except Exception:
            logger.exception("Risk summary failed club=%s", club_id)
            return RiskSummary()

    async def fixture_risks(self, club_id: str, fixture_id: str) -> list[RiskAssessment]:
        """
        Non-ok assessments for the open tasks of one fixture.

        Not limited to the upcoming window: a live match still shows its gaps.
        """
        try:
            fixture = await self._fixtures.get_fixture(fixture_id)
            if fixture is None or (fixture.club_id and fixture.club_id != club_id):
                return []

            now = as_utc(self._clock())
            tasks = await self._tasks.list_by_fixture_ids([fixture_id])
            out: list[RiskAssessment] = []
            for t in tasks:
                if not t.is_open:
                    continue
                r = assess_task_risk(t, fixture, now=now, thresholds=self._thresholds)
                if r.level != RiskLevel.OK:
                    out.append(r)
            return out
        except Exception:
            logger.exception("Fixture risks failed club=%s fixture=%s", club_id, fixture_id)
            return []

    async def at_risk_count(self, club_id: str) -> dict[str, int]:
        summary = await self.summarize(club_id)
        return {"critical": summary.critical, "warning": summary.warning}
