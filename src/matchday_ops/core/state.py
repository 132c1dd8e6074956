# src/matchday_ops/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..audit.audit_log import AuditLog
from ..directory.club_store import ClubStore
from ..tasks.handover import HandoverEngine
from ..tasks.risk import RiskMonitor, RiskThresholds
from ..tasks.task_store import TaskStore
from .ports import Clock, utc_now


@dataclass
class AppState:
    """
    Everything a command needs, wired once by cli.bootstrap.

    The engines share the stores and the clock held here.
    """

    settings: object

    task_store: TaskStore
    club_store: ClubStore
    audit_log: AuditLog

    clock: Clock = utc_now
    thresholds: RiskThresholds = field(default_factory=RiskThresholds)

    @property
    def club_id(self) -> str:
        return str(getattr(self.settings, "club_id", "demo-club"))

    @property
    def operator_id(self) -> str:
        return str(getattr(self.settings, "operator_id", "console"))

    @property
    def risk(self) -> RiskMonitor:
        return RiskMonitor(self.club_store, self.task_store, clock=self.clock, thresholds=self.thresholds)

    @property
    def handover(self) -> HandoverEngine:
        return HandoverEngine(self.club_store, self.club_store, self.task_store, self.audit_log, clock=self.clock)
