# src/matchday_ops/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar


class TaskStoreError(RuntimeError):
    """A task repository write failed (batch create, owner update, ...)."""


class Venue(StrEnum):
    HOME = "Home"
    AWAY = "Away"


class FixtureStatus(StrEnum):
    SCHEDULED = "Scheduled"
    LIVE = "Live"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @classmethod
    def from_db(cls, raw: str | None) -> FixtureStatus:
        if not raw:
            return cls.SCHEDULED
        try:
            return cls(raw)
        except ValueError:
            return cls.SCHEDULED


class AutoApply(StrEnum):
    """
    When a template pack generates tasks for a fixture.

    A pack with no policy at all (None) applies to every fixture, unless its
    name carries a legacy "(Home)" / "(Away)" marker.
    """

    ALWAYS = "always"
    HOME = "home"
    AWAY = "away"
    NEVER = "never"

    @classmethod
    def from_db(cls, raw: str | None) -> AutoApply | None:
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class UserStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNAVAILABLE = "unavailable"

    @classmethod
    def from_db(cls, raw: str | None) -> UserStatus:
        if not raw:
            return cls.INACTIVE
        try:
            return cls(raw)
        except ValueError:
            return cls.INACTIVE


class RiskLevel(StrEnum):
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(slots=True, frozen=True)
class Fixture:
    id: str
    opponent: str
    kickoff_time: datetime
    venue: Venue
    status: FixtureStatus = FixtureStatus.SCHEDULED
    club_id: str | None = None


@dataclass(slots=True, frozen=True)
class TemplateTask:
    label: str
    offset_hours: float | None = None  # signed, relative to kickoff
    default_owner_role: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"label": self.label}
        if self.offset_hours is not None:
            out["offset_hours"] = self.offset_hours
        if self.default_owner_role:
            out["default_owner_role"] = self.default_owner_role
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TemplateTask:
        offset = data.get("offset_hours")
        return cls(
            label=str(data.get("label") or ""),
            offset_hours=float(offset) if offset is not None else None,
            default_owner_role=data.get("default_owner_role") or None,
        )


@dataclass(slots=True)
class TemplatePack:
    id: str
    name: str
    enabled: bool = True
    auto_apply: AutoApply | None = None
    default_owner_role: str | None = None
    tasks: list[TemplateTask] = field(default_factory=list)
    description: str = ""
    club_id: str | None = None


@dataclass(slots=True)
class Task:
    """
    One checklist item of a fixture.

    is_completed and completed_at always move together; use
    task_api.set_task_completion rather than flipping one of them.
    """

    fixture_id: str
    label: str
    sort_order: int

    id: str | None = None  # assigned by the repository
    club_id: str | None = None
    template_pack_id: str | None = None  # None for ad hoc tasks

    is_completed: bool = False
    completed_by: str | None = None
    completed_at: datetime | None = None

    owner_user_id: str | None = None
    backup_user_id: str | None = None
    owner_role: str | None = None
    due_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return not self.is_completed


@dataclass(slots=True, frozen=True)
class ClubUser:
    id: str
    status: UserStatus = UserStatus.ACTIVE
    primary_role: str | None = None
    name: str = ""
    club_id: str | None = None


@dataclass(slots=True)
class RiskAssessment:
    task: Task
    level: RiskLevel
    reasons: list[str] = field(default_factory=list)
    fixture: Fixture | None = None


@dataclass(slots=True)
class RiskSummary:
    critical: int = 0
    warning: int = 0
    ok: int = 0
    total: int = 0
    critical_tasks: list[RiskAssessment] = field(default_factory=list)
    warning_tasks: list[RiskAssessment] = field(default_factory=list)


# ---- Handover request variants ----


@dataclass(slots=True, frozen=True)
class ToUser:
    user_id: str
    kind: ClassVar[str] = "user"


@dataclass(slots=True, frozen=True)
class ToBackup:
    kind: ClassVar[str] = "backup"


@dataclass(slots=True, frozen=True)
class ToRole:
    role: str
    kind: ClassVar[str] = "role"


HandoverTarget = ToUser | ToBackup | ToRole


@dataclass(slots=True, frozen=True)
class FixtureScope:
    fixture_id: str
    kind: ClassVar[str] = "fixture"


@dataclass(slots=True, frozen=True)
class PackScope:
    template_pack_id: str
    kind: ClassVar[str] = "pack"


@dataclass(slots=True, frozen=True)
class AllScope:
    kind: ClassVar[str] = "all"


HandoverScope = FixtureScope | PackScope | AllScope


@dataclass(slots=True, frozen=True)
class HandoverRequest:
    from_user_id: str
    target: HandoverTarget
    scope: HandoverScope


@dataclass(slots=True)
class HandoverPreview:
    tasks_affected: int = 0
    tasks: list[Task] = field(default_factory=list)


@dataclass(slots=True)
class HandoverResult:
    success: bool
    tasks_affected: int
    errors: list[str] | None = None


@dataclass(slots=True)
class AuditEvent:
    club_id: str
    actor_user_id: str
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    fixture_id: str | None = None
    task_id: str | None = None
    id: str | None = None
