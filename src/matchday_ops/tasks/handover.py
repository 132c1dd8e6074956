# src/matchday_ops/tasks/handover.py

from __future__ import annotations

"""
Handover: bulk reassignment of one person's open tasks.

preview() and execute() share _plan(), so a preview always reports the same
task set that execute() would touch (barring writes made in between by
someone else).

Selection:
- upcoming window = fixtures kicking off now or later that are not cancelled,
  with no far bound (a handover may cover a long absence);
- scope all/pack -> every fixture in the window, fixture -> just that id;
- keep open tasks owned by from_user_id (and of the pack, for pack scope);
- target user -> everything goes to that user,
  role -> first active user with that role, or nothing plus an error,
  backup -> each task's own backup; tasks without one drop out.

execute() writes owners one task at a time. A failed write is reported,
marks the result unsuccessful, and the rest carry on. A role nobody holds is
reported in errors without counting as a failure. One "handover.executed"
audit event is appended at the end; the audit sink can never change the
reported outcome.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..audit.audit_log import append_best_effort
from ..core.ports import AuditSink, Clock, FixtureDirectory, TaskRepo, UserDirectory, as_utc, utc_now
from .task_generator import find_user_by_role
from .task_models import (
    AllScope,
    AuditEvent,
    ClubUser,
    FixtureScope,
    FixtureStatus,
    HandoverPreview,
    HandoverRequest,
    HandoverResult,
    PackScope,
    Task,
    ToBackup,
    ToRole,
    ToUser,
    UserStatus,
)

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred during handover"


@dataclass(slots=True)
class HandoverPlan:
    assignments: list[tuple[Task, str]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    target_user_id: str | None = None


def audit_payload(request: HandoverRequest, target_user_id: str | None, tasks_affected: int) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "from_user_id": request.from_user_id,
        "to_user_id": target_user_id,
        "target_type": request.target.kind,
        "scope": request.scope.kind,
        "tasks_affected": tasks_affected,
    }
    if isinstance(request.scope, FixtureScope):
        payload["fixture_id"] = request.scope.fixture_id
    elif isinstance(request.scope, PackScope):
        payload["pack_id"] = request.scope.template_pack_id
    return payload


class HandoverEngine:
    def __init__(
        self,
        fixtures: FixtureDirectory,
        users: UserDirectory,
        tasks: TaskRepo,
        audit: AuditSink,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._fixtures = fixtures
        self._users = users
        self._tasks = tasks
        self._audit = audit
        self._clock = clock

    async def _upcoming_fixture_ids(self, club_id: str) -> list[str]:
        now = as_utc(self._clock())
        fixtures = await self._fixtures.list_upcoming(club_id)
        return [
            f.id
            for f in fixtures
            if as_utc(f.kickoff_time) >= now and f.status != FixtureStatus.CANCELLED
        ]

    async def _plan(self, club_id: str, request: HandoverRequest) -> HandoverPlan:
        scope = request.scope
        if isinstance(scope, FixtureScope):
            fixture_ids = [scope.fixture_id]
        else:
            fixture_ids = await self._upcoming_fixture_ids(club_id)

        plan = HandoverPlan()
        if not fixture_ids:
            return plan

        candidates = [
            t
            for t in await self._tasks.list_by_fixture_ids(fixture_ids)
            if t.owner_user_id == request.from_user_id
            and t.is_open
            and (not isinstance(scope, PackScope) or t.template_pack_id == scope.template_pack_id)
        ]
        if not candidates:
            return plan

        target = request.target
        if isinstance(target, ToUser):
            plan.target_user_id = target.user_id
            plan.assignments = [(t, target.user_id) for t in candidates]
        elif isinstance(target, ToRole):
            user = find_user_by_role(await self._users.list_active(club_id), target.role)
            if user is None:
                plan.errors.append(f"No active user found with role: {target.role}")
            else:
                plan.target_user_id = user.id
                plan.assignments = [(t, user.id) for t in candidates]
        elif isinstance(target, ToBackup):
            plan.assignments = [(t, t.backup_user_id) for t in candidates if t.backup_user_id]
        else:
            raise TypeError(f"Unsupported handover target: {target!r}")

        return plan

    async def preview(self, club_id: str, request: HandoverRequest) -> HandoverPreview:
        try:
            plan = await self._plan(club_id, request)
        except Exception:
            logger.exception("Handover preview failed club=%s from=%s", club_id, request.from_user_id)
            return HandoverPreview()
        tasks = [t for t, _ in plan.assignments]
        return HandoverPreview(tasks_affected=len(tasks), tasks=tasks)

    async def execute(self, club_id: str, actor_id: str, request: HandoverRequest) -> HandoverResult:
        tasks_affected = 0
        try:
            plan = await self._plan(club_id, request)
        except Exception:
            logger.exception("Handover planning failed club=%s from=%s", club_id, request.from_user_id)
            return HandoverResult(success=False, tasks_affected=0, errors=[UNEXPECTED_ERROR])

        # Plan errors (e.g. no user holds the role) are reported but are not failures.
        errors = list(plan.errors)
        failed_writes = 0
        for task, new_owner in plan.assignments:
            try:
                await self._tasks.update_owner(str(task.id), new_owner)
            except Exception:
                logger.warning("Reassign failed task=%s to=%s", task.id, new_owner, exc_info=True)
                errors.append(f"Failed to reassign task: {task.label}")
                failed_writes += 1
                continue
            tasks_affected += 1

        await append_best_effort(
            self._audit,
            AuditEvent(
                club_id=club_id,
                actor_user_id=actor_id,
                event_type="handover.executed",
                payload=audit_payload(request, plan.target_user_id, tasks_affected),
                created_at=self._clock(),
                fixture_id=request.scope.fixture_id if isinstance(request.scope, FixtureScope) else None,
            ),
        )

        logger.info(
            "Handover from=%s target=%s scope=%s affected=%d errors=%d",
            request.from_user_id,
            request.target.kind,
            request.scope.kind,
            tasks_affected,
            len(errors),
        )
        return HandoverResult(
            success=failed_writes == 0,
            tasks_affected=tasks_affected,
            errors=errors or None,
        )

    async def users_with_tasks(self, club_id: str, fixture_id: str | None = None) -> list[ClubUser]:
        """Active users who currently own at least one open task in scope."""
        try:
            if fixture_id:
                fixture_ids = [fixture_id]
            else:
                fixture_ids = await self._upcoming_fixture_ids(club_id)
            if not fixture_ids:
                return []

            tasks = await self._tasks.list_by_fixture_ids(fixture_ids)
            owner_ids = {t.owner_user_id for t in tasks if t.owner_user_id and t.is_open}
            users = await self._users.list_active(club_id)
            return [u for u in users if u.id in owner_ids and u.status == UserStatus.ACTIVE]
        except Exception:
            logger.exception("users_with_tasks failed club=%s fixture=%s", club_id, fixture_id)
            return []


def describe_scope(scope: FixtureScope | PackScope | AllScope) -> str:
    if isinstance(scope, FixtureScope):
        return f"fixture {scope.fixture_id}"
    if isinstance(scope, PackScope):
        return f"pack {scope.template_pack_id}"
    return "all upcoming fixtures"
