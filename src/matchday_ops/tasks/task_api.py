# src/matchday_ops/tasks/task_api.py

from __future__ import annotations

import logging

from ..audit.audit_log import append_best_effort
from ..core.state import AppState
from .task_models import AuditEvent, Task

logger = logging.getLogger(__name__)


async def _audit(state: AppState, event_type: str, task: Task, actor_id: str, **payload) -> None:
    await append_best_effort(
        state.audit_log,
        AuditEvent(
            club_id=task.club_id or state.club_id,
            actor_user_id=actor_id,
            event_type=event_type,
            payload={"label": task.label, **payload},
            created_at=state.clock(),
            fixture_id=task.fixture_id,
            task_id=task.id,
        ),
    )


async def _require_task(state: AppState, task_id: str) -> Task:
    task = await state.task_store.get_task(task_id)
    if task is None:
        raise LookupError(f"Task not found: {task_id}")
    return task


async def add_ad_hoc_task(state: AppState, *, fixture_id: str, label: str) -> Task:
    """
    Add a one-off task (no template pack) to the end of a fixture's checklist.
    """
    label = (label or "").strip()
    if not label:
        raise ValueError("label is required")

    existing = await state.task_store.list_by_fixture_ids([fixture_id])
    next_order = max((t.sort_order for t in existing), default=-1) + 1

    (task,) = await state.task_store.create_batch(
        [Task(fixture_id=fixture_id, club_id=state.club_id, label=label, sort_order=next_order)]
    )
    logger.info("Ad hoc task added id=%s fixture=%s order=%d", task.id, fixture_id, next_order)
    return task


async def set_task_completion(state: AppState, task_id: str, *, is_completed: bool, user_id: str) -> Task:
    """Tick or untick a task; completed_by/completed_at follow the flag."""
    await _require_task(state, task_id)

    if is_completed:
        task = await state.task_store.set_completion(
            task_id, is_completed=True, completed_by=user_id, completed_at=state.clock()
        )
    else:
        task = await state.task_store.set_completion(
            task_id, is_completed=False, completed_by=None, completed_at=None
        )

    await _audit(state, "task.completed" if is_completed else "task.reopened", task, user_id)
    return task


async def claim_task(state: AppState, task_id: str, *, user_id: str) -> Task:
    """The caller takes ownership of an (often unassigned, at-risk) task."""
    before = await _require_task(state, task_id)
    task = await state.task_store.update_owner(task_id, user_id)
    await _audit(state, "task.claimed", task, user_id, previous_owner_id=before.owner_user_id)
    return task


async def set_backup(state: AppState, task_id: str, *, backup_user_id: str | None, actor_id: str) -> Task:
    await _require_task(state, task_id)
    task = await state.task_store.set_backup(task_id, backup_user_id)
    logger.info("Backup for task=%s set to %s by %s", task_id, backup_user_id, actor_id)
    return task
