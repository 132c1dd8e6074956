# src/matchday_ops/tasks/task_generator.py

from __future__ import annotations

"""
Task generator.

Expands the enabled, venue-relevant template packs into concrete checklist
items for one fixture:
- sort_order is one counter across all packs (catalog order, then task order),
- the owner role comes from the task, else from the pack,
- the first active user holding that role becomes the owner,
- due_at = kickoff + offset_hours when both are known.

generate_tasks() is pure. generate_and_store() reads the catalog, the users
and the fixture's current tasks (to continue sort_order), then persists the
batch in a single create call.

Running it twice for the same fixture creates the checklist twice; there is
no uniqueness guard on (fixture, pack, label).
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from ..core.ports import TaskRepo, TemplateCatalog, UserDirectory
from .task_models import ClubUser, Fixture, Task, TemplatePack, UserStatus, Venue
from .templates import relevant_packs

logger = logging.getLogger(__name__)


def find_user_by_role(users: Iterable[ClubUser], role: str) -> ClubUser | None:
    """First active user whose primary role is `role`, in input order."""
    for user in users:
        if user.status == UserStatus.ACTIVE and user.primary_role == role:
            return user
    return None


def compute_due_at(kickoff_time: datetime | None, offset_hours: float | None) -> datetime | None:
    if kickoff_time is None or offset_hours is None:
        return None
    return kickoff_time + timedelta(hours=offset_hours)


def generate_tasks(
    fixture_id: str,
    venue: Venue,
    kickoff_time: datetime | None,
    packs: list[TemplatePack],
    users: list[ClubUser],
    *,
    club_id: str | None = None,
    start_sort_order: int = 0,
) -> list[Task]:
    """Build (unsaved) tasks for one fixture. No I/O."""
    out: list[Task] = []
    sort_order = start_sort_order

    for pack in relevant_packs(packs, venue):
        for template in pack.tasks:
            owner_role = template.default_owner_role or pack.default_owner_role or None
            owner = find_user_by_role(users, owner_role) if owner_role else None

            out.append(
                Task(
                    fixture_id=fixture_id,
                    club_id=club_id,
                    template_pack_id=pack.id,
                    label=template.label,
                    sort_order=sort_order,
                    owner_user_id=owner.id if owner else None,
                    owner_role=owner_role,
                    due_at=compute_due_at(kickoff_time, template.offset_hours),
                )
            )
            sort_order += 1

    return out


async def generate_and_store(
    task_repo: TaskRepo,
    catalog: TemplateCatalog,
    users: UserDirectory,
    *,
    club_id: str,
    fixture: Fixture,
) -> list[Task]:
    """
    Generate the checklist for `fixture` and persist it with one create_batch call.

    A store failure propagates (TaskStoreError); nothing is written in that case.
    """
    packs = await catalog.list_template_packs(club_id)
    club_users = await users.list_active(club_id)

    # Continue numbering after whatever the fixture already holds.
    existing = await task_repo.list_by_fixture_ids([fixture.id])
    start = max((t.sort_order for t in existing), default=-1) + 1

    tasks = generate_tasks(
        fixture.id,
        fixture.venue,
        fixture.kickoff_time,
        packs,
        club_users,
        club_id=club_id,
        start_sort_order=start,
    )
    if not tasks:
        logger.info("No relevant template packs for fixture=%s venue=%s", fixture.id, fixture.venue)
        return []

    try:
        created = await task_repo.create_batch(tasks)
    except Exception:
        logger.exception("create_batch failed fixture=%s tasks=%d", fixture.id, len(tasks))
        raise

    assigned = sum(1 for t in created if t.owner_user_id)
    logger.info(
        "Generated %d tasks for fixture=%s (%d auto-assigned)",
        len(created),
        fixture.id,
        assigned,
    )
    return created
