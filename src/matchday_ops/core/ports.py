# src/matchday_ops/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The engines depend on Protocols instead of concrete implementations.
This keeps storage swappable (SQLite adapters ship in this package, the
surrounding application may bring its own) and makes testing easier.

Every collaborator call is a suspension point, so the ports are async.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Protocol

from ..tasks.task_models import AuditEvent, ClubUser, Fixture, Task, TemplatePack

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class FixtureDirectory(Protocol):
    async def list_upcoming(self, club_id: str) -> list[Fixture]: ...

    async def get_fixture(self, fixture_id: str) -> Fixture | None:
        """Any fixture by id, past or live ones included."""
        ...


class UserDirectory(Protocol):
    """Users in a stable order; role resolution relies on that order."""

    async def list_active(self, club_id: str) -> list[ClubUser]: ...


class TemplateCatalog(Protocol):
    async def list_template_packs(self, club_id: str) -> list[TemplatePack]: ...


class TaskRepo(Protocol):
    async def list_by_fixture_ids(self, fixture_ids: Iterable[str]) -> list[Task]: ...

    async def create_batch(self, tasks: list[Task]) -> list[Task]:
        """All-or-nothing; raises TaskStoreError on failure."""
        ...

    async def update_owner(self, task_id: str, new_owner_id: str | None) -> Task: ...

    # Used by the task API (completion toggling, backups).
    async def get_task(self, task_id: str) -> Task | None: ...

    async def set_completion(
        self,
        task_id: str,
        *,
        is_completed: bool,
        completed_by: str | None,
        completed_at: datetime | None,
    ) -> Task: ...

    async def set_backup(self, task_id: str, backup_user_id: str | None) -> Task: ...


class AuditSink(Protocol):
    async def append(self, event: AuditEvent) -> None: ...
