# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from datetime import timedelta
from pathlib import Path

import pytest

from matchday_ops.tasks.task_models import Task, TaskStoreError
from matchday_ops.tasks.task_store import TaskStore

from .fakes import NOW


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    return TaskStore(tmp_path / "tasks.sqlite3")


@pytest.mark.asyncio
async def test_create_batch_assigns_ids_and_round_trips(store: TaskStore) -> None:
    created = await store.create_batch(
        [
            Task(fixture_id="fx-1", label="Open gates", sort_order=1, owner_user_id="u1",
                 owner_role="Ops", due_at=NOW - timedelta(hours=2), template_pack_id="p"),
            Task(fixture_id="fx-1", label="  Sweep pitch ", sort_order=0),
            Task(fixture_id="fx-2", label="Other fixture", sort_order=0),
        ]
    )

    assert all(t.id for t in created)
    assert len({t.id for t in created}) == 3

    tasks = await store.list_by_fixture_ids(["fx-1"])
    assert [t.label for t in tasks] == ["Sweep pitch", "Open gates"]
    gates = tasks[1]
    assert gates.due_at == NOW - timedelta(hours=2)
    assert (gates.owner_user_id, gates.owner_role, gates.template_pack_id) == ("u1", "Ops", "p")
    assert gates.is_completed is False
    assert store.count_tasks() == 3
    assert await store.list_by_fixture_ids([]) == []


@pytest.mark.asyncio
async def test_create_batch_is_all_or_nothing(store: TaskStore) -> None:
    (existing,) = await store.create_batch([Task(fixture_id="fx", label="first", sort_order=0)])

    with pytest.raises(TaskStoreError):
        await store.create_batch(
            [
                Task(fixture_id="fx", label="new", sort_order=1),
                Task(id=existing.id, fixture_id="fx", label="clash", sort_order=2),
            ]
        )

    assert [t.label for t in await store.list_by_fixture_ids(["fx"])] == ["first"]


@pytest.mark.asyncio
async def test_create_batch_rejects_blank_label(store: TaskStore) -> None:
    with pytest.raises(TaskStoreError):
        await store.create_batch([Task(fixture_id="fx", label="   ", sort_order=0)])
    assert store.count_tasks() == 0


@pytest.mark.asyncio
async def test_owner_backup_and_completion_updates(store: TaskStore) -> None:
    (task,) = await store.create_batch([Task(fixture_id="fx", label="t", sort_order=0)])

    assert (await store.update_owner(task.id, "u2")).owner_user_id == "u2"
    assert (await store.set_backup(task.id, "u3")).backup_user_id == "u3"

    done = await store.set_completion(task.id, is_completed=True, completed_by="u2", completed_at=NOW)
    assert (done.is_completed, done.completed_by, done.completed_at) == (True, "u2", NOW)

    reopened = await store.set_completion(task.id, is_completed=False, completed_by=None, completed_at=None)
    assert (reopened.is_completed, reopened.completed_by, reopened.completed_at) == (False, None, None)


@pytest.mark.asyncio
async def test_completion_flag_and_timestamp_move_together(store: TaskStore) -> None:
    (task,) = await store.create_batch([Task(fixture_id="fx", label="t", sort_order=0)])

    with pytest.raises(ValueError):
        await store.set_completion(task.id, is_completed=True, completed_by="u", completed_at=None)
    with pytest.raises(ValueError):
        await store.set_completion(task.id, is_completed=False, completed_by=None, completed_at=NOW)


@pytest.mark.asyncio
async def test_updates_on_unknown_task_raise(store: TaskStore) -> None:
    with pytest.raises(TaskStoreError, match="Task not found"):
        await store.update_owner("missing", "u1")
    assert await store.get_task("missing") is None


def test_schema_migration_adds_ownership_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute(
        """
        CREATE TABLE fixture_tasks (
            id TEXT PRIMARY KEY,
            club_id TEXT,
            fixture_id TEXT NOT NULL,
            template_pack_id TEXT,
            label TEXT NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0,
            is_completed INTEGER NOT NULL DEFAULT 0,
            completed_by TEXT,
            completed_at TEXT
        )
        """
    )
    conn.execute("INSERT INTO fixture_tasks(id, fixture_id, label) VALUES ('old', 'fx', 'legacy')")
    conn.commit()
    conn.close()

    store = TaskStore(db)

    conn = sqlite3.connect(db)
    cols = {row[1] for row in conn.execute("PRAGMA table_info(fixture_tasks)")}
    conn.close()
    assert {"owner_user_id", "backup_user_id", "owner_role", "due_at"} <= cols
    assert store.count_tasks() == 1


@pytest.mark.asyncio
async def test_returned_tasks_match_what_is_stored(store: TaskStore) -> None:
    (created,) = await store.create_batch([Task(fixture_id="fx", label="  Sweep pitch ", sort_order=0)])

    assert created.label == "Sweep pitch"
    assert await store.get_task(created.id) == created
