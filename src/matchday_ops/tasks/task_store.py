# src/matchday_ops/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import uuid
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from .task_models import Task, TaskStoreError

logger = logging.getLogger(__name__)


def dt_to_db(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def dt_from_db(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Unparseable timestamp in store: %r", raw)
        return None


class TaskStore:
    """
    SQLite fixture-task store.

    Schema handling is migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Each method opens its own SQLite connection. There is no row versioning:
    two writers updating the same owner simply race, the last one wins.
    """

    def __init__(self, db_path: str | Path = "matchday.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS fixture_tasks (
                    id TEXT PRIMARY KEY,
                    club_id TEXT,
                    fixture_id TEXT NOT NULL,
                    template_pack_id TEXT,
                    label TEXT NOT NULL,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    completed_by TEXT,
                    completed_at TEXT,
                    owner_user_id TEXT,
                    backup_user_id TEXT,
                    owner_role TEXT,
                    due_at TEXT
                )
                """
            )

            cur.execute("PRAGMA table_info(fixture_tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE fixture_tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            # Ownership columns arrived after the first checklist tables.
            add_col("owner_user_id", "TEXT")
            add_col("backup_user_id", "TEXT")
            add_col("owner_role", "TEXT")
            add_col("due_at", "TEXT")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_fixture_tasks_fixture ON fixture_tasks(fixture_id, sort_order)"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_fixture_tasks_owner ON fixture_tasks(owner_user_id)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            club_id=row["club_id"],
            fixture_id=row["fixture_id"],
            template_pack_id=row["template_pack_id"],
            label=str(row["label"] or ""),
            sort_order=int(row["sort_order"] or 0),
            is_completed=bool(row["is_completed"]),
            completed_by=row["completed_by"],
            completed_at=dt_from_db(row["completed_at"]),
            owner_user_id=row["owner_user_id"],
            backup_user_id=row["backup_user_id"],
            owner_role=row["owner_role"],
            due_at=dt_from_db(row["due_at"]),
        )

    def _fetch(self, conn: sqlite3.Connection, task_id: str) -> Task | None:
        row = conn.execute("SELECT * FROM fixture_tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_task(row) if row else None

    def _update(self, task_id: str, assignments: str, params: tuple[Any, ...]) -> Task:
        conn = self._get_conn()
        try:
            cur = conn.execute(f"UPDATE fixture_tasks SET {assignments} WHERE id = ?", (*params, task_id))
            if cur.rowcount != 1:
                conn.rollback()
                raise TaskStoreError(f"Task not found: {task_id}")
            conn.commit()
            task = self._fetch(conn, task_id)
        except sqlite3.Error as e:
            raise TaskStoreError(f"Task update failed: {task_id}") from e
        finally:
            conn.close()
        if task is None:
            raise TaskStoreError(f"Task vanished after update: {task_id}")
        return task

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM fixture_tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    async def list_by_fixture_ids(self, fixture_ids: Iterable[str]) -> list[Task]:
        ids = [str(i) for i in fixture_ids]
        if not ids:
            return []

        placeholders = ",".join("?" for _ in ids)
        conn = self._get_conn()
        try:
            cur = conn.execute(
                f"""
                SELECT *
                FROM fixture_tasks
                WHERE fixture_id IN ({placeholders})
                ORDER BY sort_order ASC, rowid ASC
                """,
                ids,
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    async def get_task(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            return self._fetch(conn, task_id)
        finally:
            conn.close()

    async def create_batch(self, tasks: list[Task]) -> list[Task]:
        """Insert every task in one transaction; on any error nothing is kept."""
        if not tasks:
            return []

        created = [replace(t, id=t.id or uuid.uuid4().hex, label=(t.label or "").strip()) for t in tasks]
        for t in created:
            if not t.label:
                raise TaskStoreError("Task label is required")

        conn = self._get_conn()
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO fixture_tasks(
                        id, club_id, fixture_id, template_pack_id, label, sort_order,
                        is_completed, completed_by, completed_at,
                        owner_user_id, backup_user_id, owner_role, due_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            t.id,
                            t.club_id,
                            t.fixture_id,
                            t.template_pack_id,
                            t.label,
                            int(t.sort_order),
                            1 if t.is_completed else 0,
                            t.completed_by,
                            dt_to_db(t.completed_at),
                            t.owner_user_id,
                            t.backup_user_id,
                            t.owner_role,
                            dt_to_db(t.due_at),
                        )
                        for t in created
                    ],
                )
        except sqlite3.Error as e:
            raise TaskStoreError(f"Batch create failed ({len(created)} tasks)") from e
        finally:
            conn.close()

        logger.debug("Created %d tasks fixture_ids=%s", len(created), sorted({t.fixture_id for t in created}))
        return created

    async def update_owner(self, task_id: str, new_owner_id: str | None) -> Task:
        return self._update(task_id, "owner_user_id = ?", (new_owner_id,))

    async def set_backup(self, task_id: str, backup_user_id: str | None) -> Task:
        return self._update(task_id, "backup_user_id = ?", (backup_user_id,))

    async def set_completion(
        self,
        task_id: str,
        *,
        is_completed: bool,
        completed_by: str | None,
        completed_at: datetime | None,
    ) -> Task:
        if is_completed != (completed_at is not None):
            raise ValueError("is_completed and completed_at must be set together")
        return self._update(
            task_id,
            "is_completed = ?, completed_by = ?, completed_at = ?",
            (1 if is_completed else 0, completed_by, dt_to_db(completed_at)),
        )
