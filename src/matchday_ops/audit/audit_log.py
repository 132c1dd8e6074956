# src/matchday_ops/audit/audit_log.py

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.ports import AuditSink, utc_now
from ..tasks.task_models import AuditEvent

logger = logging.getLogger(__name__)


async def append_best_effort(sink: AuditSink, event: AuditEvent) -> bool:
    """
    Append an audit event; never raises.

    Returns False when the sink failed, so callers may log it, but nothing a
    caller reports to the user should depend on the return value.
    """
    try:
        await sink.append(event)
        return True
    except Exception:
        logger.exception(
            "Audit append failed type=%s club=%s actor=%s",
            event.event_type,
            event.club_id,
            event.actor_user_id,
        )
        return False


class AuditLog:
    """
    SQLite audit trail (append-only).

    Each method opens its own SQLite connection; no connection is held between calls.
    """

    def __init__(self, db_path: str | Path = "matchday.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def close(self) -> None:
        """Shutdown hook; connections are per call, so nothing is held open."""
        return

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS audit_events (
                    id TEXT PRIMARY KEY,
                    club_id TEXT NOT NULL,
                    actor_user_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    payload TEXT NOT NULL DEFAULT '{}',
                    fixture_id TEXT,
                    task_id TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_audit_club_created ON audit_events(club_id, created_at)"
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> AuditEvent:
        try:
            payload: Any = json.loads(row["payload"] or "{}")
        except json.JSONDecodeError:
            payload = {}
        return AuditEvent(
            id=row["id"],
            club_id=row["club_id"],
            actor_user_id=row["actor_user_id"],
            event_type=row["event_type"],
            payload=payload if isinstance(payload, dict) else {},
            fixture_id=row["fixture_id"],
            task_id=row["task_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def append(self, event: AuditEvent) -> None:
        event_id = event.id or uuid.uuid4().hex
        created_at = event.created_at or utc_now()

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO audit_events(
                    id, club_id, actor_user_id, event_type, payload, fixture_id, task_id, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event_id,
                    event.club_id,
                    event.actor_user_id,
                    event.event_type,
                    json.dumps(event.payload, ensure_ascii=False, default=str),
                    event.fixture_id,
                    event.task_id,
                    created_at.isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

        event.id = event_id
        event.created_at = created_at
        logger.debug("Audit event %s type=%s club=%s", event_id, event.event_type, event.club_id)

    async def list_events(self, club_id: str, *, limit: int = 50) -> list[AuditEvent]:
        """Newest first."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                SELECT *
                FROM audit_events
                WHERE club_id = ?
                ORDER BY created_at DESC, rowid DESC
                    LIMIT ?
                """,
                (club_id, int(limit)),
            )
            return [self._row_to_event(r) for r in cur.fetchall()]
        finally:
            conn.close()
