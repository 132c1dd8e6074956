# src/matchday_ops/directory/club_store.py

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import replace
from pathlib import Path

from ..core.ports import Clock, as_utc, utc_now
from ..tasks.task_models import (
    AutoApply,
    ClubUser,
    Fixture,
    FixtureStatus,
    TemplatePack,
    TemplateTask,
    UserStatus,
    Venue,
)
from ..tasks.task_store import dt_from_db, dt_to_db
from ..tasks.templates import DEFAULT_TEMPLATE_PACKS

logger = logging.getLogger(__name__)


class ClubStore:
    """
    SQLite club directory: fixtures, club users and template packs.

    Implements the FixtureDirectory, UserDirectory and TemplateCatalog ports.
    Users and packs come back in insertion order; role resolution and
    sort_order numbering both depend on that.
    """

    def __init__(self, db_path: str | Path = "matchday.sqlite3", *, clock: Clock = utc_now) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
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
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS fixtures (
                    id TEXT PRIMARY KEY,
                    club_id TEXT NOT NULL,
                    opponent TEXT NOT NULL,
                    kickoff_time TEXT NOT NULL,
                    venue TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'Scheduled'
                );
                CREATE INDEX IF NOT EXISTS idx_fixtures_club_kickoff ON fixtures(club_id, kickoff_time);

                CREATE TABLE IF NOT EXISTS club_users (
                    id TEXT PRIMARY KEY,
                    club_id TEXT NOT NULL,
                    name TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'active',
                    primary_role TEXT
                );

                CREATE TABLE IF NOT EXISTS template_packs (
                    club_id TEXT NOT NULL,
                    id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    is_enabled INTEGER NOT NULL DEFAULT 1,
                    auto_apply TEXT,
                    default_owner_role TEXT,
                    tasks TEXT NOT NULL DEFAULT '[]',
                    PRIMARY KEY (club_id, id)
                );
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- row mappers ----

    @staticmethod
    def _row_to_fixture(row: sqlite3.Row) -> Fixture:
        kickoff = dt_from_db(row["kickoff_time"])
        if kickoff is None:
            raise ValueError(f"Fixture {row['id']} has no kickoff time")
        return Fixture(
            id=row["id"],
            club_id=row["club_id"],
            opponent=row["opponent"],
            kickoff_time=kickoff,
            venue=Venue(row["venue"]),
            status=FixtureStatus.from_db(row["status"]),
        )

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> ClubUser:
        return ClubUser(
            id=row["id"],
            club_id=row["club_id"],
            name=row["name"] or "",
            status=UserStatus.from_db(row["status"]),
            primary_role=row["primary_role"],
        )

    @staticmethod
    def _row_to_pack(row: sqlite3.Row) -> TemplatePack:
        try:
            raw_tasks = json.loads(row["tasks"] or "[]")
        except json.JSONDecodeError:
            logger.warning("Template pack %s has malformed tasks JSON", row["id"])
            raw_tasks = []
        return TemplatePack(
            id=row["id"],
            club_id=row["club_id"],
            name=row["name"],
            description=row["description"] or "",
            enabled=bool(row["is_enabled"]),
            auto_apply=AutoApply.from_db(row["auto_apply"]),
            default_owner_role=row["default_owner_role"],
            tasks=[TemplateTask.from_dict(t) for t in raw_tasks if isinstance(t, dict)],
        )

    # ---- fixtures ----

    async def add_fixture(self, fixture: Fixture) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO fixtures(id, club_id, opponent, kickoff_time, venue, status)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    club_id = excluded.club_id,
                    opponent = excluded.opponent,
                    kickoff_time = excluded.kickoff_time,
                    venue = excluded.venue,
                    status = excluded.status
                """,
                (
                    fixture.id,
                    fixture.club_id,
                    fixture.opponent,
                    dt_to_db(fixture.kickoff_time),
                    fixture.venue.value,
                    fixture.status.value,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    async def get_fixture(self, fixture_id: str) -> Fixture | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM fixtures WHERE id = ?", (fixture_id,)).fetchone()
            return self._row_to_fixture(row) if row else None
        finally:
            conn.close()

    async def list_fixtures(self, club_id: str) -> list[Fixture]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM fixtures WHERE club_id = ?", (club_id,))
            fixtures = [self._row_to_fixture(r) for r in cur.fetchall()]
        finally:
            conn.close()
        # Offsets may differ between rows, so order in Python rather than on the text column.
        fixtures.sort(key=lambda f: as_utc(f.kickoff_time))
        return fixtures

    async def list_upcoming(self, club_id: str) -> list[Fixture]:
        now = as_utc(self._clock())
        return [f for f in await self.list_fixtures(club_id) if as_utc(f.kickoff_time) >= now]

    # ---- users ----

    async def add_user(self, user: ClubUser) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO club_users(id, club_id, name, status, primary_role)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    club_id = excluded.club_id,
                    name = excluded.name,
                    status = excluded.status,
                    primary_role = excluded.primary_role
                """,
                (user.id, user.club_id, user.name, user.status.value, user.primary_role),
            )
            conn.commit()
        finally:
            conn.close()

    async def list_users(self, club_id: str) -> list[ClubUser]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM club_users WHERE club_id = ? ORDER BY rowid ASC", (club_id,))
            return [self._row_to_user(r) for r in cur.fetchall()]
        finally:
            conn.close()

    async def list_active(self, club_id: str) -> list[ClubUser]:
        return [u for u in await self.list_users(club_id) if u.status == UserStatus.ACTIVE]

    # ---- template packs ----

    async def upsert_template_pack(self, pack: TemplatePack) -> None:
        if not pack.club_id:
            raise ValueError("Template pack needs a club_id")

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO template_packs(
                    club_id, id, name, description, is_enabled, auto_apply, default_owner_role, tasks
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(club_id, id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    is_enabled = excluded.is_enabled,
                    auto_apply = excluded.auto_apply,
                    default_owner_role = excluded.default_owner_role,
                    tasks = excluded.tasks
                """,
                (
                    pack.club_id,
                    pack.id,
                    pack.name,
                    pack.description,
                    1 if pack.enabled else 0,
                    pack.auto_apply.value if pack.auto_apply else None,
                    pack.default_owner_role,
                    json.dumps([t.to_dict() for t in pack.tasks], ensure_ascii=False),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    async def list_template_packs(self, club_id: str) -> list[TemplatePack]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM template_packs WHERE club_id = ? ORDER BY rowid ASC", (club_id,))
            return [self._row_to_pack(r) for r in cur.fetchall()]
        finally:
            conn.close()

    async def set_pack_enabled(self, club_id: str, pack_id: str, enabled: bool) -> bool:
        """Returns False when the pack does not exist."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE template_packs SET is_enabled = ? WHERE club_id = ? AND id = ?",
                (1 if enabled else 0, club_id, pack_id),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    async def seed_default_packs(self, club_id: str) -> int:
        """Install the starter catalog for a club that has no packs yet."""
        if await self.list_template_packs(club_id):
            return 0
        for pack in DEFAULT_TEMPLATE_PACKS:
            await self.upsert_template_pack(replace(pack, club_id=club_id, tasks=list(pack.tasks)))
        logger.info("Seeded %d default template packs club=%s", len(DEFAULT_TEMPLATE_PACKS), club_id)
        return len(DEFAULT_TEMPLATE_PACKS)
