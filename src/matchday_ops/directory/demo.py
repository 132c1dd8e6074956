# src/matchday_ops/directory/demo.py

"""Demo club data so the console is usable on a fresh database."""

from __future__ import annotations

import logging
from datetime import timedelta

from ..core.state import AppState
from ..tasks.task_models import ClubUser, Fixture, UserStatus, Venue

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("u-ops", "Sam (Ops)", "Ops", UserStatus.ACTIVE),
    ("u-media", "Alex (Media)", "Media", UserStatus.ACTIVE),
    ("u-coach", "Jordan (Coach)", "Coach", UserStatus.ACTIVE),
    ("u-kit", "Robin (Kit)", "Kit", UserStatus.UNAVAILABLE),
    ("u-ops2", "Charlie (Ops)", "Ops", UserStatus.ACTIVE),
]


async def seed_demo_club(state: AppState) -> dict[str, int]:
    club_id = state.club_id
    store = state.club_store

    for user_id, name, role, status in DEMO_USERS:
        await store.add_user(ClubUser(id=user_id, club_id=club_id, name=name, primary_role=role, status=status))

    now = state.clock().replace(minute=0, second=0, microsecond=0)
    fixtures = [
        Fixture(id="fx-1", club_id=club_id, opponent="Riverside Rovers",
                kickoff_time=now + timedelta(hours=20), venue=Venue.HOME),
        Fixture(id="fx-2", club_id=club_id, opponent="Hill Town",
                kickoff_time=now + timedelta(days=3), venue=Venue.AWAY),
        Fixture(id="fx-3", club_id=club_id, opponent="Old Boys",
                kickoff_time=now + timedelta(days=10), venue=Venue.HOME),
    ]
    for f in fixtures:
        await store.add_fixture(f)

    packs = await store.seed_default_packs(club_id)
    logger.info("Demo club seeded club=%s users=%d fixtures=%d", club_id, len(DEMO_USERS), len(fixtures))
    return {"users": len(DEMO_USERS), "fixtures": len(fixtures), "packs": packs}
