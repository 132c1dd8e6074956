# tests/test_task_generator.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from matchday_ops.tasks.task_generator import (
    compute_due_at,
    find_user_by_role,
    generate_and_store,
    generate_tasks,
)
from matchday_ops.tasks.task_models import (
    AutoApply,
    ClubUser,
    Fixture,
    TaskStoreError,
    TemplatePack,
    TemplateTask,
    UserStatus,
    Venue,
)
from matchday_ops.tasks.templates import DEFAULT_TEMPLATE_PACKS, is_pack_relevant

from .fakes import NOW, FakeTaskRepo, FakeTemplateCatalog, FakeUserDirectory


def _pack(pack_id: str, auto_apply: AutoApply | None, *labels: str, name: str | None = None, **kw) -> TemplatePack:
    return TemplatePack(
        id=pack_id,
        name=name or pack_id,
        auto_apply=auto_apply,
        tasks=[TemplateTask(label=lbl) for lbl in labels],
        **kw,
    )


def test_home_matchday_pack_due_dates_and_order() -> None:
    pack = TemplatePack(
        id="p-home",
        name="Matchday (Home)",
        auto_apply=AutoApply.HOME,
        tasks=[
            TemplateTask(label="Open gates", offset_hours=-2),
            TemplateTask(label="Post lineup", offset_hours=-1),
        ],
    )
    kickoff = datetime(2024, 5, 4, 15, 0, 0)

    tasks = generate_tasks("fx-1", Venue.HOME, kickoff, [pack], [])

    assert [t.label for t in tasks] == ["Open gates", "Post lineup"]
    assert [t.due_at for t in tasks] == [datetime(2024, 5, 4, 13, 0, 0), datetime(2024, 5, 4, 14, 0, 0)]
    assert [t.sort_order for t in tasks] == [0, 1]
    assert all(t.template_pack_id == "p-home" and t.fixture_id == "fx-1" for t in tasks)
    assert all(not t.is_completed and t.completed_at is None for t in tasks)


@pytest.mark.parametrize(
    ("venue", "excluded"),
    [(Venue.HOME, "away-only"), (Venue.AWAY, "home-only")],
)
def test_venue_specific_packs_only_apply_to_their_venue(venue: Venue, excluded: str) -> None:
    packs = [
        _pack("home-only", AutoApply.HOME, "h1", "h2"),
        _pack("away-only", AutoApply.AWAY, "a1"),
        _pack("both", AutoApply.ALWAYS, "b1"),
    ]

    tasks = generate_tasks("fx", venue, NOW, packs, [])

    pack_ids = {t.template_pack_id for t in tasks}
    assert excluded not in pack_ids
    assert "both" in pack_ids


def test_never_disabled_and_unset_packs() -> None:
    packs = [
        _pack("never", AutoApply.NEVER, "n1"),
        _pack("off", AutoApply.ALWAYS, "o1", enabled=False),
        _pack("unset", None, "u1"),
    ]

    tasks = generate_tasks("fx", Venue.AWAY, NOW, packs, [])

    assert [t.template_pack_id for t in tasks] == ["unset"]


def test_legacy_name_markers_only_apply_without_structured_policy() -> None:
    legacy_home = _pack("legacy", None, "x", name="Old Matchday (HOME)")
    structured = _pack("structured", AutoApply.ALWAYS, "y", name="Matchday (Home)")

    assert is_pack_relevant(legacy_home, Venue.HOME)
    assert not is_pack_relevant(legacy_home, Venue.AWAY)
    assert is_pack_relevant(structured, Venue.AWAY)


def test_sort_order_runs_across_packs_in_catalog_order() -> None:
    packs = [
        _pack("first", AutoApply.ALWAYS, "a", "b"),
        _pack("skipped", AutoApply.AWAY, "zz"),
        _pack("second", AutoApply.ALWAYS, "c"),
    ]

    tasks = generate_tasks("fx", Venue.HOME, NOW, packs, [])

    assert [(t.label, t.sort_order) for t in tasks] == [("a", 0), ("b", 1), ("c", 2)]


def test_owner_role_resolution_and_auto_assignment() -> None:
    users = [
        ClubUser(id="kit-away", status=UserStatus.UNAVAILABLE, primary_role="Kit"),
        ClubUser(id="media-1", primary_role="Media"),
        ClubUser(id="media-2", primary_role="Media"),
        ClubUser(id="ops-1", primary_role="Ops"),
    ]
    pack = TemplatePack(
        id="p",
        name="Mixed",
        auto_apply=AutoApply.ALWAYS,
        default_owner_role="Ops",
        tasks=[
            TemplateTask(label="pack role"),
            TemplateTask(label="task role", default_owner_role="Media"),
            TemplateTask(label="nobody active", default_owner_role="Kit"),
        ],
    )
    roleless = _pack("roleless", AutoApply.ALWAYS, "free")

    tasks = generate_tasks("fx", Venue.HOME, NOW, [pack, roleless], users)
    by_label = {t.label: t for t in tasks}

    assert (by_label["pack role"].owner_role, by_label["pack role"].owner_user_id) == ("Ops", "ops-1")
    assert (by_label["task role"].owner_role, by_label["task role"].owner_user_id) == ("Media", "media-1")
    assert (by_label["nobody active"].owner_role, by_label["nobody active"].owner_user_id) == ("Kit", None)
    assert (by_label["free"].owner_role, by_label["free"].owner_user_id) == (None, None)


def test_find_user_by_role_is_first_match_in_input_order() -> None:
    users = [ClubUser(id="b", primary_role="Coach"), ClubUser(id="a", primary_role="Coach")]
    assert find_user_by_role(users, "Coach").id == "b"
    assert find_user_by_role(users, "Finance") is None


def test_due_at_needs_both_kickoff_and_offset() -> None:
    assert compute_due_at(None, -2) is None
    assert compute_due_at(NOW, None) is None
    assert compute_due_at(NOW, 1.5) == NOW + timedelta(minutes=90)


def test_default_catalog_for_home_fixture() -> None:
    tasks = generate_tasks("fx", Venue.HOME, NOW, DEFAULT_TEMPLATE_PACKS, [])

    pack_ids = {t.template_pack_id for t in tasks}
    assert pack_ids == {"matchday-home", "squad-availability", "media"}
    preview = next(t for t in tasks if t.label == "Write match preview")
    assert preview.due_at == NOW - timedelta(hours=48)


def _fixture(venue: Venue = Venue.HOME) -> Fixture:
    return Fixture(id="fx-1", opponent="Rovers", kickoff_time=NOW + timedelta(days=2), venue=venue)


@pytest.mark.asyncio
async def test_generate_and_store_twice_gives_disjoint_increasing_sort_orders() -> None:
    repo = FakeTaskRepo()
    catalog = FakeTemplateCatalog([_pack("p", AutoApply.ALWAYS, "a", "b", "c")])
    users = FakeUserDirectory()

    first = await generate_and_store(repo, catalog, users, club_id="c", fixture=_fixture())
    second = await generate_and_store(repo, catalog, users, club_id="c", fixture=_fixture())

    first_orders = [t.sort_order for t in first]
    second_orders = [t.sort_order for t in second]
    assert first_orders == [0, 1, 2]
    assert second_orders == [3, 4, 5]
    # No dedup: the checklist now exists twice.
    assert len(repo.tasks) == 6
    assert repo.create_calls == 2


@pytest.mark.asyncio
async def test_generate_and_store_failure_propagates_and_saves_nothing() -> None:
    repo = FakeTaskRepo()
    repo.fail_create = True
    catalog = FakeTemplateCatalog([_pack("p", AutoApply.ALWAYS, "a", "b")])

    with pytest.raises(TaskStoreError):
        await generate_and_store(repo, catalog, FakeUserDirectory(), club_id="c", fixture=_fixture())

    assert repo.tasks == {}
    assert repo.create_calls == 1


@pytest.mark.asyncio
async def test_generate_and_store_without_relevant_packs_skips_store() -> None:
    repo = FakeTaskRepo()
    catalog = FakeTemplateCatalog([_pack("away", AutoApply.AWAY, "a")])

    created = await generate_and_store(repo, catalog, FakeUserDirectory(), club_id="c", fixture=_fixture(Venue.HOME))

    assert created == []
    assert repo.create_calls == 0
