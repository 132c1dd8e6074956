# tests/test_commands.py

from __future__ import annotations

import pytest

from matchday_ops.cli.commands import CommandRegistry, parse_scope, parse_target, registry
from matchday_ops.core.state import AppState
from matchday_ops.tasks.task_models import AllScope, FixtureScope, PackScope, ToBackup, ToRole, ToUser


def test_registry_routes_two_and_three_arg_handlers() -> None:
    reg = CommandRegistry()
    seen: list[str] = []

    def two(state, args):
        return f"two {args}"

    def three(state, args, emit=None):
        emit("working")
        return "three"

    reg.register("two", two, help_text="x", aliases=["2"])
    reg.register("three", three, help_text="y")

    assert reg.handle(None, "/two a b") == "two ['a', 'b']"
    assert reg.handle(None, "/2") == "two []"
    assert reg.handle(None, "/THREE", emit=seen.append) == "three"
    assert seen == ["working"]
    assert reg.handle(None, "plain text") is None
    assert reg.handle(None, "/").startswith("Empty command")
    assert reg.handle(None, "/nope").startswith("Unknown command: /nope")
    assert "/two - x" in reg.build_help()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("user:u2", ToUser("u2")), ("backup", ToBackup()), ("role:Ops", ToRole("Ops"))],
)
def test_parse_target(raw, expected) -> None:
    assert parse_target(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("all", AllScope()), ("fixture:fx-1", FixtureScope("fx-1")), ("pack:media", PackScope("media"))],
)
def test_parse_scope(raw, expected) -> None:
    assert parse_scope(raw) == expected


@pytest.mark.parametrize("raw", ["user", "user:", "role:", "team:x", "backup:u1"])
def test_parse_target_rejects_malformed(raw) -> None:
    with pytest.raises(ValueError):
        parse_target(raw)


@pytest.mark.parametrize("raw", ["fixture", "pack:", "everything", "all:now"])
def test_parse_scope_rejects_malformed(raw) -> None:
    with pytest.raises(ValueError):
        parse_scope(raw)


def test_console_flow_seed_generate_risk_handover(state: AppState) -> None:
    emitted: list[str] = []

    assert registry.handle(state, "/seed", emit=emitted.append) == "Seeded 5 users, 3 fixtures, 6 new packs."
    assert emitted

    out = registry.handle(state, "/generate fx-1")
    assert out == "Generated 15 tasks for fx-1 (15 auto-assigned)."
    assert registry.handle(state, "/generate nope") == "Unknown fixture: nope"

    # Two media tasks are due 48h and 24h before a kickoff only 20h away.
    risk = registry.handle(state, "/risk")
    assert risk.splitlines()[0] == "Risk (next 7 days): critical=2 warning=0 ok=13 total=15"
    assert "Write match preview" in risk

    preview = registry.handle(state, "/handover preview u-media role:Ops all")
    assert preview.startswith("7 task(s) of u-media in all upcoming fixtures:")

    run = registry.handle(state, "/handover run u-media role:Ops all", emit=emitted.append)
    assert run == "Handover OK: 7 task(s) reassigned."

    audit = registry.handle(state, "/audit")
    assert "handover.executed" in audit

    assert registry.handle(state, "/handover run u-media user").startswith("Usage:")
    assert registry.handle(state, "/handover run u-media user: all").startswith("Bad handover target")


def test_pack_and_ad_hoc_commands(state: AppState) -> None:
    registry.handle(state, "/seed")

    assert registry.handle(state, "/pack kit-equipment on") == "Pack kit-equipment enabled."
    assert registry.handle(state, "/pack nope on") == "Unknown pack: nope"
    assert registry.handle(state, "/pack kit-equipment maybe") == "Usage: /pack <pack_id> on|off"

    assert registry.handle(state, "/add fx-2 Book the minibus").startswith("Added: [ ]   0 Book the minibus")
    assert registry.handle(state, "/done missing") == "Task not found: missing"
    assert registry.handle(state, "/tasks fx-3") == "No tasks for fixture fx-3."
