# src/matchday_ops/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime
from typing import Any, TypeVar, cast

from ..core.ports import as_utc
from ..core.state import AppState
from ..directory.demo import seed_demo_club
from ..tasks import task_api
from ..tasks.handover import describe_scope
from ..tasks.risk import format_risk_reason
from ..tasks.task_generator import generate_and_store
from ..tasks.task_models import (
    AllScope,
    FixtureScope,
    HandoverRequest,
    HandoverScope,
    HandoverTarget,
    PackScope,
    RiskAssessment,
    Task,
    ToBackup,
    ToRole,
    ToUser,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /risk, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        if len(inspect.signature(handler).parameters) >= 3:
            return cast(CommandHandler3, handler)(state, args, emit)
        return cast(CommandHandler2, handler)(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _fmt_dt(dt: datetime | None) -> str:
    if dt is None:
        return "-"
    return as_utc(dt).astimezone().strftime("%a %d %b %H:%M")


def _fmt_task(t: Task) -> str:
    tick = "x" if t.is_completed else " "
    owner = t.owner_user_id or (f"({t.owner_role})" if t.owner_role else "unassigned")
    backup = f" backup={t.backup_user_id}" if t.backup_user_id else ""
    return f"[{tick}] {t.sort_order:>3} {t.label}  owner={owner}{backup} due={_fmt_dt(t.due_at)}  id={t.id}"


def _fmt_risk(r: RiskAssessment) -> str:
    where = f" vs {r.fixture.opponent} {_fmt_dt(r.fixture.kickoff_time)}" if r.fixture else ""
    return f"  {r.level.value.upper():<8} {r.task.label}{where}: {format_risk_reason(r)}"


def parse_target(raw: str) -> HandoverTarget:
    """user:<id> | backup | role:<name>"""
    kind, _, value = raw.partition(":")
    kind = kind.lower()
    if kind == "backup" and not value:
        return ToBackup()
    if kind == "user" and value:
        return ToUser(value)
    if kind == "role" and value:
        return ToRole(value)
    raise ValueError(f"Bad handover target: {raw!r} (use user:<id>, backup or role:<name>)")


def parse_scope(raw: str) -> HandoverScope:
    """all | fixture:<id> | pack:<id>"""
    kind, _, value = raw.partition(":")
    kind = kind.lower()
    if kind == "all" and not value:
        return AllScope()
    if kind == "fixture" and value:
        return FixtureScope(value)
    if kind == "pack" and value:
        return PackScope(value)
    raise ValueError(f"Bad handover scope: {raw!r} (use all, fixture:<id> or pack:<id>)")


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    th = state.thresholds
    return (
        "Status:\n"
        f"  Club: {state.club_id}\n"
        f"  Operator: {state.operator_id}\n"
        f"  Tasks stored: {state.task_store.count_tasks()}\n"
        f"  Risk: overdue<{th.critical_hours}h warn<{th.warning_hours}h "
        f"unassigned crit<{th.unassigned_critical_hours}h warn<{th.unassigned_warning_hours}h "
        f"window={th.window_days}d"
    )


def cmd_seed(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("Seeding demo users, fixtures and template packs...")
    counts = _run(seed_demo_club(state))
    return f"Seeded {counts['users']} users, {counts['fixtures']} fixtures, {counts['packs']} new packs."


def cmd_fixtures(state: AppState, args: list[str]) -> str:
    fixtures = _run(state.club_store.list_fixtures(state.club_id))
    if not fixtures:
        return "No fixtures. Use /seed for demo data."
    lines = ["Fixtures:"]
    for f in fixtures:
        lines.append(f"  {f.id}  {_fmt_dt(f.kickoff_time)}  {f.venue.value:<4} vs {f.opponent} [{f.status.value}]")
    return "\n".join(lines)


def cmd_packs(state: AppState, args: list[str]) -> str:
    packs = _run(state.club_store.list_template_packs(state.club_id))
    if not packs:
        return "No template packs. Use /seed to install the defaults."
    lines = ["Template packs:"]
    for p in packs:
        flag = "on " if p.enabled else "off"
        policy = p.auto_apply.value if p.auto_apply else "unset"
        lines.append(f"  [{flag}] {p.id}  {p.name}  auto_apply={policy}  tasks={len(p.tasks)}")
    return "\n".join(lines)


def cmd_pack(state: AppState, args: list[str]) -> str:
    if len(args) != 2 or args[1].lower() not in ("on", "off"):
        return "Usage: /pack <pack_id> on|off"
    enabled = args[1].lower() == "on"
    if not _run(state.club_store.set_pack_enabled(state.club_id, args[0], enabled)):
        return f"Unknown pack: {args[0]}"
    return f"Pack {args[0]} {'enabled' if enabled else 'disabled'}."


def cmd_generate(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /generate <fixture_id>"
    fixture = _run(state.club_store.get_fixture(args[0]))
    if fixture is None:
        return f"Unknown fixture: {args[0]}"
    created = _run(
        generate_and_store(
            state.task_store,
            state.club_store,
            state.club_store,
            club_id=state.club_id,
            fixture=fixture,
        )
    )
    if not created:
        return "No enabled template pack applies to this fixture."
    assigned = sum(1 for t in created if t.owner_user_id)
    return f"Generated {len(created)} tasks for {fixture.id} ({assigned} auto-assigned)."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /tasks <fixture_id>"
    tasks = _run(state.task_store.list_by_fixture_ids([args[0]]))
    if not tasks:
        return f"No tasks for fixture {args[0]}."
    return "\n".join([f"Tasks for {args[0]}:"] + [f"  {_fmt_task(t)}" for t in tasks])


def cmd_add(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /add <fixture_id> <label...>"
    task = _run(task_api.add_ad_hoc_task(state, fixture_id=args[0], label=" ".join(args[1:])))
    return f"Added: {_fmt_task(task)}"


def _toggle(state: AppState, args: list[str], done: bool) -> str:
    if len(args) != 1:
        return f"Usage: /{'done' if done else 'undo'} <task_id>"
    try:
        task = _run(task_api.set_task_completion(state, args[0], is_completed=done, user_id=state.operator_id))
    except LookupError as e:
        return str(e)
    return _fmt_task(task)


def cmd_done(state: AppState, args: list[str]) -> str:
    return _toggle(state, args, True)


def cmd_undo(state: AppState, args: list[str]) -> str:
    return _toggle(state, args, False)


def cmd_claim(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /claim <task_id>"
    try:
        task = _run(task_api.claim_task(state, args[0], user_id=state.operator_id))
    except LookupError as e:
        return str(e)
    return f"Claimed: {_fmt_task(task)}"


def cmd_backup(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /backup <task_id> <user_id|none>"
    backup = None if args[1].lower() == "none" else args[1]
    try:
        task = _run(task_api.set_backup(state, args[0], backup_user_id=backup, actor_id=state.operator_id))
    except LookupError as e:
        return str(e)
    return _fmt_task(task)


def cmd_risk(state: AppState, args: list[str]) -> str:
    """
    /risk              -> summary for the coming week
    /risk <fixture_id> -> at-risk tasks of one fixture
    """
    if args:
        risks = _run(state.risk.fixture_risks(state.club_id, args[0]))
        if not risks:
            return f"No at-risk tasks for {args[0]}."
        return "\n".join([f"At-risk tasks for {args[0]}:"] + [_fmt_risk(r) for r in risks])

    s = _run(state.risk.summarize(state.club_id))
    lines = [f"Risk (next {state.thresholds.window_days} days): critical={s.critical} warning={s.warning} ok={s.ok} total={s.total}"]
    lines.extend(_fmt_risk(r) for r in s.critical_tasks + s.warning_tasks)
    return "\n".join(lines)


def cmd_whohas(state: AppState, args: list[str]) -> str:
    users = _run(state.handover.users_with_tasks(state.club_id, args[0] if args else None))
    if not users:
        return "Nobody owns open tasks in that range."
    return "Owners with open tasks:\n" + "\n".join(
        f"  {u.id}  {u.name}  ({u.primary_role or 'no role'})" for u in users
    )


def cmd_handover(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /handover preview <from_user> <target> <scope>
    /handover run     <from_user> <target> <scope>
    """
    usage = (
        "Usage: /handover preview|run <from_user> <user:ID|backup|role:NAME> <all|fixture:ID|pack:ID>"
    )
    if len(args) != 4 or args[0].lower() not in ("preview", "run"):
        return usage
    try:
        request = HandoverRequest(from_user_id=args[1], target=parse_target(args[2]), scope=parse_scope(args[3]))
    except ValueError as e:
        return f"{e}\n{usage}"

    if args[0].lower() == "preview":
        preview = _run(state.handover.preview(state.club_id, request))
        lines = [f"{preview.tasks_affected} task(s) of {request.from_user_id} in {describe_scope(request.scope)}:"]
        lines.extend(f"  {_fmt_task(t)}" for t in preview.tasks)
        return "\n".join(lines)

    if emit:
        emit(f"Handing over {request.from_user_id}'s tasks in {describe_scope(request.scope)}...")
    result = _run(state.handover.execute(state.club_id, state.operator_id, request))
    status = "OK" if result.success else "completed with errors"
    lines = [f"Handover {status}: {result.tasks_affected} task(s) reassigned."]
    lines.extend(f"  ! {e}" for e in result.errors or [])
    return "\n".join(lines)


def cmd_audit(state: AppState, args: list[str]) -> str:
    events = _run(state.audit_log.list_events(state.club_id, limit=20))
    if not events:
        return "Audit trail is empty."
    lines = ["Recent audit events:"]
    for e in events:
        lines.append(f"  {_fmt_dt(e.created_at)}  {e.event_type:<18} by {e.actor_user_id}  {e.payload}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show club, operator and risk thresholds.")
registry.register("seed", cmd_seed, help_text="Create demo users, fixtures and default packs.")
registry.register("fixtures", cmd_fixtures, help_text="List fixtures.")
registry.register("packs", cmd_packs, help_text="List template packs.")
registry.register("pack", cmd_pack, help_text="Toggle a pack: /pack <id> on|off.")
registry.register("generate", cmd_generate, help_text="Generate tasks from templates: /generate <fixture_id>.")
registry.register("tasks", cmd_tasks, help_text="Show a fixture checklist: /tasks <fixture_id>.")
registry.register("add", cmd_add, help_text="Add an ad hoc task: /add <fixture_id> <label>.")
registry.register("done", cmd_done, help_text="Mark a task complete: /done <task_id>.")
registry.register("undo", cmd_undo, help_text="Reopen a task: /undo <task_id>.")
registry.register("claim", cmd_claim, help_text="Take ownership of a task: /claim <task_id>.")
registry.register("backup", cmd_backup, help_text="Set a task backup: /backup <task_id> <user_id|none>.")
registry.register("risk", cmd_risk, help_text="At-risk tasks: /risk [fixture_id].")
registry.register("whohas", cmd_whohas, help_text="Owners of open tasks: /whohas [fixture_id].")
registry.register("handover", cmd_handover, help_text="Bulk reassignment: /handover preview|run ...")
registry.register("audit", cmd_audit, help_text="Show recent audit events.")
