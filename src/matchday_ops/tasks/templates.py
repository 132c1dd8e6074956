# src/matchday_ops/tasks/templates.py

"""
Template catalog helpers.

Packs are authored elsewhere (ClubStore persists them); this module only holds
the built-in starter catalog and the venue relevance policy.
"""

from __future__ import annotations

from .task_models import AutoApply, TemplatePack, TemplateTask, Venue

_LEGACY_MARKERS = {
    Venue.HOME: "(home)",
    Venue.AWAY: "(away)",
}


def _t(label: str, role: str, offset_hours: float | None = None) -> TemplateTask:
    return TemplateTask(label=label, offset_hours=offset_hours, default_owner_role=role)


DEFAULT_TEMPLATE_PACKS: list[TemplatePack] = [
    TemplatePack(
        id="matchday-home",
        name="Matchday Pack (Home)",
        description="Essential tasks for home matches",
        enabled=True,
        auto_apply=AutoApply.HOME,
        default_owner_role="Ops",
        tasks=[
            _t("Confirm referee and officials", "Ops"),
            _t("Prepare matchday programme", "Media"),
            _t("Check pitch and goal nets", "Ops"),
            _t("Set up refreshments", "Ops"),
            _t("Post lineup graphic on social", "Media"),
            _t("Brief stewards and volunteers", "Ops"),
        ],
    ),
    TemplatePack(
        id="matchday-away",
        name="Matchday Pack (Away)",
        description="Essential tasks for away matches",
        enabled=True,
        auto_apply=AutoApply.AWAY,
        default_owner_role="Ops",
        tasks=[
            _t("Confirm transport arrangements", "Ops"),
            _t("Check away kit is clean and packed", "Kit"),
            _t("Send travel details to players", "Coach"),
            _t("Post lineup graphic on social", "Media"),
            _t("Confirm meeting time and location", "Coach"),
        ],
    ),
    TemplatePack(
        id="training-night",
        name="Training Night Pack",
        description="Pre-training session tasks",
        enabled=False,
        auto_apply=AutoApply.NEVER,
        default_owner_role="Coach",
        tasks=[
            _t("Set up training cones and equipment", "Coach"),
            _t("Check first aid kit", "Ops"),
            _t("Confirm session plan with coach", "Coach"),
            _t("Take attendance", "Coach"),
        ],
    ),
    TemplatePack(
        id="squad-availability",
        name="Squad Availability Pack",
        description="Collect and track player availability",
        enabled=True,
        auto_apply=AutoApply.ALWAYS,
        default_owner_role="Coach",
        tasks=[
            _t("Send availability request to group", "Coach"),
            _t("Chase non-responders", "Coach"),
            _t("Confirm final squad", "Coach"),
            _t("Notify unavailable players", "Coach"),
        ],
    ),
    TemplatePack(
        id="kit-equipment",
        name="Kit & Equipment Pack",
        description="Kit management before and after match",
        enabled=False,
        auto_apply=AutoApply.ALWAYS,
        default_owner_role="Kit",
        tasks=[
            _t("Collect dirty kit from last match", "Kit"),
            _t("Send kit for laundry", "Kit"),
            _t("Check kit stock levels", "Kit"),
            _t("Prepare match kit", "Kit"),
        ],
    ),
    TemplatePack(
        id="media",
        name="Media Pack",
        description="Content tasks for match coverage",
        enabled=True,
        auto_apply=AutoApply.ALWAYS,
        default_owner_role="Media",
        tasks=[
            _t("Write match preview", "Media", -48),
            _t("Create matchday graphic", "Media", -24),
            _t("Post pre-match content", "Media", -2),
            _t("Post full-time result", "Media"),
            _t("Write match report", "Media"),
        ],
    ),
]


def is_pack_relevant(pack: TemplatePack, venue: Venue) -> bool:
    """
    Venue policy for one pack.

    The structured auto_apply field decides whenever it is set. The name
    markers "(Home)" / "(Away)" are only consulted for packs created before
    that field existed.
    """
    if pack.auto_apply is not None:
        if pack.auto_apply == AutoApply.NEVER:
            return False
        if pack.auto_apply == AutoApply.HOME:
            return venue == Venue.HOME
        if pack.auto_apply == AutoApply.AWAY:
            return venue == Venue.AWAY
        return True

    name = pack.name.lower()
    for marker_venue, marker in _LEGACY_MARKERS.items():
        if marker in name and venue != marker_venue:
            return False
    return True


def relevant_packs(packs: list[TemplatePack], venue: Venue) -> list[TemplatePack]:
    """Enabled packs that apply to a fixture at `venue`, in catalog order."""
    return [p for p in packs if p.enabled and is_pack_relevant(p, venue)]
