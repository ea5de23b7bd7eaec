"""Space events: recipe windows re-expanded against the unmerged rules."""
from __future__ import annotations

import logging
from typing import Iterable

from ..schemas import GROW, Recipe, SchemeDictionary, SpaceEvent
from .ids import IdAllocator

logger = logging.getLogger("arcflow_produce.events")


def generate_events(
    recipes: Iterable[Recipe],
    dictionary: SchemeDictionary,
    ids: IdAllocator,
) -> list[SpaceEvent]:
    """One event per (recipe, raw rule overlapping the recipe window).

    Must be fed the *unmerged* dictionary: each phase slice becomes its own
    event. Non-GROW slices get ``trigger_weeks`` from the first GROW rule
    covering the slice (0 when none does).
    """
    events: list[SpaceEvent] = []
    for recipe in recipes:
        rules = dictionary.get(recipe.scheme_code)
        if not rules:
            continue
        grow_rules = [r for r in rules if r.phase == GROW]

        for rule in rules:
            if not rule.overlaps(recipe.start_week, recipe.end_week):
                continue
            ov_start = max(recipe.start_week, rule.start_week)
            ov_end = min(recipe.end_week, rule.end_week)

            trigger = 0
            if rule.phase != GROW:
                covering = next((g for g in grow_rules if g.contains(ov_start, ov_end)), None)
                if covering is not None:
                    trigger = covering.grow_weeks

            events.append(SpaceEvent(
                id=ids.next("event"),
                recipe_id=recipe.id,
                location_code=recipe.location_code,
                category=recipe.category,
                scheme_code=recipe.scheme_code,
                genus=recipe.genus,
                series=recipe.series,
                color=recipe.color,
                phase=rule.phase,
                start_week=ov_start,
                end_week=ov_end,
                trigger_weeks=trigger,
                duration_weeks=rule.grow_weeks,
            ))

    logger.info("events: generated=%d", len(events))
    return events


__all__ = ["generate_events"]
