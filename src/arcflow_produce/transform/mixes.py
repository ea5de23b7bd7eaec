"""Variant-mix breakout.

A mix row carries a sparse week -> percentage map. Stable stretches of the
same percentage become one RecipeMix each, attached to the tightest recipe
window that contains the stretch's first week.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, Mapping

from ..schemas import Catalog, CatalogKey, MixRow, Recipe, RecipeMix
from .ids import IdAllocator

logger = logging.getLogger("arcflow_produce.mixes")

NOTE_OK = "OK"
NOTE_NO_CATALOG = "No Catalog"


@dataclass(frozen=True)
class MixSegment:
    start_week: int
    end_week: int
    pct: float


def _as_pct(pct: float) -> float | None:
    """The percentage as a float, or None when it means "no mix"."""
    try:
        v = float(pct)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) and v > 0 else None


def breakout_segments(weekly_pcts: Mapping[int, float]) -> list[MixSegment]:
    """Run-length encode the weeks present in the map (ascending) by percentage.

    An explicit zero, negative or non-finite week closes the current run and
    its own run is discarded. Weeks absent from the map do not break a run.
    """
    weeks = sorted(((int(w), p) for w, p in weekly_pcts.items()), key=lambda wp: wp[0])
    segments: list[MixSegment] = []
    for pct, run in groupby(weeks, key=lambda wp: _as_pct(wp[1])):
        run_weeks = [w for w, _ in run]
        if pct is not None:
            segments.append(MixSegment(run_weeks[0], run_weeks[-1], pct))
    return segments


def pick_best_recipe(
    recipes: Iterable[Recipe],
    location: str,
    production_item: str,
    week: int,
) -> Recipe | None:
    """Narrowest recipe for (location, item) whose window contains ``week``.

    Ties keep the earliest recipe.
    """
    best: Recipe | None = None
    best_span = None
    for r in recipes:
        if r.location_code != location or r.series != production_item:
            continue
        if not (r.start_week <= week <= r.end_week):
            continue
        span = r.end_week - r.start_week
        if best is None or span < best_span:
            best, best_span = r, span
    return best


class _CatalogIndex:
    def __init__(self, catalogs: Iterable[Catalog]) -> None:
        self.exact: dict[CatalogKey, int] = {}
        self.by_genus: dict[str, int] = {}
        for c in catalogs:
            self.exact.setdefault(CatalogKey(c.genus, c.series, c.color), c.id)
            self.by_genus.setdefault(c.genus.lower(), c.id)

    def resolve(self, genus: str, series: str, color: str) -> int | None:
        cid = self.exact.get(CatalogKey(genus, series, color))
        if cid is None:
            # first catalog of the genus, whatever its series/color
            cid = self.by_genus.get(genus.lower())
        return cid


def generate_mixes(
    mix_rows: Iterable[MixRow],
    recipes: list[Recipe],
    catalogs: Iterable[Catalog],
    ids: IdAllocator,
) -> tuple[list[RecipeMix], list[str]]:
    """Break every mix row into stable-percentage segments bound to recipes.

    Percentages are used as given (0-100 scale). Segments with no matching
    recipe are dropped with a warning; an unresolved catalog yields
    ``catalog_id=0`` and note "No Catalog".
    """
    index = _CatalogIndex(catalogs)
    mixes: list[RecipeMix] = []
    warnings: list[str] = []

    for row in mix_rows:
        for seg in breakout_segments(row.weekly_pcts):
            recipe = pick_best_recipe(recipes, row.location, row.production_item, seg.start_week)
            if recipe is None:
                msg = (
                    f"No recipe for mix: location={row.location} item={row.production_item} "
                    f"variant={row.variant_code} weeks {seg.start_week}-{seg.end_week}"
                )
                logger.warning(msg)
                warnings.append(msg)
                continue

            catalog_id = index.resolve(recipe.genus, row.production_item, row.variant_code)
            mixes.append(RecipeMix(
                id=ids.next("mix"),
                recipe_id=recipe.id,
                catalog_id=catalog_id if catalog_id is not None else 0,
                mix_pct=seg.pct,
                common_item=row.common_item,
                location=row.location,
                variant=row.variant_code,
                start_week=seg.start_week,
                end_week=seg.end_week,
                note=NOTE_OK if catalog_id is not None else NOTE_NO_CATALOG,
            ))

    logger.info("mixes: generated=%d dropped_segments=%d", len(mixes), len(warnings))
    return mixes, warnings


__all__ = ["MixSegment", "breakout_segments", "generate_mixes", "pick_best_recipe"]
