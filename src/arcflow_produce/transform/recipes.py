"""Recipe generation: preferences joined to merged scheme rules."""
from __future__ import annotations

import logging
from typing import Iterable

from ..schemas import Catalog, Preference, Recipe, RecipeKey, Scheme, SchemeDictionary
from .ids import IdAllocator
from .rules import merge_grow_segments
from .utils import parse_scheme_code

logger = logging.getLogger("arcflow_produce.recipes")


def generate_recipes(
    preferences: Iterable[Preference],
    schemes: Iterable[Scheme],
    dictionary: SchemeDictionary,
    catalogs: Iterable[Catalog],
    ids: IdAllocator,
) -> tuple[list[Recipe], list[str]]:
    """Emit one recipe per (location, scheme, merged week segment).

    Preferences whose scheme has no rules are skipped with a warning. The
    scheme code is also written to ``notes``, which PRODUCE keeps verbatim.
    """
    genus_by_scheme = {s.code: s.genus_code for s in schemes}
    catalog_by_genus = {c.genus: c.id for c in catalogs}

    recipes: list[Recipe] = []
    warnings: list[str] = []
    seen: set[RecipeKey] = set()

    for pref in preferences:
        scheme_code = pref.scheme_code
        rules = dictionary.get(scheme_code)
        if rules is None:
            msg = f"No rules found for scheme: {scheme_code}"
            logger.warning(msg)
            warnings.append(msg)
            continue

        genus = genus_by_scheme.get(scheme_code, "")
        category, _ = parse_scheme_code(scheme_code)
        catalog_id = catalog_by_genus.get(genus)

        for seg in merge_grow_segments(rules):
            key = RecipeKey(pref.location_code, scheme_code, seg.start_week, seg.end_week)
            if key in seen:
                continue
            seen.add(key)
            recipes.append(Recipe(
                id=ids.next("recipe"),
                location_code=pref.location_code,
                category=category,
                scheme_code=scheme_code,
                genus=genus,
                series=pref.production_item_no,
                color=pref.variant_code,
                start_week=seg.start_week,
                end_week=seg.end_week,
                grow_weeks=seg.grow_weeks,
                notes=scheme_code,
                catalog_id=catalog_id,
            ))

    logger.info("recipes: generated=%d skipped_preferences=%d", len(recipes), len(warnings))
    return recipes, warnings


__all__ = ["generate_recipes"]
