"""Space specs from per-phase quantity per area."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

import numpy as np

from ..schemas import Recipe, SchemeLine, SpaceSpec
from .ids import IdAllocator
from .utils import round_half_up

logger = logging.getLogger("arcflow_produce.specs")


def space_dimension(qty_per_area: float) -> float:
    """Side of a square holding ``qty_per_area`` units, 2 decimals."""
    return round_half_up(float(np.sqrt(qty_per_area)), 2)


def generate_specs(
    recipes: Iterable[Recipe],
    lines: Iterable[SchemeLine],
    ids: IdAllocator,
) -> list[SpaceSpec]:
    lines_by_scheme: dict[str, list[SchemeLine]] = defaultdict(list)
    for line in lines:
        lines_by_scheme[line.scheme_code].append(line)

    specs: list[SpaceSpec] = []
    for recipe in recipes:
        for line in lines_by_scheme.get(recipe.scheme_code, []):
            if not line.qty_per_area > 0:
                continue
            dim = space_dimension(line.qty_per_area)
            specs.append(SpaceSpec(
                id=ids.next("spec"),
                recipe_id=recipe.id,
                space_width=dim,
                space_length=dim,
                qty_per_area=line.qty_per_area,
                phase=line.phase,
            ))

    logger.info("specs: generated=%d", len(specs))
    return specs


__all__ = ["generate_specs", "space_dimension"]
