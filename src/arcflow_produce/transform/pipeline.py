"""Arc Flow -> PRODUCE pipeline (facade over the stage modules)."""
from __future__ import annotations

import logging
import time

from ..schemas import ParsedData, TransformResult
from .catalogs import generate_catalogs
from .events import generate_events
from .ids import IdAllocator
from .mixes import generate_mixes
from .recipes import generate_recipes
from .rules import build_scheme_dictionary
from .specs import generate_specs

logger = logging.getLogger("arcflow_produce.pipeline")


def _missing_input_errors(data: ParsedData) -> list[str]:
    errors: list[str] = []
    if not data.schemes:
        errors.append("No ProductionScheme data found")
    if not data.scheme_lines:
        errors.append("No ProductionSchemeLine data found")
    return errors


def transform(data: ParsedData, ids: IdAllocator | None = None) -> TransformResult:
    """Run every generation stage over ``data``.

    Missing schemes or scheme lines short-circuit to an empty result carrying
    the errors. Everything else that cannot be resolved ends up in
    ``warnings``.
    """
    errors = _missing_input_errors(data)
    if errors:
        for e in errors:
            logger.error(e)
        return TransformResult(errors=errors)

    ids = ids or IdAllocator()
    t0 = time.perf_counter()

    dictionary = build_scheme_dictionary(data.scheme_lines, data.scheme_line_periods)
    catalogs = generate_catalogs(data.schemes, ids)
    recipes, recipe_warnings = generate_recipes(
        data.preferences, data.schemes, dictionary, catalogs, ids
    )
    events = generate_events(recipes, dictionary, ids)
    specs = generate_specs(recipes, data.scheme_lines, ids)
    mixes, mix_warnings = generate_mixes(data.mix_rows, recipes, catalogs, ids)

    result = TransformResult(
        catalogs=catalogs,
        recipes=recipes,
        events=events,
        specs=specs,
        mixes=mixes,
        warnings=recipe_warnings + mix_warnings,
    )
    logger.info(
        "transform done in %.1f ms: %s warnings=%d",
        (time.perf_counter() - t0) * 1000.0, result.counts(), len(result.warnings),
    )
    return result


__all__ = ["transform"]
