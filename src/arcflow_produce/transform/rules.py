"""Scheme rule dictionary and GROW-segment merging."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from ..schemas import (
    FIRST_WEEK,
    GROW,
    INVENTORY,
    LAST_WEEK,
    PeriodKey,
    SchemeDictionary,
    SchemeLine,
    SchemeLinePeriod,
    SchemeRule,
)
from .utils import days_to_weeks, round_weeks

logger = logging.getLogger("arcflow_produce.rules")

# one past the calendar; closes the final merge segment
SENTINEL_WEEK = LAST_WEEK + 1


def _rules_for_line(line: SchemeLine, periods: list[SchemeLinePeriod]) -> list[SchemeRule]:
    if not periods:
        # duration is already expressed in weeks
        return [SchemeRule(
            start_week=FIRST_WEEK,
            end_week=LAST_WEEK,
            grow_weeks=round_weeks(line.duration),
            phase=line.phase,
        )]

    ordered = sorted(periods, key=lambda p: p.period_no)
    rules: list[SchemeRule] = []
    for cur, nxt in zip(ordered, ordered[1:] + [None]):
        end = nxt.period_no - 1 if nxt is not None else LAST_WEEK
        rules.append(SchemeRule(
            start_week=cur.period_no,
            end_week=end,
            grow_weeks=days_to_weeks(cur.days),
            phase=cur.phase,
        ))
    return rules


def build_scheme_dictionary(
    lines: Iterable[SchemeLine],
    periods: Iterable[SchemeLinePeriod],
) -> SchemeDictionary:
    """Map scheme code -> unmerged week-interval rules, in line order.

    Schemes without lines get no entry at all.
    """
    lines_by_scheme: dict[str, list[SchemeLine]] = defaultdict(list)
    for line in lines:
        lines_by_scheme[line.scheme_code].append(line)

    periods_by_key: dict[PeriodKey, list[SchemeLinePeriod]] = defaultdict(list)
    for p in periods:
        periods_by_key[PeriodKey(p.scheme_code, p.line_no, p.phase)].append(p)

    dictionary: SchemeDictionary = {}
    for scheme_code, scheme_lines in lines_by_scheme.items():
        rules: list[SchemeRule] = []
        for line in scheme_lines:
            key = PeriodKey(line.scheme_code, line.line_no, line.phase)
            rules.extend(_rules_for_line(line, periods_by_key.get(key, [])))
        dictionary[scheme_code] = rules

    logger.info("scheme dictionary: schemes=%d rules=%d",
                len(dictionary), sum(len(r) for r in dictionary.values()))
    return dictionary


def merge_grow_segments(rules: list[SchemeRule]) -> list[SchemeRule]:
    """Collapse one scheme's per-phase rules into GROW-only week segments.

    Segments come from the sorted set of rule starts, rule ends + 1 and
    SENTINEL_WEEK. Each segment takes its baseline from the first GROW rule
    covering it and adds the weeks of every other covering rule except
    INVENTORY. Segments no GROW rule covers are dropped.
    """
    breakpoints: set[int] = {SENTINEL_WEEK}
    for r in rules:
        breakpoints.add(r.start_week)
        breakpoints.add(r.end_week + 1)
    ordered = sorted(breakpoints)

    merged: list[SchemeRule] = []
    for seg_start, next_bp in zip(ordered, ordered[1:]):
        seg_end = next_bp - 1
        if seg_start > seg_end:
            continue

        base = next((r for r in rules if r.phase == GROW and r.contains(seg_start, seg_end)), None)
        if base is None:
            logger.debug("merge: weeks %d-%d not covered by a GROW rule, dropped", seg_start, seg_end)
            continue

        extra = sum(
            r.grow_weeks
            for r in rules
            if r.phase not in (GROW, INVENTORY) and r.contains(seg_start, seg_end)
        )
        merged.append(SchemeRule(
            start_week=seg_start,
            end_week=seg_end,
            grow_weeks=base.grow_weeks + extra,
            phase=GROW,
        ))
    return merged


__all__ = ["SENTINEL_WEEK", "build_scheme_dictionary", "merge_grow_segments"]
