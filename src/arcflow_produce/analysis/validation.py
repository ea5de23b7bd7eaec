# src/arcflow_produce/analysis/validation.py
"""Data-quality report over raw Arc Flow input.

Advisory only: nothing here blocks the transform, which decides on its own
whether it has enough to work with.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Literal

from pydantic import BaseModel, Field

from ..schemas import ParsedData

logger = logging.getLogger("arcflow_produce.validation")

Severity = Literal["error", "warning", "info"]

ERROR_PENALTY = 25
WARNING_PENALTY = 5
DETAIL_LIMIT = 10


class ValidationIssue(BaseModel):
    severity: Severity
    category: str
    message: str
    details: str | None = None
    count: int | None = None


class WeekCoverage(BaseModel):
    min: int = 0
    max: int = 0


class DataStats(BaseModel):
    scheme_count: int = 0
    scheme_line_count: int = 0
    period_count: int = 0
    preference_count: int = 0
    mix_row_count: int = 0
    unique_locations: list[str] = Field(default_factory=list)
    unique_genera: list[str] = Field(default_factory=list)
    unique_phases: list[str] = Field(default_factory=list)
    schemes_with_periods: int = 0
    schemes_without_periods: int = 0
    avg_lines_per_scheme: float = 0.0
    week_coverage: WeekCoverage = Field(default_factory=WeekCoverage)


class ValidationResult(BaseModel):
    is_valid: bool
    can_transform: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    stats: DataStats
    quality_score: int

    def by_severity(self, severity: Severity) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]


def _preview(codes: list[str], more_suffix: bool = False) -> str:
    head = ", ".join(codes[:DETAIL_LIMIT])
    if more_suffix and len(codes) > DETAIL_LIMIT:
        head += f" (+{len(codes) - DETAIL_LIMIT} more)"
    return head


def _ordered_unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def quality_score(issues: list[ValidationIssue]) -> int:
    """100 minus 25 per error and 5 per warning, clamped to 0..100."""
    errors = sum(1 for i in issues if i.severity == "error")
    warnings = sum(1 for i in issues if i.severity == "warning")
    score = 100 - ERROR_PENALTY * errors - WARNING_PENALTY * warnings
    return max(0, min(100, score))


def validate_parsed_data(data: ParsedData) -> ValidationResult:
    issues: list[ValidationIssue] = []

    def add(severity: Severity, category: str, message: str, **kw) -> None:
        issues.append(ValidationIssue(severity=severity, category=category, message=message, **kw))

    codes_in_schemes = set(s.code for s in data.schemes)
    codes_in_lines = set(l.scheme_code for l in data.scheme_lines)
    codes_in_periods = set(p.scheme_code for p in data.scheme_line_periods)
    codes_in_prefs = _ordered_unique(p.scheme_code for p in data.preferences)

    # --- missing data ---
    if not data.schemes:
        add("error", "Missing Data", "No ProductionScheme data found. Upload the ProductionScheme CSV.")
    if not data.scheme_lines:
        add("error", "Missing Data", "No ProductionSchemeLine data found. Upload the ProductionSchemeLine CSV.")
    if not data.preferences:
        add("error", "Missing Data", "No ProductionPreferences data found. Upload the ProductionPreferences CSV.")
    if not data.scheme_line_periods:
        add("warning", "Missing Data",
            "No ProductionSchemeLinePeriod data - all schemes will use default full-year durations", count=0)
    if not data.mix_rows:
        add("info", "Optional Data",
            "No 4M Variant Mixes loaded - mix output will be empty. Upload the Excel file if needed.")

    # --- orphan references ---
    orphan_prefs = [c for c in codes_in_prefs if c not in codes_in_schemes]
    if orphan_prefs:
        add("warning", "Orphan References",
            f"{len(orphan_prefs)} preference(s) reference schemes not in ProductionScheme",
            details=_preview(orphan_prefs, more_suffix=True), count=len(orphan_prefs))

    orphan_lines = [c for c in _ordered_unique(l.scheme_code for l in data.scheme_lines)
                    if c not in codes_in_schemes]
    if orphan_lines:
        add("warning", "Orphan References",
            f"{len(orphan_lines)} scheme line code(s) not found in ProductionScheme",
            details=_preview(orphan_lines), count=len(orphan_lines))

    orphan_periods = [c for c in _ordered_unique(p.scheme_code for p in data.scheme_line_periods)
                      if c not in codes_in_schemes]
    if orphan_periods:
        add("info", "Orphan References",
            f"{len(orphan_periods)} period code(s) not found in ProductionScheme",
            details=_preview(orphan_periods), count=len(orphan_periods))

    # --- incomplete data ---
    without_lines = [c for c in _ordered_unique(s.code for s in data.schemes) if c not in codes_in_lines]
    if without_lines:
        add("warning", "Incomplete Data",
            f"{len(without_lines)} scheme(s) have no scheme lines - they won't produce output",
            details=_preview(without_lines), count=len(without_lines))

    prefs_no_lines = [c for c in codes_in_prefs if c not in codes_in_lines]
    if prefs_no_lines:
        add("warning", "Transform Impact",
            f"{len(prefs_no_lines)} preference scheme(s) have no scheme lines - won't produce recipes",
            count=len(prefs_no_lines))

    # --- data quality ---
    zero_duration = sum(1 for l in data.scheme_lines if l.duration == 0)
    if zero_duration:
        add("info", "Data Quality", f"{zero_duration} scheme line(s) have zero duration", count=zero_duration)

    missing_genus = sum(1 for s in data.schemes if not s.genus_code.strip())
    if missing_genus:
        add("warning", "Data Quality",
            f"{missing_genus} scheme(s) have empty genus codes - catalogs may be incomplete", count=missing_genus)

    # --- duplicates ---
    dupes = [(code, n) for code, n in Counter(s.code for s in data.schemes).items() if n > 1]
    if dupes:
        add("warning", "Duplicates", f"{len(dupes)} duplicate scheme code(s) found",
            details=", ".join(f"{code} (x{n})" for code, n in dupes), count=len(dupes))

    # --- mix data vs preferences ---
    if data.mix_rows:
        pref_locations = set(p.location_code for p in data.preferences if p.location_code)
        mix_locations = _ordered_unique(m.location for m in data.mix_rows if m.location)
        unmatched = [loc for loc in mix_locations if loc not in pref_locations]
        if unmatched:
            add("warning", "Mix Data",
                f"{len(unmatched)} mix location(s) not found in preferences - those mixes won't match recipes",
                details=_preview(unmatched), count=len(unmatched))

        pref_items = set((p.location_code, p.production_item_no) for p in data.preferences)
        unmatched_items = set(
            (m.location, m.production_item) for m in data.mix_rows
            if (m.location, m.production_item) not in pref_items
        )
        if unmatched_items:
            add("info", "Mix Data",
                f"{len(unmatched_items)} mix location/item combination(s) don't match any preference",
                count=len(unmatched_items))

    stats = _compute_stats(data, codes_in_schemes, codes_in_periods)
    can_transform = bool(data.schemes) and bool(data.scheme_lines)
    result = ValidationResult(
        is_valid=not any(i.severity == "error" for i in issues),
        can_transform=can_transform,
        issues=issues,
        stats=stats,
        quality_score=quality_score(issues),
    )
    logger.info(
        "validation: score=%d errors=%d warnings=%d info=%d can_transform=%s",
        result.quality_score, len(result.by_severity("error")), len(result.by_severity("warning")),
        len(result.by_severity("info")), can_transform,
    )
    return result


def _compute_stats(data: ParsedData, codes_in_schemes: set[str], codes_in_periods: set[str]) -> DataStats:
    lines_per_scheme = Counter(l.scheme_code for l in data.scheme_lines)
    avg_lines = (sum(lines_per_scheme.values()) / len(lines_per_scheme)) if lines_per_scheme else 0.0

    period_nos = [p.period_no for p in data.scheme_line_periods if p.period_no > 0]
    coverage = WeekCoverage(min=min(period_nos), max=max(period_nos)) if period_nos else WeekCoverage()

    return DataStats(
        scheme_count=len(data.schemes),
        scheme_line_count=len(data.scheme_lines),
        period_count=len(data.scheme_line_periods),
        preference_count=len(data.preferences),
        mix_row_count=len(data.mix_rows),
        unique_locations=sorted(set(p.location_code for p in data.preferences if p.location_code)),
        unique_genera=sorted(set(s.genus_code for s in data.schemes if s.genus_code)),
        unique_phases=sorted(set(l.phase for l in data.scheme_lines if l.phase)),
        schemes_with_periods=len(codes_in_periods),
        schemes_without_periods=len(codes_in_schemes) - len(codes_in_periods),
        avg_lines_per_scheme=round(avg_lines, 1),
        week_coverage=coverage,
    )


__all__ = [
    "DataStats",
    "ValidationIssue",
    "ValidationResult",
    "quality_score",
    "validate_parsed_data",
]
