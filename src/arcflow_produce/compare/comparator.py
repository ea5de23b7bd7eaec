# src/arcflow_produce/compare/comparator.py
"""Diff generated PRODUCE records against a reference export.

Reference files come from elsewhere (a previous run, a hand-maintained
sheet), so their headers are matched loosely; rows are matched by a
composite key built from the configured key fields.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping, Sequence

from pydantic import BaseModel

logger = logging.getLogger("arcflow_produce.compare")

Status = Literal["matched", "changed", "added", "removed"]
STATUS_ORDER: dict[str, int] = {"changed": 0, "added": 1, "removed": 2, "matched": 3}
EMPTY = "(empty)"
MIN_DETECT_SCORE = 2

_SEPARATORS = re.compile(r"[\s_.\-]+")
_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class CompareConfig:
    key_fields: tuple[str, ...]
    compare_fields: tuple[str, ...]
    label: str

    @property
    def all_fields(self) -> tuple[str, ...]:
        return self.key_fields + self.compare_fields


COMPARE_CONFIGS: dict[str, CompareConfig] = {
    "recipes": CompareConfig(
        key_fields=("locationCode", "schemeCode", "startWeek", "endWeek"),
        compare_fields=("genus", "series", "color", "growWeeks", "category", "catalogId", "notes"),
        label="Recipes",
    ),
    "catalogs": CompareConfig(
        key_fields=("genus", "series", "color"),
        compare_fields=(),
        label="Catalogs",
    ),
    "events": CompareConfig(
        key_fields=("recipeId", "phase", "startWeek", "endWeek"),
        compare_fields=("locationCode", "triggerWeeks", "durationWeeks"),
        label="Events",
    ),
    "specs": CompareConfig(
        key_fields=("recipeId", "phase"),
        compare_fields=("spaceWidth", "spaceLength", "qtyPerArea"),
        label="Space Specs",
    ),
    "mixes": CompareConfig(
        key_fields=("recipeId", "catalogId", "startWeek", "endWeek"),
        compare_fields=("mixPct", "commonItem", "location", "variant", "note"),
        label="Mixes",
    ),
}


@dataclass(frozen=True)
class ReferenceTable:
    headers: list[str]
    rows: list[dict[str, str]]


@dataclass(frozen=True)
class FieldDiff:
    field: str
    expected: str
    actual: str


@dataclass
class ComparisonRow:
    status: Status
    key: str
    diffs: list[FieldDiff] = field(default_factory=list)
    source_row: dict[str, str] | None = None
    compare_row: dict[str, str] | None = None


@dataclass
class ComparisonResult:
    data_type: str
    config: CompareConfig
    total_source: int
    total_compare: int
    matched: int
    added: int
    removed: int
    changed: int
    rows: list[ComparisonRow]

    def summary(self) -> dict[str, Any]:
        return {
            "data_type": self.data_type,
            "total_source": self.total_source,
            "total_compare": self.total_compare,
            "matched": self.matched,
            "added": self.added,
            "removed": self.removed,
            "changed": self.changed,
        }


# ===================== Header matching =====================

def normalize_header(text: Any) -> str:
    """Case/space/underscore/dot/hyphen-insensitive form of a header."""
    return _SEPARATORS.sub("", str(text).strip().lower())


def match_header(field_name: str, headers: Sequence[str]) -> str | None:
    """Best actual header for ``field_name``: exact, then case-insensitive, then normalized."""
    if field_name in headers:
        return field_name
    lower = field_name.lower()
    for h in headers:
        if str(h).strip().lower() == lower:
            return h
    target = normalize_header(field_name)
    for h in headers:
        if normalize_header(h) == target:
            return h
    return None


def detect_compare_type(headers: Sequence[str]) -> str | None:
    """Guess which output type a header row belongs to (None when unsure)."""
    best_type: str | None = None
    best_score = 0
    for data_type, cfg in COMPARE_CONFIGS.items():
        score = sum(1 for f in cfg.all_fields if match_header(f, headers) is not None)
        if score > best_score:
            best_type, best_score = data_type, score
    return best_type if best_score >= MIN_DETECT_SCORE else None


def normalize_headers(
    rows: Iterable[Mapping[str, str]],
    headers: Sequence[str],
    config: CompareConfig,
) -> list[dict[str, str]]:
    """Re-key rows under the configured field names, keeping the original columns too."""
    header_map = {}
    for f in config.all_fields:
        h = match_header(f, headers)
        if h is not None:
            header_map[f] = h

    out: list[dict[str, str]] = []
    for row in rows:
        mapped = {f: row.get(h, "") for f, h in header_map.items()}
        for k, v in row.items():
            if not mapped.get(k):
                mapped[k] = v
        out.append(mapped)
    return out


# ===================== Row matching =====================

def _cell(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and math.isnan(v):
        return ""
    return str(v)


def _as_string_row(row: BaseModel | Mapping[str, Any]) -> dict[str, str]:
    if isinstance(row, BaseModel):
        row = row.model_dump(by_alias=True)
    return {str(k): _cell(v) for k, v in row.items()}


def _row_key(row: Mapping[str, str], key_fields: Sequence[str]) -> tuple[str, ...]:
    return tuple(str(row.get(f, "") or "").strip().lower() for f in key_fields)


def _index_rows(rows: Iterable[Mapping[str, str]], key_fields: Sequence[str]) -> dict[tuple[str, ...], Mapping[str, str]]:
    index: dict[tuple[str, ...], Mapping[str, str]] = {}
    for row in rows:
        key = _row_key(row, key_fields)
        if any(key):
            index[key] = row
    return index


def _to_number(s: str) -> float | None:
    """Leading decimal literal of ``s`` ("12 wk" -> 12.0); None when there is none."""
    m = _LEADING_NUMBER.match(s)
    if m is None:
        return None
    v = float(m.group(0))
    return v if math.isfinite(v) else None


def values_equal(actual: str, expected: str) -> bool:
    """Numeric comparison when both sides parse as numbers, else case-insensitive text."""
    a_num, e_num = _to_number(actual), _to_number(expected)
    if a_num is not None and e_num is not None:
        return a_num == e_num
    return actual.lower() == expected.lower()


def _field_diffs(source: Mapping[str, str], reference: Mapping[str, str], fields: Sequence[str]) -> list[FieldDiff]:
    diffs: list[FieldDiff] = []
    for f in fields:
        actual = str(source.get(f, "") or "").strip()
        expected = str(reference.get(f, "") or "").strip()
        if not values_equal(actual, expected):
            diffs.append(FieldDiff(field=f, expected=expected or EMPTY, actual=actual or EMPTY))
    return diffs


def compare_data(
    source_rows: Iterable[BaseModel | Mapping[str, Any]],
    reference: ReferenceTable,
    data_type: str,
    config: CompareConfig | None = None,
) -> ComparisonResult:
    """Match generated rows to reference rows by key and diff the compare fields.

    ``added`` rows exist only in the generated output, ``removed`` rows only
    in the reference. Raises ValueError for an unknown ``data_type`` when no
    explicit ``config`` is given.
    """
    cfg = config or COMPARE_CONFIGS.get(data_type)
    if cfg is None:
        raise ValueError(f"No comparison config for type: {data_type}")

    source_index = _index_rows((_as_string_row(r) for r in source_rows), cfg.key_fields)
    compare_index = _index_rows(normalize_headers(reference.rows, reference.headers, cfg), cfg.key_fields)

    rows: list[ComparisonRow] = []
    for key, src in source_index.items():
        ref = compare_index.get(key)
        label = "|".join(key)
        if ref is None:
            rows.append(ComparisonRow(status="added", key=label, source_row=dict(src)))
            continue
        diffs = _field_diffs(src, ref, cfg.compare_fields)
        rows.append(ComparisonRow(
            status="changed" if diffs else "matched",
            key=label,
            diffs=diffs,
            source_row=dict(src),
            compare_row=dict(ref),
        ))

    for key, ref in compare_index.items():
        if key not in source_index:
            rows.append(ComparisonRow(status="removed", key="|".join(key), compare_row=dict(ref)))

    rows.sort(key=lambda r: STATUS_ORDER[r.status])
    counts = {s: sum(1 for r in rows if r.status == s) for s in STATUS_ORDER}

    result = ComparisonResult(
        data_type=cfg.label,
        config=cfg,
        total_source=len(source_index),
        total_compare=len(compare_index),
        matched=counts["matched"],
        added=counts["added"],
        removed=counts["removed"],
        changed=counts["changed"],
        rows=rows,
    )
    logger.info("compare %s: %s", data_type, result.summary())
    return result


__all__ = [
    "COMPARE_CONFIGS",
    "CompareConfig",
    "ComparisonResult",
    "ComparisonRow",
    "FieldDiff",
    "ReferenceTable",
    "compare_data",
    "detect_compare_type",
    "match_header",
    "normalize_header",
    "normalize_headers",
    "values_equal",
]
