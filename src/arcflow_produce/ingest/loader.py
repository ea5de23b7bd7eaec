# src/arcflow_produce/ingest/loader.py
"""Readers for Arc Flow CSV exports, the 4M variant-mix workbook and
reference files used for comparison.

Everything is normalized into the record schemas; the transform itself never
touches files.
"""
from __future__ import annotations

import csv
import logging
import math
import re
from pathlib import Path
from typing import Any, Iterable, Sequence

import pandas as pd

from ..compare.comparator import ReferenceTable
from ..schemas import (
    FIRST_WEEK,
    LAST_WEEK,
    MixRow,
    ParsedData,
    Preference,
    Scheme,
    SchemeLine,
    SchemeLinePeriod,
)

logger = logging.getLogger("arcflow_produce.ingest")

# ===================== Header synonyms (normalized) =====================
# canonical -> (synonyms, positional fallback)

SCHEME_COLUMNS: dict[str, tuple[set[str], int]] = {
    "code": ({"code", "schemecode", "productionschemecode"}, 0),
    "description": ({"description", "desc"}, 1),
    "genus_code": ({"genuscode", "genus"}, 2),
}

LINE_COLUMNS: dict[str, tuple[set[str], int]] = {
    "scheme_code": ({"productionschemecode", "schemecode", "code"}, 0),
    "line_no": ({"lineno", "line", "linenumber"}, 1),
    "phase": ({"productionphase", "phase"}, 2),
    "duration": ({"duration", "durationweeks"}, 3),
    "qty_per_area": ({"qtyperarea", "quantityperarea"}, 4),
    "output": ({"output", "outputqty"}, 5),
}

PERIOD_COLUMNS: dict[str, tuple[set[str], int]] = {
    "scheme_code": ({"productionschemecode", "schemecode", "code"}, 0),
    "line_no": ({"productionschemelineno", "lineno", "line"}, 1),
    "phase": ({"productionphase", "phase"}, 2),
    "days": ({"noofdays", "days", "numberofdays"}, 3),
    "period_no": ({"periodno", "period", "week"}, 4),
}

PREFERENCE_COLUMNS: dict[str, tuple[set[str], int]] = {
    "production_item_no": ({"productionitemno", "itemno", "item"}, 0),
    "variant_code": ({"productionvariantcode", "variantcode", "variant"}, 1),
    "location_code": ({"locationcode", "location"}, 2),
    "scheme_code": ({"productionschemecode", "schemecode"}, 3),
    "activity_scheme_code": ({"activityschemecode"}, 4),
    "add_activity_scheme_code": ({"addactivityschemecode"}, 5),
}

# file-name markers, most specific first
FILE_KINDS: list[tuple[str, str]] = [
    ("productionschemelineperiod", "scheme_line_periods"),
    ("productionschemeline", "scheme_lines"),
    ("productionscheme", "schemes"),
    ("productionpreferences", "preferences"),
]

MIX_SHEET = "MixData"
MIX_DEFAULT_COLUMNS = {"location": 0, "common_item": 2, "production_item": 3, "variant_code": 4}
MIX_DEFAULT_WEEK_START = 5
MIX_HEADER_SCAN = 10

_LEADING_INT = re.compile(r"^\s*(\d+)")


# ===================== Helpers =====================

def _norm_col(s: Any) -> str:
    return str(s).strip().lower().replace(" ", "").replace("_", "")


def _clean_text(v: Any) -> str:
    if v is None or (isinstance(v, float) and math.isnan(v)):
        return ""
    s = str(v).strip()
    if not s or s.lower() in {"nan", "none", "null"}:
        return ""
    return s


def _clean_id(v: Any) -> str:
    # Excel hands item numbers back as floats: 4000084.0
    return re.sub(r"\.0$", "", _clean_text(v))


def _numeric(series: pd.Series) -> pd.Series:
    cleaned = series.astype(str).str.replace(",", "", regex=False).str.replace('"', "", regex=False).str.strip()
    return pd.to_numeric(cleaned, errors="coerce").fillna(0.0).astype(float)


def _read_csv(path: Path, min_fields: int = 1) -> pd.DataFrame:
    """All-string frame of a CSV export; rows with fewer than ``min_fields`` fields are dropped."""
    with path.open(newline="", encoding="utf-8-sig") as handle:
        rows = [row for row in csv.reader(handle) if any(cell.strip() for cell in row)]
    if not rows:
        return pd.DataFrame()
    header, body = rows[0], rows[1:]
    width = len(header)
    kept = [(row + [""] * width)[:width] for row in body if len(row) >= min_fields]
    if len(kept) < len(body):
        logger.warning("ingest: %s skipped %d short row(s)", path.name, len(body) - len(kept))
    return pd.DataFrame(kept, columns=header, dtype=str)


def _read_xlsx(path: Path, **kw) -> pd.DataFrame:
    return pd.read_excel(path, engine="openpyxl", **kw)


def _resolve_columns(df: pd.DataFrame, spec: dict[str, tuple[set[str], int]], where: str) -> pd.DataFrame:
    """Rename source columns to canonical names (synonyms first, then position)."""
    norm = {_norm_col(c): c for c in df.columns}
    cols = list(df.columns)
    if len(cols) < len(spec):
        raise ValueError(f"{where}: expected at least {len(spec)} columns. Got: {cols}")

    out = pd.DataFrame(index=df.index)
    for canon, (synonyms, pos) in spec.items():
        src = next((norm[s] for s in synonyms if s in norm), None)
        if src is None:
            src = cols[pos]
        out[canon] = df[src].astype(str)
    return out


def classify_file(name: str) -> str | None:
    lower = Path(name).name.lower()
    for marker, kind in FILE_KINDS:
        if marker in lower:
            return kind
    return None


# ===================== Arc Flow CSVs =====================

def read_schemes(path: Path) -> list[Scheme]:
    df = _resolve_columns(_read_csv(path, len(SCHEME_COLUMNS)), SCHEME_COLUMNS, "ProductionScheme")
    out: list[Scheme] = []
    for r in df.itertuples(index=False):
        code = _clean_text(r.code)
        if not code:
            continue
        out.append(Scheme(code=code, description=_clean_text(r.description), genus_code=_clean_text(r.genus_code)))
    return out


def read_scheme_lines(path: Path) -> list[SchemeLine]:
    df = _resolve_columns(_read_csv(path, len(LINE_COLUMNS)), LINE_COLUMNS, "ProductionSchemeLine")
    df["line_no"] = df["line_no"].str.replace(",", "", regex=False).str.strip()
    df["phase"] = df["phase"].str.strip().str.upper()
    for c in ("duration", "qty_per_area", "output"):
        df[c] = _numeric(df[c])
    out: list[SchemeLine] = []
    for r in df.itertuples(index=False):
        code = _clean_text(r.scheme_code)
        if not code:
            continue
        out.append(SchemeLine(
            scheme_code=code,
            line_no=r.line_no,
            phase=r.phase,
            duration=r.duration,
            qty_per_area=r.qty_per_area,
            output=r.output,
        ))
    return out


def read_scheme_line_periods(path: Path) -> list[SchemeLinePeriod]:
    df = _resolve_columns(_read_csv(path, len(PERIOD_COLUMNS)), PERIOD_COLUMNS, "ProductionSchemeLinePeriod")
    df["line_no"] = df["line_no"].str.replace(",", "", regex=False).str.strip()
    df["phase"] = df["phase"].str.strip().str.upper()
    df["days"] = _numeric(df["days"])
    df["period_no"] = _numeric(df["period_no"]).apply(lambda v: int(math.floor(v + 0.5)))
    out: list[SchemeLinePeriod] = []
    for r in df.itertuples(index=False):
        code = _clean_text(r.scheme_code)
        if not code:
            continue
        out.append(SchemeLinePeriod(
            scheme_code=code,
            line_no=r.line_no,
            phase=r.phase,
            days=r.days,
            period_no=r.period_no,
        ))
    return out


def read_preferences(path: Path) -> list[Preference]:
    df = _resolve_columns(_read_csv(path, len(PREFERENCE_COLUMNS)), PREFERENCE_COLUMNS, "ProductionPreferences")
    out: list[Preference] = []
    for r in df.itertuples(index=False):
        scheme_code = _clean_text(r.scheme_code)
        if not scheme_code:
            continue
        out.append(Preference(
            production_item_no=_clean_id(r.production_item_no),
            variant_code=_clean_text(r.variant_code),
            location_code=_clean_text(r.location_code),
            scheme_code=scheme_code,
            activity_scheme_code=_clean_text(r.activity_scheme_code),
            add_activity_scheme_code=_clean_text(r.add_activity_scheme_code),
        ))
    return out


_READERS = {
    "schemes": read_schemes,
    "scheme_lines": read_scheme_lines,
    "scheme_line_periods": read_scheme_line_periods,
    "preferences": read_preferences,
}


def load_arc_flow_csvs(paths: Iterable[str | Path]) -> ParsedData:
    """Read the four Arc Flow exports, classifying each file by its name.

    Unrecognized files are ignored (logged); a later file of the same kind
    replaces an earlier one.
    """
    data = ParsedData()
    for p in paths:
        path = Path(p)
        kind = classify_file(path.name)
        if kind is None:
            logger.warning("ingest: %s is not an Arc Flow export, skipped", path.name)
            continue
        rows = _READERS[kind](path)
        setattr(data, kind, rows)
        logger.info("ingest: %s -> %s rows=%d", path.name, kind, len(rows))
    return data


# ===================== 4M variant mixes =====================

def _week_number(h: Any) -> int | None:
    if isinstance(h, bool) or h is None:
        return None
    if isinstance(h, (int, float)):
        if isinstance(h, float) and not math.isfinite(h):
            return None
        n = int(h)
    else:
        m = _LEADING_INT.match(str(h))
        if not m:
            return None
        n = int(m.group(1))
    return n if FIRST_WEEK <= n <= LAST_WEEK else None


def _week_columns(header: Sequence[Any]) -> list[tuple[int, int]]:
    start = next((i for i, h in enumerate(header) if _week_number(h) is not None), MIX_DEFAULT_WEEK_START)
    return [(i, w) for i, w in ((i, _week_number(header[i])) for i in range(start, len(header))) if w is not None]


def _mix_column_map(header: Sequence[Any]) -> dict[str, int]:
    cols = dict(MIX_DEFAULT_COLUMNS)
    for i, h in enumerate(header[:MIX_HEADER_SCAN]):
        text = _clean_text(h).lower()
        if "location" in text:
            cols["location"] = i
        elif "common" in text and "item" in text:
            cols["common_item"] = i
        elif "production" in text and "item" in text:
            cols["production_item"] = i
        elif "variant" in text:
            cols["variant_code"] = i
    return cols


def _pct(v: Any) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        pct = float(str(v).strip().rstrip("%")) if isinstance(v, str) else float(v)
    except ValueError:
        return None
    if not math.isfinite(pct) or pct <= 0:
        return None
    # fractions (0.5) become percentages (50)
    return pct * 100.0 if pct <= 1 else pct


def parse_mix_frame(raw: pd.DataFrame) -> list[MixRow]:
    """Turn a header-less mix sheet (first row = header) into MixRows."""
    if raw.shape[0] < 2:
        return []
    header = list(raw.iloc[0])
    weeks = _week_columns(header)
    cols = _mix_column_map(header)

    def cell(values: list[Any], idx: int) -> Any:
        return values[idx] if idx < len(values) else None

    rows: list[MixRow] = []
    for values in raw.iloc[1:].itertuples(index=False, name=None):
        values = list(values)
        location = _clean_id(cell(values, cols["location"]))
        common_item = _clean_id(cell(values, cols["common_item"]))
        production_item = _clean_id(cell(values, cols["production_item"]))
        variant_code = _clean_id(cell(values, cols["variant_code"]))
        if not (location or common_item or production_item):
            continue

        weekly: dict[int, float] = {}
        for idx, week in weeks:
            pct = _pct(cell(values, idx))
            if pct is not None:
                weekly[week] = pct

        if weekly or production_item:
            rows.append(MixRow(
                location=location,
                common_item=common_item,
                production_item=production_item,
                variant_code=variant_code,
                weekly_pcts=weekly,
            ))
    return rows


def load_mix_workbook(path: str | Path) -> list[MixRow]:
    """Read the 4M Variant Mixes workbook ("MixData" sheet, else the first)."""
    path = Path(path)
    with pd.ExcelFile(path, engine="openpyxl") as xls:
        if not xls.sheet_names:
            raise ValueError(f"mix: no sheet found in {path.name}")
        sheet = MIX_SHEET if MIX_SHEET in xls.sheet_names else xls.sheet_names[0]
        raw = xls.parse(sheet, header=None, dtype=object)
    rows = parse_mix_frame(raw)
    logger.info("ingest: %s sheet=%s mix_rows=%d", path.name, sheet, len(rows))
    return rows


def load_inputs(paths: Iterable[str | Path], mix_paths: Iterable[str | Path] = ()) -> ParsedData:
    data = load_arc_flow_csvs(paths)
    for mp in mix_paths:
        data.mix_rows.extend(load_mix_workbook(mp))
    return data


# ===================== Reference files (comparison) =====================

def load_reference_file(path: str | Path) -> ReferenceTable:
    """Read a CSV or Excel reference export into trimmed string rows."""
    path = Path(path)
    if path.suffix.lower() == ".csv":
        df = _read_csv(path)
    else:
        df = _read_xlsx(path, sheet_name=0, dtype=object)

    headers = [_clean_text(c) for c in df.columns]
    rows: list[dict[str, str]] = []
    for values in df.itertuples(index=False, name=None):
        cells = [_clean_text(v) for v in values]
        if not any(cells):
            continue
        rows.append(dict(zip(headers, cells)))
    logger.info("ingest: reference %s rows=%d", path.name, len(rows))
    return ReferenceTable(headers=headers, rows=rows)


__all__ = [
    "classify_file",
    "load_arc_flow_csvs",
    "load_inputs",
    "load_mix_workbook",
    "load_reference_file",
    "parse_mix_frame",
    "read_preferences",
    "read_scheme_line_periods",
    "read_scheme_lines",
    "read_schemes",
]
