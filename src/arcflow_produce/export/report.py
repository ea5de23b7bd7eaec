import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

import pandas as pd
from pydantic import BaseModel

from ..compare.comparator import ComparisonResult
from ..schemas import TransformResult

logger = logging.getLogger("arcflow_produce.export")

# PRODUCE import column order per record kind
EXPORT_COLUMNS: dict[str, list[str]] = {
    "catalogs": ["id", "genus", "series", "color"],
    "recipes": [
        "id", "locationCode", "category", "schemeCode", "genus", "series", "color",
        "startWeek", "endWeek", "growWeeks", "notes", "catalogId",
    ],
    "events": [
        "id", "recipeId", "locationCode", "category", "schemeCode", "genus", "series", "color",
        "phase", "startWeek", "endWeek", "triggerWeeks", "durationWeeks",
    ],
    "specs": ["id", "recipeId", "spaceWidth", "spaceLength", "qtyPerArea", "phase"],
    "mixes": [
        "id", "recipeId", "catalogId", "mixPct", "commonItem", "location", "variant",
        "startWeek", "endWeek", "note",
    ],
}

SHEET_NAMES = {
    "catalogs": "Catalogs",
    "recipes": "Recipes",
    "events": "Events",
    "specs": "Space Specs",
    "mixes": "Mixes",
}


def records_frame(records: Iterable[BaseModel], kind: str) -> pd.DataFrame:
    """Records of one kind as a DataFrame in PRODUCE column order."""
    columns = EXPORT_COLUMNS[kind]
    rows = [r.model_dump(by_alias=True) for r in records]
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(rows).reindex(columns=columns)
    if "catalogId" in df.columns:
        # unresolved ids export as empty cells, not NaN floats
        df["catalogId"] = df["catalogId"].astype("Int64")
    return df


def summary_payload(result: TransformResult) -> dict:
    return {
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "counts": result.counts(),
        "errors": list(result.errors),
        "warnings": list(result.warnings),
    }


def export_csv_bundle(result: TransformResult, out_dir: str | Path, prefix: str = "bln") -> list[Path]:
    """Write one CSV per record kind plus a JSON summary; returns written paths."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%d")

    written: list[Path] = []
    for kind in EXPORT_COLUMNS:
        path = out / f"{prefix}-{kind}-{stamp}.csv"
        records_frame(getattr(result, kind), kind).to_csv(path, index=False)
        written.append(path)

    summary = out / f"{prefix}-summary-{stamp}.json"
    summary.write_text(json.dumps(summary_payload(result), indent=2), encoding="utf-8")
    written.append(summary)

    logger.info("export: %d files -> %s", len(written), out)
    return written


def export_excel(result: TransformResult, out_path: str | Path) -> Path:
    """Write every record kind to its own sheet plus a Summary sheet."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(out_path, engine="xlsxwriter") as writer:
        for kind, sheet in SHEET_NAMES.items():
            records_frame(getattr(result, kind), kind).to_excel(writer, sheet_name=sheet, index=False)

        workbook = writer.book
        ws = workbook.add_worksheet("Summary")
        writer.sheets["Summary"] = ws
        bold = workbook.add_format({"bold": True})

        ws.write(0, 0, "Output", bold)
        ws.write(0, 1, "Rows", bold)
        row = 1
        for kind, n in result.counts().items():
            ws.write(row, 0, SHEET_NAMES[kind])
            ws.write(row, 1, int(n))
            row += 1

        row += 1
        ws.write(row, 0, "Errors", bold)
        for msg in result.errors:
            row += 1
            ws.write(row, 0, msg)
        row += 2
        ws.write(row, 0, "Warnings", bold)
        for msg in result.warnings:
            row += 1
            ws.write(row, 0, msg)
        ws.set_column(0, 0, 60)

    logger.info("export: workbook -> %s", out_path)
    return out_path


def comparison_frame(result: ComparisonResult) -> pd.DataFrame:
    """One line per compared row; changed rows get one line per field diff."""
    records = []
    for r in result.rows:
        if r.diffs:
            for d in r.diffs:
                records.append({"status": r.status, "key": r.key, "field": d.field,
                                "expected": d.expected, "actual": d.actual})
        else:
            records.append({"status": r.status, "key": r.key, "field": "", "expected": "", "actual": ""})
    return pd.DataFrame(records, columns=["status", "key", "field", "expected", "actual"])


def export_comparison(result: ComparisonResult, out_path: str | Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(out_path, engine="xlsxwriter") as writer:
        pd.DataFrame([result.summary()]).to_excel(writer, sheet_name="Summary", index=False)
        comparison_frame(result).to_excel(writer, sheet_name="Rows", index=False)
    logger.info("export: comparison %s -> %s", result.data_type, out_path)
    return out_path
