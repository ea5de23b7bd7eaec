from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from arcflow_produce.ingest.loader import (
    classify_file,
    load_arc_flow_csvs,
    load_inputs,
    load_mix_workbook,
    load_reference_file,
)

SCHEME = "BN-10INMUM-NSLN-SP"


def write_arc_flow(tmp_path: Path) -> list[Path]:
    files = {
        "ProductionScheme.csv": (
            "﻿Code,Description,Genus Code\n"
            f"{SCHEME},Mum 10in,NSLN\n"
            "\n"
        ),
        "ProductionSchemeLine.csv": (
            "Production Scheme Code,Line no_,Production Phase,Duration,Qty_ per Area,Output _\n"
            f'{SCHEME},"10,000",grow,6,4,"1,200"\n'
            f'{SCHEME},"20,000",Hang,abc,,0\n'
        ),
        "ProductionSchemeLinePeriod.csv": (
            "Production Scheme Code,Production Scheme Line No_,Production Phase,No_ of Days,Period No_\n"
            f'{SCHEME},"20,000",hang,14,1\n'
            f'{SCHEME},"20,000",hang,21,27\n'
        ),
        "ProductionPreferences.csv": (
            "Production Item No_,Production Variant Code,Location Code,Production Scheme Code,"
            "Activity Scheme Code,Add_ Activity Scheme Code\n"
            f"4000084,B01,KY01,{SCHEME},ACT-1,\n"
        ),
        "notes.csv": "a,b\n1,2\n",
    }
    paths = []
    for name, body in files.items():
        p = tmp_path / name
        p.write_text(body, encoding="utf-8")
        paths.append(p)
    return paths


def write_mix_workbook(path: Path, sheet: str = "MixData") -> Path:
    rows = [
        ["Location", "Region", "Common Item", "Production Item", "Variant Code", 1, 2, 3, 4, 5],
        ["KY01", "South", "C100", "4000084", "B01", 0.5, 0.5, None, 75, 0],
        [None, "South", None, None, "B02", 10, None, None, None, None],
        ["KY01", "South", "C100", "4000085", "C02", None, None, None, None, None],
    ]
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame([["ignore me"]]).to_excel(writer, sheet_name="Cover", header=False, index=False)
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


def test_classify_file():
    assert classify_file("ProductionSchemeLinePeriod.csv") == "scheme_line_periods"
    assert classify_file("export_productionschemeline_2024.csv") == "scheme_lines"
    assert classify_file("PRODUCTIONSCHEME.csv") == "schemes"
    assert classify_file("ProductionPreferences (1).csv") == "preferences"
    assert classify_file("mixes.xlsx") is None


def test_load_arc_flow_csvs(tmp_path):
    data = load_arc_flow_csvs(write_arc_flow(tmp_path))

    assert [(s.code, s.description, s.genus_code) for s in data.schemes] == [(SCHEME, "Mum 10in", "NSLN")]

    grow, hang = data.scheme_lines
    assert (grow.line_no, grow.phase, grow.duration, grow.qty_per_area, grow.output) == ("10000", "GROW", 6, 4, 1200)
    assert (hang.line_no, hang.phase, hang.duration, hang.qty_per_area) == ("20000", "HANG", 0, 0)

    assert [(p.line_no, p.phase, p.days, p.period_no) for p in data.scheme_line_periods] == [
        ("20000", "HANG", 14, 1),
        ("20000", "HANG", 21, 27),
    ]

    pref = data.preferences[0]
    assert (pref.production_item_no, pref.variant_code, pref.location_code, pref.scheme_code) == (
        "4000084", "B01", "KY01", SCHEME)
    assert (pref.activity_scheme_code, pref.add_activity_scheme_code) == ("ACT-1", "")


def test_too_few_columns_is_rejected(tmp_path):
    p = tmp_path / "ProductionSchemeLine.csv"
    p.write_text("Code,Line\nA,1\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_arc_flow_csvs([p])


def test_load_mix_workbook(tmp_path):
    rows = load_mix_workbook(write_mix_workbook(tmp_path / "4M Variant Mixes.xlsx"))
    assert len(rows) == 2
    first, second = rows
    assert (first.location, first.common_item, first.production_item, first.variant_code) == (
        "KY01", "C100", "4000084", "B01")
    assert first.weekly_pcts == {1: 50.0, 2: 50.0, 4: 75.0}
    assert second.production_item == "4000085"
    assert second.weekly_pcts == {}


def test_mix_workbook_falls_back_to_first_sheet(tmp_path):
    path = tmp_path / "mix.xlsx"
    pd.DataFrame([
        ["Location", "x", "Common Item", "Production Item", "Variant", "1", "2"],
        ["KY01", "", "C1", "P1", "V1", 20, 30],
    ]).to_excel(path, header=False, index=False, engine="openpyxl")
    rows = load_mix_workbook(path)
    assert rows[0].weekly_pcts == {1: 20.0, 2: 30.0}


def test_load_inputs_and_transform(tmp_path):
    from arcflow_produce import transform

    data = load_inputs(write_arc_flow(tmp_path), [write_mix_workbook(tmp_path / "mix.xlsx")])
    result = transform(data)
    assert result.errors == []
    assert [(r.start_week, r.end_week, r.grow_weeks) for r in result.recipes] == [(1, 26, 8), (27, 53, 9)]
    assert [(m.start_week, m.end_week, m.mix_pct) for m in result.mixes] == [(1, 2, 50.0), (4, 4, 75.0)]


def test_load_reference_csv_and_excel(tmp_path):
    csv_path = tmp_path / "ref.csv"
    csv_path.write_text(" Genus ,Series,Color\nBEG , 1,\n,,\n", encoding="utf-8")
    ref = load_reference_file(csv_path)
    assert ref.headers == ["Genus", "Series", "Color"]
    assert ref.rows == [{"Genus": "BEG", "Series": "1", "Color": ""}]

    xlsx_path = tmp_path / "ref.xlsx"
    pd.DataFrame({"recipeId": [1, 2], "phase": ["GROW", None]}).to_excel(xlsx_path, index=False, engine="openpyxl")
    ref = load_reference_file(xlsx_path)
    assert ref.headers == ["recipeId", "phase"]
    assert ref.rows == [{"recipeId": "1", "phase": "GROW"}, {"recipeId": "2", "phase": ""}]


def test_short_rows_are_skipped(tmp_path):
    p = tmp_path / "ProductionSchemeLine.csv"
    p.write_text(
        "Production Scheme Code,Line no_,Production Phase,Duration,Qty_ per Area,Output _\n"
        "S1,10000,GROW,6,4,1\n"
        "S2,10000,GROW\n"
        "S3,10000,GROW,2,,\n",
        encoding="utf-8",
    )
    data = load_arc_flow_csvs([p])
    assert [(l.scheme_code, l.duration) for l in data.scheme_lines] == [("S1", 6.0), ("S3", 2.0)]
