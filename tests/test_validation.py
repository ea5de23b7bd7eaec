from __future__ import annotations

from arcflow_produce.analysis.validation import ValidationIssue, quality_score, validate_parsed_data
from arcflow_produce.schemas import (
    MixRow,
    ParsedData,
    Preference,
    Scheme,
    SchemeLine,
    SchemeLinePeriod,
)


def test_empty_input_cannot_transform():
    result = validate_parsed_data(ParsedData())
    errors = result.by_severity("error")
    assert len(errors) == 3
    assert len(result.by_severity("warning")) == 1
    assert result.quality_score == 20
    assert result.can_transform is False
    assert result.is_valid is False


def test_clean_input_scores_full(hang_data):
    result = validate_parsed_data(hang_data)
    assert result.issues == []
    assert result.quality_score == 100
    assert result.can_transform and result.is_valid

    stats = result.stats
    assert (stats.scheme_count, stats.scheme_line_count, stats.period_count) == (1, 2, 2)
    assert stats.unique_phases == ["GROW", "HANG"]
    assert stats.unique_genera == ["BEG"]
    assert stats.schemes_with_periods == 1
    assert stats.schemes_without_periods == 0
    assert stats.avg_lines_per_scheme == 2.0
    assert (stats.week_coverage.min, stats.week_coverage.max) == (1, 27)


def test_structural_issues_are_reported_but_transform_stays_possible():
    data = ParsedData(
        schemes=[
            Scheme(code="A", genus_code=""),
            Scheme(code="A", genus_code=""),
            Scheme(code="B", genus_code="BEG"),
        ],
        scheme_lines=[
            SchemeLine(scheme_code="A", line_no="1", phase="GROW", duration=4),
            SchemeLine(scheme_code="C", line_no="1", phase="GROW", duration=0),
        ],
        preferences=[
            Preference(production_item_no="1", location_code="L1", scheme_code="A"),
            Preference(production_item_no="2", location_code="L1", scheme_code="X"),
        ],
    )
    result = validate_parsed_data(data)
    by_category = {}
    for issue in result.issues:
        by_category.setdefault(issue.category, []).append(issue)

    assert result.by_severity("error") == []
    assert len(result.by_severity("warning")) == 7
    assert result.quality_score == 65
    assert result.can_transform is True

    orphans = by_category["Orphan References"]
    assert [i.details for i in orphans] == ["X", "C"]
    assert by_category["Duplicates"][0].details == "A (x2)"
    assert by_category["Transform Impact"][0].count == 1
    assert [i.count for i in by_category["Data Quality"]] == [1, 2]


def test_mix_rows_checked_against_preferences(single_grow_data):
    single_grow_data.mix_rows = [
        MixRow(location="KY01", production_item="4000084", weekly_pcts={1: 50}),
        MixRow(location="ZZ99", production_item="4000084", weekly_pcts={1: 50}),
        MixRow(location="KY01", production_item="555", weekly_pcts={1: 50}),
    ]
    result = validate_parsed_data(single_grow_data)
    mix = [i for i in result.issues if i.category == "Mix Data"]
    assert [(i.severity, i.count) for i in mix] == [("warning", 1), ("info", 2)]
    assert mix[0].details == "ZZ99"


def test_quality_score_clamps():
    assert quality_score([]) == 100
    errors = [ValidationIssue(severity="error", category="Missing Data", message="x")] * 5
    assert quality_score(errors) == 0


def test_score_ignores_whether_transform_is_possible():
    data = ParsedData(
        schemes=[Scheme(code="A", genus_code="BEG")],
        scheme_line_periods=[
            SchemeLinePeriod(scheme_code="A", line_no="10000", phase="HANG", days=14, period_no=1),
        ],
        preferences=[Preference(production_item_no="1", location_code="KY01", scheme_code="A")],
    )
    result = validate_parsed_data(data)
    assert result.can_transform is False
    assert len(result.by_severity("error")) == 1
    assert len(result.by_severity("warning")) == 2
    assert result.quality_score == 65
