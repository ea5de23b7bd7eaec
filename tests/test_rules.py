from __future__ import annotations

import random

from arcflow_produce.schemas import SchemeLine, SchemeLinePeriod, SchemeRule
from arcflow_produce.transform.rules import build_scheme_dictionary, merge_grow_segments
from arcflow_produce.transform.utils import parse_scheme_code, round_half_up


def _line(code="S1", line_no="10000", phase="GROW", duration=6.0, qty=0.0):
    return SchemeLine(scheme_code=code, line_no=line_no, phase=phase, duration=duration, qty_per_area=qty)


def _period(code="S1", line_no="10000", phase="GROW", days=7.0, period_no=1):
    return SchemeLinePeriod(scheme_code=code, line_no=line_no, phase=phase, days=days, period_no=period_no)


def _rule(start, end, weeks, phase="GROW"):
    return SchemeRule(start_week=start, end_week=end, grow_weeks=weeks, phase=phase)


def test_line_without_periods_spans_whole_year():
    d = build_scheme_dictionary([_line(duration=6)], [])
    assert d == {"S1": [_rule(1, 53, 6)]}


def test_duration_rounds_half_up():
    d = build_scheme_dictionary([_line(duration=2.5)], [])
    assert d["S1"][0].grow_weeks == 3


def test_periods_sorted_and_last_runs_to_week_53():
    periods = [_period(days=70, period_no=27), _period(days=42, period_no=1), _period(days=50, period_no=40)]
    rules = build_scheme_dictionary([_line()], periods)["S1"]
    assert rules == [_rule(1, 26, 6), _rule(27, 39, 10), _rule(40, 53, 7)]


def test_periods_match_on_scheme_line_and_phase():
    lines = [_line(line_no="10000", phase="GROW", duration=5), _line(line_no="20000", phase="HANG", duration=1)]
    periods = [_period(line_no="20000", phase="GROW", days=70, period_no=10)]
    rules = build_scheme_dictionary(lines, periods)["S1"]
    # the period names line 20000 but phase GROW, so it belongs to neither line
    assert rules == [_rule(1, 53, 5, "GROW"), _rule(1, 53, 1, "HANG")]


def test_schemes_without_lines_have_no_entry():
    d = build_scheme_dictionary([_line(code="A")], [_period(code="B")])
    assert list(d) == ["A"]


def test_merge_adds_extra_phases_but_not_inventory():
    rules = [_rule(1, 53, 6), _rule(1, 53, 2, "HANG"), _rule(1, 53, 5, "INVENTORY")]
    assert merge_grow_segments(rules) == [_rule(1, 53, 8)]


def test_merge_splits_on_every_breakpoint():
    rules = [_rule(1, 26, 6), _rule(27, 53, 10), _rule(20, 53, 1, "SPACE")]
    assert merge_grow_segments(rules) == [_rule(1, 19, 6), _rule(20, 26, 7), _rule(27, 53, 11)]


def test_merge_drops_segments_without_grow_cover():
    rules = [_rule(10, 20, 4), _rule(1, 53, 1, "HANG")]
    assert merge_grow_segments(rules) == [_rule(10, 20, 5)]


def test_merge_of_no_grow_rules_is_empty():
    assert merge_grow_segments([_rule(1, 53, 3, "HANG")]) == []
    assert merge_grow_segments([]) == []


def test_merged_segments_always_covered_by_a_grow_rule():
    rng = random.Random(20240601)
    phases = ["GROW", "GROW", "HANG", "SPACE", "INVENTORY", "PROPAGATE"]
    for _ in range(300):
        rules = []
        for _ in range(rng.randint(1, 6)):
            start = rng.randint(1, 53)
            end = rng.randint(start, 53)
            rules.append(_rule(start, end, rng.randint(0, 12), rng.choice(phases)))
        merged = merge_grow_segments(rules)
        prev_end = 0
        for seg in merged:
            assert seg.phase == "GROW"
            assert 1 <= seg.start_week <= seg.end_week <= 53
            assert seg.start_week > prev_end
            prev_end = seg.end_week
            assert any(r.phase == "GROW" and r.contains(seg.start_week, seg.end_week) for r in rules)


def test_parse_scheme_code():
    assert parse_scheme_code("BN-012PANN-BEG-LSP") == ("012PANN", "LSP")
    assert parse_scheme_code("BN-10INMUM") == ("10INMUM", "")
    assert parse_scheme_code("SINGLE") == ("", "")


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(1.41421, 2) == 1.41
