from __future__ import annotations

import pytest

from arcflow_produce.schemas import (
    MixRow,
    ParsedData,
    Preference,
    Recipe,
    Scheme,
    SchemeLine,
    SchemeLinePeriod,
)

SCHEME = "BN-10INMUM-NSLN-SP"
HANG_SCHEME = "BN-012PANN-BEG-LSP"


def make_recipe(rid: int, start: int, end: int, *, location: str = "KY01", series: str = "4000084",
                genus: str = "BEG", scheme: str = HANG_SCHEME) -> Recipe:
    return Recipe(
        id=rid,
        location_code=location,
        category="012PANN",
        scheme_code=scheme,
        genus=genus,
        series=series,
        color="B01",
        start_week=start,
        end_week=end,
        grow_weeks=6,
        notes=scheme,
    )


@pytest.fixture
def single_grow_data() -> ParsedData:
    return ParsedData(
        schemes=[Scheme(code=SCHEME, description="Mum 10in", genus_code="NSLN")],
        scheme_lines=[SchemeLine(scheme_code=SCHEME, line_no="10000", phase="GROW",
                                 duration=6, qty_per_area=4, output=1)],
        preferences=[Preference(production_item_no="4000084", variant_code="B01",
                                location_code="KY01", scheme_code=SCHEME)],
    )


@pytest.fixture
def hang_data() -> ParsedData:
    """GROW all year (6 weeks) plus a HANG phase split at week 27 (2 / 3 weeks)."""
    return ParsedData(
        schemes=[Scheme(code=HANG_SCHEME, description="Begonia hanging", genus_code="BEG")],
        scheme_lines=[
            SchemeLine(scheme_code=HANG_SCHEME, line_no="10000", phase="GROW", duration=6, qty_per_area=4),
            SchemeLine(scheme_code=HANG_SCHEME, line_no="20000", phase="HANG", duration=1, qty_per_area=0),
        ],
        scheme_line_periods=[
            SchemeLinePeriod(scheme_code=HANG_SCHEME, line_no="20000", phase="HANG", days=21, period_no=27),
            SchemeLinePeriod(scheme_code=HANG_SCHEME, line_no="20000", phase="HANG", days=14, period_no=1),
        ],
        preferences=[
            Preference(production_item_no="4000084", variant_code="B01", location_code="KY01",
                       scheme_code=HANG_SCHEME),
        ],
        mix_rows=[
            MixRow(location="KY01", common_item="C100", production_item="4000084", variant_code="B01",
                   weekly_pcts={1: 50, 2: 50, 3: 50, 4: 75, 5: 75}),
        ],
    )
