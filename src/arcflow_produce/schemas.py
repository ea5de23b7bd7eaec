# src/arcflow_produce/schemas.py
"""Record schemas for Arc Flow input rows and PRODUCE output rows.

Attributes are snake_case; ``model_dump(by_alias=True)`` yields the PRODUCE
column names (``locationCode``, ``startWeek``, ...), which are also the field
names used by the comparison engine.
"""
from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FIRST_WEEK = 1
LAST_WEEK = 53

GROW = "GROW"
INVENTORY = "INVENTORY"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ===================== Arc Flow (input) =====================

class Scheme(_Record):
    code: str
    description: str = ""
    genus_code: str = ""


class SchemeLine(_Record):
    scheme_code: str
    line_no: str
    phase: str
    duration: float = 0.0
    qty_per_area: float = 0.0
    output: float = 0.0


class SchemeLinePeriod(_Record):
    scheme_code: str
    line_no: str
    phase: str
    days: float = 0.0
    period_no: int


class Preference(_Record):
    production_item_no: str
    variant_code: str = ""
    location_code: str
    scheme_code: str
    activity_scheme_code: str = ""
    add_activity_scheme_code: str = ""


class MixRow(_Record):
    location: str = ""
    common_item: str = ""
    production_item: str = ""
    variant_code: str = ""
    weekly_pcts: dict[int, float] = Field(default_factory=dict)


class ParsedData(_Record):
    schemes: list[Scheme] = Field(default_factory=list)
    scheme_lines: list[SchemeLine] = Field(default_factory=list)
    scheme_line_periods: list[SchemeLinePeriod] = Field(default_factory=list)
    preferences: list[Preference] = Field(default_factory=list)
    mix_rows: list[MixRow] = Field(default_factory=list)


# ===================== Intermediate =====================

class SchemeRule(_Record):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    start_week: int
    end_week: int
    grow_weeks: int
    phase: str

    def contains(self, start: int, end: int) -> bool:
        return self.start_week <= start and end <= self.end_week

    def overlaps(self, start: int, end: int) -> bool:
        return start <= self.end_week and end >= self.start_week


SchemeDictionary = dict[str, list[SchemeRule]]


class PeriodKey(NamedTuple):
    scheme_code: str
    line_no: str
    phase: str


class RecipeKey(NamedTuple):
    location_code: str
    scheme_code: str
    start_week: int
    end_week: int


class CatalogKey(NamedTuple):
    genus: str
    series: str
    color: str


# ===================== PRODUCE (output) =====================

class Catalog(_Record):
    id: int
    genus: str
    series: str = ""
    color: str = ""


class Recipe(_Record):
    id: int
    location_code: str
    category: str
    scheme_code: str
    genus: str
    series: str
    color: str
    start_week: int
    end_week: int
    grow_weeks: int
    notes: str = ""
    catalog_id: int | None = None

    @property
    def key(self) -> RecipeKey:
        return RecipeKey(self.location_code, self.scheme_code, self.start_week, self.end_week)


class SpaceEvent(_Record):
    id: int
    recipe_id: int
    location_code: str
    category: str
    scheme_code: str
    genus: str
    series: str
    color: str
    phase: str
    start_week: int
    end_week: int
    trigger_weeks: int
    duration_weeks: int


class SpaceSpec(_Record):
    id: int
    recipe_id: int
    space_width: float
    space_length: float
    qty_per_area: float
    phase: str


class RecipeMix(_Record):
    id: int
    recipe_id: int
    catalog_id: int
    mix_pct: float
    common_item: str
    location: str
    variant: str
    start_week: int
    end_week: int
    note: str


class TransformResult(_Record):
    catalogs: list[Catalog] = Field(default_factory=list)
    recipes: list[Recipe] = Field(default_factory=list)
    events: list[SpaceEvent] = Field(default_factory=list)
    specs: list[SpaceSpec] = Field(default_factory=list)
    mixes: list[RecipeMix] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "catalogs": len(self.catalogs),
            "recipes": len(self.recipes),
            "events": len(self.events),
            "specs": len(self.specs),
            "mixes": len(self.mixes),
        }
