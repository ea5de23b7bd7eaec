# src/arcflow_produce/transform/utils.py
from __future__ import annotations

import math


def round_half_up(x: float, ndigits: int = 0) -> float:
    """Round with .5 going up (2.5 -> 3.0), unlike builtin round()."""
    scale = 10 ** ndigits
    return math.floor(x * scale + 0.5) / scale


def round_weeks(x: float) -> int:
    return int(round_half_up(x))


def days_to_weeks(days: float) -> int:
    return round_weeks(days / 7.0)


def parse_scheme_code(code: str) -> tuple[str, str]:
    """Split ``BN-{category}-{genus}-{time profile}`` into (category, time profile).

    Missing tokens come back as empty strings.
    """
    parts = str(code).split("-")
    category = parts[1] if len(parts) >= 2 else ""
    time_profile = parts[3] if len(parts) >= 4 else ""
    return category, time_profile
