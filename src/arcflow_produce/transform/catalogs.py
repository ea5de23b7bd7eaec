"""Catalog identities derived from scheme genus codes."""
from __future__ import annotations

from typing import Iterable

from ..schemas import Catalog, Scheme
from .ids import IdAllocator


def generate_catalogs(schemes: Iterable[Scheme], ids: IdAllocator) -> list[Catalog]:
    """One catalog per distinct genus code, in first-seen order.

    Series and color stay empty; schemes carry no item or variant.
    """
    catalogs: list[Catalog] = []
    seen: set[str] = set()
    for scheme in schemes:
        if scheme.genus_code in seen:
            continue
        seen.add(scheme.genus_code)
        catalogs.append(Catalog(id=ids.next("catalog"), genus=scheme.genus_code))
    return catalogs


__all__ = ["generate_catalogs"]
