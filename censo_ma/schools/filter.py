from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

"""School list narrowing for the municipality detail view.

Schools carry no municipality code, only the municipality name, so matching
is by name: trimmed and case-insensitive. Coordinates equal to zero are a
"missing" sentinel; Maranhão lies far from both the equator and the prime
meridian.
"""

__all__ = [
    "SchoolStatistics",
    "filter_by_municipality",
    "has_valid_coordinates",
    "partition_by_coordinates",
    "school_statistics",
]

MUNICIPALITY_FIELDS = ("Município", "Municipio")
CATEGORY_FIELDS = ("Categoria Administrativa", "Dependência Administrativa")
CATEGORIES = ("estadual", "municipal", "federal", "privada")


def _first_text(school: Mapping[str, Any], fields: Sequence[str]) -> str:
    for name in fields:
        value = school.get(name)
        if value is not None and value != "":
            return str(value)
    return ""


def filter_by_municipality(name: str, schools: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    target = str(name).strip().casefold()
    return [s for s in schools if _first_text(s, MUNICIPALITY_FIELDS).strip().casefold() == target]


def _coordinate(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def has_valid_coordinates(school: Mapping[str, Any]) -> bool:
    lat = _coordinate(school.get("Latitude"))
    lng = _coordinate(school.get("Longitude"))
    return lat is not None and lng is not None and lat != 0 and lng != 0


def partition_by_coordinates(
    schools: Iterable[Mapping[str, Any]],
) -> tuple[list[Mapping[str, Any]], list[Mapping[str, Any]]]:
    """Split schools into (with valid coordinates, without), keeping order."""
    with_coords: list[Mapping[str, Any]] = []
    without_coords: list[Mapping[str, Any]] = []
    for school in schools:
        (with_coords if has_valid_coordinates(school) else without_coords).append(school)
    return with_coords, without_coords


@dataclass(frozen=True)
class SchoolStatistics:
    total: int
    estadual: int
    municipal: int
    federal: int
    privada: int
    com_coordenadas: int
    sem_coordenadas: int


def school_statistics(schools: Sequence[Mapping[str, Any]]) -> SchoolStatistics:
    """Counts by administrative category and by coordinate validity."""
    counts = dict.fromkeys(CATEGORIES, 0)
    with_coords = 0
    for school in schools:
        category = _first_text(school, CATEGORY_FIELDS).strip().lower()
        if category in counts:
            counts[category] += 1
        if has_valid_coordinates(school):
            with_coords += 1
    return SchoolStatistics(
        total=len(schools),
        com_coordenadas=with_coords,
        sem_coordenadas=len(schools) - with_coords,
        **counts,
    )
