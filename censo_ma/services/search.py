from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from censo_ma.models.match_key import normalize_code

__all__ = [
    "DEFAULT_SEARCH_LIMIT",
    "search_municipalities",
]

DEFAULT_SEARCH_LIMIT = 10


def _code_text(value: Any) -> str:
    code = normalize_code(value)
    return "" if code is None else str(code)


def search_municipalities(
    term: str | None,
    aggregates: Sequence[Mapping[str, Any]],
    limit: int = DEFAULT_SEARCH_LIMIT,
    name_field: str = "Municípios",
    code_field: str = "CD_MUN",
) -> list[Mapping[str, Any]]:
    """First ``limit`` records whose name contains ``term`` (case-insensitive) or whose code contains it."""
    if not term or not aggregates:
        return []
    needle = term.strip().casefold()
    results: list[Mapping[str, Any]] = []
    for record in aggregates:
        name = str(record.get(name_field) or "").casefold()
        if needle in name or needle in _code_text(record.get(code_field)):
            results.append(record)
            if len(results) >= limit:
                break
    return results
