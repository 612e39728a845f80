from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from unidecode import unidecode

"""MatchKey model: the code-or-name identifier joining records to features.

Municipality codes arrive as numbers from the workbook (after numeric
coercion) and as strings or numbers from GeoJSON properties, so codes are
canonicalized by ``normalize_code`` before comparison instead of relying on
loose equality: ``"2100055"``, ``2100055`` and ``2100055.0`` are the same code.

Names are compared after ``normalize_name`` under one of three modes:
- exact: trimmed, case sensitive (default)
- casefold: trimmed, case insensitive
- unaccent: trimmed, case insensitive, diacritics removed ("Açailândia" == "acailandia")
"""

__all__ = [
    "NAME_MODES",
    "MatchKey",
    "UnmatchedEntry",
    "normalize_code",
    "normalize_name",
]

NAME_MODES = ("exact", "casefold", "unaccent")

_DIGITS_RE = re.compile(r"^[+-]?\d+$")


def normalize_code(value: Any) -> int | str | None:
    """Canonicalize a municipality code.

    Integral numbers and all-digit strings become ``int``; any other non-empty
    string is kept trimmed; empty strings, None, NaN and booleans become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value) if value.is_integer() else str(value)
    text = str(value).strip()
    if not text:
        return None
    if _DIGITS_RE.match(text):
        return int(text)
    try:
        number = float(text)
    except ValueError:
        return text
    if number.is_integer():
        return int(number)
    return text


def normalize_name(value: Any, mode: str = "exact") -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    if mode == "exact":
        return text
    if mode == "casefold":
        return text.casefold()
    if mode == "unaccent":
        return unidecode(text).casefold()
    raise ValueError(f"unknown name mode: {mode!r} (expected one of {NAME_MODES})")


def _first_present(record: Mapping[str, Any], fields: Sequence[str]) -> Any:
    for name in fields:
        value = record.get(name)
        if value is None or value == "":
            continue
        return value
    return None


@dataclass(frozen=True)
class MatchKey:
    """Two-field join key. Either side may be None, never both for a usable key."""
    code: int | str | None
    name: str | None

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        code_fields: Sequence[str],
        name_fields: Sequence[str],
        name_mode: str = "exact",
    ) -> MatchKey:
        return cls(
            code=normalize_code(_first_present(record, code_fields)),
            name=normalize_name(_first_present(record, name_fields), name_mode),
        )

    @classmethod
    def from_feature(cls, feature: Mapping[str, Any], name_mode: str = "exact") -> MatchKey:
        props = feature.get("properties") or {}
        if not isinstance(props, Mapping):
            props = {}
        return cls(
            code=normalize_code(props.get("CD_MUN")),
            name=normalize_name(props.get("NM_MUN"), name_mode),
        )

    @property
    def is_empty(self) -> bool:
        return self.code is None and self.name is None

    def matches(self, other: MatchKey) -> bool:
        """Code equality first, then name equality."""
        if self.code is not None and other.code is not None and self.code == other.code:
            return True
        return self.name is not None and other.name is not None and self.name == other.name


@dataclass(frozen=True)
class UnmatchedEntry:
    """One entity without counterpart on the other side (raw values, for display)."""
    name: Any
    code: Any

    def to_dict(self) -> dict[str, Any]:
        return {"nome": self.name, "cd_mun": self.code}
