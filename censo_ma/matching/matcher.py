from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from censo_ma.excel.reader import SheetData
from censo_ma.geo.loader import GeoLoadResult
from censo_ma.models.compatibility_report import DEFAULT_COVERAGE_THRESHOLD, CompatibilityReport
from censo_ma.models.diagnostic import DUPLICATE_CODE, DUPLICATE_NAME, Diagnostic
from censo_ma.models.match_key import NAME_MODES, MatchKey, UnmatchedEntry, normalize_code, normalize_name

"""Municipality matcher: joins aggregate records to boundary features.

A record and a feature match when their codes are equal or, failing that,
their names are equal (see MatchKey). Both directions go through hash
indexes built once per call:

    code -> first item with that code
    name -> first item with that name

Duplicate keys keep the first-seen item and produce a DUPLICATE_CODE /
DUPLICATE_NAME diagnostic. Lookups try the code index before the name index,
so a code link always wins over a name link.
"""

__all__ = [
    "KeyIndex",
    "MatchPolicy",
    "MunicipalityLookup",
    "check_compatibility",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchPolicy:
    code_fields: tuple[str, ...] = ("CD_MUN",)
    name_fields: tuple[str, ...] = ("Municípios", "Municipios")
    name_mode: str = "exact"
    coverage_threshold: float = DEFAULT_COVERAGE_THRESHOLD

    def __post_init__(self) -> None:
        if self.name_mode not in NAME_MODES:
            raise ValueError(f"unknown name mode: {self.name_mode!r} (expected one of {NAME_MODES})")

    def record_key(self, record: Mapping[str, Any]) -> MatchKey:
        return MatchKey.from_record(record, self.code_fields, self.name_fields, self.name_mode)

    def feature_key(self, feature: Mapping[str, Any]) -> MatchKey:
        return MatchKey.from_feature(feature, self.name_mode)


class KeyIndex:
    """Code and name hash indexes over a sequence of keys (positions, first seen wins)."""

    def __init__(self, keys: Sequence[MatchKey], label: str) -> None:
        self.label = label
        self.by_code: dict[int | str, int] = {}
        self.by_name: dict[str, int] = {}
        self.diagnostics: list[Diagnostic] = []
        for pos, key in enumerate(keys):
            if key.code is not None:
                self._insert(self.by_code, key.code, pos, DUPLICATE_CODE)
            if key.name is not None:
                self._insert(self.by_name, key.name, pos, DUPLICATE_NAME)

    def _insert(self, index: dict[Any, int], value: Any, pos: int, code: str) -> None:
        first = index.setdefault(value, pos)
        if first == pos:
            return
        what = "code" if code == DUPLICATE_CODE else "name"
        diag = Diagnostic.create(
            code,
            f"{self.label}: duplicate {what} {value!r} at position {pos}, keeping position {first}",
            source=self.label,
            key=value,
            kept=first,
            ignored=pos,
        )
        logger.warning(diag.message)
        self.diagnostics.append(diag)

    def find(self, key: MatchKey) -> int | None:
        if key.code is not None:
            pos = self.by_code.get(key.code)
            if pos is not None:
                return pos
        if key.name is not None:
            return self.by_name.get(key.name)
        return None


class MunicipalityLookup:
    """Bidirectional record <-> feature lookup handed to the renderer."""

    def __init__(
        self,
        records: Sequence[Mapping[str, Any]],
        features: Sequence[Mapping[str, Any]],
        policy: MatchPolicy,
    ) -> None:
        self.records = records
        self.features = features
        self.policy = policy
        self.record_keys = [policy.record_key(r) for r in records]
        self.feature_keys = [policy.feature_key(f) for f in features]
        self.record_index = KeyIndex(self.record_keys, "aggregates")
        self.feature_index = KeyIndex(self.feature_keys, "features")

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.record_index.diagnostics + self.feature_index.diagnostics

    def record_for_feature(self, feature: Mapping[str, Any]) -> Mapping[str, Any] | None:
        pos = self.record_index.find(self.policy.feature_key(feature))
        return None if pos is None else self.records[pos]

    def feature_for_record(self, record: Mapping[str, Any]) -> Mapping[str, Any] | None:
        pos = self.feature_index.find(self.policy.record_key(record))
        return None if pos is None else self.features[pos]

    def find(self, code_or_name: Any) -> Mapping[str, Any] | None:
        """Record whose code or name equals ``code_or_name`` (hover/click lookup)."""
        key = MatchKey(
            code=normalize_code(code_or_name),
            name=normalize_name(code_or_name, self.policy.name_mode),
        )
        pos = self.record_index.find(key)
        return None if pos is None else self.records[pos]


def _records(aggregates: SheetData | Sequence[Mapping[str, Any]]) -> Sequence[Mapping[str, Any]]:
    if isinstance(aggregates, SheetData):
        return aggregates.rows
    return aggregates


def _features(geo: GeoLoadResult | Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> Sequence[Mapping[str, Any]]:
    if isinstance(geo, GeoLoadResult):
        return geo.features
    if isinstance(geo, Mapping):
        return geo.get("features") or []
    return geo


def _entry(key_source: Mapping[str, Any], code_field: str, name_field: str) -> UnmatchedEntry:
    return UnmatchedEntry(name=key_source.get(name_field), code=key_source.get(code_field))


def check_compatibility(
    aggregates: SheetData | Sequence[Mapping[str, Any]],
    geo: GeoLoadResult | Mapping[str, Any] | Sequence[Mapping[str, Any]],
    policy: MatchPolicy | None = None,
) -> CompatibilityReport:
    """Match aggregate records against features and report coverage."""
    policy = policy or MatchPolicy()
    records = _records(aggregates)
    features = _features(geo)
    lookup = MunicipalityLookup(records, features, policy)

    matched = 0
    unmatched: list[UnmatchedEntry] = []
    for record, key in zip(records, lookup.record_keys, strict=True):
        if lookup.feature_index.find(key) is not None:
            matched += 1
            continue
        name = next((record.get(f) for f in policy.name_fields if record.get(f) not in (None, "")), None)
        code = next((record.get(f) for f in policy.code_fields if record.get(f) not in (None, "")), None)
        unmatched.append(UnmatchedEntry(name=name, code=code))

    missing: list[UnmatchedEntry] = []
    for feature, key in zip(features, lookup.feature_keys, strict=True):
        if lookup.record_index.find(key) is None:
            props = feature.get("properties") or {}
            missing.append(_entry(props, "CD_MUN", "NM_MUN"))

    report = CompatibilityReport(
        total_excel=len(records),
        total_geojson=len(features),
        matched=matched,
        unmatched=unmatched,
        missing=missing,
        coverage_threshold=policy.coverage_threshold,
        diagnostics=lookup.diagnostics,
        lookup=lookup,
    )
    logger.info(f"compatibility: {report.message}, {len(missing)} features without data")
    return report
