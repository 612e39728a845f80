from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .diagnostic import Diagnostic
from .match_key import UnmatchedEntry

if TYPE_CHECKING:
    from censo_ma.matching.matcher import MunicipalityLookup

"""Compatibility report between the aggregate sheet and the boundary file.

Derived and ephemeral: recomputed by the matcher on demand, never cached.
"""

__all__ = [
    "DEFAULT_COVERAGE_THRESHOLD",
    "CompatibilityReport",
    "ValidationSummary",
]

# Percentage of aggregate records that must find a feature.
DEFAULT_COVERAGE_THRESHOLD = 50.0


@dataclass(frozen=True)
class ValidationSummary:
    """Short form of the report shown to the operator."""
    is_valid: bool
    municipios_excel: int
    municipios_geojson: int
    matched: int
    match_percentage: str  # one decimal, e.g. "60.0"
    unmatched: list[Any]  # first N unmatched names (code when the name is absent)
    message: str


@dataclass(frozen=True)
class CompatibilityReport:
    """Match coverage of aggregate records against boundary features."""
    total_excel: int  # aggregate records considered
    total_geojson: int  # features considered
    matched: int  # aggregate records with at least one feature
    unmatched: list[UnmatchedEntry]  # aggregate side misses, in record order
    missing: list[UnmatchedEntry]  # feature side misses, in feature order
    coverage_threshold: float = DEFAULT_COVERAGE_THRESHOLD
    diagnostics: list[Diagnostic] = field(default_factory=list)
    lookup: MunicipalityLookup | None = field(default=None, compare=False, repr=False)

    @property
    def match_percentage(self) -> float:
        if self.total_excel == 0:
            return 0.0
        return self.matched / self.total_excel * 100

    @property
    def match_percentage_text(self) -> str:
        return f"{self.match_percentage:.1f}"

    @property
    def is_valid(self) -> bool:
        return self.total_excel > 0 and self.match_percentage > self.coverage_threshold

    @property
    def message(self) -> str:
        return (
            f"{self.matched}/{self.total_excel} municípios encontrados "
            f"({self.match_percentage_text}%)"
        )

    def summary(self, limit: int = 5) -> ValidationSummary:
        names = [e.name if e.name not in (None, "") else e.code for e in self.unmatched[:limit]]
        return ValidationSummary(
            is_valid=self.is_valid,
            municipios_excel=self.total_excel,
            municipios_geojson=self.total_geojson,
            matched=self.matched,
            match_percentage=self.match_percentage_text,
            unmatched=names,
            message=self.message,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalMunicipiosExcel": self.total_excel,
            "totalMunicipiosGeojson": self.total_geojson,
            "matched": self.matched,
            "unmatched": [e.to_dict() for e in self.unmatched],
            "missing": [e.to_dict() for e in self.missing],
            "matchPercentage": self.match_percentage_text,
            "isValid": self.is_valid,
        }
