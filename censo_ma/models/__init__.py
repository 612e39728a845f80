"""Domain models for the census dashboard data core.

Value objects shared by the loaders, the matcher and the services.
"""

from .compatibility_report import DEFAULT_COVERAGE_THRESHOLD, CompatibilityReport, ValidationSummary
from .diagnostic import Diagnostic
from .load_failure import LoadFailure
from .match_key import MatchKey, UnmatchedEntry, normalize_code, normalize_name

__all__ = [
    # Results
    "CompatibilityReport",
    "DEFAULT_COVERAGE_THRESHOLD",
    "ValidationSummary",
    "Diagnostic",
    "LoadFailure",
    # Join keys
    "MatchKey",
    "UnmatchedEntry",
    "normalize_code",
    "normalize_name",
]
