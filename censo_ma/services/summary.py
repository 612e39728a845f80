from __future__ import annotations

from ..models.compatibility_report import CompatibilityReport

"""SUMMARY line rendering for the compatibility check.

``render_compatibility_metrics`` is the body handed to ``log_summary`` (the
SUMMARY label comes from the formatter); ``render_compatibility_line`` is the
full line as printed.
"""

__all__ = [
    "render_compatibility_line",
    "render_compatibility_metrics",
]


def render_compatibility_metrics(report: CompatibilityReport) -> str:
    """Render the metrics of a CompatibilityReport, without the SUMMARY label."""
    return (
        f"municipios={report.total_excel}/{report.total_geojson} "
        f"matched={report.matched} "
        f"coverage={report.match_percentage_text} "
        f"valid={'true' if report.is_valid else 'false'} "
        f"unmatched={len(report.unmatched)} "
        f"missing={len(report.missing)}"
    )


def render_compatibility_line(report: CompatibilityReport) -> str:
    """Render a SUMMARY line from a CompatibilityReport.

    Format:
    SUMMARY municipios={excel}/{geojson} matched={matched} coverage={pct}
    valid={true|false} unmatched={n} missing={n}

    Examples:
        >>> report = CompatibilityReport(
        ...     total_excel=217, total_geojson=217, matched=215,
        ...     unmatched=[], missing=[],
        ... )
        >>> render_compatibility_line(report)
        'SUMMARY municipios=217/217 matched=215 coverage=99.1 valid=true unmatched=0 missing=0'
    """
    return f"SUMMARY {render_compatibility_metrics(report)}"
