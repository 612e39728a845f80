from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

from ..config.loader import DashboardConfig, default_config
from ..errors import LoadError
from ..excel.reader import SheetData
from ..geo.loader import GeoLoadResult
from ..logging.diagnostic_log import DiagnosticLog
from ..logging.init import log_summary
from ..matching.matcher import MatchPolicy, check_compatibility
from ..models.compatibility_report import CompatibilityReport
from ..models.diagnostic import Diagnostic
from ..schools.filter import filter_by_municipality, partition_by_coordinates
from .data_loader import DataLoader
from .progress import LoadProgress
from .summary import render_compatibility_metrics

"""Default dataset orchestration.

The dashboard needs three loads before anything can be drawn: the aggregate
sheet, the school sheet (both from the same workbook) and the boundary file.
They run concurrently in a thread pool and are awaited jointly. If any load
fails the batch fails with that load's error; no partial dataset is returned.
"""

__all__ = [
    "DashboardDataset",
    "load_default_dataset",
    "run_compatibility_check",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardDataset:
    aggregates: SheetData
    schools: SheetData
    boundaries: GeoLoadResult

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return list(self.boundaries.diagnostics)

    def check_compatibility(self, policy: MatchPolicy | None = None) -> CompatibilityReport:
        return check_compatibility(self.aggregates, self.boundaries, policy)

    def schools_for(self, municipality: str) -> tuple[list[Mapping[str, Any]], list[Mapping[str, Any]]]:
        """Schools of one municipality split into (with coordinates, without)."""
        return partition_by_coordinates(filter_by_municipality(municipality, self.schools.rows))


def load_default_dataset(
    config: DashboardConfig | None = None, loader: DataLoader | None = None
) -> DashboardDataset:
    """Load aggregates, schools and boundaries concurrently.

    Raises:
        LoadError: the first failure in completion order, after every load has finished
    """
    config = config or default_config()
    loader = loader or DataLoader(policy=config.match_policy, timeout=config.fetch_timeout)

    jobs: dict[str, Callable[[], Any]] = {
        "aggregates": lambda: loader.load_sheet(config.workbook, config.aggregates_sheet),
        "schools": lambda: loader.load_sheet(config.workbook, config.schools_sheet),
        "boundaries": lambda: loader.load_geojson(config.boundaries),
    }
    results: dict[str, Any] = {}
    first_error: LoadError | None = None

    logger.info(f"loading default dataset: {config.workbook}, {config.boundaries}")
    with LoadProgress(len(jobs)) as progress, ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        futures = {pool.submit(job): label for label, job in jobs.items()}
        for future in as_completed(futures):
            label = futures[future]
            try:
                results[label] = future.result()
            except LoadError as e:
                progress.finish(label, success=False)
                if first_error is None:
                    first_error = e
                continue
            progress.finish(label)

    if first_error is not None:
        logger.error(f"default dataset not loaded: {first_error}")
        raise first_error

    dataset = DashboardDataset(
        aggregates=results["aggregates"],
        schools=results["schools"],
        boundaries=results["boundaries"],
    )
    logger.info(
        f"dataset loaded: municipios={len(dataset.aggregates)} "
        f"escolas={len(dataset.schools)} features={len(dataset.boundaries)}"
    )
    return dataset


def run_compatibility_check(
    dataset: DashboardDataset,
    policy: MatchPolicy | None = None,
    diagnostics: DiagnosticLog | None = None,
) -> CompatibilityReport:
    """Match the dataset, log the SUMMARY line and collect diagnostics."""
    report = dataset.check_compatibility(policy)
    if diagnostics is not None:
        diagnostics.extend(dataset.diagnostics)
        diagnostics.extend(report.diagnostics)
    if not report.is_valid:
        logger.warning(f"low match coverage: {report.message}")
    log_summary(render_compatibility_metrics(report))
    return report
