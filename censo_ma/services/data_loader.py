from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any

from ..cache.store import CacheInfo, LoadCache
from ..errors import LoadError
from ..excel.reader import SheetData, load_sheet, load_sheet_upload
from ..geo.loader import GeoLoadResult, load_geojson, load_geojson_upload
from ..matching.matcher import MatchPolicy, check_compatibility
from ..models.compatibility_report import CompatibilityReport
from ..transport.fetcher import DEFAULT_TIMEOUT, Fetcher

"""Host-facing entry points.

DataLoader owns one LoadCache and one Fetcher and routes every load through
them. Failures are logged and re-raised as LoadError subclasses; call
``error.to_failure()`` for the structured value.
"""

__all__ = [
    "DataLoader",
]

logger = logging.getLogger(__name__)


class DataLoader:
    def __init__(
        self,
        cache: LoadCache | None = None,
        fetcher: Fetcher | None = None,
        policy: MatchPolicy | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.cache = cache if cache is not None else LoadCache()
        self.fetcher = fetcher if fetcher is not None else Fetcher(timeout=timeout)
        self.policy = policy or MatchPolicy()

    def load_sheet(self, source: str | Path, sheet_name: str) -> SheetData:
        try:
            return load_sheet(source, sheet_name, cache=self.cache, fetcher=self.fetcher)
        except LoadError as e:
            logger.error(f"loading {sheet_name} failed: {e}")
            raise

    def load_sheet_upload(self, file: IO[bytes] | None, sheet_name: str) -> SheetData:
        try:
            return load_sheet_upload(file, sheet_name, cache=self.cache)
        except LoadError as e:
            logger.error(f"processing upload failed: {e}")
            raise

    def load_geojson(self, source: str | Path) -> GeoLoadResult:
        try:
            return load_geojson(source, cache=self.cache, fetcher=self.fetcher)
        except LoadError as e:
            logger.error(f"loading GeoJSON failed: {e}")
            raise

    def load_geojson_upload(self, file: IO[bytes] | None) -> GeoLoadResult:
        try:
            return load_geojson_upload(file, cache=self.cache)
        except LoadError as e:
            logger.error(f"processing GeoJSON upload failed: {e}")
            raise

    def check_compatibility(self, aggregates: Any, geo: Any) -> CompatibilityReport:
        return check_compatibility(aggregates, geo, self.policy)

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_info(self) -> CacheInfo:
        return self.cache.info()
