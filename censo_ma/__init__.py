"""censo_ma: data core of the Maranhão school-census dashboard.

Loads the census workbook and the municipality boundary FeatureCollection,
normalizes and validates them, joins them by municipality code or name and
filters schools for the municipality detail view.
"""

from .cache.store import CacheInfo, LoadCache
from .config.loader import ConfigError, DashboardConfig, default_config, load_config
from .errors import (
    InvalidStructureError,
    LoadError,
    NotFoundError,
    ParseError,
    SheetMissingError,
    UnsupportedFormatError,
)
from .excel.reader import SheetData, clean_rows, load_sheet, load_sheet_upload
from .geo.loader import GeoLoadResult, load_geojson, load_geojson_upload, validate_geojson
from .logging.diagnostic_log import DiagnosticLog
from .logging.init import setup_logging
from .matching.matcher import MatchPolicy, MunicipalityLookup, check_compatibility
from .models import CompatibilityReport, Diagnostic, LoadFailure, MatchKey
from .schools.filter import filter_by_municipality, has_valid_coordinates, partition_by_coordinates
from .services.data_loader import DataLoader
from .services.orchestrator import DashboardDataset, load_default_dataset, run_compatibility_check

__version__ = "0.1.0"

__all__ = [
    "CacheInfo",
    "CompatibilityReport",
    "ConfigError",
    "DashboardConfig",
    "DashboardDataset",
    "DataLoader",
    "Diagnostic",
    "DiagnosticLog",
    "GeoLoadResult",
    "InvalidStructureError",
    "LoadCache",
    "LoadError",
    "LoadFailure",
    "MatchKey",
    "MatchPolicy",
    "MunicipalityLookup",
    "NotFoundError",
    "ParseError",
    "SheetData",
    "SheetMissingError",
    "UnsupportedFormatError",
    "check_compatibility",
    "clean_rows",
    "default_config",
    "filter_by_municipality",
    "has_valid_coordinates",
    "load_config",
    "load_default_dataset",
    "load_geojson",
    "load_geojson_upload",
    "load_sheet",
    "load_sheet_upload",
    "partition_by_coordinates",
    "run_compatibility_check",
    "setup_logging",
    "validate_geojson",
]
