from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from censo_ma.cache.store import LoadCache
from censo_ma.errors import InvalidStructureError, ParseError, UnsupportedFormatError
from censo_ma.models.diagnostic import MISSING_CD_MUN, Diagnostic
from censo_ma.transport.fetcher import Fetcher, FetchResponse
from censo_ma.transport.uploads import read_upload, upload_identity, upload_name

"""Boundary loader: municipality FeatureCollection from GeoJSON.

Extension dispatch:
- .geojson / .json: UTF-8 JSON text
- .gpkg: only accepted when the server answers with a JSON content type;
  binary GeoPackage is not decoded and raises UnsupportedFormatError
  (convert first, e.g. ``ogr2ogr -f GeoJSON out.geojson in.gpkg``)

Uploaded .gpkg files are rejected without reading them.
"""

__all__ = [
    "GEOJSON_EXTENSIONS",
    "GeoLoadResult",
    "load_geojson",
    "load_geojson_upload",
    "validate_geojson",
]

logger = logging.getLogger(__name__)

GEOJSON_EXTENSIONS = (".geojson", ".json")
GEOPACKAGE_EXTENSION = ".gpkg"

_GPKG_HINT = "GeoPackage is not supported, convert it to GeoJSON (ogr2ogr -f GeoJSON out.geojson in.gpkg)"


@dataclass(frozen=True)
class GeoLoadResult:
    source: str
    collection: dict[str, Any]
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def features(self) -> list[dict[str, Any]]:
        return self.collection["features"]

    def __len__(self) -> int:
        return len(self.features)


def validate_geojson(data: Any, source: str | None = None) -> list[Diagnostic]:
    """Check the FeatureCollection shape.

    Hard failures raise InvalidStructureError (first failing check wins).
    A collection without any truthy ``properties.CD_MUN`` only yields a
    MISSING_CD_MUN diagnostic.
    """
    if data is None or not isinstance(data, Mapping):
        raise InvalidStructureError(source, "not a JSON object")
    if data.get("type") != "FeatureCollection":
        raise InvalidStructureError(source, "wrong type")
    features = data.get("features")
    if not isinstance(features, list):
        raise InvalidStructureError(source, "features not array")
    if len(features) == 0:
        raise InvalidStructureError(source, "no features", feature_count=0)
    if not all(isinstance(f, Mapping) for f in features):
        raise InvalidStructureError(source, "feature not an object", feature_count=len(features))

    diagnostics: list[Diagnostic] = []
    has_code = any(
        isinstance(f.get("properties"), Mapping) and f["properties"].get("CD_MUN")
        for f in features
    )
    if not has_code:
        diag = Diagnostic.create(
            MISSING_CD_MUN,
            'no feature has a "CD_MUN" property, check compatibility with the workbook',
            source=source,
            feature_count=len(features),
        )
        logger.warning(diag.message)
        diagnostics.append(diag)
    return diagnostics


def _parse_json(content: bytes, label: str) -> Any:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(label, f"not UTF-8 text: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(label, f"invalid JSON: {e}") from e


def _build_result(data: Any, label: str) -> GeoLoadResult:
    diagnostics = validate_geojson(data, source=label)
    logger.info(f"GeoJSON loaded: {len(data['features'])} features")
    return GeoLoadResult(source=label, collection=data, diagnostics=tuple(diagnostics))


def _decode_response(response: FetchResponse) -> GeoLoadResult:
    suffix = Path(response.path.split("?", 1)[0]).suffix.lower()
    if suffix == GEOPACKAGE_EXTENSION:
        if not response.is_json:
            raise UnsupportedFormatError(response.path, _GPKG_HINT, content_type=response.content_type)
        logger.info(f"{response.path} served as JSON, parsing as GeoJSON")
    elif suffix not in GEOJSON_EXTENSIONS:
        raise UnsupportedFormatError(response.path, f"unsupported boundary format '{suffix or '?'}'")
    return _build_result(_parse_json(response.content, response.path), response.path)


def load_geojson(
    source: str | Path, *, cache: LoadCache | None = None, fetcher: Fetcher | None = None
) -> GeoLoadResult:
    """Load and validate a FeatureCollection from a path or URL."""
    path = str(source)
    fetcher = fetcher or Fetcher()

    def _load() -> GeoLoadResult:
        logger.info(f"loading GeoJSON from {path}")
        return _decode_response(fetcher.fetch(path))

    if cache is None:
        return _load()
    return cache.get_or_load(path, _load)


def load_geojson_upload(file: IO[bytes] | None, *, cache: LoadCache | None = None) -> GeoLoadResult:
    """Load and validate a user supplied GeoJSON file."""
    name = upload_name(file)
    suffix = Path(name).suffix.lower()
    if file is not None and suffix == GEOPACKAGE_EXTENSION:
        raise UnsupportedFormatError(name, _GPKG_HINT)
    if file is not None and suffix not in GEOJSON_EXTENSIONS:
        raise UnsupportedFormatError(
            name or None, f"invalid boundary format, use {' or '.join(GEOJSON_EXTENSIONS)}"
        )
    name, content = read_upload(file)

    def _load() -> GeoLoadResult:
        logger.info(f"processing upload {name}")
        return _build_result(_parse_json(content, name), name)

    if cache is None:
        return _load()
    return cache.get_or_load(upload_identity(name, content), _load)
