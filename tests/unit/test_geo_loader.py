from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from censo_ma.cache.store import LoadCache
from censo_ma.errors import InvalidStructureError, NotFoundError, ParseError, UnsupportedFormatError
from censo_ma.geo.loader import load_geojson, load_geojson_upload
from censo_ma.transport.fetcher import FetchResponse
from conftest import BOUNDARIES, StaticFetcher, feature, feature_collection


def _response(path: str, data, content_type: str | None = "application/json") -> FetchResponse:
    body = data if isinstance(data, bytes) else json.dumps(data).encode("utf-8")
    return FetchResponse(path=path, status=200, content=body, content_type=content_type)


def test_load_geojson_from_file(boundaries_file: Path):
    result = load_geojson(boundaries_file)
    assert len(result) == 4
    assert result.features[0]["properties"]["NM_MUN"] == "Açailândia"
    assert result.diagnostics == ()
    assert result.source == str(boundaries_file)


def test_load_geojson_cached_by_path(boundaries_file: Path, counting_fetcher):
    cache = LoadCache()
    first = load_geojson(boundaries_file, cache=cache, fetcher=counting_fetcher)
    second = load_geojson(boundaries_file, cache=cache, fetcher=counting_fetcher)
    assert first is second
    assert counting_fetcher.calls == [str(boundaries_file)]
    assert cache.info().keys == [str(boundaries_file)]


def test_missing_file(temp_workdir: Path):
    with pytest.raises(NotFoundError):
        load_geojson(temp_workdir / "missing.geojson")


def test_invalid_json(temp_workdir: Path):
    p = temp_workdir / "broken.geojson"
    p.write_text('{"type": "FeatureCollection", ', encoding="utf-8")
    with pytest.raises(ParseError):
        load_geojson(p)


def test_not_utf8(temp_workdir: Path):
    p = temp_workdir / "latin1.json"
    p.write_bytes('{"type": "São Luís"}'.encode("latin-1"))
    with pytest.raises(ParseError):
        load_geojson(p)


def test_invalid_structure_from_file(temp_workdir: Path):
    p = temp_workdir / "empty.json"
    p.write_text(json.dumps(feature_collection()), encoding="utf-8")
    with pytest.raises(InvalidStructureError) as e:
        load_geojson(p)
    assert e.value.message == "no features"


def test_warning_returned_with_result():
    fetcher = StaticFetcher({"m.geojson": _response("m.geojson", feature_collection(feature(None, "Caxias")))})
    result = load_geojson("m.geojson", fetcher=fetcher)
    assert [d.code for d in result.diagnostics] == ["MISSING_CD_MUN"]


def test_gpkg_served_as_json_is_parsed():
    url = "https://example.org/maranhao.gpkg"
    fetcher = StaticFetcher({url: _response(url, BOUNDARIES, "application/json")})
    result = load_geojson(url, fetcher=fetcher)
    assert len(result) == 4


def test_binary_gpkg_is_unsupported():
    url = "https://example.org/maranhao.gpkg"
    fetcher = StaticFetcher({url: _response(url, b"SQLite format 3\x00", "application/octet-stream")})
    with pytest.raises(UnsupportedFormatError) as e:
        load_geojson(url, fetcher=fetcher)
    assert "GeoJSON" in e.value.message
    assert e.value.extras["content_type"] == "application/octet-stream"


def test_local_gpkg_is_unsupported(temp_workdir: Path):
    p = temp_workdir / "maranhao.gpkg"
    p.write_bytes(b"SQLite format 3\x00")
    with pytest.raises(UnsupportedFormatError):
        load_geojson(p)


def test_unknown_extension_is_unsupported(temp_workdir: Path):
    p = temp_workdir / "maranhao.shp"
    p.write_bytes(b"\x00")
    with pytest.raises(UnsupportedFormatError):
        load_geojson(p)


def test_upload_geojson():
    upload = io.BytesIO(json.dumps(BOUNDARIES).encode("utf-8"))
    upload.name = "municipios.json"
    result = load_geojson_upload(upload)
    assert len(result) == 4
    assert result.source == "municipios.json"


def test_upload_is_validated():
    upload = io.BytesIO(json.dumps({"type": "Feature"}).encode("utf-8"))
    upload.name = "municipios.geojson"
    with pytest.raises(InvalidStructureError):
        load_geojson_upload(upload)


def test_upload_gpkg_rejected_without_reading():
    class Unreadable(io.BytesIO):
        def read(self, *args):
            raise AssertionError("content must not be read")

    upload = Unreadable(b"")
    upload.name = "maranhao.gpkg"
    with pytest.raises(UnsupportedFormatError):
        load_geojson_upload(upload)


def test_upload_wrong_extension():
    upload = io.BytesIO(b"{}")
    upload.name = "municipios.txt"
    with pytest.raises(UnsupportedFormatError):
        load_geojson_upload(upload)


def test_gpkg_served_as_geo_json_is_parsed():
    url = "https://example.org/maranhao.gpkg"
    fetcher = StaticFetcher({url: _response(url, BOUNDARIES, "application/geo+json")})
    assert len(load_geojson(url, fetcher=fetcher)) == 4


def test_null_feature_fails_at_load_time():
    fetcher = StaticFetcher(
        {"m.geojson": _response("m.geojson", feature_collection(feature("2100055", "Açailândia"), None))}
    )
    with pytest.raises(InvalidStructureError) as e:
        load_geojson("m.geojson", fetcher=fetcher)
    assert e.value.message == "feature not an object"
