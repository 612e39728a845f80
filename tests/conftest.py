# Shared pytest fixtures
from __future__ import annotations

import json
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from censo_ma.logging.init import reset_logging
from censo_ma.transport.fetcher import Fetcher, FetchResponse

AGGREGATES_SHEET = "Dados Gerais"
SCHOOLS_SHEET = "Análise - Tabela da lista"

AGGREGATES_ROWS: list[list[Any]] = [
    [" CD_MUN ", "Municípios ", "Estadual", "Municipal", "Federal", "Privada", "Total de Escolas por município"],
    [2100055, "Açailândia", 10, 80, 1, 12, 103],
    [2101202, "Bacabal", "7", "60", "0", "9", "76"],
    ["", "Caxias", 12, 150, 1, 20, 183],
    [None, None, None, None, None, None, None],
    [2199999, "Cidade Fantasma", 0, 1, 0, 0, 1],
]

SCHOOLS_ROWS: list[list[Any]] = [
    ["Município", "Categoria Administrativa", "Latitude", "Longitude", "Escola", "Código INEP"],
    ["Açailândia", "Municipal", "-4.9471", "-47.5004", "EM Monteiro Lobato", "21000011"],
    ["açailândia ", "Estadual", "0", "0", "CE Açailândia", "21000012"],
    ["Bacabal", "Privada", "-4.2250", "-44.7800", "Colégio Bacabal", "21000013"],
    ["Açailândia", "Federal", "", "", "IFMA Açailândia", "21000014"],
]


def feature(code: Any, name: Any, geometry: dict[str, Any] | None = None) -> dict[str, Any]:
    props: dict[str, Any] = {}
    if code is not None:
        props["CD_MUN"] = code
    if name is not None:
        props["NM_MUN"] = name
    return {
        "type": "Feature",
        "properties": props,
        "geometry": geometry or {"type": "Point", "coordinates": [-45.0, -4.5]},
    }


def feature_collection(*features: dict[str, Any]) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features)}


BOUNDARIES = feature_collection(
    feature("2100055", "Açailândia"),
    feature("2101202", "Bacabal"),
    feature("2103000", "Caxias"),
    feature("2105302", "Imperatriz"),
)


@pytest.fixture(autouse=True)
def _clean_logging():
    # setup_logging keeps module state and detaches from the root logger
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data" / "excel").mkdir(parents=True)
        (p / "data" / "geojson").mkdir(parents=True)
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def make_workbook() -> Callable[[Path, dict[str, list[list[Any]]]], Path]:
    def _make(path: Path, sheets: dict[str, list[list[Any]]]) -> Path:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return path
    return _make


@pytest.fixture()
def census_workbook(temp_workdir: Path, make_workbook) -> Path:
    return make_workbook(
        temp_workdir / "data" / "excel" / "dados_censo_escolar.xlsx",
        {AGGREGATES_SHEET: AGGREGATES_ROWS, SCHOOLS_SHEET: SCHOOLS_ROWS},
    )


@pytest.fixture()
def boundaries_file(temp_workdir: Path) -> Path:
    p = temp_workdir / "data" / "geojson" / "maranhao_municipios.geojson"
    p.write_text(json.dumps(BOUNDARIES, ensure_ascii=False), encoding="utf-8")
    return p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """workbook: data/excel/dados_censo_escolar.xlsx
boundaries: data/geojson/maranhao_municipios.geojson
sheets:
  aggregates: Dados Gerais
  schools: "Análise - Tabela da lista"
matching:
  coverage_threshold: 50
  name_mode: exact
fetch:
  timeout: 10
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "dashboard.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


class CountingFetcher(Fetcher):
    """Filesystem fetcher that records every fetched path."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def fetch(self, path: str) -> FetchResponse:
        self.calls.append(path)
        return super().fetch(path)


class StaticFetcher(Fetcher):
    """Fetcher serving canned responses keyed by path."""

    def __init__(self, responses: dict[str, FetchResponse]) -> None:
        super().__init__()
        self.responses = responses
        self.calls: list[str] = []

    def fetch(self, path: str) -> FetchResponse:
        self.calls.append(path)
        return self.responses[path]


@pytest.fixture()
def counting_fetcher() -> CountingFetcher:
    return CountingFetcher()
