from __future__ import annotations

import pytest

from censo_ma.excel.reader import SheetData
from censo_ma.geo.loader import GeoLoadResult
from censo_ma.matching.matcher import KeyIndex, MatchPolicy, check_compatibility
from censo_ma.models.diagnostic import DUPLICATE_CODE, DUPLICATE_NAME
from censo_ma.models.match_key import MatchKey, UnmatchedEntry
from conftest import BOUNDARIES, feature, feature_collection


def test_code_match_name_match_and_miss():
    aggregates = [
        {"CD_MUN": 2100055, "Municípios": "Nome Errado"},  # code
        {"CD_MUN": "", "Municípios": "Bacabal"},  # name
        {"CD_MUN": 9999999, "Municípios": "Lugar Nenhum"},  # neither
    ]
    geo = feature_collection(feature("2100055", "Açailândia"), feature("2101202", "Bacabal"))
    report = check_compatibility(aggregates, geo)
    assert report.matched == 2
    assert report.unmatched == [UnmatchedEntry(name="Lugar Nenhum", code=9999999)]
    assert report.missing == []
    assert report.total_excel == 3
    assert report.total_geojson == 2


def test_missing_lists_features_without_data():
    aggregates = [{"CD_MUN": 2100055, "Municípios": "Açailândia"}]
    report = check_compatibility(aggregates, BOUNDARIES)
    assert report.matched == 1
    assert [m.name for m in report.missing] == ["Bacabal", "Caxias", "Imperatriz"]
    assert report.missing[0] == UnmatchedEntry(name="Bacabal", code="2101202")


def _records(matched: int, total: int) -> tuple[list[dict], dict]:
    records = [{"CD_MUN": 2100000 + i, "Municípios": f"M{i}"} for i in range(total)]
    geo = feature_collection(*[feature(2100000 + i, f"M{i}") for i in range(matched)])
    return records, geo


def test_coverage_above_threshold_is_valid():
    records, geo = _records(60, 100)
    report = check_compatibility(records, geo)
    assert report.match_percentage_text == "60.0"
    assert report.is_valid is True
    assert report.message == "60/100 municípios encontrados (60.0%)"


def test_coverage_below_threshold_is_invalid():
    records, geo = _records(40, 100)
    report = check_compatibility(records, geo)
    assert report.match_percentage_text == "40.0"
    assert report.is_valid is False


def test_exactly_half_is_invalid():
    records, geo = _records(50, 100)
    assert check_compatibility(records, geo).is_valid is False


def test_threshold_comes_from_policy():
    records, geo = _records(40, 100)
    report = check_compatibility(records, geo, MatchPolicy(coverage_threshold=30.0))
    assert report.is_valid is True


def test_no_records_is_invalid():
    report = check_compatibility([], BOUNDARIES)
    assert report.match_percentage == 0.0
    assert report.is_valid is False
    assert len(report.missing) == 4


def test_accepts_loader_results():
    sheet = SheetData(source="x.xlsx", sheet_name="Dados Gerais", columns=[], rows=[{"CD_MUN": 2103000}])
    geo = GeoLoadResult(source="m.geojson", collection=BOUNDARIES)
    report = check_compatibility(sheet, geo)
    assert report.matched == 1


def test_summary_limits_unmatched_names():
    records = [{"CD_MUN": i, "Municípios": f"M{i}"} for i in range(8)] + [{"CD_MUN": 77}]
    report = check_compatibility(records, feature_collection(feature(0, "M0")))
    summary = report.summary()
    assert summary.unmatched == ["M1", "M2", "M3", "M4", "M5"]
    assert summary.matched == 1
    assert summary.match_percentage == "11.1"
    assert report.summary(limit=20).unmatched[-1] == 77


def test_lookup_both_directions():
    aggregates = [
        {"CD_MUN": 2100055, "Municípios": "Açailândia", "Municipal": 80},
        {"CD_MUN": "", "Municípios": "Caxias", "Municipal": 150},
    ]
    report = check_compatibility(aggregates, BOUNDARIES)
    lookup = report.lookup
    assert lookup is not None
    features = BOUNDARIES["features"]
    assert lookup.record_for_feature(features[0])["Municipal"] == 80
    assert lookup.record_for_feature(features[2])["Municipal"] == 150
    assert lookup.record_for_feature(features[3]) is None
    assert lookup.feature_for_record(aggregates[1]) is features[2]


def test_lookup_find_by_code_or_name():
    aggregates = [{"CD_MUN": 2100055, "Municípios": "Açailândia"}, {"CD_MUN": 2101202, "Municípios": "Bacabal"}]
    lookup = check_compatibility(aggregates, BOUNDARIES).lookup
    assert lookup.find("2101202") is aggregates[1]
    assert lookup.find(2100055) is aggregates[0]
    assert lookup.find("Bacabal") is aggregates[1]
    assert lookup.find("Imperatriz") is None


def test_code_link_wins_over_name_link():
    aggregates = [{"CD_MUN": 2101202, "Municípios": "Açailândia"}]
    lookup = check_compatibility(aggregates, BOUNDARIES).lookup
    assert lookup.feature_for_record(aggregates[0])["properties"]["NM_MUN"] == "Bacabal"


def test_duplicate_keys_keep_first_and_report():
    geo = feature_collection(
        feature("2100055", "Açailândia"),
        feature("2100055", "Açailândia (duplicada)"),
        feature("2101202", "Bacabal"),
        feature("2101203", "Bacabal"),
    )
    aggregates = [{"CD_MUN": 2100055, "Municípios": "Açailândia"}]
    report = check_compatibility(aggregates, geo)
    codes = [d.code for d in report.diagnostics]
    assert codes == [DUPLICATE_CODE, DUPLICATE_NAME]
    assert report.lookup.feature_for_record(aggregates[0]) is geo["features"][0]
    assert report.diagnostics[0].details == {"key": 2100055, "kept": 0, "ignored": 1}


def test_unaccent_mode_matches_names_without_diacritics():
    aggregates = [{"Municípios": "ACAILANDIA"}]
    policy = MatchPolicy(name_mode="unaccent")
    assert check_compatibility(aggregates, BOUNDARIES, policy).matched == 1
    assert check_compatibility(aggregates, BOUNDARIES).matched == 0


def test_policy_rejects_unknown_name_mode():
    with pytest.raises(ValueError):
        MatchPolicy(name_mode="soundex")


def test_key_index_find_prefers_code():
    index = KeyIndex([MatchKey(1, "A"), MatchKey(2, "B")], "t")
    assert index.find(MatchKey(2, "A")) == 1
    assert index.find(MatchKey(3, "A")) == 0
    assert index.find(MatchKey(None, None)) is None


def test_to_dict_keys():
    report = check_compatibility([{"CD_MUN": 1, "Municípios": "X"}], BOUNDARIES)
    data = report.to_dict()
    assert data["unmatched"] == [{"nome": "X", "cd_mun": 1}]
    assert data["missing"][0] == {"nome": "Açailândia", "cd_mun": "2100055"}
    assert data["matchPercentage"] == "0.0"
    assert data["isValid"] is False
