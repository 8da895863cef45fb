"""Tests for survey table retrieval and validation."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from peninsula_predators.datasources.survey import (
    load_sightings,
    load_stations,
    load_zooplankton,
    read_survey_table,
    table_location,
)
from peninsula_predators.errors import SurveyDataError
from peninsula_predators.reference.species import species_group, species_label
from peninsula_predators.reference.survey import COVARIATE_COLUMNS

# =============================================================================
# Client
# =============================================================================


class TestTableLocation:
    def test_url_source(self) -> None:
        assert (
            table_location("stations", "https://data.example.org/amlr/")
            == "https://data.example.org/amlr/stations.csv"
        )

    def test_directory_source(self, tmp_path: Path) -> None:
        assert table_location("sightings", str(tmp_path)) == str(tmp_path / "sightings.csv")


class TestReadSurveyTable:
    def test_reads_local_csv(self, survey_dir: Path) -> None:
        df = read_survey_table("stations", str(survey_dir))
        assert len(df) == 37
        assert df["station_id"].iloc[0] == "S000"

    def test_keeps_leading_zeros_in_keys(self, tmp_path: Path) -> None:
        (tmp_path / "sightings.csv").write_text("station_id,species,count\n0101,ADPE,3\n")
        df = read_survey_table("sightings", str(tmp_path))
        assert df["station_id"].iloc[0] == "0101"

    def test_missing_local_table(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="zooplankton"):
            read_survey_table("zooplankton", str(tmp_path))

    @patch("peninsula_predators.datasources.survey.client.session")
    def test_reads_from_url(self, mock_session: MagicMock) -> None:
        mock_resp = MagicMock()
        mock_resp.text = "station_id,taxon,abundance\nA1,Salpa thompsoni,12.5\n"
        mock_session.get.return_value = mock_resp

        df = read_survey_table("zooplankton", "https://data.example.org/amlr")

        mock_session.get.assert_called_once_with("https://data.example.org/amlr/zooplankton.csv")
        mock_resp.raise_for_status.assert_called_once()
        assert df["abundance"].iloc[0] == 12.5

    @patch("peninsula_predators.datasources.survey.client.session")
    def test_http_error_propagates(self, mock_session: MagicMock) -> None:
        mock_resp = MagicMock()
        mock_resp.raise_for_status.side_effect = requests.HTTPError("404")
        mock_session.get.return_value = mock_resp

        with pytest.raises(requests.HTTPError):
            read_survey_table("stations", "https://data.example.org/amlr")


# =============================================================================
# Loaders
# =============================================================================


def _stations(**overrides: list) -> pd.DataFrame:
    data = {
        "station_id": ["A1", "A2", "A3"],
        "cruise": ["AMLR2012", "AMLR2011", "AMLR2011"],
        "year": [2012, 2011, 2011],
        "latitude": [-61.5, -62.0, -62.1],
        "longitude": [-55.0, -58.0, -58.2],
    }
    data.update(overrides)
    return pd.DataFrame(data)


class TestLoadStations:
    def test_indexed_and_sorted(self) -> None:
        stations = load_stations(_stations())
        assert stations.index.name == "station_id"
        assert list(stations.index) == ["A2", "A3", "A1"]

    def test_adds_missing_covariates_as_nan(self) -> None:
        stations = load_stations(_stations())
        for col in COVARIATE_COLUMNS:
            assert col in stations.columns
            assert stations[col].isna().all()

    def test_keeps_missing_covariate_values(self) -> None:
        stations = load_stations(_stations(ice_coverage=[10.0, None, 30.0]))
        assert stations.loc["A1", "ice_coverage"] == 10.0
        assert pd.isna(stations.loc["A2", "ice_coverage"])

    def test_fixture_survey(self, survey_tables: dict[str, pd.DataFrame]) -> None:
        stations = load_stations(survey_tables["stations"])
        assert len(stations) == 37
        assert pd.api.types.is_datetime64_any_dtype(stations["date"])

    def test_missing_column(self) -> None:
        with pytest.raises(SurveyDataError, match="latitude"):
            load_stations(_stations().drop(columns=["latitude"]))

    def test_duplicate_station(self) -> None:
        with pytest.raises(SurveyDataError, match="duplicated"):
            load_stations(_stations(station_id=["A1", "A1", "A3"]))

    def test_missing_key(self) -> None:
        with pytest.raises(SurveyDataError, match="missing station_id"):
            load_stations(_stations(station_id=["A1", None, "A3"]))

    def test_out_of_range_value(self) -> None:
        with pytest.raises(SurveyDataError, match="latitude"):
            load_stations(_stations(latitude=[-61.5, -95.0, -62.1]))

    def test_ice_coverage_is_a_percentage(self) -> None:
        with pytest.raises(SurveyDataError, match="ice_coverage"):
            load_stations(_stations(ice_coverage=[10.0, 150.0, 30.0]))


class TestLoadSightings:
    def test_sums_duplicate_rows_and_uppercases(self) -> None:
        stations = load_stations(_stations())
        raw = pd.DataFrame(
            {
                "station_id": ["A1", "A1", "A2"],
                "species": ["adpe", "ADPE", "CAPE"],
                "count": [2, 3, 1],
            }
        )
        sightings = load_sightings(raw, stations)
        assert len(sightings) == 2
        row = sightings[sightings["species"] == "ADPE"].iloc[0]
        assert row["count"] == 5

    def test_unknown_station(self) -> None:
        stations = load_stations(_stations())
        raw = pd.DataFrame({"station_id": ["ZZ"], "species": ["ADPE"], "count": [1]})
        with pytest.raises(SurveyDataError, match="unknown station_id"):
            load_sightings(raw, stations)

    def test_negative_count(self) -> None:
        stations = load_stations(_stations())
        raw = pd.DataFrame({"station_id": ["A1"], "species": ["ADPE"], "count": [-1]})
        with pytest.raises(SurveyDataError, match="count"):
            load_sightings(raw, stations)


class TestLoadZooplankton:
    def test_fixture_survey(self, survey_tables: dict[str, pd.DataFrame]) -> None:
        stations = load_stations(survey_tables["stations"])
        tows = load_zooplankton(survey_tables["zooplankton"], stations)
        assert tows["station_id"].nunique() == 36
        assert set(tows.columns) == {"station_id", "taxon", "abundance"}

    def test_missing_taxon(self) -> None:
        stations = load_stations(_stations())
        raw = pd.DataFrame({"station_id": ["A1"], "taxon": [" "], "abundance": [1.0]})
        with pytest.raises(SurveyDataError, match="missing taxon"):
            load_zooplankton(raw, stations)


class TestSpeciesReference:
    def test_known_code(self) -> None:
        assert species_label("adpe") == "Adelie penguin"
        assert species_group("HUWH") == "cetacean"

    def test_unknown_code_falls_back(self) -> None:
        assert species_label("XXXX") == "XXXX"
        assert species_group("XXXX") == "unknown"
