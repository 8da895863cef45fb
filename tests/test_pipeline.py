"""Tests for the Hamilton analysis DAG on the synthetic survey."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
import pytest

from peninsula_predators.analysis.pipeline import (
    DEFAULT_OUTPUTS,
    RAW_INPUTS,
    build_driver,
    run_pipeline,
)
from peninsula_predators.errors import DegenerateInputWarning, SurveyDataError


class TestDriver:
    def test_graph_has_all_outputs(self) -> None:
        names = {var.name for var in build_driver().list_available_variables()}
        assert set(DEFAULT_OUTPUTS) <= names
        assert set(RAW_INPUTS) <= names

    def test_helpers_are_not_nodes(self) -> None:
        names = {var.name for var in build_driver().list_available_variables()}
        assert "species_label" not in names
        assert "GapResult" not in names

    def test_missing_raw_input(self, pipeline_inputs: dict[str, Any]) -> None:
        del pipeline_inputs["zooplankton_raw"]
        with pytest.raises(ValueError, match="zooplankton_raw"):
            run_pipeline(pipeline_inputs)

    def test_partial_execution(self, pipeline_inputs: dict[str, Any]) -> None:
        results = run_pipeline(pipeline_inputs, final_vars=["predator_matrix"])
        assert set(results) == {"predator_matrix"}
        matrix = results["predator_matrix"]
        # KEGU is seen at one station only and is filtered out
        assert "KEGU" not in matrix.columns
        assert len(matrix) == 37

    def test_rare_predators_only(self, pipeline_inputs: dict[str, Any]) -> None:
        pipeline_inputs["sightings_raw"] = pd.DataFrame(
            {"station_id": ["S000", "S001"], "species": ["ADPE", "CHPE"], "count": [3, 2]}
        )

        with pytest.warns(DegenerateInputWarning, match="ordination skipped"):
            results = run_pipeline(pipeline_inputs)

        # the zooplankton side is unaffected
        assert results["zooplankton_gap"].selected_k == 3
        assert len(results["zooplankton_clusters"]) == 36
        ordination = results["predator_nmds"]
        assert ordination.scores.empty
        assert np.isnan(ordination.stress)
        assert results["environmental_fit"]["r2"].isna().all()
        assert np.isnan(results["predator_permanova"].pseudo_f)
        assert results["predator_indicators"].empty

    def test_invalid_table_raises(self, pipeline_inputs: dict[str, Any]) -> None:
        pipeline_inputs["sightings_raw"] = pipeline_inputs["sightings_raw"].assign(count=-1)
        with pytest.raises(SurveyDataError):
            run_pipeline(pipeline_inputs, final_vars=["sightings"])


class TestPipelineResults:
    """End-to-end outputs (shared session fixture)."""

    def test_default_outputs_present(self, pipeline_results: dict[str, Any]) -> None:
        assert set(pipeline_results) == set(DEFAULT_OUTPUTS)

    def test_gap_selects_three_regimes(self, pipeline_results: dict[str, Any]) -> None:
        gap = pipeline_results["zooplankton_gap"]
        assert gap.selected_k == 3
        assert gap.k == [1, 2, 3, 4, 5]

    def test_clusters_match_regimes(
        self, pipeline_results: dict[str, Any], expected_clusters: pd.Series
    ) -> None:
        clusters = pipeline_results["zooplankton_clusters"]
        # S036 has no net tow
        assert "S036" not in clusters.index
        pd.testing.assert_series_equal(
            clusters.sort_index(), expected_clusters.sort_index(), check_dtype=False
        )

    def test_krill_indicator(self, pipeline_results: dict[str, Any]) -> None:
        indicators = pipeline_results["zooplankton_indicators"].set_index("taxon")
        krill = indicators.loc["Euphausia superba"]
        assert krill["group"] == 1
        assert krill["p_value"] == pytest.approx(0.01)

    def test_predator_indicators(self, pipeline_results: dict[str, Any]) -> None:
        indicators = pipeline_results["predator_indicators"].set_index("taxon")
        assert indicators.loc["ADPE", "group"] == 1
        assert indicators.loc["WISP", "group"] == 3
        assert "KEGU" not in indicators.index

    def test_predator_ordination(self, pipeline_results: dict[str, Any]) -> None:
        result = pipeline_results["predator_nmds"]
        # S035 has no sightings
        assert "S035" not in result.scores.index
        assert result.n_stations == 36
        assert result.axes == ["NMDS1", "NMDS2"]

    def test_environmental_fit(self, pipeline_results: dict[str, Any]) -> None:
        fit = pipeline_results["environmental_fit"].set_index("covariate")
        assert list(fit.index) == ["ice_coverage", "temperature", "salinity", "chlorophyll"]
        assert fit.loc["ice_coverage", "r2"] > 0.5
        assert fit.loc["ice_coverage", "p_value"] == pytest.approx(0.01)

    def test_permanova(self, pipeline_results: dict[str, Any]) -> None:
        result = pipeline_results["predator_permanova"]
        assert result.n_groups == 3
        assert result.n == 35  # towed stations with sightings
        assert result.p_value < 0.05
        assert result.r2 > 0.5

    def test_balanced_year_design(self, pipeline_results: dict[str, Any]) -> None:
        test = pipeline_results["cluster_year_test"]
        assert test.statistic == pytest.approx(0.0, abs=1e-9)
        assert test.p_value == pytest.approx(1.0)
        assert test.n == 36

    def test_area_table(self, pipeline_results: dict[str, Any]) -> None:
        test = pipeline_results["cluster_area_test"]
        assert test.table.shape == (3, 4)
        assert test.min_expected < 5

    def test_covariates(self, pipeline_results: dict[str, Any]) -> None:
        tests = pipeline_results["covariate_tests"].set_index("covariate")
        assert tests.loc["ice_coverage", "p_value"] < 1e-4
        summary = pipeline_results["covariate_summary"]
        assert set(summary["cluster"]) == {1, 2, 3}

    def test_survey_summary(self, pipeline_results: dict[str, Any]) -> None:
        summary = pipeline_results["survey_summary"]
        assert summary["n_stations"] == 37
        assert summary["n_cruises"] == 3
        assert summary["years"] == [2010, 2012]
        assert summary["n_tows"] == 36
        assert summary["n_taxa"] == 6
        top = summary["species_totals"][0]
        assert top["species"] == "ADPE"
        assert top["group"] == "penguin"
        assert top["label"] == "Adelie penguin"
