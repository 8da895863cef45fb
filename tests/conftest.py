"""Shared fixtures: a small synthetic survey with three zooplankton regimes.

Stations S000-S035 alternate between krill-, salp- and copepod-dominated
tows (replicate tows within a regime share one profile), three years of
twelve stations each. Predators follow the regime with Poisson noise.
S036 has sightings but no net tow; S035 has a tow but no sightings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pytest

from peninsula_predators.config import Settings

REGIMES = ("krill", "salp", "copepod")

ZOOPLANKTON_PROFILES: dict[str, dict[str, float]] = {
    "krill": {"Euphausia superba": 1200.0, "Thysanoessa macrura": 40.0, "Salpa thompsoni": 2.0},
    "salp": {"Salpa thompsoni": 900.0, "Themisto gaudichaudii": 15.0, "Euphausia superba": 3.0},
    "copepod": {
        "Calanoides acutus": 600.0,
        "Metridia gerlachei": 250.0,
        "Thysanoessa macrura": 5.0,
    },
}

PREDATOR_MEANS: dict[str, dict[str, float]] = {
    "krill": {"ADPE": 12.0, "CHPE": 8.0, "CAPE": 2.0},
    "salp": {"CAPE": 6.0, "SOFU": 5.0, "BBAL": 1.0},
    "copepod": {"WISP": 7.0, "ANPR": 4.0, "SOFU": 1.0},
}

# (ice_coverage, temperature) means per regime
COVARIATE_MEANS: dict[str, tuple[float, float]] = {
    "krill": (40.0, -1.0),
    "salp": (0.0, 1.5),
    "copepod": (10.0, 0.5),
}

# Expected cluster labels: equal sizes, so labels follow first appearance.
REGIME_CLUSTERS = {"krill": 1, "salp": 2, "copepod": 3}

AREAS = ("EI", "WA", "SA", "JI")


def make_survey(seed: int = 7) -> dict[str, pd.DataFrame]:
    """Build raw stations/sightings/zooplankton tables as read from CSV."""
    rng = np.random.default_rng(seed)
    stations: list[dict[str, Any]] = []
    sightings: list[dict[str, Any]] = []
    tows: list[dict[str, Any]] = []

    for i in range(37):
        station_id = f"S{i:03d}"
        regime = REGIMES[i % 3]
        year = 2010 + min(i // 12, 2)
        ice, temp = COVARIATE_MEANS[regime]
        stations.append(
            {
                "station_id": station_id,
                "cruise": f"AMLR{year}",
                "year": year,
                "date": f"{year}-01-{10 + i % 15:02d}",
                "area": AREAS[i % 4],
                "latitude": -61.0 - rng.uniform(0, 2),
                "longitude": -56.0 - rng.uniform(0, 4),
                "ice_coverage": max(0.0, ice + rng.normal(0, 2)),
                "temperature": temp + rng.normal(0, 0.2),
                "salinity": 34.0 + rng.normal(0, 0.1),
                "chlorophyll": abs(0.5 + rng.normal(0, 0.2)),
            }
        )

        if i != 36:
            for taxon, abundance in ZOOPLANKTON_PROFILES[regime].items():
                tows.append({"station_id": station_id, "taxon": taxon, "abundance": abundance})

        if i != 35:
            for species, mean in PREDATOR_MEANS[regime].items():
                sightings.append(
                    {"station_id": station_id, "species": species, "count": int(rng.poisson(mean))}
                )

    # One rare species, below the default min_species_stations
    sightings.append({"station_id": "S000", "species": "KEGU", "count": 1})

    return {
        "stations": pd.DataFrame(stations),
        "sightings": pd.DataFrame(sightings),
        "zooplankton": pd.DataFrame(tows),
    }


def _fast_settings() -> Settings:
    """Settings with small bootstrap/permutation counts for fast tests."""
    return Settings(
        k_max=5,
        gap_bootstraps=20,
        n_permutations=99,
        nmds_n_init=4,
        nmds_max_iter=200,
    )


@pytest.fixture
def fast_settings() -> Settings:
    return _fast_settings()


@pytest.fixture
def expected_clusters() -> pd.Series:
    """True regime cluster label per station with a net tow."""
    labels = {f"S{i:03d}": REGIME_CLUSTERS[REGIMES[i % 3]] for i in range(36)}
    return pd.Series(labels, name="cluster").rename_axis("station_id")


@pytest.fixture
def survey_tables() -> dict[str, pd.DataFrame]:
    return make_survey()


@pytest.fixture
def pipeline_inputs(survey_tables: dict[str, pd.DataFrame]) -> dict[str, Any]:
    return {f"{name}_raw": df for name, df in survey_tables.items()} | (
        _fast_settings().analysis_params()
    )


@pytest.fixture
def survey_dir(tmp_path: Path, survey_tables: dict[str, pd.DataFrame]) -> Path:
    """Directory of survey CSVs, as published by the data repository."""
    source = tmp_path / "source"
    source.mkdir()
    for name, df in survey_tables.items():
        df.to_csv(source / f"{name}.csv", index=False)
    return source


@pytest.fixture(scope="session")
def pipeline_results() -> dict[str, Any]:
    """Full DAG output for the synthetic survey (computed once per session)."""
    from peninsula_predators.analysis.pipeline import run_pipeline

    inputs = {f"{name}_raw": df for name, df in make_survey().items()}
    return run_pipeline({**inputs, **_fast_settings().analysis_params()})
