"""
Prefect flow for running the survey analysis.

Loads the cached survey tables, runs the Hamilton analysis DAG and stores the
results under derived/analysis/. Results are stamped with a fingerprint of
the raw tables, the analysis parameters and the package version; the flow
skips when the stored fingerprint still matches.

Run locally:
    python -m peninsula_predators.flows.analyze
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Any

import pandas as pd
from prefect import flow, task

from peninsula_predators import __version__
from peninsula_predators.analysis.pipeline import run_pipeline
from peninsula_predators.analysis.serialization import (
    chi_square_to_dict,
    clusters_to_records,
    frame_to_records,
    gap_to_dict,
    nmds_to_dict,
    permanova_to_dict,
)
from peninsula_predators.config import get_settings
from peninsula_predators.datasources.survey import KEY_COLUMN_DTYPES
from peninsula_predators.errors import DegenerateInputWarning
from peninsula_predators.flows.fetch import raw_path
from peninsula_predators.reference import SURVEY_TABLES, species_label
from peninsula_predators.store import DataStore

# Data store with tiered directories
store = DataStore(get_settings().data_dir)

SOURCE = "analysis-dag"
ANALYSIS_DIR = Path("derived/analysis")
RESULTS_PATH = ANALYSIS_DIR / "results.json"
CLUSTERS_PATH = ANALYSIS_DIR / "clusters.csv"
SCORES_PATH = ANALYSIS_DIR / "nmds_scores.csv"
ZOOPLANKTON_INDICATORS_PATH = ANALYSIS_DIR / "zooplankton_indicators.csv"
PREDATOR_INDICATORS_PATH = ANALYSIS_DIR / "predator_indicators.csv"


def input_fingerprint(params: dict[str, Any]) -> str:
    """Fingerprint of everything the analysis results depend on."""
    return store.fingerprint(
        [raw_path(name) for name in SURVEY_TABLES], version=__version__, **params
    )


# =============================================================================
# Tasks
# =============================================================================


@task(name="load-survey-tables")
def load_raw_tables() -> dict[str, pd.DataFrame] | None:
    """Load the cached raw tables as DAG inputs, or None if any is missing."""
    tables: dict[str, pd.DataFrame] = {}
    for name in SURVEY_TABLES:
        df = store.read_table(raw_path(name), dtype=KEY_COLUMN_DTYPES)
        if df is None:
            return None
        tables[f"{name}_raw"] = df
    return tables


@task(name="run-analysis")
def run_analysis(tables: dict[str, pd.DataFrame], params: dict[str, Any]) -> dict[str, Any]:
    """Execute the analysis DAG and collect degenerate-input warnings."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        results = run_pipeline({**tables, **params})

    notes = []
    for w in caught:
        print(f"Warning: {w.message}")
        if issubclass(w.category, DegenerateInputWarning):
            notes.append(str(w.message))
    results["warnings"] = notes
    return results


def results_payload(results: dict[str, Any], params: dict[str, Any]) -> dict[str, Any]:
    """JSON document consumed by the report renderers."""
    clusters: pd.Series = results["zooplankton_clusters"]
    sizes = clusters.value_counts().sort_index()

    predator_indicators = results["predator_indicators"].copy()
    predator_indicators.insert(1, "label", predator_indicators["taxon"].map(species_label))

    return {
        "parameters": params,
        "version": __version__,
        "warnings": results.get("warnings", []),
        "summary": results["survey_summary"],
        "gap": gap_to_dict(results["zooplankton_gap"]),
        "clusters": {
            "sizes": [{"cluster": int(c), "stations": int(n)} for c, n in sizes.items()],
            "assignments": clusters_to_records(clusters),
        },
        "zooplankton_indicators": frame_to_records(results["zooplankton_indicators"]),
        "predator_indicators": frame_to_records(predator_indicators),
        "ordination": nmds_to_dict(results["predator_nmds"], clusters),
        "environmental_fit": frame_to_records(results["environmental_fit"]),
        "permanova": permanova_to_dict(results["predator_permanova"]),
        "cluster_year_test": chi_square_to_dict(results["cluster_year_test"]),
        "cluster_area_test": chi_square_to_dict(results["cluster_area_test"]),
        "covariate_summary": frame_to_records(results["covariate_summary"]),
        "covariate_tests": frame_to_records(results["covariate_tests"]),
    }


@task(name="save-analysis")
def save_analysis(results: dict[str, Any], params: dict[str, Any], fingerprint: str) -> Path:
    """Save result tables and the results document via store.

    ``results.json`` is written last, so an interrupted save leaves the
    analysis stale rather than half-current.
    """
    clusters: pd.Series = results["zooplankton_clusters"]
    store.write_table(
        CLUSTERS_PATH,
        pd.DataFrame(clusters_to_records(clusters), columns=["station_id", "cluster"]),
        source=SOURCE,
        fingerprint=fingerprint,
    )

    scores = results["predator_nmds"].scores.join(clusters, how="left")
    scores["cluster"] = scores["cluster"].astype("Int64")
    store.write_table(SCORES_PATH, scores, source=SOURCE, index=True, fingerprint=fingerprint)

    store.write_table(
        ZOOPLANKTON_INDICATORS_PATH,
        results["zooplankton_indicators"],
        source=SOURCE,
        fingerprint=fingerprint,
    )
    store.write_table(
        PREDATOR_INDICATORS_PATH,
        results["predator_indicators"],
        source=SOURCE,
        fingerprint=fingerprint,
    )

    return store.write(
        RESULTS_PATH, results_payload(results, params), source=SOURCE, fingerprint=fingerprint
    )


# =============================================================================
# Flow
# =============================================================================


@flow(name="analyze-survey", log_prints=True)
def analyze_all(force: bool = False) -> dict[str, Any]:
    """
    Run the analysis DAG over the cached survey tables.

    Skips when ``results.json`` was built from the same raw data, parameters
    and package version, unless ``force`` is set.
    """
    print("Loading survey tables...")
    tables = load_raw_tables()
    if tables is None:
        print("No survey data found. Run fetch flow first.")
        return {"error": "no data"}

    params = get_settings().analysis_params()
    fingerprint = input_fingerprint(params)
    if store.is_current(RESULTS_PATH, fingerprint) and not force:
        print("Analysis results are current, skipping.")
        return {"skipped": True, "fingerprint": fingerprint}

    print("Running analysis DAG...")
    results = run_analysis(tables, params)

    print("Saving results...")
    output_path = save_analysis(results, params, fingerprint)

    gap = results["zooplankton_gap"]
    print(f"Analysis complete: {gap.selected_k} zooplankton clusters, results in {output_path}")
    return {
        "skipped": False,
        "fingerprint": fingerprint,
        "stations": results["survey_summary"]["n_stations"],
        "clusters": gap.selected_k,
        "warnings": len(results["warnings"]),
        "output": str(output_path),
    }


if __name__ == "__main__":
    result = analyze_all()
    print(f"Flow complete: {result}")
