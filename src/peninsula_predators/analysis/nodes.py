"""Analysis DAG nodes.

Every public function here is a Hamilton node: its name is the output and
its parameter names are the nodes (or driver inputs) it depends on. External
inputs are the three raw survey tables plus ``Settings.analysis_params()``.

Helpers are private (leading underscore) and library calls go through module
attributes so that only the functions below become nodes.

Annotations must be real runtime types (no ``from __future__ import
annotations``); Hamilton reads them when building the graph.
"""

from typing import Any

import pandas as pd

from peninsula_predators.analysis import (
    clustering,
    community,
    environment,
    hypothesis,
    indicators,
    ordination,
)
from peninsula_predators.analysis.clustering import GapResult
from peninsula_predators.analysis.hypothesis import ChiSquareResult, PermanovaResult
from peninsula_predators.analysis.ordination import NMDSResult
from peninsula_predators.datasources.survey import loaders
from peninsula_predators.reference import COVARIATE_COLUMNS, species_label
from peninsula_predators.reference.species import species_group

# =============================================================================
# Validated tables
# =============================================================================


def stations(stations_raw: pd.DataFrame) -> pd.DataFrame:
    """Validated stations indexed by station_id."""
    return loaders.load_stations(stations_raw)


def sightings(sightings_raw: pd.DataFrame, stations: pd.DataFrame) -> pd.DataFrame:
    """Validated predator counts (one row per station x species)."""
    return loaders.load_sightings(sightings_raw, stations)


def zooplankton(zooplankton_raw: pd.DataFrame, stations: pd.DataFrame) -> pd.DataFrame:
    """Validated zooplankton abundances (one row per station x taxon)."""
    return loaders.load_zooplankton(zooplankton_raw, stations)


# =============================================================================
# Zooplankton clusters
# =============================================================================


def zooplankton_matrix(zooplankton: pd.DataFrame, stations: pd.DataFrame) -> pd.DataFrame:
    """Stations x taxa abundances for stations with a net tow, in station order."""
    towed = set(zooplankton["station_id"])
    index = [station for station in stations.index if station in towed]
    matrix = community.community_matrix(
        zooplankton, "station_id", "taxon", "abundance", index=index
    )
    return community.drop_empty_rows(matrix, "zooplankton matrix")


def zooplankton_transformed(
    zooplankton_matrix: pd.DataFrame, zooplankton_transform: str
) -> pd.DataFrame:
    return community.transform(zooplankton_matrix, zooplankton_transform)


def zooplankton_gap(
    zooplankton_transformed: pd.DataFrame,
    k_max: int,
    gap_bootstraps: int,
    gap_method: str,
    gap_space: str,
    linkage_method: str,
    distance_metric: str,
    random_seed: int,
) -> GapResult:
    """Gap statistic over k = 1..k_max for the zooplankton tree."""
    return clustering.gap_statistic(
        zooplankton_transformed,
        k_max=k_max,
        n_bootstraps=gap_bootstraps,
        method=linkage_method,
        metric=distance_metric,
        space=gap_space,
        rule=gap_method,
        seed=random_seed,
    )


def zooplankton_clusters(
    zooplankton_transformed: pd.DataFrame,
    zooplankton_gap: GapResult,
    linkage_method: str,
    distance_metric: str,
) -> pd.Series:
    """Station cluster labels cut at the selected k."""
    return clustering.assign_clusters(
        zooplankton_transformed,
        zooplankton_gap.selected_k,
        method=linkage_method,
        metric=distance_metric,
    )


def zooplankton_indicators(
    zooplankton_matrix: pd.DataFrame,
    zooplankton_clusters: pd.Series,
    n_permutations: int,
    random_seed: int,
) -> pd.DataFrame:
    """Indicator taxa of each zooplankton cluster."""
    return indicators.indicator_species(
        zooplankton_matrix, zooplankton_clusters, n_permutations, random_seed
    )


# =============================================================================
# Predator community
# =============================================================================


def predator_matrix(
    sightings: pd.DataFrame, stations: pd.DataFrame, min_species_stations: int
) -> pd.DataFrame:
    """Stations x species counts; stations without sightings are zero rows."""
    matrix = community.community_matrix(
        sightings, "station_id", "species", "count", index=stations.index
    )
    return community.filter_rare(matrix, min_species_stations)


def predator_transformed(predator_matrix: pd.DataFrame, predator_transform: str) -> pd.DataFrame:
    return community.transform(predator_matrix, predator_transform)


def predator_indicators(
    predator_matrix: pd.DataFrame,
    zooplankton_clusters: pd.Series,
    n_permutations: int,
    random_seed: int,
) -> pd.DataFrame:
    """Predator species characteristic of each zooplankton cluster."""
    return indicators.indicator_species(
        predator_matrix, zooplankton_clusters, n_permutations, random_seed
    )


def predator_nmds(
    predator_transformed: pd.DataFrame,
    nmds_dimensions: int,
    nmds_n_init: int,
    nmds_max_iter: int,
    distance_metric: str,
    random_seed: int,
) -> NMDSResult:
    return ordination.nmds(
        predator_transformed,
        n_components=nmds_dimensions,
        n_init=nmds_n_init,
        max_iter=nmds_max_iter,
        seed=random_seed,
        metric=distance_metric,
    )


def environmental_fit(
    predator_nmds: NMDSResult,
    stations: pd.DataFrame,
    n_permutations: int,
    random_seed: int,
) -> pd.DataFrame:
    """Covariate vectors fitted onto the predator ordination."""
    covariates = stations.reindex(columns=list(COVARIATE_COLUMNS))
    return ordination.envfit(predator_nmds.scores, covariates, n_permutations, random_seed)


def predator_permanova(
    predator_transformed: pd.DataFrame,
    zooplankton_clusters: pd.Series,
    distance_metric: str,
    n_permutations: int,
    random_seed: int,
) -> PermanovaResult:
    """Does predator composition differ among zooplankton clusters?"""
    common = predator_transformed.index.intersection(zooplankton_clusters.index)
    matrix = community.drop_empty_rows(predator_transformed.loc[common], "PERMANOVA")
    return hypothesis.permanova(
        community.dissimilarity(matrix, distance_metric),
        zooplankton_clusters.loc[matrix.index],
        n_permutations,
        random_seed,
    )


# =============================================================================
# Cluster associations
# =============================================================================


def cluster_year_test(
    zooplankton_clusters: pd.Series,
    stations: pd.DataFrame,
    n_permutations: int,
    random_seed: int,
) -> ChiSquareResult:
    return hypothesis.chi_square_test(
        zooplankton_clusters, stations["year"], n_permutations, random_seed
    )


def cluster_area_test(
    zooplankton_clusters: pd.Series,
    stations: pd.DataFrame,
    n_permutations: int,
    random_seed: int,
) -> ChiSquareResult:
    return hypothesis.chi_square_test(
        zooplankton_clusters, stations["area"], n_permutations, random_seed
    )


def covariate_summary(stations: pd.DataFrame, zooplankton_clusters: pd.Series) -> pd.DataFrame:
    return environment.covariate_summary(stations, zooplankton_clusters)


def covariate_tests(stations: pd.DataFrame, zooplankton_clusters: pd.Series) -> pd.DataFrame:
    return environment.covariate_tests(stations, zooplankton_clusters)


# =============================================================================
# Survey overview
# =============================================================================


def survey_summary(
    stations: pd.DataFrame, sightings: pd.DataFrame, zooplankton: pd.DataFrame
) -> dict[str, Any]:
    """Counts for the report front page."""
    per_year = stations.groupby("year").size()
    totals = sightings.groupby("species")["count"].agg(["sum", "size"])
    totals = totals.sort_values("sum", ascending=False)

    return {
        "n_stations": len(stations),
        "n_cruises": int(stations["cruise"].nunique()),
        "years": [int(per_year.index.min()), int(per_year.index.max())] if len(per_year) else [],
        "stations_per_year": [
            {"year": int(year), "stations": int(n)} for year, n in per_year.items()
        ],
        "n_sightings": int(sightings["count"].sum()),
        "n_species": len(totals),
        "species_totals": [
            {
                "species": code,
                "label": species_label(code),
                "group": species_group(code),
                "count": int(row["sum"]),
                "stations": int(row["size"]),
            }
            for code, row in totals.iterrows()
        ],
        "n_tows": int(zooplankton["station_id"].nunique()),
        "n_taxa": int(zooplankton["taxon"].nunique()),
    }
