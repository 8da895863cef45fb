"""Environmental covariates by zooplankton cluster."""

from __future__ import annotations

import warnings

import numpy as np
import pandas as pd
from scipy.stats import kruskal

from peninsula_predators.errors import DegenerateInputWarning
from peninsula_predators.reference import COVARIATE_COLUMNS

SUMMARY_COLUMNS = ["covariate", "cluster", "n", "mean", "sd", "median"]
TEST_COLUMNS = ["covariate", "statistic", "p_value", "n", "n_groups"]


def _covariates(stations: pd.DataFrame, clusters: pd.Series) -> pd.DataFrame:
    common = stations.index.intersection(clusters.index)
    present = [c for c in COVARIATE_COLUMNS if c in stations.columns]
    frame = stations.loc[common, present].apply(pd.to_numeric, errors="coerce")
    frame["cluster"] = clusters.loc[common].astype(int)
    return frame


def covariate_summary(stations: pd.DataFrame, clusters: pd.Series) -> pd.DataFrame:
    """n, mean, sd and median of each covariate within each cluster.

    Missing values are omitted per covariate; a cluster with no values for a
    covariate gets n=0 and NaN statistics.
    """
    frame = _covariates(stations, clusters)
    rows = []
    for covariate in frame.columns.drop("cluster"):
        for cluster, values in frame.groupby("cluster")[covariate]:
            values = values.dropna()
            rows.append(
                {
                    "covariate": covariate,
                    "cluster": int(cluster),
                    "n": len(values),
                    "mean": values.mean() if len(values) else np.nan,
                    "sd": values.std(ddof=1) if len(values) > 1 else np.nan,
                    "median": values.median() if len(values) else np.nan,
                }
            )
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def covariate_tests(stations: pd.DataFrame, clusters: pd.Series) -> pd.DataFrame:
    """Kruskal-Wallis test of each covariate across clusters."""
    frame = _covariates(stations, clusters)
    rows = []
    for covariate in frame.columns.drop("cluster"):
        samples = [
            values.dropna().to_numpy()
            for _, values in frame.groupby("cluster")[covariate]
            if values.notna().any()
        ]
        n_obs = int(sum(len(s) for s in samples))
        row = {"covariate": covariate, "n": n_obs, "n_groups": len(samples)}

        pooled = np.concatenate(samples) if samples else np.array([])
        if len(samples) < 2 or np.unique(pooled).size < 2:
            warnings.warn(
                f"Kruskal-Wallis test of {covariate!r} needs two non-empty groups "
                f"with differing values",
                DegenerateInputWarning,
                stacklevel=2,
            )
            row.update({"statistic": np.nan, "p_value": np.nan})
        else:
            statistic, p_value = kruskal(*samples)
            row.update({"statistic": float(statistic), "p_value": float(p_value)})
        rows.append(row)
    return pd.DataFrame(rows, columns=TEST_COLUMNS)
