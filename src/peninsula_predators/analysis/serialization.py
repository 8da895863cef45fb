"""JSON serialization helpers for analysis results."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import numpy as np

from peninsula_predators.schemas import ClusterAssignment, OrdinationScore

if TYPE_CHECKING:
    import pandas as pd

    from peninsula_predators.analysis.clustering import GapResult
    from peninsula_predators.analysis.hypothesis import ChiSquareResult, PermanovaResult
    from peninsula_predators.analysis.ordination import NMDSResult


def clean_value(value: Any, digits: int = 4) -> Any:
    """Convert numpy scalars to Python types, NaN/inf to None, round floats."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return round(value, digits)
    return value


def frame_to_records(df: pd.DataFrame, digits: int = 4) -> list[dict[str, Any]]:
    """Serialize a DataFrame to a list of JSON-compatible row dicts.

    Args:
        df: Table to serialize; the index is dropped.
        digits: Decimal places kept for floats.

    Returns:
        One dict per row with NaN replaced by None.
    """
    return [
        {str(key): clean_value(value, digits) for key, value in row.items()}
        for row in df.to_dict(orient="records")
    ]


def gap_to_dict(gap: GapResult) -> dict[str, Any]:
    """Serialize a GapResult to a JSON-compatible dict."""
    return {
        "selected_k": gap.selected_k,
        "rule": gap.rule,
        "space": gap.space,
        "n_bootstraps": gap.n_bootstraps,
        "notes": list(gap.notes),
        "table": [
            {
                "k": k,
                "log_w": clean_value(log_w),
                "expected_log_w": clean_value(expected),
                "gap": clean_value(gap_k),
                "se": clean_value(se),
            }
            for k, log_w, expected, gap_k, se in zip(
                gap.k, gap.log_w, gap.expected_log_w, gap.gap, gap.se, strict=True
            )
        ],
    }


def clusters_to_records(clusters: pd.Series) -> list[dict[str, Any]]:
    """Serialize station cluster labels, validated as ClusterAssignment."""
    return [
        ClusterAssignment(station_id=str(station), cluster=int(label)).model_dump()
        for station, label in clusters.items()
    ]


def scores_to_records(
    scores: pd.DataFrame, clusters: pd.Series | None = None
) -> list[dict[str, Any]]:
    """Serialize the first two NMDS axes per station, validated as OrdinationScore.

    Stations without a cluster label get ``cluster=None``.
    """
    records = []
    for station, row in scores.iterrows():
        label = clusters.get(station) if clusters is not None else None
        score = OrdinationScore(
            station_id=str(station),
            nmds1=round(float(row.iloc[0]), 4),
            nmds2=round(float(row.iloc[1]), 4),
            cluster=None if label is None else int(label),
        )
        records.append(score.model_dump())
    return records


def nmds_to_dict(result: NMDSResult, clusters: pd.Series | None = None) -> dict[str, Any]:
    """Serialize an NMDSResult (fit summary plus 2-D scores)."""
    return {
        "stress": clean_value(result.stress),
        "n_stations": result.n_stations,
        "n_taxa": result.n_taxa,
        "axes": result.axes,
        "scores": scores_to_records(result.scores, clusters),
    }


def permanova_to_dict(result: PermanovaResult) -> dict[str, Any]:
    """Serialize a PermanovaResult."""
    return {
        "pseudo_f": clean_value(result.pseudo_f),
        "r2": clean_value(result.r2),
        "df_between": result.df_between,
        "df_within": result.df_within,
        "p_value": clean_value(result.p_value),
        "n_permutations": result.n_permutations,
        "n": result.n,
        "n_groups": result.n_groups,
    }


def chi_square_to_dict(result: ChiSquareResult) -> dict[str, Any]:
    """Serialize a ChiSquareResult including its contingency table."""
    table = result.table
    return {
        "row_variable": table.index.name,
        "column_variable": table.columns.name,
        "rows": [clean_value(v) for v in table.index.tolist()],
        "columns": [clean_value(v) for v in table.columns.tolist()],
        "counts": table.to_numpy().astype(int).tolist(),
        "statistic": clean_value(result.statistic),
        "dof": result.dof,
        "p_value": clean_value(result.p_value),
        "permutation_p_value": clean_value(result.permutation_p_value),
        "min_expected": clean_value(result.min_expected),
        "n": result.n,
    }
