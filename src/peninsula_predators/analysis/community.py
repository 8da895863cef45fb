"""Community matrices: long survey records -> stations x taxa tables.

Pure pandas/numpy/scipy helpers shared by clustering, indicator analysis and
ordination. No I/O.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist

from peninsula_predators.errors import DegenerateInputWarning

if TYPE_CHECKING:
    from collections.abc import Sequence

TRANSFORMS = ("none", "sqrt", "fourth_root", "log10p1", "presence", "hellinger")


def community_matrix(
    records: pd.DataFrame,
    row: str,
    column: str,
    value: str,
    index: Sequence[str] | pd.Index | None = None,
) -> pd.DataFrame:
    """Pivot long records into a wide abundance matrix.

    Args:
        records: Long table, e.g. sightings with station_id/species/count.
        row: Column that becomes the row index (stations).
        column: Column that becomes the columns (species or taxa).
        value: Column holding abundances; duplicates are summed.
        index: Optional full set of rows. Rows without records become zeros
            and rows not listed are dropped.

    Returns:
        DataFrame of floats, rows sorted as ``index`` (or alphabetically),
        columns sorted alphabetically.
    """
    matrix = records.pivot_table(
        index=row, columns=column, values=value, aggfunc="sum", fill_value=0
    ).astype(float)
    matrix.columns.name = None
    if index is not None:
        matrix = matrix.reindex(pd.Index(index, name=row), fill_value=0.0)
    matrix.index.name = row
    return matrix.sort_index(axis=1)


def transform(matrix: pd.DataFrame, method: str) -> pd.DataFrame:
    """Apply a standard community-ecology transformation.

    ``log10p1`` is log10(x + 1); ``hellinger`` is sqrt of row proportions
    (all-zero rows stay zero).
    """
    values = matrix.to_numpy(dtype=float)
    if method == "none":
        out = values.copy()
    elif method == "sqrt":
        out = np.sqrt(values)
    elif method == "fourth_root":
        out = np.power(values, 0.25)
    elif method == "log10p1":
        out = np.log10(values + 1.0)
    elif method == "presence":
        out = (values > 0).astype(float)
    elif method == "hellinger":
        totals = values.sum(axis=1, keepdims=True)
        with np.errstate(invalid="ignore", divide="ignore"):
            out = np.sqrt(np.where(totals > 0, values / totals, 0.0))
    else:
        msg = f"Unknown transform {method!r}; expected one of {TRANSFORMS}"
        raise ValueError(msg)
    return pd.DataFrame(out, index=matrix.index, columns=matrix.columns)


def filter_rare(matrix: pd.DataFrame, min_stations: int) -> pd.DataFrame:
    """Drop taxa recorded at fewer than ``min_stations`` stations."""
    occurrences = (matrix > 0).sum(axis=0)
    return matrix.loc[:, occurrences >= min_stations]


def drop_empty_rows(matrix: pd.DataFrame, context: str = "community matrix") -> pd.DataFrame:
    """Remove all-zero rows, which have undefined Bray-Curtis dissimilarity."""
    empty = matrix.sum(axis=1) <= 0
    n_empty = int(empty.sum())
    if n_empty:
        warnings.warn(
            f"{context}: dropped {n_empty} of {len(matrix)} stations with no records",
            DegenerateInputWarning,
            stacklevel=2,
        )
    return matrix.loc[~empty]


def dissimilarity(matrix: pd.DataFrame | np.ndarray, metric: str = "braycurtis") -> np.ndarray:
    """Condensed pairwise dissimilarity vector (``scipy.spatial.distance.pdist``)."""
    values = matrix.to_numpy(dtype=float) if isinstance(matrix, pd.DataFrame) else matrix
    if len(values) < 2:
        return np.empty(0)
    if metric == "jaccard":
        return pdist(values > 0, metric="jaccard")
    return pdist(values, metric=metric)
