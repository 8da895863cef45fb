"""Indicator species analysis (IndVal.g, De Cáceres & Legendre 2009).

For taxon j and group k:

    A_kj = mean abundance in k / sum over groups of mean abundance   (specificity)
    B_kj = fraction of stations in k where j is present               (fidelity)
    IndVal_kj = sqrt(A_kj * B_kj)

Each taxon is assigned to the group with its largest IndVal; significance
comes from permuting the group labels and comparing the permuted maximum
IndVal with the observed one.
"""

from __future__ import annotations

import warnings

import numpy as np
import pandas as pd

from peninsula_predators.errors import DegenerateInputWarning

INDICATOR_COLUMNS = ["taxon", "group", "specificity", "fidelity", "indval", "p_value"]


def _align(matrix: pd.DataFrame, groups: pd.Series) -> tuple[pd.DataFrame, pd.Series]:
    common = matrix.index.intersection(groups.index)
    return matrix.loc[common], groups.loc[common]


def _indval_components(
    values: np.ndarray, labels: np.ndarray, group_ids: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Return (A, B) arrays of shape (n_groups, n_taxa)."""
    membership = (labels[:, None] == group_ids[None, :]).astype(float)
    sizes = membership.sum(axis=0)[:, None]
    means = membership.T @ values / sizes
    totals = means.sum(axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        specificity = np.where(totals > 0, means / totals, 0.0)
    fidelity = membership.T @ (values > 0).astype(float) / sizes
    return specificity, fidelity


def indicator_values(matrix: pd.DataFrame, groups: pd.Series) -> pd.DataFrame:
    """IndVal.g components for every taxon x group pair.

    Returns:
        Long DataFrame with columns taxon, group, specificity, fidelity, indval.
    """
    matrix, groups = _align(matrix, groups)
    group_ids = np.sort(groups.unique())
    specificity, fidelity = _indval_components(
        matrix.to_numpy(dtype=float), groups.to_numpy(), group_ids
    )
    indval = np.sqrt(specificity * fidelity)

    rows = [
        {
            "taxon": taxon,
            "group": int(group_ids[g]),
            "specificity": float(specificity[g, j]),
            "fidelity": float(fidelity[g, j]),
            "indval": float(indval[g, j]),
        }
        for j, taxon in enumerate(matrix.columns)
        for g in range(len(group_ids))
    ]
    return pd.DataFrame(rows, columns=INDICATOR_COLUMNS[:-1])


def indicator_species(
    matrix: pd.DataFrame,
    groups: pd.Series,
    n_permutations: int = 999,
    seed: int = 42,
) -> pd.DataFrame:
    """Best group and permutation p-value for every taxon.

    Args:
        matrix: Stations x taxa abundances (untransformed counts are fine).
        groups: Group label per station; only stations present in both
            ``matrix`` and ``groups`` are used.
        n_permutations: Number of label permutations; 0 skips the test.
        seed: Seed for the permutations.

    Returns:
        DataFrame with INDICATOR_COLUMNS, sorted by group then descending IndVal.
        Taxa never recorded on the aligned stations are omitted.
    """
    matrix, groups = _align(matrix, groups)
    matrix = matrix.loc[:, matrix.sum(axis=0) > 0]
    group_ids = np.sort(groups.unique())
    if len(group_ids) < 2 or matrix.shape[1] == 0:
        warnings.warn(
            f"Indicator analysis needs at least 2 groups and 1 taxon "
            f"(got {len(group_ids)} groups, {matrix.shape[1]} taxa)",
            DegenerateInputWarning,
            stacklevel=2,
        )
        return pd.DataFrame(columns=INDICATOR_COLUMNS)

    values = matrix.to_numpy(dtype=float)
    labels = groups.to_numpy()

    specificity, fidelity = _indval_components(values, labels, group_ids)
    indval = np.sqrt(specificity * fidelity)
    best = indval.argmax(axis=0)
    observed = indval.max(axis=0)

    p_values = np.full(len(observed), np.nan)
    if n_permutations > 0:
        rng = np.random.default_rng(seed)
        exceed = np.zeros(len(observed))
        for _ in range(n_permutations):
            a, b = _indval_components(values, rng.permutation(labels), group_ids)
            exceed += np.sqrt(a * b).max(axis=0) >= observed - 1e-12
        p_values = (exceed + 1) / (n_permutations + 1)

    taxa = np.arange(len(observed))
    result = pd.DataFrame(
        {
            "taxon": matrix.columns,
            "group": group_ids[best].astype(int),
            "specificity": specificity[best, taxa],
            "fidelity": fidelity[best, taxa],
            "indval": observed,
            "p_value": p_values,
        }
    )
    return result.sort_values(["group", "indval"], ascending=[True, False]).reset_index(drop=True)
