"""Permutation and chi-square tests used by the reports.

- ``permanova``: does predator community composition differ among zooplankton
  clusters? (Anderson 2001, pseudo-F on a dissimilarity matrix)
- ``chi_square_test``: are cluster memberships independent of year / area?
  Pearson chi-square with an optional Monte-Carlo permutation p-value for
  sparse tables.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.spatial.distance import squareform
from scipy.stats import chi2_contingency

from peninsula_predators.errors import DegenerateInputWarning

# Expected counts below this make the chi-square approximation unreliable
MIN_EXPECTED_COUNT = 5.0


@dataclass
class PermanovaResult:
    """One-way PERMANOVA summary."""

    pseudo_f: float
    r2: float
    df_between: int
    df_within: int
    p_value: float
    n_permutations: int
    n: int
    n_groups: int


@dataclass
class ChiSquareResult:
    """Pearson chi-square test of independence for two labelings."""

    table: pd.DataFrame
    statistic: float
    dof: int
    p_value: float
    permutation_p_value: float
    min_expected: float
    n: int


def _within_ss(d2: np.ndarray, labels: np.ndarray, group_ids: np.ndarray) -> float:
    total = 0.0
    for group in group_ids:
        members = labels == group
        size = int(members.sum())
        total += float(d2[np.ix_(members, members)].sum()) / (2 * size)
    return total


def permanova(
    distances: np.ndarray,
    groups: pd.Series | np.ndarray,
    n_permutations: int = 999,
    seed: int = 42,
) -> PermanovaResult:
    """One-way PERMANOVA on a condensed dissimilarity vector.

    Args:
        distances: Condensed dissimilarities (``scipy.spatial.distance.pdist`` order).
        groups: Group label per row, same order as the rows behind ``distances``.
        n_permutations: Number of label permutations; 0 gives a NaN p-value.
        seed: Seed for the permutations.
    """
    labels = np.asarray(groups)
    n = len(labels)
    group_ids = np.unique(labels)
    n_groups = len(group_ids)
    df_between, df_within = n_groups - 1, n - n_groups

    if n_groups < 2 or df_within < 1:
        warnings.warn(
            f"PERMANOVA needs at least 2 groups and more rows than groups "
            f"(got {n_groups} groups, {n} rows)",
            DegenerateInputWarning,
            stacklevel=2,
        )
        return PermanovaResult(
            np.nan, np.nan, df_between, df_within, np.nan, n_permutations, n, n_groups
        )

    d2 = squareform(distances) ** 2
    ss_total = float(d2[np.triu_indices(n, k=1)].sum()) / n

    def _pseudo_f(lab: np.ndarray) -> tuple[float, float]:
        ss_within = _within_ss(d2, lab, group_ids)
        ss_between = ss_total - ss_within
        if ss_within <= 0:
            return float("inf"), ss_between
        return (ss_between / df_between) / (ss_within / df_within), ss_between

    pseudo_f, ss_between = _pseudo_f(labels)

    p_value = np.nan
    if n_permutations > 0:
        rng = np.random.default_rng(seed)
        exceed = sum(
            _pseudo_f(rng.permutation(labels))[0] >= pseudo_f - 1e-12
            for _ in range(n_permutations)
        )
        p_value = (exceed + 1) / (n_permutations + 1)

    r2 = ss_between / ss_total if ss_total > 0 else np.nan
    return PermanovaResult(
        pseudo_f=pseudo_f,
        r2=r2,
        df_between=df_between,
        df_within=df_within,
        p_value=p_value,
        n_permutations=n_permutations,
        n=n,
        n_groups=n_groups,
    )


def _chi2_statistic(observed: np.ndarray, expected: np.ndarray) -> float:
    return float(np.sum((observed - expected) ** 2 / expected))


def chi_square_test(
    a: pd.Series,
    b: pd.Series,
    n_permutations: int = 0,
    seed: int = 42,
) -> ChiSquareResult:
    """Chi-square test of independence between two station labelings.

    Only stations present (and non-missing) in both series are used.
    The permutation p-value keeps both margins fixed by shuffling ``a``.
    """
    aligned = pd.concat([a.rename("a"), b.rename("b")], axis=1, join="inner").dropna()
    table = pd.crosstab(aligned["a"], aligned["b"])
    table.index.name = a.name
    table.columns.name = b.name
    n = int(table.to_numpy().sum())

    if table.shape[0] < 2 or table.shape[1] < 2:
        warnings.warn(
            f"Chi-square test of {a.name} x {b.name} needs a 2x2 or larger table, "
            f"got {table.shape[0]}x{table.shape[1]}",
            DegenerateInputWarning,
            stacklevel=2,
        )
        return ChiSquareResult(table, np.nan, 0, np.nan, np.nan, np.nan, n)

    observed = table.to_numpy(dtype=float)
    statistic, p_value, dof, expected = chi2_contingency(observed, correction=False)
    min_expected = float(expected.min())
    if min_expected < MIN_EXPECTED_COUNT:
        warnings.warn(
            f"Chi-square approximation may be incorrect for {a.name} x {b.name} "
            f"(smallest expected count {min_expected:.2f})",
            DegenerateInputWarning,
            stacklevel=2,
        )

    permutation_p = np.nan
    if n_permutations > 0:
        row_codes = pd.Categorical(aligned["a"], categories=table.index).codes
        col_codes = pd.Categorical(aligned["b"], categories=table.columns).codes
        rng = np.random.default_rng(seed)
        exceed = 0
        for _ in range(n_permutations):
            permuted = np.zeros_like(observed)
            np.add.at(permuted, (rng.permutation(row_codes), col_codes), 1)
            exceed += _chi2_statistic(permuted, expected) >= float(statistic) - 1e-12
        permutation_p = (exceed + 1) / (n_permutations + 1)

    return ChiSquareResult(
        table=table,
        statistic=float(statistic),
        dof=int(dof),
        p_value=float(p_value),
        permutation_p_value=permutation_p,
        min_expected=min_expected,
        n=n,
    )
