"""Hierarchical clustering of stations and gap-statistic selection of k.

The gap statistic (Tibshirani, Walther & Hastie 2001) compares the
within-cluster dispersion of the data with that of reference datasets drawn
uniformly over the data's range:

    W_k   = 1/2 * sum_r  sum_{i<j in r} d_ij^p / n_r
    Gap_k = mean_b(log W*_kb) - log W_k
    SE_k  = sd_b(log W*_kb) * sqrt(1 + 1/B)

Both the data and each reference dataset are clustered with the same
hierarchical procedure (``scipy.cluster.hierarchy``) and cut into k groups.
The number of clusters is picked with one of the ``max_se`` rules.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import fcluster, linkage

from peninsula_predators.analysis.community import dissimilarity
from peninsula_predators.errors import DegenerateInputWarning

GAP_RULES = ("firstmax", "globalmax", "Tibs2001SEmax", "firstSEmax", "globalSEmax")


@dataclass
class GapResult:
    """Gap statistic table for k = 1..k_max and the selected k."""

    k: list[int]
    log_w: list[float]
    expected_log_w: list[float]
    gap: list[float]
    se: list[float]
    selected_k: int
    rule: str
    n_bootstraps: int
    space: str = "original"
    notes: list[str] = field(default_factory=list)

    @property
    def k_max(self) -> int:
        """Largest k evaluated."""
        return self.k[-1] if self.k else 0


def _as_array(matrix: pd.DataFrame | np.ndarray) -> np.ndarray:
    if isinstance(matrix, pd.DataFrame):
        return matrix.to_numpy(dtype=float)
    return np.asarray(matrix, dtype=float)


def hierarchical_clusters(
    matrix: pd.DataFrame | np.ndarray,
    k: int,
    method: str = "average",
    metric: str = "braycurtis",
) -> np.ndarray:
    """Cluster rows hierarchically and cut the tree into at most ``k`` groups.

    Returns:
        Integer labels (1-based) in row order. Ties in merge heights can
        yield fewer than ``k`` distinct labels.
    """
    values = _as_array(matrix)
    if len(values) < 2 or k <= 1:
        return np.ones(len(values), dtype=int)
    tree = linkage(dissimilarity(values, metric), method=method)
    return fcluster(tree, t=k, criterion="maxclust")


def within_dispersion(
    values: np.ndarray,
    labels: np.ndarray,
    metric: str = "braycurtis",
    d_power: int = 1,
) -> float:
    """Pooled within-cluster dispersion W_k."""
    total = 0.0
    for label in np.unique(labels):
        members = values[labels == label]
        n_members = len(members)
        if n_members < 2:
            continue
        total += float(np.sum(dissimilarity(members, metric) ** d_power)) / n_members
    return 0.5 * total


def _log_w(values: np.ndarray, k: int, method: str, metric: str, d_power: int) -> float:
    w = within_dispersion(values, hierarchical_clusters(values, k, method, metric), metric, d_power)
    # Identical rows in every cluster give W = 0; keep log finite.
    return math.log(max(w, np.finfo(float).tiny))


def max_se(
    gap: list[float] | np.ndarray,
    se: list[float] | np.ndarray,
    rule: str = "firstSEmax",
    se_factor: float = 1.0,
) -> int:
    """Pick the number of clusters from a gap curve.

    Rules (1-based k returned):
      - ``firstmax``: first local maximum of Gap.
      - ``globalmax``: global maximum of Gap.
      - ``Tibs2001SEmax``: smallest k with Gap(k) >= Gap(k+1) - SE(k+1).
      - ``firstSEmax``: smallest k with Gap(k) >= Gap(m) - SE(m), m = first local max.
      - ``globalSEmax``: as above with m = global maximum.
    """
    f = np.asarray(gap, dtype=float)
    f_se = se_factor * np.asarray(se, dtype=float)
    n_k = len(f)
    if n_k == 0:
        msg = "Gap curve is empty"
        raise ValueError(msg)

    def _first_max() -> int:
        decreasing = np.diff(f) <= 0
        return int(np.argmax(decreasing)) + 1 if decreasing.any() else n_k

    def _first_within_se(nc: int) -> int:
        within = f[: nc - 1] >= f[nc - 1] - f_se[nc - 1]
        return int(np.argmax(within)) + 1 if within.any() else nc

    if rule == "firstmax":
        return _first_max()
    if rule == "globalmax":
        return int(np.nanargmax(f)) + 1
    if rule == "Tibs2001SEmax":
        within = f[:-1] >= (f - f_se)[1:]
        return int(np.argmax(within)) + 1 if within.any() else n_k
    if rule == "firstSEmax":
        return _first_within_se(_first_max())
    if rule == "globalSEmax":
        return _first_within_se(int(np.nanargmax(f)) + 1)

    msg = f"Unknown gap rule {rule!r}; expected one of {GAP_RULES}"
    raise ValueError(msg)


def gap_statistic(
    matrix: pd.DataFrame | np.ndarray,
    k_max: int = 8,
    n_bootstraps: int = 100,
    method: str = "average",
    metric: str = "braycurtis",
    space: str = "original",
    rule: str = "firstSEmax",
    seed: int = 42,
    d_power: int = 1,
) -> GapResult:
    """Compute the gap statistic for k = 1..k_max and select k.

    Args:
        matrix: Stations x taxa matrix (already transformed, no empty rows).
        k_max: Largest number of clusters tried; clipped to n_stations - 1.
        n_bootstraps: Number of uniform reference datasets (B).
        method: scipy linkage method.
        metric: scipy distance metric used for clustering and W_k.
        space: ``"original"`` draws references over each column's range;
            ``"scaledPCA"`` draws them over the principal-axis box (Euclidean only).
        rule: Selection rule passed to ``max_se``.
        seed: Seed for the reference draws.
        d_power: Power applied to distances in W_k.

    Returns:
        GapResult with one entry per k. Fewer than 3 stations give a single
        NaN row with k = 1 and a warning.
    """
    values = _as_array(matrix)
    n_rows, n_cols = values.shape
    if space not in ("original", "scaledPCA"):
        msg = f"Unknown reference space {space!r}"
        raise ValueError(msg)
    if space == "scaledPCA" and metric != "euclidean":
        msg = "scaledPCA reference data can be negative; use metric='euclidean'"
        raise ValueError(msg)
    if n_rows < 3:
        note = f"Gap statistic needs at least 3 stations, got {n_rows}; using k = 1"
        warnings.warn(note, DegenerateInputWarning, stacklevel=2)
        nan = float("nan")
        return GapResult(
            k=[1],
            log_w=[nan],
            expected_log_w=[nan],
            gap=[nan],
            se=[nan],
            selected_k=1,
            rule=rule,
            n_bootstraps=n_bootstraps,
            space=space,
            notes=[note],
        )

    notes: list[str] = []
    if k_max >= n_rows:
        note = f"k_max reduced from {k_max} to {n_rows - 1} (only {n_rows} stations)"
        warnings.warn(note, DegenerateInputWarning, stacklevel=2)
        notes.append(note)
        k_max = n_rows - 1

    ks = list(range(1, k_max + 1))
    log_w = np.array([_log_w(values, k, method, metric, d_power) for k in ks])

    if space == "scaledPCA":
        center = values.mean(axis=0)
        _, _, vt = np.linalg.svd(values - center, full_matrices=False)
        box = (values - center) @ vt.T
    else:
        box = values
    lower, upper = box.min(axis=0), box.max(axis=0)

    rng = np.random.default_rng(seed)
    ref_log_w = np.empty((n_bootstraps, k_max))
    for b in range(n_bootstraps):
        z = rng.uniform(lower, upper, size=(n_rows, box.shape[1]))
        if space == "scaledPCA":
            z = z @ vt + center
        elif metric == "braycurtis" and n_cols:
            # A reference row of all zeros has no Bray-Curtis total.
            z[z.sum(axis=1) <= 0] = upper
        ref_log_w[b] = [_log_w(z, k, method, metric, d_power) for k in ks]

    expected = ref_log_w.mean(axis=0)
    sd = ref_log_w.std(axis=0, ddof=1) if n_bootstraps > 1 else np.zeros(k_max)
    se = sd * math.sqrt(1 + 1 / n_bootstraps)
    gap = expected - log_w

    return GapResult(
        k=ks,
        log_w=log_w.tolist(),
        expected_log_w=expected.tolist(),
        gap=gap.tolist(),
        se=se.tolist(),
        selected_k=max_se(gap, se, rule),
        rule=rule,
        n_bootstraps=n_bootstraps,
        space=space,
        notes=notes,
    )


def assign_clusters(
    matrix: pd.DataFrame,
    k: int,
    method: str = "average",
    metric: str = "braycurtis",
) -> pd.Series:
    """Cut the station tree into ``k`` clusters with stable labels.

    Labels are renumbered so cluster 1 is the largest; ties go to the cluster
    whose first station comes first in the matrix index.

    Returns:
        Integer Series named ``cluster`` indexed like ``matrix``.
    """
    raw = hierarchical_clusters(matrix, k, method, metric)
    labels = pd.Series(raw, index=matrix.index)

    sizes = labels.value_counts()
    first_position: dict[int, int] = {}
    for position, label in enumerate(raw):
        first_position.setdefault(int(label), position)
    order = sorted(sizes.index, key=lambda lab: (-sizes[lab], first_position[int(lab)]))
    mapping = {old: new for new, old in enumerate(order, start=1)}

    clusters = labels.map(mapping).astype(int).rename("cluster")
    if clusters.nunique() < 2:
        warnings.warn(
            "Clustering produced a single group; cluster comparisons will be empty",
            DegenerateInputWarning,
            stacklevel=2,
        )
    return clusters
