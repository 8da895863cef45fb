"""NMDS ordination of the predator community and environmental vector fitting.

``nmds`` wraps scikit-learn's non-metric SMACOF on a precomputed
Bray-Curtis matrix, then rotates the configuration onto its principal axes
so NMDS1 always carries the most variance. Stress is reported as Kruskal's
stress-1 against the isotonic fit of configuration distances.

``envfit`` projects environmental covariates onto the ordination as
vectors: each covariate is regressed on the site scores, the fitted
direction gives the arrow and r² its strength, with a permutation p-value.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist
from sklearn.isotonic import IsotonicRegression
from sklearn.manifold import MDS

from peninsula_predators.analysis.community import dissimilarity, drop_empty_rows
from peninsula_predators.errors import DegenerateInputWarning

# Conventional threshold above which an NMDS configuration is a poor fit
STRESS_WARNING = 0.2


@dataclass
class NMDSResult:
    """Site scores and fit of a non-metric MDS run."""

    scores: pd.DataFrame
    stress: float
    n_stations: int
    n_taxa: int

    @property
    def axes(self) -> list[str]:
        """Score column names (NMDS1, NMDS2, ...)."""
        return list(self.scores.columns)


def _nonmetric_mds(n_components: int, n_init: int, max_iter: int, seed: int) -> MDS:
    """Non-metric MDS estimator on a precomputed dissimilarity matrix."""
    return MDS(
        n_components=n_components,
        metric_mds=False,
        metric="precomputed",
        n_init=n_init,
        max_iter=max_iter,
        random_state=seed,
    )


def kruskal_stress(dissimilarities: np.ndarray, embedding: np.ndarray) -> float:
    """Kruskal stress-1 of ``embedding`` against condensed ``dissimilarities``."""
    distances = pdist(embedding)
    disparities = IsotonicRegression().fit_transform(dissimilarities, distances)
    denominator = float(np.sum(distances**2))
    if denominator == 0:
        return float("nan")
    return float(np.sqrt(np.sum((distances - disparities) ** 2) / denominator))


def _principal_rotation(embedding: np.ndarray) -> np.ndarray:
    centered = embedding - embedding.mean(axis=0)
    _, _, vt = np.linalg.svd(centered, full_matrices=False)
    rotated = centered @ vt.T
    # Fix each axis sign so the first station lies on the positive side.
    signs = np.where(rotated[0] < 0, -1.0, 1.0)
    return rotated * signs


def nmds(
    matrix: pd.DataFrame,
    n_components: int = 2,
    n_init: int = 20,
    max_iter: int = 300,
    seed: int = 42,
    metric: str = "braycurtis",
) -> NMDSResult:
    """Run NMDS on a (transformed) stations x taxa matrix.

    Args:
        matrix: Community matrix; all-zero rows are dropped with a warning.
        n_components: Number of ordination axes.
        n_init: Random starts; the lowest-stress solution is kept.
        max_iter: SMACOF iterations per start.
        seed: Random state for the starts.
        metric: Dissimilarity metric.

    Returns:
        NMDSResult with scores indexed like the retained rows. With fewer
        than ``n_components + 2`` stations left the scores are empty and the
        stress is NaN.
    """
    matrix = drop_empty_rows(matrix, "NMDS")
    n_rows = len(matrix)
    axes = [f"NMDS{i + 1}" for i in range(n_components)]
    if n_rows < n_components + 2:
        warnings.warn(
            f"NMDS with {n_components} axes needs at least {n_components + 2} stations, "
            f"got {n_rows}; ordination skipped",
            DegenerateInputWarning,
            stacklevel=2,
        )
        return NMDSResult(
            scores=pd.DataFrame(columns=axes, index=matrix.index[:0], dtype=float),
            stress=float("nan"),
            n_stations=n_rows,
            n_taxa=matrix.shape[1],
        )

    condensed = dissimilarity(matrix, metric)
    square = np.zeros((n_rows, n_rows))
    square[np.triu_indices(n_rows, k=1)] = condensed
    square = square + square.T

    model = _nonmetric_mds(n_components, n_init, max_iter, seed)
    embedding = _principal_rotation(model.fit_transform(square))
    stress = kruskal_stress(condensed, embedding)
    if stress > STRESS_WARNING:
        warnings.warn(
            f"NMDS stress {stress:.3f} exceeds {STRESS_WARNING}; ordination is a poor fit",
            DegenerateInputWarning,
            stacklevel=2,
        )

    scores = pd.DataFrame(embedding, index=matrix.index, columns=axes)
    return NMDSResult(scores=scores, stress=stress, n_stations=n_rows, n_taxa=matrix.shape[1])


def _r_squared(x: np.ndarray, y: np.ndarray) -> tuple[float, np.ndarray]:
    beta, *_ = np.linalg.lstsq(x, y, rcond=None)
    residual = y - x @ beta
    total = float(y @ y)
    return 1.0 - float(residual @ residual) / total, beta


def envfit(
    scores: pd.DataFrame,
    covariates: pd.DataFrame,
    n_permutations: int = 999,
    seed: int = 42,
) -> pd.DataFrame:
    """Fit environmental vectors onto an ordination.

    Stations with a missing covariate value are omitted for that covariate
    only.

    Returns:
        One row per covariate: unit direction cosines per axis, r2,
        p_value (NaN when ``n_permutations == 0``) and n.
    """
    axes = list(scores.columns)
    rng = np.random.default_rng(seed)
    rows: list[dict[str, object]] = []

    for name in covariates.columns:
        y_all = pd.to_numeric(covariates[name], errors="coerce").reindex(scores.index)
        mask = y_all.notna().to_numpy()
        n_obs = int(mask.sum())
        row: dict[str, object] = {"covariate": name, "n": n_obs}

        y = y_all.to_numpy(dtype=float)[mask]
        if n_obs < len(axes) + 2 or np.allclose(y, y[0] if n_obs else 0.0):
            warnings.warn(
                f"envfit: covariate {name!r} has too few or constant values ({n_obs} stations)",
                DegenerateInputWarning,
                stacklevel=2,
            )
            row.update({axis: np.nan for axis in axes})
            row.update({"r2": np.nan, "p_value": np.nan})
            rows.append(row)
            continue

        x = scores.to_numpy(dtype=float)[mask]
        x = x - x.mean(axis=0)
        y = y - y.mean()
        r2, beta = _r_squared(x, y)
        norm = float(np.linalg.norm(beta))
        direction = beta / norm if norm > 0 else np.full(len(axes), np.nan)

        p_value = np.nan
        if n_permutations > 0:
            exceed = sum(
                _r_squared(x, rng.permutation(y))[0] >= r2 - 1e-12 for _ in range(n_permutations)
            )
            p_value = (exceed + 1) / (n_permutations + 1)

        row.update(dict(zip(axes, direction.tolist(), strict=True)))
        row.update({"r2": r2, "p_value": p_value})
        rows.append(row)

    return pd.DataFrame(rows, columns=["covariate", *axes, "r2", "p_value", "n"])
