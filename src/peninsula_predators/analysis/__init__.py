"""Statistics over validated survey tables.

Pure functions: DataFrames in, DataFrames / dataclasses out. No I/O, no HTTP,
no Prefect decorators.

Modules:
  - community: long records -> stations x taxa matrices, transforms, distances
  - clustering: hierarchical clustering, gap statistic, cluster labels
  - indicators: IndVal.g indicator species with permutation tests
  - ordination: NMDS and environmental vector fitting
  - hypothesis: PERMANOVA and chi-square tests
  - environment: covariate summaries and Kruskal-Wallis tests by cluster
  - serialization: results -> JSON-compatible dicts
  - nodes / pipeline: the Hamilton DAG wiring the above together

Adding an analysis step
-----------------------
1. Write a pure function in the relevant module (or a new ``analysis/{name}.py``).
   Surface degenerate input with ``warnings.warn(..., DegenerateInputWarning)``
   and return NaN rather than raising.

2. Add a node to ``nodes.py``. The function name is the output; parameter
   names are upstream nodes or analysis parameters::

       def predator_diversity(predator_matrix: pd.DataFrame) -> pd.Series:
           return community.shannon(predator_matrix)

   New parameters must also be added to ``Settings.analysis_params()`` so they
   reach the DAG and the cache fingerprint.

3. Request it in ``pipeline.DEFAULT_OUTPUTS`` and serialize it in
   ``flows/analyze.py``.

4. Add tests in ``tests/test_{module}.py``.
"""

from peninsula_predators.analysis.clustering import GapResult, assign_clusters, gap_statistic
from peninsula_predators.analysis.hypothesis import (
    ChiSquareResult,
    PermanovaResult,
    chi_square_test,
    permanova,
)
from peninsula_predators.analysis.indicators import indicator_species
from peninsula_predators.analysis.ordination import NMDSResult, envfit, nmds

__all__ = [
    "ChiSquareResult",
    "GapResult",
    "NMDSResult",
    "PermanovaResult",
    "assign_clusters",
    "chi_square_test",
    "envfit",
    "gap_statistic",
    "indicator_species",
    "nmds",
    "permanova",
]
