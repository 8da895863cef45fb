"""Hamilton driver for the analysis DAG defined in ``nodes``.

Usage::

    from peninsula_predators.analysis.pipeline import run_pipeline

    results = run_pipeline(
        {
            "stations_raw": stations_df,
            "sightings_raw": sightings_df,
            "zooplankton_raw": zooplankton_df,
            **settings.analysis_params(),
        },
        final_vars=["zooplankton_clusters", "predator_nmds"],
    )

Only the requested nodes and their ancestors are computed.
"""

from __future__ import annotations

from typing import Any

from hamilton import base, driver

from peninsula_predators.analysis import nodes

# Raw tables the DAG expects alongside the analysis parameters
RAW_INPUTS = ("stations_raw", "sightings_raw", "zooplankton_raw")

# Everything the reports consume
DEFAULT_OUTPUTS = [
    "survey_summary",
    "zooplankton_gap",
    "zooplankton_clusters",
    "zooplankton_indicators",
    "predator_indicators",
    "predator_nmds",
    "environmental_fit",
    "predator_permanova",
    "cluster_year_test",
    "cluster_area_test",
    "covariate_summary",
    "covariate_tests",
]


def build_driver() -> driver.Driver:
    """Create a Hamilton driver over the analysis nodes, returning plain dicts."""
    adapter = base.SimplePythonGraphAdapter(base.DictResult())
    return driver.Driver({}, nodes, adapter=adapter)


def run_pipeline(
    inputs: dict[str, Any], final_vars: list[str] | None = None
) -> dict[str, Any]:
    """Execute the analysis DAG.

    Args:
        inputs: Raw tables (``RAW_INPUTS``) plus every analysis parameter.
        final_vars: Node names to compute (default ``DEFAULT_OUTPUTS``).

    Returns:
        Dict mapping each requested node name to its value.
    """
    missing = [name for name in RAW_INPUTS if name not in inputs]
    if missing:
        msg = f"Missing pipeline inputs: {missing}"
        raise ValueError(msg)
    dr = build_driver()
    return dr.execute(final_vars or DEFAULT_OUTPUTS, inputs=inputs)
