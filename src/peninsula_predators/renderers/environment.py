"""Environmental covariate renderers: envfit table, per-cluster summaries and tests."""

from __future__ import annotations

from typing import Any

from peninsula_predators.reference import COVARIATE_LABELS
from peninsula_predators.renderers import render_template
from peninsula_predators.renderers.formatting import format_number, format_p, is_significant
from peninsula_predators.renderers.palette import cluster_color


def _label(covariate: str) -> str:
    return COVARIATE_LABELS.get(covariate, covariate)


def build_envfit_html(envfit: list[dict[str, Any]]) -> str:
    """Build the fitted-vector table (direction cosines, r², p)."""
    axes = [key for key in (envfit[0] if envfit else {}) if key.startswith("NMDS")]
    rows = [
        {
            "covariate": _label(row["covariate"]),
            "directions": [format_number(row.get(axis), 3) for axis in axes],
            "r2": format_number(row.get("r2"), 3),
            "p_value": format_p(row.get("p_value")),
            "n": row.get("n"),
            "significant": is_significant(row.get("p_value")),
        }
        for row in envfit
    ]
    return render_template("envfit.html.j2", axes=axes, rows=rows)


def build_covariates_html(
    summary: list[dict[str, Any]],
    tests: list[dict[str, Any]],
) -> str:
    """Build per-covariate tables of cluster means with the Kruskal-Wallis result.

    Args:
        summary: ``covariate_summary`` rows (covariate, cluster, n, mean, sd, median).
        tests: ``covariate_tests`` rows (covariate, statistic, p_value, n, n_groups).

    Returns:
        Rendered HTML fragment, one block per covariate.
    """
    tests_by_covariate = {row["covariate"]: row for row in tests}
    blocks: dict[str, dict[str, Any]] = {}
    for row in summary:
        covariate = row["covariate"]
        if covariate not in blocks:
            test = tests_by_covariate.get(covariate, {})
            blocks[covariate] = {
                "label": _label(covariate),
                "statistic": format_number(test.get("statistic")),
                "p_value": format_p(test.get("p_value")),
                "significant": is_significant(test.get("p_value")),
                "rows": [],
            }
        blocks[covariate]["rows"].append(
            {
                "cluster": row["cluster"],
                "color": cluster_color(row["cluster"]),
                "n": row["n"],
                "mean": format_number(row.get("mean")),
                "sd": format_number(row.get("sd")),
                "median": format_number(row.get("median")),
            }
        )
    return render_template("covariates.html.j2", blocks=list(blocks.values()))
