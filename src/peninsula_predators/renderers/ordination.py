"""NMDS ordination renderers.

Station scatter (inline SVG) coloured by zooplankton cluster, with fitted
environmental vectors drawn as arrows scaled by sqrt(r²), and the PERMANOVA
summary.
"""

from __future__ import annotations

import math
from typing import Any

from peninsula_predators.reference import COVARIATE_LABELS
from peninsula_predators.renderers import render_template
from peninsula_predators.renderers.formatting import (
    format_number,
    format_p,
    is_significant,
    permanova_sentence,
    stress_sentence,
)
from peninsula_predators.renderers.palette import build_cluster_palette, cluster_color

# Longest arrow as a fraction of the half-width of the plot
_ARROW_SCALE = 0.8


def build_ordination_html(
    ordination: dict[str, Any],
    envfit: list[dict[str, Any]] | None = None,
) -> str:
    """Build the NMDS scatter plot.

    Args:
        ordination: The ``ordination`` section of results.json.
        envfit: Rows of ``environmental_fit``; NMDS1/NMDS2 are direction cosines.

    Returns:
        Rendered HTML with an SVG scatter and a legend.
    """
    scores = ordination.get("scores", [])

    # SVG dimensions (square plot area)
    svg_size = 440
    margin = 30
    plot_size = svg_size - 2 * margin
    center = svg_size / 2

    extent = max(
        (max(abs(s["nmds1"]), abs(s["nmds2"])) for s in scores),
        default=1.0,
    )
    extent = extent * 1.1 if extent > 0 else 1.0

    def x_for(value: float) -> float:
        """Convert an NMDS1 score to SVG x coordinate."""
        return center + value / extent * plot_size / 2

    def y_for(value: float) -> float:
        """Convert an NMDS2 score to SVG y coordinate (inverted)."""
        return center - value / extent * plot_size / 2

    points = [
        {
            "x": round(x_for(s["nmds1"]), 1),
            "y": round(y_for(s["nmds2"]), 1),
            "station": s["station_id"],
            "cluster": s.get("cluster"),
            "color": cluster_color(s.get("cluster")),
        }
        for s in scores
    ]

    arrows = _build_arrows(envfit or [], center, plot_size / 2 * _ARROW_SCALE)
    legend = [
        {"cluster": c, "color": color}
        for c, color in build_cluster_palette(
            s["cluster"] for s in scores if s.get("cluster") is not None
        ).items()
    ]

    return render_template(
        "ordination.html.j2",
        sentence=stress_sentence(ordination),
        svg_size=svg_size,
        margin=margin,
        center=center,
        plot_end=svg_size - margin,
        points=points,
        arrows=arrows,
        legend=legend,
    )


def _build_arrows(
    envfit: list[dict[str, Any]], center: float, max_length: float
) -> list[dict[str, Any]]:
    """Arrow end points for fitted covariates with a defined direction."""
    arrows = []
    for row in envfit:
        dx, dy, r2 = row.get("NMDS1"), row.get("NMDS2"), row.get("r2")
        if dx is None or dy is None or r2 is None:
            continue
        length = math.sqrt(max(r2, 0.0)) * max_length
        arrows.append(
            {
                "x2": round(center + dx * length, 1),
                "y2": round(center - dy * length, 1),
                "label": COVARIATE_LABELS.get(row["covariate"], row["covariate"]),
                "significant": is_significant(row.get("p_value")),
            }
        )
    return arrows


def build_permanova_html(permanova: dict[str, Any]) -> str:
    """Build the PERMANOVA summary table."""
    return render_template(
        "permanova.html.j2",
        sentence=permanova_sentence(permanova),
        pseudo_f=format_number(permanova.get("pseudo_f")),
        r2=format_number(permanova.get("r2")),
        df_between=permanova.get("df_between"),
        df_within=permanova.get("df_within"),
        p_value=format_p(permanova.get("p_value")),
        n_permutations=permanova.get("n_permutations"),
        n=permanova.get("n"),
    )
