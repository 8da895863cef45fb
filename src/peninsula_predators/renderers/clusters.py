"""Zooplankton cluster renderers.

Gap-statistic chart (inline SVG with ±SE whiskers), cluster sizes, and the
cluster x year / cluster x area contingency tests.
"""

from __future__ import annotations

import math
from typing import Any

from peninsula_predators.reference import SURVEY_AREAS
from peninsula_predators.renderers import render_template
from peninsula_predators.renderers.formatting import (
    association_sentence,
    cluster_sentence,
    format_number,
    format_p,
)
from peninsula_predators.renderers.palette import cluster_color


def build_gap_chart_html(gap: dict[str, Any]) -> str:
    """Build the gap statistic chart and table.

    Args:
        gap: The ``gap`` section of results.json.

    Returns:
        Rendered HTML with an SVG of Gap(k) ± SE and the per-k table.
    """
    table = [row for row in gap.get("table", []) if row.get("gap") is not None]

    # SVG dimensions
    svg_width = 560
    svg_height = 260
    margin_left = 50
    margin_top = 20
    margin_right = 20
    margin_bottom = 35
    plot_right = svg_width - margin_right
    plot_bottom = svg_height - margin_bottom
    plot_width = plot_right - margin_left
    plot_height = plot_bottom - margin_top

    lows = [row["gap"] - (row.get("se") or 0) for row in table]
    highs = [row["gap"] + (row.get("se") or 0) for row in table]
    y_min = _round_down_nice(min(lows)) if lows else 0.0
    y_max = _round_up_nice(max(highs)) if highs else 1.0
    if y_max <= y_min:
        y_max = y_min + 1.0
    k_max = max((row["k"] for row in table), default=1)

    def x_for_k(k: int) -> float:
        """Convert k to SVG x coordinate (k = 1 at the left edge)."""
        if k_max == 1:
            return margin_left + plot_width / 2
        return margin_left + (k - 1) / (k_max - 1) * plot_width

    def y_for_gap(value: float) -> float:
        """Convert a gap value to SVG y coordinate (inverted)."""
        return plot_bottom - (value - y_min) / (y_max - y_min) * plot_height

    n_ticks = 4
    y_ticks = []
    for i in range(n_ticks + 1):
        val = y_min + (y_max - y_min) * i / n_ticks
        y_ticks.append({"y": round(y_for_gap(val), 1), "label": f"{val:.2f}"})

    selected = gap.get("selected_k")
    points = []
    for row in table:
        se = row.get("se") or 0.0
        points.append(
            {
                "x": round(x_for_k(row["k"]), 1),
                "y": round(y_for_gap(row["gap"]), 1),
                "y_low": round(y_for_gap(row["gap"] - se), 1),
                "y_high": round(y_for_gap(row["gap"] + se), 1),
                "k": row["k"],
                "selected": row["k"] == selected,
            }
        )
    polyline = " ".join(f"{p['x']},{p['y']}" for p in points)

    rows = [
        {
            "k": row["k"],
            "log_w": format_number(row.get("log_w"), 3),
            "expected_log_w": format_number(row.get("expected_log_w"), 3),
            "gap": format_number(row.get("gap"), 3),
            "se": format_number(row.get("se"), 3),
            "selected": row["k"] == selected,
        }
        for row in gap.get("table", [])
    ]

    return render_template(
        "gap_chart.html.j2",
        sentence=cluster_sentence(gap),
        notes=gap.get("notes", []),
        space=gap.get("space"),
        svg_width=svg_width,
        svg_height=svg_height,
        margin_left=margin_left,
        plot_right=plot_right,
        plot_bottom=plot_bottom,
        margin_top=margin_top,
        y_ticks=y_ticks,
        points=points,
        polyline=polyline,
        rows=rows,
    )


def build_cluster_sizes_html(clusters: dict[str, Any]) -> str:
    """Build the cluster size table with color swatches."""
    sizes = clusters.get("sizes", [])
    total = sum(row["stations"] for row in sizes)
    rows = [
        {
            "cluster": row["cluster"],
            "stations": row["stations"],
            "pct": f"{100 * row['stations'] / total:.0f}" if total else "0",
            "color": cluster_color(row["cluster"]),
        }
        for row in sizes
    ]
    return render_template("cluster_sizes.html.j2", rows=rows, total=total)


def _contingency(test: dict[str, Any]) -> dict[str, Any]:
    min_expected = test.get("min_expected")
    columns = test.get("columns", [])
    if test.get("column_variable") == "area":
        columns = [SURVEY_AREAS.get(c, c) for c in columns]
    return {
        "title": f"Cluster × {test.get('column_variable') or 'factor'}",
        "sentence": association_sentence(test),
        "columns": columns,
        "rows": [
            {"label": label, "color": cluster_color(label), "counts": counts}
            for label, counts in zip(test.get("rows", []), test.get("counts", []), strict=True)
        ],
        "statistic": format_number(test.get("statistic")),
        "dof": test.get("dof"),
        "p_value": format_p(test.get("p_value")),
        "permutation_p_value": format_p(test.get("permutation_p_value")),
        "min_expected": format_number(min_expected),
        "sparse": min_expected is not None and min_expected < 5,
    }


def build_cluster_tests_html(results: dict[str, Any]) -> str:
    """Build the cluster x year and cluster x area tests."""
    tests = [
        _contingency(results[key])
        for key in ("cluster_year_test", "cluster_area_test")
        if key in results
    ]
    return render_template("cluster_tests.html.j2", tests=tests)


def _round_up_nice(value: float) -> float:
    """Round up to one decimal place (or to a whole number above 10)."""
    step = 1.0 if abs(value) >= 10 else 0.1
    return math.ceil(value / step) * step


def _round_down_nice(value: float) -> float:
    step = 1.0 if abs(value) >= 10 else 0.1
    return math.floor(value / step) * step
