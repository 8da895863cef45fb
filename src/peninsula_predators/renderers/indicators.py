"""Indicator species tables, grouped by cluster."""

from __future__ import annotations

from typing import Any

from peninsula_predators.renderers import render_template
from peninsula_predators.renderers.formatting import ALPHA, format_number, format_p
from peninsula_predators.renderers.palette import cluster_color


def build_indicators_html(
    records: list[dict[str, Any]],
    title: str,
    significant_only: bool = False,
    alpha: float = ALPHA,
) -> str:
    """Build one indicator table per cluster.

    Args:
        records: Indicator rows (taxon, group, specificity, fidelity, indval,
            p_value, optional label) as stored in results.json.
        title: Section heading.
        significant_only: Drop taxa with p >= ``alpha`` (or no p-value).
        alpha: Significance level used for highlighting and filtering.

    Returns:
        Rendered HTML fragment.
    """
    groups: dict[int, list[dict[str, Any]]] = {}
    for rec in records:
        p = rec.get("p_value")
        significant = p is not None and p < alpha
        if significant_only and not significant:
            continue
        groups.setdefault(int(rec["group"]), []).append(
            {
                "taxon": rec.get("label") or rec["taxon"],
                "code": rec["taxon"],
                "specificity": format_number(rec.get("specificity")),
                "fidelity": format_number(rec.get("fidelity")),
                "indval": format_number(rec.get("indval")),
                "p_value": format_p(p),
                "significant": significant,
            }
        )

    clusters = [
        {"cluster": cluster, "color": cluster_color(cluster), "rows": rows}
        for cluster, rows in sorted(groups.items())
    ]
    return render_template("indicators.html.j2", title=title, clusters=clusters, alpha=alpha)
