"""Survey overview: effort per year, predator species totals and key findings."""

from __future__ import annotations

from typing import Any

from peninsula_predators.reference import COVARIATE_LABELS
from peninsula_predators.renderers import render_template
from peninsula_predators.renderers.formatting import (
    association_sentence,
    cluster_sentence,
    format_number,
    is_significant,
    permanova_sentence,
    stress_sentence,
)

# Species listed on the overview page
_TOP_SPECIES = 15


def build_survey_summary_html(summary: dict[str, Any]) -> str:
    """Build the survey overview card.

    Args:
        summary: The ``summary`` section of results.json.

    Returns:
        Rendered HTML with effort and species tables.
    """
    per_year = summary.get("stations_per_year", [])
    max_stations = max((row["stations"] for row in per_year), default=0)
    years = [
        {
            "year": row["year"],
            "stations": row["stations"],
            "bar_pct": round(100 * row["stations"] / max_stations) if max_stations else 0,
        }
        for row in per_year
    ]

    span = summary.get("years") or []
    period = ""
    if len(span) == 2:
        period = str(span[0]) if span[0] == span[1] else f"{span[0]}–{span[1]}"

    return render_template(
        "survey_summary.html.j2",
        n_stations=summary.get("n_stations", 0),
        n_cruises=summary.get("n_cruises", 0),
        n_sightings=summary.get("n_sightings", 0),
        n_species=summary.get("n_species", 0),
        n_tows=summary.get("n_tows", 0),
        n_taxa=summary.get("n_taxa", 0),
        period=period,
        years=years,
        species=summary.get("species_totals", [])[:_TOP_SPECIES],
    )


def build_findings_html(results: dict[str, Any]) -> str:
    """Build the key-findings list from templated summary sentences."""
    sentences = [cluster_sentence(results.get("gap", {}))]
    if "permanova" in results:
        sentences.append(permanova_sentence(results["permanova"]))
    for key in ("cluster_year_test", "cluster_area_test"):
        if key in results:
            sentences.append(association_sentence(results[key]))
    if "ordination" in results:
        sentences.append(stress_sentence(results["ordination"]))

    fitted = [
        row
        for row in results.get("environmental_fit", [])
        if is_significant(row.get("p_value"))
    ]
    if fitted:
        names = ", ".join(
            f"{COVARIATE_LABELS.get(row['covariate'], row['covariate']).lower()} "
            f"(r² = {format_number(row.get('r2'))})"
            for row in sorted(fitted, key=lambda r: -(r.get("r2") or 0))
        )
        sentences.append(f"Environmental gradients aligned with the predator ordination: {names}.")

    return render_template("findings.html.j2", sentences=sentences)
