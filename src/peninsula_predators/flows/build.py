"""
Prefect flow for building the HTML reports from cached analysis results.

Pages:
  - index.html: survey effort and key findings
  - clusters.html: gap statistic, cluster sizes, zooplankton indicators, association tests
  - community.html: predator indicators, NMDS ordination, PERMANOVA
  - environment.html: fitted environmental vectors and covariates by cluster

Run locally:
    python -m peninsula_predators.flows.build
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from prefect import flow, task

from peninsula_predators.config import get_settings
from peninsula_predators.flows.analyze import RESULTS_PATH
from peninsula_predators.renderers import render_template
from peninsula_predators.renderers.clusters import (
    build_cluster_sizes_html,
    build_cluster_tests_html,
    build_gap_chart_html,
)
from peninsula_predators.renderers.environment import build_covariates_html, build_envfit_html
from peninsula_predators.renderers.indicators import build_indicators_html
from peninsula_predators.renderers.ordination import build_ordination_html, build_permanova_html
from peninsula_predators.renderers.survey_summary import (
    build_findings_html,
    build_survey_summary_html,
)
from peninsula_predators.store import DataStore

# Store and output paths
store = DataStore(get_settings().data_dir)
SITE_DIR = store.derived / "site"

# (file, nav title) in navigation order
PAGES = [
    ("index.html", "Overview"),
    ("clusters.html", "Zooplankton clusters"),
    ("community.html", "Predator community"),
    ("environment.html", "Environment"),
]


# =============================================================================
# Data loading tasks
# =============================================================================


@task(name="load-analysis")
def load_analysis() -> dict[str, Any] | None:
    """Load the analysis results document with its build timestamp."""
    raw = store.read_raw(RESULTS_PATH)
    if raw is None:
        return None
    return {"fetched_at": raw.get("meta", {}).get("fetched_at", ""), "data": raw.get("data", {})}


# =============================================================================
# Main build task and flow
# =============================================================================


def _sections(results: dict[str, Any]) -> dict[str, list[str]]:
    """HTML fragments for each page, in display order."""
    return {
        "index.html": [
            build_findings_html(results),
            build_survey_summary_html(results.get("summary", {})),
        ],
        "clusters.html": [
            build_gap_chart_html(results.get("gap", {})),
            build_cluster_sizes_html(results.get("clusters", {})),
            build_indicators_html(
                results.get("zooplankton_indicators", []), "Indicator zooplankton taxa"
            ),
            build_cluster_tests_html(results),
        ],
        "community.html": [
            build_ordination_html(
                results.get("ordination", {}), results.get("environmental_fit", [])
            ),
            build_permanova_html(results.get("permanova", {})),
            build_indicators_html(
                results.get("predator_indicators", []), "Indicator predator species"
            ),
        ],
        "environment.html": [
            build_envfit_html(results.get("environmental_fit", [])),
            build_covariates_html(
                results.get("covariate_summary", []), results.get("covariate_tests", [])
            ),
        ],
    }


@task(name="build-html")
def build_pages(analysis: dict[str, Any]) -> dict[str, str]:
    """Render every report page; returns file name -> HTML."""
    results = analysis["data"]
    fetched_at = analysis.get("fetched_at")
    updated = (
        datetime.fromisoformat(fetched_at).strftime("%Y-%m-%d %H:%M UTC") if fetched_at else ""
    )
    nav = [{"file": file, "title": title} for file, title in PAGES]
    sections = _sections(results)

    return {
        file: render_template(
            "base.html.j2",
            title=title,
            pages=nav,
            current=file,
            sections=sections[file],
            warnings=results.get("warnings", []) if file == "index.html" else [],
            updated=updated,
            version=results.get("version", ""),
        )
        for file, title in PAGES
    }


@task(name="write-site")
def write_site(pages: dict[str, str]) -> Path:
    """Write HTML pages to site directory."""
    SITE_DIR.mkdir(parents=True, exist_ok=True)
    for name, html in pages.items():
        with (SITE_DIR / name).open("w") as f:
            f.write(html)
    return SITE_DIR


@flow(name="build-site", log_prints=True)
def build_all() -> dict[str, Any]:
    """
    Build the report site from cached analysis results.

    This is the main Prefect flow that generates the static site.
    """
    print("Loading analysis results...")
    analysis = load_analysis()

    if not analysis:
        print("No analysis results found. Run analyze flow first.")
        return {"error": "no data"}

    print("Building HTML...")
    pages = build_pages(analysis)

    print("Writing site...")
    output_dir = write_site(pages)

    print(f"Site built: {output_dir} ({len(pages)} pages)")
    return {"pages": len(pages), "output": str(output_dir)}


if __name__ == "__main__":
    result = build_all()
    print(f"Flow complete: {result}")
