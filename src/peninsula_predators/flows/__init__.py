"""
Prefect flows for the survey pipeline.

Flows:
- fetch: Copy survey tables from the research-data repository into raw/
- analyze: Run the analysis DAG over raw/ and cache results in derived/analysis/
- build: Render the HTML reports from cached results into derived/site/

Usage (local):
    python -m peninsula_predators.flows.fetch
    python -m peninsula_predators.flows.analyze
    python -m peninsula_predators.flows.build

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    peninsula-predators refresh
"""
