"""
Prefect flow for fetching survey tables.

Reads the stations, sightings and zooplankton tables from the configured
source (http(s) base URL or local directory) and caches them under raw/.

Run locally:
    python -m peninsula_predators.flows.fetch

Run with Prefect dashboard:
    prefect server start &
    python -m peninsula_predators.flows.fetch
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pandas as pd  # noqa: TC002 - Prefect inspects task annotations at runtime
from prefect import flow, task

from peninsula_predators.config import get_settings
from peninsula_predators.datasources.survey import read_survey_table, table_location
from peninsula_predators.reference import SURVEY_TABLES
from peninsula_predators.store import DataStore

# Data store with tiered directories
store = DataStore(get_settings().data_dir)


def raw_path(name: str) -> Path:
    """Store-relative path of a cached survey table."""
    return Path(f"raw/{name}.csv")


def is_cached(name: str, source: str) -> bool:
    """True if the raw table is fresh and was fetched from ``source``."""
    path = raw_path(name)
    if not store.is_fresh(path):
        return False
    return store.read_meta(path).get("source") == table_location(name, source)


@task(name="read-survey-table", retries=2, retry_delay_seconds=5)
def fetch_table(name: str, source: str) -> pd.DataFrame:
    """Read one survey table from the repository or a local directory."""
    return read_survey_table(name, source)


@task(name="save-survey-table")
def save_table(name: str, df: pd.DataFrame, source: str) -> Path:
    """Save a survey table via store."""
    return store.write_table(
        raw_path(name),
        df,
        source=table_location(name, source),
        valid_until=datetime.now(UTC) + timedelta(days=get_settings().raw_ttl_days),
    )


@flow(name="fetch-data", log_prints=True)
def fetch_all(source: str | None = None, force: bool = False) -> dict[str, Any]:
    """
    Fetch all survey tables.

    Checks freshness before fetching; skips tables that are still valid and
    were fetched from the same source, unless ``force`` is set.

    Args:
        source: Base URL or directory; defaults to ``Settings.survey_source``.
        force: Re-fetch even if the cached copy is fresh.

    Returns:
        Row count per table.
    """
    source = source or get_settings().survey_source
    results: dict[str, Any] = {}

    for name in SURVEY_TABLES:
        path = raw_path(name)
        if is_cached(name, source) and not force:
            print(f"{name} table is fresh, skipping fetch.")
            results[name] = store.read_meta(path).get("rows", 0)
            continue

        print(f"Fetching {name} from {table_location(name, source)}...")
        df = fetch_table(name, source)
        output_path = save_table(name, df, source)
        print(f"Saved {len(df)} {name} rows to {output_path}")
        results[name] = len(df)

    return results


if __name__ == "__main__":
    result = fetch_all()
    print(f"Flow complete: {result}")
