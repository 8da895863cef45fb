"""Survey table retrieval from a URL base or a local directory."""

from __future__ import annotations

import io
from pathlib import Path

import pandas as pd

from peninsula_predators.services.http import session

# Key columns are read as strings so "0101" stays "0101".
KEY_COLUMN_DTYPES = {"station_id": str, "cruise": str, "species": str, "taxon": str, "area": str}


def is_url(source: str) -> bool:
    """True if ``source`` points at an http(s) location."""
    return source.startswith(("http://", "https://"))


def table_location(name: str, source: str) -> str:
    """Return the URL or filesystem path of a survey table."""
    if is_url(source):
        return f"{source.rstrip('/')}/{name}.csv"
    return str(Path(source) / f"{name}.csv")


def read_survey_table(name: str, source: str) -> pd.DataFrame:
    """Read one survey table (``stations``, ``sightings`` or ``zooplankton``).

    Args:
        name: Table name; the file is ``{source}/{name}.csv``.
        source: http(s) base URL or local directory.

    Returns:
        The raw table. Validation happens later in ``loaders``.

    Raises:
        requests.HTTPError: If the repository returns an error status.
        FileNotFoundError: If a local table is missing.
    """
    location = table_location(name, source)
    if is_url(source):
        resp = session.get(location)
        resp.raise_for_status()
        return pd.read_csv(io.StringIO(resp.text), dtype=KEY_COLUMN_DTYPES)

    path = Path(location)
    if not path.exists():
        msg = f"Survey table not found: {path}"
        raise FileNotFoundError(msg)
    return pd.read_csv(path, dtype=KEY_COLUMN_DTYPES)
