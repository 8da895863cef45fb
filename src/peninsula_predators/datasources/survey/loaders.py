"""Validation and coercion of raw survey tables.

Each loader takes the table exactly as read from the repository and returns
a clean DataFrame, or raises ``SurveyDataError`` describing the first
problems found. Rows are validated through the pydantic record models in
``schemas``; table-level rules (primary keys, foreign keys) are checked here.
"""

from __future__ import annotations

from typing import Any

import pandas as pd
from pydantic import BaseModel, ValidationError

from peninsula_predators.errors import SurveyDataError
from peninsula_predators.reference.survey import (
    COVARIATE_COLUMNS,
    SIGHTING_COLUMNS,
    STATION_COLUMNS,
    ZOOPLANKTON_COLUMNS,
)
from peninsula_predators.schemas import Sighting, Station, ZooplanktonTow

# Maximum number of row errors listed in a SurveyDataError message
_MAX_REPORTED_ERRORS = 5


def _require_columns(df: pd.DataFrame, columns: tuple[str, ...], table: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        msg = f"{table}: missing required columns {missing}"
        raise SurveyDataError(msg)


def _key_strings(series: pd.Series) -> pd.Series:
    """Normalize a key column to stripped strings, keeping missing values as None."""
    return series.map(lambda v: None if pd.isna(v) else str(v).strip() or None)


def _require_keys(df: pd.DataFrame, keys: tuple[str, ...], table: str) -> None:
    for key in keys:
        missing = df[key].isna()
        if missing.any():
            rows = [int(i) for i in df.index[missing][:_MAX_REPORTED_ERRORS]]
            msg = f"{table}: {int(missing.sum())} rows with missing {key} (rows {rows})"
            raise SurveyDataError(msg)


def _validate_rows(df: pd.DataFrame, model: type[BaseModel], table: str) -> pd.DataFrame:
    """Validate every row through ``model`` and rebuild the frame from the results."""
    records: list[dict[str, Any]] = []
    errors: list[str] = []
    for i, row in enumerate(df.to_dict(orient="records")):
        clean = {k: (None if _is_missing(v) else v) for k, v in row.items()}
        try:
            records.append(model.model_validate(clean).model_dump())
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first["loc"])
            errors.append(f"row {i} {field}: {first['msg']}")

    if errors:
        shown = "; ".join(errors[:_MAX_REPORTED_ERRORS])
        msg = f"{table}: {len(errors)} invalid rows ({shown})"
        raise SurveyDataError(msg)

    return pd.DataFrame.from_records(records, columns=list(model.model_fields))


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _require_known_stations(df: pd.DataFrame, stations: pd.DataFrame, table: str) -> None:
    unknown = sorted(set(df["station_id"]) - set(stations.index))
    if unknown:
        shown = unknown[:_MAX_REPORTED_ERRORS]
        msg = f"{table}: {len(unknown)} unknown station_id values ({shown})"
        raise SurveyDataError(msg)


def load_stations(df: pd.DataFrame) -> pd.DataFrame:
    """Validate the stations table.

    Missing covariate columns are added as all-NaN so downstream code can rely
    on them. Missing covariate values are kept (omitted later, per analysis).

    Returns:
        DataFrame indexed by ``station_id``, sorted by year, cruise, station.
    """
    _require_columns(df, STATION_COLUMNS, "stations")
    df = df.copy()
    for col in ("station_id", "cruise"):
        df[col] = _key_strings(df[col])
    _require_keys(df, ("station_id",), "stations")

    dupes = df["station_id"][df["station_id"].duplicated()].unique().tolist()
    if dupes:
        msg = f"stations: duplicated station_id values ({dupes[:_MAX_REPORTED_ERRORS]})"
        raise SurveyDataError(msg)

    for col in COVARIATE_COLUMNS:
        if col not in df.columns:
            df[col] = float("nan")

    stations = _validate_rows(df, Station, "stations")
    for col in COVARIATE_COLUMNS:
        stations[col] = pd.to_numeric(stations[col], errors="coerce")
    stations["date"] = pd.to_datetime(stations["date"], errors="coerce")

    return (
        stations.sort_values(["year", "cruise", "station_id"], kind="stable")
        .set_index("station_id")
    )


def load_sightings(df: pd.DataFrame, stations: pd.DataFrame) -> pd.DataFrame:
    """Validate predator sightings against the stations table.

    Duplicate (station, species) rows are summed, as observers may log the
    same species more than once per station.
    """
    _require_columns(df, SIGHTING_COLUMNS, "sightings")
    df = df.copy()
    for col in ("station_id", "species"):
        df[col] = _key_strings(df[col])
    _require_keys(df, ("station_id", "species"), "sightings")

    sightings = _validate_rows(df, Sighting, "sightings")
    _require_known_stations(sightings, stations, "sightings")

    return (
        sightings.groupby(["station_id", "species"], as_index=False, sort=True)["count"]
        .sum()
        .astype({"count": "int64"})
    )


def load_zooplankton(df: pd.DataFrame, stations: pd.DataFrame) -> pd.DataFrame:
    """Validate zooplankton tow abundances against the stations table."""
    _require_columns(df, ZOOPLANKTON_COLUMNS, "zooplankton")
    df = df.copy()
    for col in ("station_id", "taxon"):
        df[col] = _key_strings(df[col])
    _require_keys(df, ("station_id", "taxon"), "zooplankton")

    tows = _validate_rows(df, ZooplanktonTow, "zooplankton")
    _require_known_stations(tows, stations, "zooplankton")

    return tows.groupby(["station_id", "taxon"], as_index=False, sort=True)["abundance"].sum()
