"""Survey design constants: table names, columns, strata, covariates."""

from __future__ import annotations

# Tables pulled from the research-data repository, one CSV each.
SURVEY_TABLES: tuple[str, ...] = ("stations", "sightings", "zooplankton")

# Required columns per table (optional ones are handled by the loaders).
STATION_COLUMNS: tuple[str, ...] = ("station_id", "cruise", "year", "latitude", "longitude")
SIGHTING_COLUMNS: tuple[str, ...] = ("station_id", "species", "count")
ZOOPLANKTON_COLUMNS: tuple[str, ...] = ("station_id", "taxon", "abundance")

# Environmental covariates measured at each station.
COVARIATE_COLUMNS: tuple[str, ...] = ("ice_coverage", "temperature", "salinity", "chlorophyll")

COVARIATE_LABELS: dict[str, str] = {
    "ice_coverage": "Ice coverage (%)",
    "temperature": "Surface temperature (°C)",
    "salinity": "Surface salinity (PSU)",
    "chlorophyll": "Chlorophyll a (mg m⁻³)",
}

# Survey strata around the northern Antarctic Peninsula.
SURVEY_AREAS: dict[str, str] = {
    "EI": "Elephant Island",
    "WA": "West Area",
    "SA": "South Area",
    "JI": "Joinville Island",
}
