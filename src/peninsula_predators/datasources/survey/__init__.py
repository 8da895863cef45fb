"""Ship-based predator and zooplankton survey tables.

Three CSV tables are published per survey season in the research-data
repository and merged across years upstream:

  - stations:    one row per sampling event (cruise, year, position, covariates)
  - sightings:   predator counts per station and species code
  - zooplankton: net-tow abundance per station and taxon

Public API:
  - client: read_survey_table, table_location
  - loaders: load_stations, load_sightings, load_zooplankton
"""

from peninsula_predators.datasources.survey.client import (
    KEY_COLUMN_DTYPES,
    read_survey_table,
    table_location,
)
from peninsula_predators.datasources.survey.loaders import (
    load_sightings,
    load_stations,
    load_zooplankton,
)

__all__ = [
    "KEY_COLUMN_DTYPES",
    "load_sightings",
    "load_stations",
    "load_zooplankton",
    "read_survey_table",
    "table_location",
]
