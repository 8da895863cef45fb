"""
Domain models for peninsula predators.

Pydantic models for single survey records. The pipeline itself works on
pandas DataFrames; these models define the canonical record shape that the
loaders validate against and that callers can use to build tables row by row.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Survey records
# =============================================================================


class Station(BaseModel):
    """A sampling event: one ship station on one cruise."""

    model_config = {"str_strip_whitespace": True}

    station_id: str = Field(..., min_length=1, description="Unique station key")
    cruise: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2100)
    date: dt.date | None = None
    area: str | None = Field(default=None, description="Survey stratum name")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    ice_coverage: float | None = Field(default=None, ge=0, le=100, description="Percent")
    temperature: float | None = Field(default=None, description="Surface temperature, deg C")
    salinity: float | None = Field(default=None, description="Surface salinity, PSU")
    chlorophyll: float | None = Field(default=None, ge=0, description="mg m^-3")


class Sighting(BaseModel):
    """Count of one predator species at one station."""

    model_config = {"str_strip_whitespace": True}

    station_id: str = Field(..., min_length=1)
    species: str = Field(..., min_length=1, description="Four-letter survey species code")
    count: int = Field(..., ge=0)

    @field_validator("species")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.upper()


class ZooplanktonTow(BaseModel):
    """Abundance of one zooplankton taxon in one net tow."""

    model_config = {"str_strip_whitespace": True}

    station_id: str = Field(..., min_length=1)
    taxon: str = Field(..., min_length=1)
    abundance: float = Field(..., ge=0, description="Individuals per 1000 m^3")


# =============================================================================
# Analysis outputs
# =============================================================================


class ClusterAssignment(BaseModel):
    """Cluster label for one station."""

    station_id: str
    cluster: int = Field(..., ge=1)


class OrdinationScore(BaseModel):
    """Per-station NMDS coordinates."""

    station_id: str
    nmds1: float
    nmds2: float
    cluster: int | None = None
