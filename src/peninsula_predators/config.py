"""
Application settings.

Values come from (highest priority first) environment variables prefixed with
``PREDATORS_``, a local ``.env`` file, then the defaults below::

    PREDATORS_SURVEY_SOURCE=https://data.example.org/amlr/predators
    PREDATORS_GAP_BOOTSTRAPS=500
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

GapRule = Literal["firstmax", "globalmax", "Tibs2001SEmax", "firstSEmax", "globalSEmax"]
Transform = Literal["none", "sqrt", "fourth_root", "log10p1", "presence", "hellinger"]
LinkageMethod = Literal["single", "complete", "average", "weighted", "centroid", "median", "ward"]


class Settings(BaseSettings):
    """Runtime configuration for the pipeline and CLI."""

    model_config = SettingsConfigDict(
        env_prefix="PREDATORS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "peninsula-predators"
    app_env: str = "development"
    debug: bool = False

    # Storage and inputs
    data_dir: Path = Path("data")
    survey_source: str = Field(
        default="data/source",
        description="Directory or http(s) base URL holding stations/sightings/zooplankton CSVs",
    )
    raw_ttl_days: int = Field(default=90, ge=0)
    api_port: int = 8000

    # Analysis parameters
    random_seed: int = 42
    k_max: int = Field(default=8, ge=2)
    gap_bootstraps: int = Field(default=100, ge=1)
    gap_method: GapRule = "firstSEmax"
    gap_space: Literal["original", "scaledPCA"] = "original"
    linkage_method: LinkageMethod = "average"
    distance_metric: str = "braycurtis"
    zooplankton_transform: Transform = "log10p1"
    predator_transform: Transform = "sqrt"
    min_species_stations: int = Field(default=3, ge=1)
    nmds_dimensions: int = Field(default=2, ge=2)
    nmds_n_init: int = Field(default=20, ge=1)
    nmds_max_iter: int = Field(default=300, ge=1)
    n_permutations: int = Field(default=999, ge=0)

    def analysis_params(self) -> dict[str, Any]:
        """Parameters that feed the analysis DAG (and its cache fingerprint)."""
        return {
            "random_seed": self.random_seed,
            "k_max": self.k_max,
            "gap_bootstraps": self.gap_bootstraps,
            "gap_method": self.gap_method,
            "gap_space": self.gap_space,
            "linkage_method": self.linkage_method,
            "distance_metric": self.distance_metric,
            "zooplankton_transform": self.zooplankton_transform,
            "predator_transform": self.predator_transform,
            "min_species_stations": self.min_species_stations,
            "nmds_dimensions": self.nmds_dimensions,
            "nmds_n_init": self.nmds_n_init,
            "nmds_max_iter": self.nmds_max_iter,
            "n_permutations": self.n_permutations,
        }


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
