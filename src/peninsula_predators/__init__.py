"""Peninsula Predators - predator community analysis for Antarctic Peninsula surveys.

Architecture::

    datasources/   Survey tables (stations, predator sightings, zooplankton tows)
    store.py       Tiered cache (raw -> derived) with TTL and input fingerprints
    analysis/      Pure statistics (clustering, gap statistic, IndVal, NMDS, tests)
                   plus the Hamilton DAG that wires them together
    renderers/     Pure data -> HTML (clusters, community, environment reports)
    flows/         Prefect orchestration (fetch, analyze, build reports)
    services/      Shared utilities (HTTP client with retry)

Data flow: datasources -> store (raw) -> analysis -> store (derived) -> renderers -> site/

Extension points - see each package's docstring for step-by-step guides:
  - New survey table:   datasources/__init__.py
  - New analysis node:  analysis/__init__.py
  - New report section: renderers/__init__.py
"""

__version__ = "0.1.0"

from peninsula_predators.config import Settings
from peninsula_predators.schemas import Sighting, Station, ZooplanktonTow

__all__ = ["Settings", "Sighting", "Station", "ZooplanktonTow", "__version__"]
