"""Static survey constants.

Reference data that doesn't change between pipeline runs: predator species
codes, survey strata, table column names.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/dataclasses
2. Re-export from this ``__init__.py``
"""

from peninsula_predators.reference.species import PREDATOR_SPECIES as PREDATOR_SPECIES
from peninsula_predators.reference.species import PredatorSpecies as PredatorSpecies
from peninsula_predators.reference.species import species_label as species_label
from peninsula_predators.reference.survey import COVARIATE_COLUMNS as COVARIATE_COLUMNS
from peninsula_predators.reference.survey import COVARIATE_LABELS as COVARIATE_LABELS
from peninsula_predators.reference.survey import SURVEY_AREAS as SURVEY_AREAS
from peninsula_predators.reference.survey import SURVEY_TABLES as SURVEY_TABLES
