"""Predator species recorded on the ship-based surveys.

Codes are the four-letter alpha codes written by observers on the
sighting sheets.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PredatorSpecies:
    """A seabird or marine mammal taxon recorded by observers."""

    code: str
    common_name: str
    scientific_name: str
    group: str  # seabird, penguin, pinniped, cetacean


_SPECIES = [
    # Flying seabirds
    PredatorSpecies("BBAL", "Black-browed albatross", "Thalassarche melanophris", "seabird"),
    PredatorSpecies("GHAL", "Grey-headed albatross", "Thalassarche chrysostoma", "seabird"),
    PredatorSpecies("LMSA", "Light-mantled sooty albatross", "Phoebetria palpebrata", "seabird"),
    PredatorSpecies("SGPE", "Southern giant petrel", "Macronectes giganteus", "seabird"),
    PredatorSpecies("SOFU", "Southern fulmar", "Fulmarus glacialoides", "seabird"),
    PredatorSpecies("CAPE", "Cape petrel", "Daption capense", "seabird"),
    PredatorSpecies("ANPE", "Antarctic petrel", "Thalassoica antarctica", "seabird"),
    PredatorSpecies("SNPE", "Snow petrel", "Pagodroma nivea", "seabird"),
    PredatorSpecies("BLPE", "Blue petrel", "Halobaena caerulea", "seabird"),
    PredatorSpecies("ANPR", "Antarctic prion", "Pachyptila desolata", "seabird"),
    PredatorSpecies("WCPE", "White-chinned petrel", "Procellaria aequinoctialis", "seabird"),
    PredatorSpecies("WISP", "Wilson's storm petrel", "Oceanites oceanicus", "seabird"),
    PredatorSpecies("BBSP", "Black-bellied storm petrel", "Fregetta tropica", "seabird"),
    PredatorSpecies("SPSK", "South polar skua", "Stercorarius maccormicki", "seabird"),
    PredatorSpecies("BRSK", "Brown skua", "Stercorarius antarcticus", "seabird"),
    PredatorSpecies("KEGU", "Kelp gull", "Larus dominicanus", "seabird"),
    PredatorSpecies("ANTE", "Antarctic tern", "Sterna vittata", "seabird"),
    PredatorSpecies("ANSH", "Antarctic shag", "Leucocarbo bransfieldensis", "seabird"),
    # Penguins
    PredatorSpecies("ADPE", "Adelie penguin", "Pygoscelis adeliae", "penguin"),
    PredatorSpecies("CHPE", "Chinstrap penguin", "Pygoscelis antarcticus", "penguin"),
    PredatorSpecies("GEPE", "Gentoo penguin", "Pygoscelis papua", "penguin"),
    PredatorSpecies("MAPE", "Macaroni penguin", "Eudyptes chrysolophus", "penguin"),
    # Pinnipeds
    PredatorSpecies("ANFS", "Antarctic fur seal", "Arctocephalus gazella", "pinniped"),
    PredatorSpecies("CRSE", "Crabeater seal", "Lobodon carcinophaga", "pinniped"),
    PredatorSpecies("LESE", "Leopard seal", "Hydrurga leptonyx", "pinniped"),
    PredatorSpecies("WESE", "Weddell seal", "Leptonychotes weddellii", "pinniped"),
    PredatorSpecies("SOES", "Southern elephant seal", "Mirounga leonina", "pinniped"),
    # Cetaceans
    PredatorSpecies("HUWH", "Humpback whale", "Megaptera novaeangliae", "cetacean"),
    PredatorSpecies("FIWH", "Fin whale", "Balaenoptera physalus", "cetacean"),
    PredatorSpecies("MIWH", "Antarctic minke whale", "Balaenoptera bonaerensis", "cetacean"),
    PredatorSpecies("KIWH", "Killer whale", "Orcinus orca", "cetacean"),
    PredatorSpecies("HODO", "Hourglass dolphin", "Lagenorhynchus cruciger", "cetacean"),
]

PREDATOR_SPECIES: dict[str, PredatorSpecies] = {sp.code: sp for sp in _SPECIES}


def species_label(code: str) -> str:
    """Common name for a species code, falling back to the code itself."""
    sp = PREDATOR_SPECIES.get(code.upper())
    return sp.common_name if sp else code


def species_group(code: str) -> str:
    """Taxonomic group for a species code (``"unknown"`` if not listed)."""
    sp = PREDATOR_SPECIES.get(code.upper())
    return sp.group if sp else "unknown"
