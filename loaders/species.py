"""
Species Ranges Loader - IUCN and BirdLife range polygons.

Thirteen taxon groups. Some groups are published in several parts
(corals, freshwater, marine fish); the parts are concatenated into one
frame per group. Only the columns the species count reads are kept.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Sequence, Tuple

import geopandas as gpd
import pandas as pd

from core.errors import DataSourceError
from core.species import SpeciesGroup
from loaders.countries import read_vector

log = logging.getLogger(__name__)

SPECIES_DIR = "species"
SPECIES_EXTENSION = ".gpkg"
NAME_COLUMN = "binomial"


@dataclass(frozen=True)
class SpeciesSource:
    """Where one taxon group lives and which column carries its Red List category."""
    name: str
    parts: Tuple[str, ...]
    category_column: str = "category"

    def file_names(self, extension: str = SPECIES_EXTENSION) -> List[str]:
        return [f"{SPECIES_DIR}/{part}{extension}" for part in self.parts]


SPECIES_SOURCES: Tuple[SpeciesSource, ...] = (
    SpeciesSource("Amphibians", ("iucn_amphibians",)),
    SpeciesSource("Birds", ("botw_simple_status",), category_column="RedList_28"),
    SpeciesSource("Reef-forming corals", ("iucn_corals1", "iucn_corals2", "iucn_corals3")),
    SpeciesSource("Cone snails", ("iucn_conus",)),
    SpeciesSource("Freshwater", tuple(f"iucn_freshwater{i}" for i in range(1, 7))),
    SpeciesSource("Lobsters", ("iucn_lobster",)),
    SpeciesSource("Mammals", ("iucn_mammals",)),
    SpeciesSource("Mangroves", ("iucn_mangroves",)),
    SpeciesSource("Marine fish", ("iucn_marine_fish1", "iucn_marine_fish2", "iucn_marine_fish3")),
    SpeciesSource("Reptiles", ("iucn_reptiles",)),
    SpeciesSource("Sea cucumbers", ("iucn_seacucumbers",)),
    SpeciesSource("Seagrasses", ("iucn_seagrasses",)),
    SpeciesSource("Sharks and rays", ("iucn_sharks_rays",)),
)


def load_species_group(source: SpeciesSource, locate: Callable[[str], Path], extension: str = SPECIES_EXTENSION) -> SpeciesGroup:
    """Read and merge the parts of one group."""
    frames = []
    for file_name in source.file_names(extension):
        frame = read_vector(locate(file_name))
        missing = [c for c in (source.category_column, NAME_COLUMN) if c not in frame.columns]
        if missing:
            raise DataSourceError(file_name, f"missing columns {missing}")
        frames.append(frame[[source.category_column, NAME_COLUMN, "geometry"]])

    merged = gpd.GeoDataFrame(pd.concat(frames, ignore_index=True), geometry="geometry", crs=frames[0].crs)
    log.info(f"Loaded {len(merged)} {source.name} ranges from {len(frames)} file(s)")
    return SpeciesGroup(source.name, merged, category_column=source.category_column, name_column=NAME_COLUMN)


def load_species_groups(
    locate: Callable[[str], Path],
    sources: Sequence[SpeciesSource] = SPECIES_SOURCES,
    extension: str = SPECIES_EXTENSION,
) -> List[SpeciesGroup]:
    return [load_species_group(source, locate, extension) for source in sources]
