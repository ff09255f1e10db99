"""
Threatened species exposure for a project area.

Counts distinct threatened species (IUCN CR/EN/VU) whose ranges intersect
the drawn area, per taxon group, then sums the groups.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable

import geopandas as gpd
from shapely.geometry.base import BaseGeometry

log = logging.getLogger(__name__)

THREATENED_CATEGORIES = ("CR", "EN", "VU")


@dataclass(frozen=True, eq=False)
class SpeciesGroup:
    """
    One taxon group: its merged range polygons and the columns to read.

    BirdLife data stores the Red List category under a different column
    from the IUCN layers, hence the per-group category column.
    """
    name: str
    frame: gpd.GeoDataFrame
    category_column: str = "category"
    name_column: str = "binomial"


def threatened_in_group(aoi: BaseGeometry, group: SpeciesGroup) -> int:
    """Distinct threatened species in one group whose range touches aoi."""
    frame = group.frame
    if frame.empty:
        return 0
    hits = frame.iloc[frame.sindex.query(aoi, predicate="intersects")]
    threatened = hits[hits[group.category_column].isin(THREATENED_CATEGORIES)]
    return int(threatened[group.name_column].dropna().nunique())


def threatened_by_group(aoi: BaseGeometry, groups: Iterable[SpeciesGroup]) -> Dict[str, int]:
    """Threatened species count per group name."""
    return {group.name: threatened_in_group(aoi, group) for group in groups}


def count_threatened_species(aoi: BaseGeometry, groups: Iterable[SpeciesGroup]) -> int:
    """
    Total threatened species for the project area.

    Species are de-duplicated by name within each group only; the group
    counts are then added.
    """
    counts = threatened_by_group(aoi, groups)
    log.debug(f"Threatened species by group: {counts}")
    return sum(counts.values())
