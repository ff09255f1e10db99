"""
Land-cover classifier.

Reclassifies ESA CCI land-cover codes into seven classes and derives the
binary masks the availability engine works from.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable

import numpy as np

from core.grid import Raster

log = logging.getLogger(__name__)


class LandCoverClass(IntEnum):
    """Semantic land-cover classes after reclassification."""
    FOREST = 1
    GRASSLAND = 2
    CROPLAND = 3
    WETLAND = 4
    URBAN = 5
    OTHER = 6  # other vegetation, sparse and bare land
    WATER = 7


# ESA CCI source code -> LandCoverClass
LANDCOVER_REMAP: Dict[int, int] = {
    # cropland
    10: 3, 11: 3, 12: 3, 20: 3, 30: 3, 40: 3,
    # tree cover
    50: 1, 60: 1, 61: 1, 62: 1, 70: 1, 71: 1, 72: 1, 80: 1, 81: 1, 82: 1, 90: 1, 100: 1,
    # mosaic natural vegetation, shrubland, grassland, lichens, sparse vegetation
    110: 2, 120: 2, 121: 2, 122: 2, 130: 2, 140: 2, 150: 2, 151: 2, 152: 2, 153: 2,
    # flooded vegetation
    160: 4, 170: 4, 180: 4,
    190: 5,
    200: 6, 201: 6, 202: 6, 220: 6,
    210: 7,
}

HISTORICAL_YEAR = 1992
CURRENT_YEAR = 2018

_LOOKUP = np.zeros(max(LANDCOVER_REMAP) + 1, dtype="uint8")
for _code, _cls in LANDCOVER_REMAP.items():
    _LOOKUP[_code] = _cls


def reclassify(raw: Raster) -> Raster:
    """
    Map raw land-cover codes to LandCoverClass values.

    Codes missing from the table become masked.
    """
    codes = raw.filled(0).astype("int64")
    in_table = np.isin(codes, list(LANDCOVER_REMAP))
    keep = raw.valid & in_table
    classes = _LOOKUP[np.where(keep, codes, 0)]
    dropped = int((raw.valid & ~in_table).sum())
    if dropped:
        log.debug(f"Masked {dropped} pixels with codes outside the remap table")
    return raw.with_data(np.ma.array(classes, mask=~keep))


def class_mask(classified: Raster, classes: Iterable[int]) -> Raster:
    """1 where the pixel is in one of classes, masked everywhere else."""
    hit = classified.valid & np.isin(classified.filled(0), [int(c) for c in classes])
    return classified.with_data(np.ma.array(hit.astype("uint8"), mask=~hit))


@dataclass(frozen=True, eq=False)
class LandCoverMasks:
    """
    Reclassified land cover for both years plus the derived binary masks.

    Each mask holds 1 where set and is masked everywhere else.
    """
    historical: Raster
    current: Raster
    grassland: Raster
    cropland: Raster
    historical_forest: Raster
    not_historical_forest: Raster


def classify_landcover(historical_raw: Raster, current_raw: Raster) -> LandCoverMasks:
    """Reclassify both snapshots and derive the four restoration masks."""
    if not historical_raw.is_aligned_with(current_raw):
        raise ValueError("Historical and current land cover must share a grid")

    historical = reclassify(historical_raw)
    current = reclassify(current_raw)
    non_forest = [c for c in LandCoverClass if c != LandCoverClass.FOREST]

    masks = LandCoverMasks(
        historical=historical,
        current=current,
        grassland=class_mask(current, [LandCoverClass.GRASSLAND]),
        cropland=class_mask(current, [LandCoverClass.CROPLAND]),
        historical_forest=class_mask(historical, [LandCoverClass.FOREST]),
        not_historical_forest=class_mask(historical, non_forest),
    )
    log.info(
        f"Classified land cover: {int(masks.grassland.valid.sum())} grassland, "
        f"{int(masks.cropland.valid.sum())} cropland, "
        f"{int(masks.historical_forest.valid.sum())} historical forest pixels"
    )
    return masks
