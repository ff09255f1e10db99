"""
Availability engine.

Turns the restoration criteria into the binary available-area raster. The
result is derived from the full flag set every time, never patched
toggle by toggle.
"""

import logging
from typing import List

import numpy as np
from shapely.geometry.base import BaseGeometry

from core.grid import Raster
from core.landcover import LandCoverMasks
from core.models import RestorationCriteria

log = logging.getLogger(__name__)


def _combine(masks: List[Raster], template: Raster) -> np.ndarray:
    """Pixel-wise sum of the selected masks, masked pixels counting as 0."""
    total = np.zeros(template.shape, dtype="uint8")
    for mask in masks:
        total = total + mask.filled(0).astype("uint8")
    return total


def restoration_landcover(criteria: RestorationCriteria, masks: LandCoverMasks) -> np.ndarray:
    """Current-year land cover picked by the grassland/cropland flags."""
    selected = []
    if criteria.grassland:
        selected.append(masks.grassland)
    if criteria.cropland:
        selected.append(masks.cropland)
    return _combine(selected, masks.current)


def historical_landcover(criteria: RestorationCriteria, masks: LandCoverMasks) -> np.ndarray:
    """Reference-year land cover picked by the reforestation/afforestation flags."""
    selected = []
    if criteria.reforestation:
        selected.append(masks.historical_forest)
    if criteria.afforestation:
        selected.append(masks.not_historical_forest)
    return _combine(selected, masks.historical)


def compute_available_area(
    criteria: RestorationCriteria,
    masks: LandCoverMasks,
    country_geometry: BaseGeometry,
) -> Raster:
    """
    Binary raster of land that can be restored under the criteria.

    A pixel is available when it matches a selected current land cover AND a
    selected restoration type, and lies inside the country. Unavailable
    pixels are masked. No flag on either axis means nothing is available.
    """
    restoration = restoration_landcover(criteria, masks)
    historical = historical_landcover(criteria, masks)

    available = (restoration > 0) & (historical > 0)
    available &= masks.current.geometry_mask(country_geometry)

    area = masks.current.with_data(np.ma.array(available.astype("uint8"), mask=~available))
    log.info(f"Available area: {int(available.sum())} pixels for {criteria}")
    return area
