"""
Zonal statistics engine.

Computes the project outcomes for a drawn area: restoration area, species
exposure, beneficiaries, carbon and cost/return.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from core.errors import InvalidGeometryError, NoAvailableAreaError
from core.grid import Raster, region_mean, region_sum
from core.models import ProjectParameters, ProjectStatistics
from core.proforma import ProFormaEngine, round_half_away
from core.species import SpeciesGroup, count_threatened_species

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ZonalRasters:
    """Rasters reduced over the project area, all on the available-area grid."""
    population: Raster
    carbon_ag: Raster
    carbon_bg: Raster


def validate_aoi(aoi: BaseGeometry) -> Polygon:
    """Accept a single non-empty rectangle or polygon."""
    if aoi is None or not isinstance(aoi, Polygon):
        kind = type(aoi).__name__ if aoi is not None else "nothing"
        raise InvalidGeometryError(f"Project area must be a rectangle or polygon, got {kind}")
    if aoi.is_empty or aoi.area == 0:
        raise InvalidGeometryError("Project area is empty")
    if not aoi.is_valid:
        raise InvalidGeometryError("Project area polygon is self-intersecting")
    return aoi


def restoration_region(aoi: BaseGeometry, available_area: Raster) -> np.ndarray:
    """Pixels that are both available and inside the project area."""
    return available_area.valid & available_area.geometry_mask(aoi)


def _mean_rate(raster: Raster, region: np.ndarray) -> float:
    # Missing carbon pixels count as 0; an empty region has rate 0.
    mean = region_mean(raster.unmask(0), region)
    return 0.0 if mean is None else mean


def compute_stats(
    aoi: BaseGeometry,
    available_area: Raster,
    rasters: ZonalRasters,
    species_groups: Iterable[SpeciesGroup],
    params: ProjectParameters,
) -> ProjectStatistics:
    """
    Project statistics for one drawn area.

    Area, beneficiaries and carbon are reduced over the available part of
    the area. Species are counted over the full drawn area, so an area with
    nothing available can still report threatened species.
    """
    if available_area is None:
        raise NoAvailableAreaError()
    aoi = validate_aoi(aoi)

    region = restoration_region(aoi, available_area)
    pixel_area = available_area.with_data(np.ma.array(available_area.pixel_area_ha(), mask=False))
    area_ha = region_sum(pixel_area, region)

    species_count = count_threatened_species(aoi, species_groups)
    beneficiaries = round_half_away(region_sum(rasters.population, region))

    carbon_ag = round_half_away(area_ha * _mean_rate(rasters.carbon_ag, region) * params.project_length)
    carbon_bg = round_half_away(area_ha * _mean_rate(rasters.carbon_bg, region) * params.project_length)

    economics = ProFormaEngine().calculate(area_ha, params)

    stats = ProjectStatistics(
        area_ha=round_half_away(area_ha),
        species_count=species_count,
        beneficiaries=beneficiaries,
        carbon_ag=carbon_ag,
        carbon_bg=carbon_bg,
        total_cost=economics.total_cost,
        total_return=economics.total_return,
        return_cost_ratio=economics.return_cost_ratio,
    )
    log.info(f"Project statistics over {int(region.sum())} pixels: {stats.to_dict()}")
    return stats
