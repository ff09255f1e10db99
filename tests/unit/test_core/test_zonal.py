import pytest
from shapely.geometry import LineString, MultiPolygon, Polygon, box

from core.availability import compute_available_area
from core.errors import InvalidGeometryError, NoAvailableAreaError
from core.models import ProjectParameters, RestorationCriteria
from core.proforma import round_half_away
from core.zonal import compute_stats, restoration_region, validate_aoi


@pytest.fixture
def available(masks, grid_box):
    # Pixels (0, 0) and (1, 0)
    return compute_available_area(RestorationCriteria(grassland=True, reforestation=True), masks, grid_box)


def test_stats_over_whole_grid(available, zonal_rasters, species_groups, grid_box):
    params = ProjectParameters()
    stats = compute_stats(grid_box, available, zonal_rasters, species_groups, params)

    pixel_area = available.pixel_area_ha()
    area = pixel_area[0, 0] + pixel_area[1, 0]
    assert stats.area_ha == round_half_away(area)
    assert stats.species_count == 2
    assert stats.beneficiaries == 20
    assert stats.carbon_ag == round_half_away(area * 2.0 * 15)
    assert stats.carbon_bg == round_half_away(area * 0.5 * 15)
    assert stats.total_cost == round_half_away(area * 1686 * 15)
    assert stats.total_return == round_half_away(area * 3788 * 15)
    assert stats.return_cost_ratio == 2.2


def test_stats_are_deterministic(available, zonal_rasters, species_groups, grid_box):
    first = compute_stats(grid_box, available, zonal_rasters, species_groups, ProjectParameters())
    second = compute_stats(grid_box, available, zonal_rasters, species_groups, ProjectParameters())
    assert first == second


def test_species_counted_over_full_area(available, zonal_rasters, species_groups):
    """
    Species use the whole drawn area, the other statistics only its
    available part. An area with nothing available still reports species.
    """
    bottom_right = box(10.02, 0.96, 10.04, 0.98)
    stats = compute_stats(bottom_right, available, zonal_rasters, species_groups, ProjectParameters())

    assert stats.area_ha == 0
    assert stats.beneficiaries == 0
    assert stats.carbon_ag == 0
    assert stats.total_cost == 0
    assert stats.return_cost_ratio is None
    assert stats.species_count == 2


def test_missing_carbon_counts_as_zero(available, zonal_rasters, species_groups, grid_box, make_raster):
    import numpy as np
    from core.zonal import ZonalRasters

    mask = np.zeros((4, 4), dtype=bool)
    mask[1, 0] = True
    rasters = ZonalRasters(
        population=zonal_rasters.population,
        carbon_ag=make_raster(np.full((4, 4), 2.0), mask=mask),
        carbon_bg=zonal_rasters.carbon_bg,
    )
    stats = compute_stats(grid_box, available, rasters, species_groups, ProjectParameters())

    pixel_area = available.pixel_area_ha()
    area = pixel_area[0, 0] + pixel_area[1, 0]
    # Mean rate over the two pixels is (2 + 0) / 2
    assert stats.carbon_ag == round_half_away(area * 1.0 * 15)


def test_requires_available_area(zonal_rasters, species_groups, grid_box):
    with pytest.raises(NoAvailableAreaError):
        compute_stats(grid_box, None, zonal_rasters, species_groups, ProjectParameters())


def test_restoration_region(available):
    region = restoration_region(box(10.0, 0.99, 10.01, 1.0), available)
    assert region.sum() == 1
    assert region[0, 0]


@pytest.mark.parametrize("aoi", [
    None,
    Polygon(),
    LineString([(10, 0.97), (10.03, 0.99)]),
    MultiPolygon([box(10, 0.96, 10.01, 0.97), box(10.02, 0.98, 10.03, 0.99)]),
    Polygon([(10, 0.96), (10.04, 1.0), (10.04, 0.96), (10, 1.0)]),
])
def test_invalid_aoi(aoi):
    with pytest.raises(InvalidGeometryError):
        validate_aoi(aoi)


def test_valid_aoi(grid_box):
    assert validate_aoi(grid_box) is grid_box
