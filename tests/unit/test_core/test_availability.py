import itertools

import pytest
from shapely.geometry import box

from core.availability import compute_available_area, historical_landcover, restoration_landcover
from core.models import RestorationCriteria


@pytest.mark.parametrize("grassland,cropland,reforestation,afforestation", [
    flags for flags in itertools.product([False, True], repeat=4)
    if not (flags[0] or flags[1]) or not (flags[2] or flags[3])
])
def test_no_flag_on_either_axis_is_empty(masks, grid_box, grassland, cropland, reforestation, afforestation):
    """Verify no land is available unless both axes have a flag set."""
    criteria = RestorationCriteria(grassland, cropland, reforestation, afforestation)
    area = compute_available_area(criteria, masks, grid_box)
    assert area.is_empty


@pytest.mark.parametrize("criteria,expected", [
    (RestorationCriteria(grassland=True, reforestation=True), {(0, 0), (1, 0)}),
    (RestorationCriteria(cropland=True, reforestation=True), {(0, 1), (3, 0)}),
    (RestorationCriteria(grassland=True, afforestation=True), {(0, 2), (1, 1), (2, 0), (3, 1), (3, 2)}),
])
def test_available_pixels(masks, grid_box, criteria, expected):
    area = compute_available_area(criteria, masks, grid_box)
    rows, cols = area.valid.nonzero()
    assert set(zip(rows.tolist(), cols.tolist())) == expected
    assert (area.filled(0)[area.valid] == 1).all()


def test_all_flags(masks, grid_box):
    criteria = RestorationCriteria(True, True, True, True)
    area = compute_available_area(criteria, masks, grid_box)
    # 8 grassland + 5 cropland, minus one pixel with no historical class
    assert area.valid.sum() == 12


def test_clipped_to_country(masks):
    """Pixels outside the country outline are not available."""
    criteria = RestorationCriteria(True, True, True, True)
    top_row = box(10.0, 0.99, 10.04, 1.0)
    area = compute_available_area(criteria, masks, top_row)
    assert area.valid[0].sum() == 4
    assert not area.valid[1:].any()


def test_order_independent(masks, grid_box):
    """The same flag set gives the same area however it was reached."""
    a = RestorationCriteria().with_flag("grassland", True).with_flag("reforestation", True)
    b = (
        RestorationCriteria()
        .with_flag("reforestation", True)
        .with_flag("cropland", True)
        .with_flag("grassland", True)
        .with_flag("cropland", False)
    )
    assert a == b
    first = compute_available_area(a, masks, grid_box)
    second = compute_available_area(b, masks, grid_box)
    assert (first.valid == second.valid).all()


def test_axis_helpers(masks):
    criteria = RestorationCriteria(grassland=True, cropland=True)
    assert restoration_landcover(criteria, masks).sum() == 13
    assert historical_landcover(criteria, masks).sum() == 0
