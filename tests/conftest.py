import numpy as np
import pytest
import geopandas as gpd
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import box

from core.errors import UnsupportedCountryError
from core.grid import Raster
from core.landcover import classify_landcover
from core.models import Country, CountryBounds
from core.scoring import PriorityFactor
from core.session import CountryWorkspace
from core.species import SpeciesGroup
from core.zonal import ZonalRasters

# 4x4 grid of 0.01 degree pixels, west 10.0, north 1.0
TRANSFORM = from_origin(10.0, 1.0, 0.01, 0.01)
GRID_BOX = box(10.0, 0.96, 10.04, 1.0)

# ESA CCI codes. 50 = tree cover, 130 = grassland, 10 = cropland,
# 210 = water, 190 = urban, 999 = not in the remap table.
HISTORICAL_CODES = [
    [50, 50, 130, 10],
    [50, 130, 130, 10],
    [10, 10, 210, 190],
    [50, 130, 10, 999],
]
CURRENT_CODES = [
    [130, 10, 130, 10],
    [130, 130, 50, 10],
    [130, 10, 210, 190],
    [10, 130, 130, 130],
]


def _raster(values, mask=None, transform=TRANSFORM):
    values = np.asarray(values)
    if mask is None:
        mask = np.zeros(values.shape, dtype=bool)
    return Raster(np.ma.array(values, mask=mask), transform)


@pytest.fixture
def make_raster():
    """Factory for rasters on the 4x4 test grid."""
    return _raster


@pytest.fixture
def grid_box():
    return GRID_BOX


@pytest.fixture
def grid_transform():
    return TRANSFORM


@pytest.fixture
def landcover_codes():
    """(1992 codes, 2018 codes) for the test grid."""
    return HISTORICAL_CODES, CURRENT_CODES


@pytest.fixture
def bounds():
    return CountryBounds(
        dist_min=0, dist_max=1000,
        cost_min=0, cost_max=100,
        carbon_min=0, carbon_max=10,
    )


@pytest.fixture
def masks():
    return classify_landcover(_raster(HISTORICAL_CODES), _raster(CURRENT_CODES))


@pytest.fixture
def priority_layers():
    return {
        PriorityFactor.FOREST_PROXIMITY: _raster(np.full((4, 4), 250.0)),
        PriorityFactor.OPPORTUNITY_COST: _raster(np.full((4, 4), 50.0)),
        PriorityFactor.CARBON_POTENTIAL: _raster(np.full((4, 4), 2.0)),
    }


@pytest.fixture
def zonal_rasters(priority_layers):
    return ZonalRasters(
        population=_raster(np.full((4, 4), 10.0)),
        carbon_ag=priority_layers[PriorityFactor.CARBON_POTENTIAL],
        carbon_bg=_raster(np.full((4, 4), 0.5)),
    )


@pytest.fixture
def workspace(masks, bounds, priority_layers, zonal_rasters):
    return CountryWorkspace(
        country=Country("Testland", GRID_BOX, bounds),
        masks=masks,
        priority_layers=priority_layers,
        zonal=zonal_rasters,
    )


@pytest.fixture
def species_groups():
    """
    Amphibians: 'Rana a' (CR, two polygons) and 'Rana b' (LC) over the grid,
    'Rana c' (EN) far away. Birds: 'Aves x' (VU) over the grid.
    """
    amphibians = gpd.GeoDataFrame(
        {
            "category": ["CR", "CR", "LC", "EN"],
            "binomial": ["Rana a", "Rana a", "Rana b", "Rana c"],
        },
        geometry=[GRID_BOX, box(10.0, 0.98, 10.02, 1.0), GRID_BOX, box(50, 50, 51, 51)],
        crs="EPSG:4326",
    )
    birds = gpd.GeoDataFrame(
        {"RedList_28": ["VU"], "binomial": ["Aves x"]},
        geometry=[GRID_BOX],
        crs="EPSG:4326",
    )
    return [
        SpeciesGroup("Amphibians", amphibians),
        SpeciesGroup("Birds", birds, category_column="RedList_28"),
    ]


class FakeData:
    """In-memory data provider for session tests."""

    def __init__(self, workspace, species_groups):
        self.workspace = workspace
        self.groups = species_groups
        self.loads = 0

    def load_country(self, name):
        if name != self.workspace.country.name:
            raise UnsupportedCountryError(name, "dist2forest_min")
        self.loads += 1
        return self.workspace

    def species_groups(self):
        return self.groups


@pytest.fixture
def data(workspace, species_groups):
    return FakeData(workspace, species_groups)


def _write_tif(path, arrays, transform, descriptions=None, nodata=None, crs="EPSG:4326"):
    arrays = [np.asarray(a) for a in arrays]
    height, width = arrays[0].shape
    with rasterio.open(
        path, "w", driver="GTiff",
        height=height, width=width, count=len(arrays),
        dtype=arrays[0].dtype, crs=crs, transform=transform, nodata=nodata,
    ) as dst:
        for index, array in enumerate(arrays, start=1):
            dst.write(array, index)
            if descriptions:
                dst.set_band_description(index, descriptions[index - 1])
    return path


@pytest.fixture
def write_tif():
    """Factory writing a GeoTIFF: write_tif(path, [band1, ...], transform, descriptions=...)."""
    return _write_tif
