import geopandas as gpd
import pytest
from shapely.geometry import box

from core.errors import DataSourceError, UnsupportedCountryError
from loaders.countries import CountryCatalog


@pytest.fixture
def countries_file(tmp_path):
    frame = gpd.GeoDataFrame(
        {"COUNTRY_NA": ["Kenya", "Chile", "Chile"]},
        geometry=[box(34, -4, 41, 5), box(-75, -56, -67, -17), box(-80, -34, -78, -33)],
        crs="EPSG:4326",
    )
    path = tmp_path / "countries.geojson"
    frame.to_file(path, driver="GeoJSON")
    return path


def test_names_sorted_and_unique(countries_file):
    catalog = CountryCatalog.from_file(countries_file)
    assert catalog.names() == ["Chile", "Kenya"]


def test_multi_part_country_is_merged(countries_file):
    """Countries stored as several rows come back as one shape."""
    geometry = CountryCatalog.from_file(countries_file).geometry("Chile")
    assert geometry.geom_type == "MultiPolygon"
    assert geometry.bounds == (-80.0, -56.0, -67.0, -17.0)


def test_unknown_country(countries_file):
    with pytest.raises(UnsupportedCountryError):
        CountryCatalog.from_file(countries_file).geometry("Atlantis")


def test_reprojects_to_wgs84(tmp_path):
    frame = gpd.GeoDataFrame(
        {"COUNTRY_NA": ["Kenya"]},
        geometry=[box(34, -4, 41, 5)],
        crs="EPSG:4326",
    ).to_crs(epsg=3857)
    path = tmp_path / "countries.gpkg"
    frame.to_file(path, driver="GPKG")

    geometry = CountryCatalog.from_file(path).geometry("Kenya")
    assert geometry.bounds == pytest.approx((34, -4, 41, 5))


def test_missing_key_column(tmp_path):
    frame = gpd.GeoDataFrame({"NAME": ["Kenya"]}, geometry=[box(34, -4, 41, 5)], crs="EPSG:4326")
    path = tmp_path / "countries.geojson"
    frame.to_file(path, driver="GeoJSON")
    with pytest.raises(DataSourceError):
        CountryCatalog.from_file(path)


def test_unreadable_file(tmp_path):
    path = tmp_path / "countries.geojson"
    path.write_text("not json")
    with pytest.raises(DataSourceError):
        CountryCatalog.from_file(path)
