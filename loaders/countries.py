"""
Country Boundaries Loader - Country names and outlines.

Reads a vector layer of country polygons keyed by COUNTRY_NA (the LSIB
simplified boundaries layout) and serves the selector list and the
outline of a chosen country.
"""

import logging
from pathlib import Path
from typing import List

import geopandas as gpd
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from core.bounds import COUNTRY_KEY
from core.errors import DataSourceError, UnsupportedCountryError

log = logging.getLogger(__name__)

WGS84_EPSG = 4326


def read_vector(path: Path) -> gpd.GeoDataFrame:
    """Read any vector file geopandas understands, in WGS84."""
    try:
        frame = gpd.read_file(path)
    except Exception as e:
        raise DataSourceError(str(path), str(e)) from e
    if frame.crs is None:
        frame = frame.set_crs(epsg=WGS84_EPSG)
    elif frame.crs.to_epsg() != WGS84_EPSG:
        frame = frame.to_crs(epsg=WGS84_EPSG)
    return frame


class CountryCatalog:
    """Country outlines, looked up by COUNTRY_NA."""

    def __init__(self, frame: gpd.GeoDataFrame):
        if COUNTRY_KEY not in frame.columns:
            raise DataSourceError("country boundaries", f"missing column {COUNTRY_KEY}")
        self.frame = frame

    @classmethod
    def from_file(cls, path: Path) -> "CountryCatalog":
        catalog = cls(read_vector(path))
        log.info(f"Loaded {len(catalog.names())} countries from {path}")
        return catalog

    def names(self) -> List[str]:
        """Sorted country names for the selector."""
        return sorted(self.frame[COUNTRY_KEY].dropna().astype(str).unique())

    def geometry(self, name: str) -> BaseGeometry:
        """The country outline; multi-row countries are merged into one shape."""
        rows = self.frame[self.frame[COUNTRY_KEY] == name]
        if rows.empty:
            raise UnsupportedCountryError(name, "country boundaries")
        return unary_union(list(rows.geometry))
