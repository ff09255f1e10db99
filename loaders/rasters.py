"""
Raster Loader - Windowed and grid-aligned GeoTIFF reads.

The land-cover grid is read for the country's bounding box. Every other
layer is warped onto that grid, so the analysis can combine them pixel
by pixel.
"""

import logging
import math
from pathlib import Path
from typing import Union

import numpy as np
import rasterio
from rasterio._err import CPLE_BaseError
from rasterio.errors import CRSError, RasterioError
from rasterio.warp import Resampling, reproject, transform_bounds
from rasterio.windows import Window, from_bounds
from shapely.geometry.base import BaseGeometry

from core.errors import DataSourceError
from core.grid import WGS84, Raster

log = logging.getLogger(__name__)

# Fraction of a pixel ignored when snapping bounds to whole pixels
PIXEL_TOLERANCE = 1e-6

# GDAL, CRS and IO failures surface as DataSourceError
READ_ERRORS = (RasterioError, CPLE_BaseError, CRSError)


def band_index(src, band: Union[int, str]) -> int:
    """
    1-based band index from a number or a band description.

    Multi-year land cover is stored one year per band, described 'y1992',
    'y2018' and so on.
    """
    if isinstance(band, int):
        if not 1 <= band <= src.count:
            raise DataSourceError(src.name, f"band {band} out of range 1..{src.count}")
        return band
    descriptions = list(src.descriptions)
    if band not in descriptions:
        raise DataSourceError(src.name, f"no band described '{band}' (have {descriptions})")
    return descriptions.index(band) + 1


def _window_for(src, geometry: BaseGeometry) -> Window:
    west, south, east, north = geometry.bounds
    if src.crs is not None and src.crs != WGS84:
        west, south, east, north = transform_bounds(WGS84, src.crs, west, south, east, north)
    raw = from_bounds(west, south, east, north, transform=src.transform)

    col_start = max(0, math.floor(raw.col_off + PIXEL_TOLERANCE))
    row_start = max(0, math.floor(raw.row_off + PIXEL_TOLERANCE))
    col_stop = min(src.width, math.ceil(raw.col_off + raw.width - PIXEL_TOLERANCE))
    row_stop = min(src.height, math.ceil(raw.row_off + raw.height - PIXEL_TOLERANCE))
    if col_stop <= col_start or row_stop <= row_start:
        raise DataSourceError(src.name, "raster does not cover the requested area")
    return Window(col_start, row_start, col_stop - col_start, row_stop - row_start)


def read_window(path: Path, geometry: BaseGeometry, band: Union[int, str] = 1) -> Raster:
    """Read one band over the bounding box of geometry, nodata masked."""
    try:
        with rasterio.open(path) as src:
            index = band_index(src, band)
            window = _window_for(src, geometry)
            data = src.read(index, window=window, masked=True)
            transform = src.window_transform(window)
            crs = src.crs or WGS84
    except READ_ERRORS as e:
        raise DataSourceError(str(path), str(e)) from e

    if np.issubdtype(data.dtype, np.floating):
        data = np.ma.masked_invalid(data)
    log.debug(f"Read {path} band {band}: {data.shape} window {window}")
    return Raster(data, transform, crs)


def read_aligned(
    path: Path,
    like: Raster,
    resampling: Resampling = Resampling.nearest,
    band: Union[int, str] = 1,
) -> Raster:
    """
    Warp one band of path onto the grid of like.

    Use Resampling.sum for count layers such as population so totals are
    kept when cells are aggregated.
    """
    destination = np.full(like.shape, np.nan, dtype="float64")
    try:
        with rasterio.open(path) as src:
            index = band_index(src, band)
            reproject(
                source=rasterio.band(src, index),
                destination=destination,
                src_transform=src.transform,
                src_crs=src.crs or WGS84,
                src_nodata=src.nodata,
                dst_transform=like.transform,
                dst_crs=like.crs,
                dst_nodata=np.nan,
                resampling=resampling,
            )
    except READ_ERRORS as e:
        raise DataSourceError(str(path), str(e)) from e

    log.debug(f"Aligned {path} onto {like.shape} grid with {resampling.name}")
    return Raster.from_array(destination, like.transform, like.crs)
