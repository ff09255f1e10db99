"""
Raster grid algebra for spatial restoration analysis.

A Raster is a masked 2-D array on an affine grid. Masked pixels have no
value. The operations mirror the image algebra the tool needs: unmask,
update-mask, clip to a geometry, unit-scale, per-pixel area and region
reductions. Everything is eager; nothing is deferred.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from pyproj import Geod, Transformer
from rasterio.crs import CRS
from rasterio.features import geometry_mask
from rasterio.transform import Affine, array_bounds
from shapely.geometry import mapping
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform as shapely_transform

log = logging.getLogger(__name__)

WGS84 = CRS.from_epsg(4326)
SQ_METERS_PER_HECTARE = 10_000.0

_GEOD = Geod(ellps="WGS84")


@dataclass(frozen=True, eq=False)
class Raster:
    """
    A single-band raster: masked values, the affine transform that places
    them, and their CRS.

    Rasters produced from one another keep the same grid, so pixel-wise
    operations are plain array operations.
    """
    data: np.ma.MaskedArray
    transform: Affine
    crs: CRS = WGS84

    def __post_init__(self):
        data = np.ma.asarray(self.data)
        if data.ndim != 2:
            raise ValueError(f"Raster data must be 2-D, got shape {data.shape}")
        # Always carry a full boolean mask so callers can index it directly.
        object.__setattr__(self, "data", np.ma.array(data, mask=np.ma.getmaskarray(data)))

    # ─── Construction ────────────────────────────────────────────────────
    @classmethod
    def from_array(
        cls,
        array: np.ndarray,
        transform: Affine,
        crs: CRS = WGS84,
        nodata: Optional[float] = None,
    ) -> "Raster":
        """Wrap a plain array, masking nodata and NaN pixels."""
        array = np.asarray(array)
        mask = np.zeros(array.shape, dtype=bool)
        if nodata is not None:
            mask |= array == nodata
        if np.issubdtype(array.dtype, np.floating):
            mask |= np.isnan(array)
        return cls(np.ma.array(array, mask=mask), transform, crs)

    def with_data(self, data) -> "Raster":
        """A new raster on the same grid."""
        return Raster(data, self.transform, self.crs)

    # ─── Grid properties ─────────────────────────────────────────────────
    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(west, south, east, north) in raster CRS units."""
        return array_bounds(self.height, self.width, self.transform)

    @property
    def valid(self) -> np.ndarray:
        """Boolean array, True where the pixel has a value."""
        return ~np.ma.getmaskarray(self.data)

    @property
    def is_empty(self) -> bool:
        return not self.valid.any()

    def is_aligned_with(self, other: "Raster") -> bool:
        return (
            self.shape == other.shape
            and self.transform.almost_equals(other.transform)
            and self.crs == other.crs
        )

    def _check_aligned(self, other: "Raster") -> None:
        if not self.is_aligned_with(other):
            raise ValueError(
                f"Rasters are on different grids: {self.shape} {tuple(self.transform)[:6]} "
                f"vs {other.shape} {tuple(other.transform)[:6]}"
            )

    # ─── Masking ─────────────────────────────────────────────────────────
    def filled(self, value: float = 0) -> np.ndarray:
        """Plain array with masked pixels replaced by value."""
        return self.data.filled(value)

    def unmask(self, value: float = 0) -> "Raster":
        """Give every masked pixel a value, leaving nothing masked."""
        return self.with_data(np.ma.array(self.filled(value), mask=False))

    def update_mask(self, other: "Raster") -> "Raster":
        """Mask pixels where other is masked or zero."""
        self._check_aligned(other)
        drop = ~other.valid | (other.filled(0) == 0)
        return self.with_data(np.ma.array(self.data.data, mask=~self.valid | drop))

    def self_mask(self) -> "Raster":
        """Mask pixels whose own value is zero."""
        return self.update_mask(self)

    def geometry_mask(self, geometry: BaseGeometry) -> np.ndarray:
        """
        Boolean array, True for pixels whose centre falls inside geometry.

        Geometry is given in WGS84 lon/lat. Pixel-centre rule only
        (all_touched=False), so edge pixels are not double counted.
        """
        if geometry is None or geometry.is_empty:
            return np.zeros(self.shape, dtype=bool)
        geometry = self._to_raster_crs(geometry)
        return geometry_mask(
            [mapping(geometry)],
            out_shape=self.shape,
            transform=self.transform,
            invert=True,
            all_touched=False,
        )

    def clip(self, geometry: BaseGeometry) -> "Raster":
        """Mask everything outside geometry."""
        inside = self.geometry_mask(geometry)
        return self.with_data(np.ma.array(self.data.data, mask=~self.valid | ~inside))

    def _to_raster_crs(self, geometry: BaseGeometry) -> BaseGeometry:
        if self.crs is None or self.crs == WGS84:
            return geometry
        transformer = Transformer.from_crs(WGS84.to_wkt(), self.crs.to_wkt(), always_xy=True)
        return shapely_transform(transformer.transform, geometry)

    # ─── Pixel math ──────────────────────────────────────────────────────
    def unit_scale(self, low: float, high: float) -> "Raster":
        """
        Linear rescale of [low, high] to [0, 1], clamped at both ends.

        A zero or negative range has no meaningful scale; every valid pixel
        becomes 0.
        """
        values = self.data.astype("float64")
        if not high > low:
            log.warning(f"Degenerate unit-scale range [{low}, {high}]; using 0")
            return self.with_data(np.ma.array(np.zeros(self.shape), mask=~self.valid))
        scaled = (values - low) / (high - low)
        return self.with_data(np.ma.clip(scaled, 0.0, 1.0))

    def pixel_area_ha(self) -> np.ndarray:
        """
        Area of every pixel in hectares.

        Geographic grids use geodesic cell areas on the WGS84 ellipsoid, one
        per row since area only varies with latitude.
        """
        if self.crs is not None and not self.crs.is_geographic:
            cell_m2 = abs(self.transform.a * self.transform.e)
            return np.full(self.shape, cell_m2 / SQ_METERS_PER_HECTARE)

        west = self.transform.c
        east = west + self.transform.a
        row_areas = np.empty(self.height, dtype="float64")
        for row in range(self.height):
            top = self.transform.f + row * self.transform.e
            bottom = top + self.transform.e
            area_m2, _ = _GEOD.polygon_area_perimeter(
                [west, east, east, west], [top, top, bottom, bottom]
            )
            row_areas[row] = abs(area_m2) / SQ_METERS_PER_HECTARE
        return np.repeat(row_areas[:, np.newaxis], self.width, axis=1)


# ═══════════════════════════════════════════════════════════════════════════
# REGION REDUCTIONS
# ═══════════════════════════════════════════════════════════════════════════
def _region_values(raster: Raster, region: np.ndarray) -> np.ndarray:
    if region.shape != raster.shape:
        raise ValueError(f"Region shape {region.shape} does not match raster {raster.shape}")
    return raster.data.data[region & raster.valid].astype("float64")


def region_sum(raster: Raster, region: np.ndarray) -> float:
    """Sum of valid pixels inside region. An empty region sums to 0."""
    return float(_region_values(raster, region).sum())


def region_mean(raster: Raster, region: np.ndarray) -> Optional[float]:
    """Mean of valid pixels inside region, or None if there are none."""
    values = _region_values(raster, region)
    if values.size == 0:
        return None
    return float(values.mean())


def region_min_max(raster: Raster, region: np.ndarray) -> Optional[Tuple[float, float]]:
    """(min, max) of valid pixels inside region, or None if there are none."""
    values = _region_values(raster, region)
    if values.size == 0:
        return None
    return float(values.min()), float(values.max())
