"""
Map layer descriptors.

What the map shows for each layer: the raster, its value range, its
palette and its legend labels. Rendering itself belongs to the app.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from core.grid import Raster
from core.landcover import LandCoverMasks
from core.models import CountryBounds
from core.scoring import FACTOR_PROFILES, PriorityFactor, factor_bounds

# Seven-step palettes, low to high
FOREST_PROXIMITY_PALETTE = ["#005a32", "#238b45", "#41ab5d", "#74c476", "#a1d99b", "#c7e9c0", "#edf8e9"]
OPPORTUNITY_COST_PALETTE = ["#f2f0f7", "#dadaeb", "#bcbddc", "#9e9ac8", "#807dba", "#6a51a3", "#4a1486"]
CARBON_PALETTE = ["#feedde", "#fdd0a2", "#fdae6b", "#fd8d3c", "#f16913", "#d94801", "#8c2d04"]
PRIORITY_PALETTE = ["#f1eef6", "#d4b9da", "#c994c7", "#df65b0", "#e7298a", "#ce1256", "#91003f"]

AVAILABLE_AREA = "Available Area"
RESTORATION_PRIORITY = "Restoration Priority Scaled"

_FACTOR_STYLE = {
    PriorityFactor.FOREST_PROXIMITY: (FOREST_PROXIMITY_PALETTE, ("close", "far")),
    PriorityFactor.OPPORTUNITY_COST: (OPPORTUNITY_COST_PALETTE, ("low", "high")),
    PriorityFactor.CARBON_POTENTIAL: (CARBON_PALETTE, ("low", "high")),
}


@dataclass(frozen=True, eq=False)
class MapLayer:
    """One layer on the map."""
    name: str
    raster: Raster
    vmin: float
    vmax: float
    palette: Tuple[str, ...]
    shown: bool = True
    legend: Optional[Tuple[str, str]] = None  # (low label, high label); None = no legend entry

    def with_shown(self, shown: bool) -> "MapLayer":
        return replace(self, shown=shown)


def base_layers(masks: LandCoverMasks) -> List[MapLayer]:
    """Grassland, cropland and historical forest, registered hidden."""
    return [
        MapLayer("Grassland", masks.grassland, 1, 1, ("#d8d800",), shown=False),
        MapLayer("Cropland", masks.cropland, 1, 1, ("#a50f15",), shown=False),
        MapLayer("Historical Forest", masks.historical_forest, 1, 1, ("#006d2c",), shown=False),
    ]


def available_area_layer(available_area: Raster) -> MapLayer:
    return MapLayer(AVAILABLE_AREA, available_area, 1, 1, ("purple",), legend=("Available Area", ""))


def factor_layer(factor: PriorityFactor, raster: Raster, bounds: CountryBounds, country_geometry) -> MapLayer:
    """A raw priority layer clipped to the country, stretched over its bounds."""
    palette, labels = _FACTOR_STYLE[factor]
    low, high = factor_bounds(factor, bounds)
    return MapLayer(
        FACTOR_PROFILES[factor].name,
        raster.clip(country_geometry),
        low,
        high,
        tuple(palette),
        legend=labels,
    )


def priority_layer(priority: Raster) -> MapLayer:
    return MapLayer(RESTORATION_PRIORITY, priority, 0, 1, tuple(PRIORITY_PALETTE), legend=("low", "high"))


def upsert(layers: Sequence[MapLayer], layer: MapLayer) -> Tuple[MapLayer, ...]:
    """Replace a layer with the same name, or append it."""
    kept = [existing for existing in layers if existing.name != layer.name]
    return tuple(kept) + (layer,)


def _hex_to_rgb(color: str) -> Tuple[int, int, int]:
    named = {"purple": "#800080"}
    color = named.get(color, color).lstrip("#")
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)


def colorize(layer: MapLayer, opacity: float = 0.8) -> np.ndarray:
    """
    RGBA image (height, width, 4) of the layer, masked pixels transparent.

    Values are stretched over [vmin, vmax] and binned into the palette.
    """
    colors = np.array([_hex_to_rgb(c) for c in layer.palette], dtype="uint8")
    raster = layer.raster
    if layer.vmax > layer.vmin:
        stretched = np.clip((raster.filled(layer.vmin).astype("float64") - layer.vmin) / (layer.vmax - layer.vmin), 0, 1)
    else:
        stretched = np.zeros(raster.shape)
    index = np.minimum((stretched * len(colors)).astype(int), len(colors) - 1)

    rgba = np.zeros(raster.shape + (4,), dtype="uint8")
    rgba[..., :3] = colors[index]
    rgba[..., 3] = np.where(raster.valid, int(round(255 * opacity)), 0)
    return rgba
