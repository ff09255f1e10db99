"""
Map rendering for the Streamlit page.

Turns the session's map layers into a folium map (image overlays, legend
entries, draw control) and turns what st_folium hands back into a shapely
shape.
"""

import json
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import folium
from folium.plugins import Draw
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from core.layers import MapLayer, colorize

log = logging.getLogger(__name__)

DEFAULT_CENTER = (0.0, 20.0)
DEFAULT_ZOOM = 3
COUNTRY_ZOOM = 6


def draw_control(draw_mode: Optional[str]) -> Draw:
    """Draw control offering only the chosen shape, or both when none is chosen."""
    return Draw(
        draw_options={
            "polyline": False,
            "circle": False,
            "circlemarker": False,
            "marker": False,
            "rectangle": draw_mode in (None, "rectangle"),
            "polygon": draw_mode in (None, "polygon"),
        },
        edit_options={"edit": True, "remove": True},
    )


def add_layer(fmap: folium.Map, layer: MapLayer) -> None:
    west, south, east, north = layer.raster.bounds
    folium.raster_layers.ImageOverlay(
        image=colorize(layer),
        bounds=[[south, west], [north, east]],
        name=layer.name,
        show=layer.shown,
        mercator_project=True,
    ).add_to(fmap)


def build_map(
    layers: Sequence[MapLayer],
    country_geometry: Optional[BaseGeometry] = None,
    aoi: Optional[BaseGeometry] = None,
    draw_mode: Optional[str] = None,
) -> folium.Map:
    """Base map with every layer as a toggleable overlay."""
    if country_geometry is not None and not country_geometry.is_empty:
        centroid = country_geometry.centroid
        fmap = folium.Map(location=(centroid.y, centroid.x), zoom_start=COUNTRY_ZOOM, tiles="CartoDB positron")
        folium.GeoJson(
            country_geometry.__geo_interface__,
            name="Country",
            style_function=lambda x: {"fillOpacity": 0, "color": "black", "weight": 1},
        ).add_to(fmap)
    else:
        fmap = folium.Map(location=DEFAULT_CENTER, zoom_start=DEFAULT_ZOOM, tiles="CartoDB positron")

    for layer in layers:
        add_layer(fmap, layer)

    if aoi is not None:
        folium.GeoJson(
            aoi.__geo_interface__,
            name="Project Area",
            style_function=lambda x: {"fillOpacity": 0.05, "color": "red", "weight": 2},
        ).add_to(fmap)

    draw_control(draw_mode).add_to(fmap)
    folium.LayerControl(collapsed=True).add_to(fmap)
    return fmap


def legend_entries(layers: Sequence[MapLayer]) -> List[Tuple[str, str, str, Tuple[str, ...]]]:
    """(layer name, low label, high label, palette) for every shown layer with a legend."""
    return [
        (layer.name, layer.legend[0], layer.legend[1], layer.palette)
        for layer in layers
        if layer.shown and layer.legend is not None
    ]


def _latest_feature(map_data: Optional[Dict]) -> Optional[Dict]:
    """
    The newest feature on the map.

    all_drawings tracks draws, edits and deletes. last_active_drawing only
    tracks draws and is read when all_drawings is absent.
    """
    if not map_data:
        return None
    drawings = map_data.get("all_drawings")
    if drawings is not None:
        return drawings[-1] if drawings else None
    return map_data.get("last_active_drawing")


def drawing_count(map_data: Optional[Dict]) -> int:
    """Number of shapes currently on the map."""
    if not map_data:
        return 0
    drawings = map_data.get("all_drawings")
    if drawings is not None:
        return len(drawings)
    return 1 if map_data.get("last_active_drawing") else 0


def drawn_shape(map_data: Optional[Dict]) -> Optional[BaseGeometry]:
    """The shape the user last drew or edited, or None once it is deleted."""
    feature = _latest_feature(map_data)
    if not feature or not feature.get("geometry"):
        return None
    return shape(feature["geometry"])


def drawing_signature(map_data: Optional[Dict]) -> Optional[str]:
    """Stable text form of the newest drawing, used to spot draw, edit and delete events."""
    feature = _latest_feature(map_data)
    if not feature or not feature.get("geometry"):
        return None
    return json.dumps(feature["geometry"], sort_keys=True)
