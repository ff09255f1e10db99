"""
Session state and action handlers.

The whole tool state is one immutable SessionState. Every user action is a
small action object, and apply_action(state, action, data) returns the next
state. A handler that raises leaves the caller holding the previous state,
so each action is all-or-nothing.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Tuple, Type

from shapely.geometry.base import BaseGeometry

from core.availability import compute_available_area
from core.errors import NoAvailableAreaError, NoCountrySelectedError
from core.grid import Raster
from core.landcover import LandCoverMasks
from core.layers import (
    MapLayer,
    RESTORATION_PRIORITY,
    available_area_layer,
    base_layers,
    factor_layer,
    priority_layer,
    upsert,
)
from core.models import (
    Country,
    PriorityWeights,
    ProjectParameters,
    ProjectStatistics,
    RestorationCriteria,
)
from core.scoring import PriorityFactor, compute_priority
from core.species import SpeciesGroup
from core.zonal import ZonalRasters, compute_stats, validate_aoi

log = logging.getLogger(__name__)

DRAW_SHAPES = ("rectangle", "polygon")


# ═══════════════════════════════════════════════════════════════════════════
# COUNTRY WORKSPACE
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True, eq=False)
class CountryWorkspace:
    """Everything loaded for one country, on the land-cover grid."""
    country: Country
    masks: LandCoverMasks
    priority_layers: Mapping[PriorityFactor, Raster]
    zonal: ZonalRasters


class DataProvider(Protocol):
    """Where handlers get data from. loaders.datasets.DataRepository implements it."""

    def load_country(self, name: str) -> CountryWorkspace:
        ...

    def species_groups(self) -> List[SpeciesGroup]:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# STATE
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True, eq=False)
class SessionState:
    """
    Complete tool state. Never mutated; handlers build a new one.
    """

    workspace: Optional[CountryWorkspace] = None
    """Selected country and its data; None until a country is chosen."""

    criteria: RestorationCriteria = field(default_factory=RestorationCriteria)
    weights: PriorityWeights = field(default_factory=PriorityWeights)
    params: ProjectParameters = field(default_factory=ProjectParameters)

    available_area: Optional[Raster] = None
    """Set only by ShowAvailableArea; unaffected by later criteria changes."""

    priority: Optional[Raster] = None
    """Set only by RunAnalysis."""

    draw_mode: Optional[str] = None
    aoi: Optional[BaseGeometry] = None
    statistics: Optional[ProjectStatistics] = None

    layers: Tuple[MapLayer, ...] = ()

    @property
    def country_name(self) -> Optional[str]:
        return self.workspace.country.name if self.workspace else None

    def layer(self, name: str) -> Optional[MapLayer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None


# ═══════════════════════════════════════════════════════════════════════════
# ACTIONS
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class SelectCountry:
    name: str


@dataclass(frozen=True)
class SetCriterion:
    name: str  # grassland | cropland | reforestation | afforestation
    value: bool


@dataclass(frozen=True)
class SetWeight:
    factor: PriorityFactor
    value: int


@dataclass(frozen=True)
class ShowAvailableArea:
    pass


@dataclass(frozen=True)
class ShowFactorLayer:
    factor: PriorityFactor


@dataclass(frozen=True)
class RunAnalysis:
    pass


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class StartDrawing:
    shape: str  # rectangle | polygon


@dataclass(frozen=True, eq=False)
class DrawShape:
    """A finished draw or edit of the project area."""
    geometry: BaseGeometry


@dataclass(frozen=True)
class ClearDrawings:
    pass


@dataclass(frozen=True)
class SetProjectParameter:
    name: str  # project_length | cost_per_ha_yr | return_per_ha_yr
    value: str


# ═══════════════════════════════════════════════════════════════════════════
# HANDLERS
# ═══════════════════════════════════════════════════════════════════════════
def _require_workspace(state: SessionState) -> CountryWorkspace:
    if state.workspace is None:
        raise NoCountrySelectedError()
    return state.workspace


def _select_country(state: SessionState, action: SelectCountry, data: DataProvider) -> SessionState:
    workspace = data.load_country(action.name)
    log.info(f"Selected country {action.name}")
    # Everything derived from the previous country goes; criteria and weights stay.
    return replace(
        state,
        workspace=workspace,
        available_area=None,
        priority=None,
        aoi=None,
        statistics=None,
        layers=tuple(base_layers(workspace.masks)),
    )


def _set_criterion(state: SessionState, action: SetCriterion, data: DataProvider) -> SessionState:
    return replace(state, criteria=state.criteria.with_flag(action.name, action.value))


def _set_weight(state: SessionState, action: SetWeight, data: DataProvider) -> SessionState:
    return replace(state, weights=state.weights.with_weight(action.factor.value, action.value))


def _show_available_area(state: SessionState, action: ShowAvailableArea, data: DataProvider) -> SessionState:
    workspace = _require_workspace(state)
    area = compute_available_area(state.criteria, workspace.masks, workspace.country.geometry)
    layers = tuple(layer for layer in state.layers if layer.name != RESTORATION_PRIORITY)
    return replace(
        state,
        available_area=area,
        priority=None,
        layers=upsert(layers, available_area_layer(area)),
    )


def _show_factor_layer(state: SessionState, action: ShowFactorLayer, data: DataProvider) -> SessionState:
    workspace = _require_workspace(state)
    layer = factor_layer(
        action.factor,
        workspace.priority_layers[action.factor],
        workspace.country.bounds,
        workspace.country.geometry,
    )
    return replace(state, layers=upsert(state.layers, layer))


def _run_analysis(state: SessionState, action: RunAnalysis, data: DataProvider) -> SessionState:
    if state.available_area is None:
        raise NoAvailableAreaError()
    workspace = _require_workspace(state)
    priority = compute_priority(
        workspace.priority_layers,
        workspace.country.bounds,
        state.weights,
        state.available_area,
    )
    log.info(f"Ran priority analysis for {workspace.country.name} with {state.weights}")
    return replace(state, priority=priority, layers=upsert(state.layers, priority_layer(priority)))


def _reset(state: SessionState, action: Reset, data: DataProvider) -> SessionState:
    log.info("Reset session")
    return SessionState(params=state.params)


def _start_drawing(state: SessionState, action: StartDrawing, data: DataProvider) -> SessionState:
    if action.shape not in DRAW_SHAPES:
        raise ValueError(f"Unknown draw shape '{action.shape}', expected one of {DRAW_SHAPES}")
    return replace(state, draw_mode=action.shape, aoi=None, statistics=None)


def _draw_shape(state: SessionState, action: DrawShape, data: DataProvider) -> SessionState:
    if state.available_area is None:
        raise NoAvailableAreaError()
    workspace = _require_workspace(state)
    aoi = validate_aoi(action.geometry)
    statistics = compute_stats(
        aoi,
        state.available_area,
        workspace.zonal,
        data.species_groups(),
        state.params,
    )
    return replace(state, aoi=aoi, statistics=statistics)


def _clear_drawings(state: SessionState, action: ClearDrawings, data: DataProvider) -> SessionState:
    return replace(state, aoi=None, statistics=None)


def _set_project_parameter(state: SessionState, action: SetProjectParameter, data: DataProvider) -> SessionState:
    return replace(state, params=state.params.with_value(action.name, action.value))


_HANDLERS: Dict[Type, Callable] = {
    SelectCountry: _select_country,
    SetCriterion: _set_criterion,
    SetWeight: _set_weight,
    ShowAvailableArea: _show_available_area,
    ShowFactorLayer: _show_factor_layer,
    RunAnalysis: _run_analysis,
    Reset: _reset,
    StartDrawing: _start_drawing,
    DrawShape: _draw_shape,
    ClearDrawings: _clear_drawings,
    SetProjectParameter: _set_project_parameter,
}


def apply_action(state: SessionState, action, data: Optional[DataProvider] = None) -> SessionState:
    """Return the state after action. Raises without side effects on failure."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action: {action!r}")
    log.debug(f"Applying {type(action).__name__}")
    return handler(state, action, data)
