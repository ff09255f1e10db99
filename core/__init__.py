"""
Core module for the Restoration Planning Tool.
Contains data models, raster algebra, analysis engines and session state.
"""

from core.models import (
    Country,
    CountryBounds,
    PriorityWeights,
    ProjectParameters,
    ProjectStatistics,
    RestorationCriteria,
)
from core.grid import Raster
from core.landcover import LandCoverMasks, classify_landcover
from core.availability import compute_available_area
from core.bounds import ReferenceTables, get_bounds
from core.scoring import PriorityFactor, PriorityScorer, compute_priority
from core.zonal import ZonalRasters, compute_stats
from core.session import CountryWorkspace, SessionState, apply_action
from core.debounce import Debouncer
from core.settings import Settings
from core.errors import (
    DataSourceError,
    InvalidGeometryError,
    NoAvailableAreaError,
    NoCountrySelectedError,
    RestorationToolError,
    UnsupportedCountryError,
)

__all__ = [
    # Models
    "Country",
    "CountryBounds",
    "PriorityWeights",
    "ProjectParameters",
    "ProjectStatistics",
    "RestorationCriteria",
    # Analysis
    "Raster",
    "LandCoverMasks",
    "classify_landcover",
    "compute_available_area",
    "ReferenceTables",
    "get_bounds",
    "PriorityFactor",
    "PriorityScorer",
    "compute_priority",
    "ZonalRasters",
    "compute_stats",
    # Session
    "CountryWorkspace",
    "SessionState",
    "apply_action",
    "Debouncer",
    "Settings",
    # Errors
    "RestorationToolError",
    "UnsupportedCountryError",
    "NoCountrySelectedError",
    "NoAvailableAreaError",
    "InvalidGeometryError",
    "DataSourceError",
]
