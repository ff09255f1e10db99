"""
Core data models for the Restoration Planning Tool.
"""

import math
from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Optional

from shapely.geometry.base import BaseGeometry

WEIGHT_MIN = 0
WEIGHT_MAX = 5


@dataclass(frozen=True)
class CountryBounds:
    """
    Per-country reference values used to normalize the priority layers.

    The distance maximum is the 95th percentile, not the true maximum, so a
    few remote pixels don't compress the normalized range.
    """
    dist_min: float
    dist_max: float
    cost_min: float
    cost_max: float
    carbon_min: float
    carbon_max: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Country:
    """A selected country: its boundary and its normalization bounds."""
    name: str
    geometry: BaseGeometry
    bounds: CountryBounds


@dataclass(frozen=True)
class RestorationCriteria:
    """
    Which land can be restored.

    Land-cover flags pick current grassland/cropland, restoration-type
    flags pick land that was (reforestation) or was not (afforestation)
    forested in the reference year.
    """
    grassland: bool = False
    cropland: bool = False
    reforestation: bool = False
    afforestation: bool = False

    def with_flag(self, name: str, value: bool) -> "RestorationCriteria":
        if name not in {f.name for f in fields(self)}:
            raise ValueError(f"Unknown restoration criterion: {name}")
        return replace(self, **{name: bool(value)})

    @property
    def has_landcover(self) -> bool:
        return self.grassland or self.cropland

    @property
    def has_restoration_type(self) -> bool:
        return self.reforestation or self.afforestation


@dataclass(frozen=True)
class PriorityWeights:
    """Importance of each priority factor, an integer from 0 to 5."""
    forest_proximity: int = 0
    opportunity_cost: int = 0
    carbon_potential: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Weight '{f.name}' must be an integer, got {value!r}")
            if not WEIGHT_MIN <= value <= WEIGHT_MAX:
                raise ValueError(f"Weight '{f.name}' must be between {WEIGHT_MIN} and {WEIGHT_MAX}, got {value}")

    def get(self, name: str) -> int:
        return getattr(self, name)

    def with_weight(self, name: str, value: int) -> "PriorityWeights":
        if name not in {f.name for f in fields(self)}:
            raise ValueError(f"Unknown priority factor: {name}")
        return replace(self, **{name: value})

    @property
    def all_zero(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class ProjectParameters:
    """User-entered project details."""
    project_length: float = 15
    """Project duration in years."""

    cost_per_ha_yr: float = 1686
    """Average restoration cost per hectare per year."""

    return_per_ha_yr: float = 3788
    """Average return per hectare per year."""

    def with_value(self, name: str, raw) -> "ProjectParameters":
        """Return a copy with one field parsed from text input."""
        if name not in {f.name for f in fields(self)}:
            raise ValueError(f"Unknown project parameter: {name}")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"'{raw}' is not a number") from None
        if not math.isfinite(value):
            raise ValueError(f"'{raw}' is not a finite number")
        if value < 0:
            raise ValueError(f"{name} must be 0 or more, got {value:g}")
        return replace(self, **{name: value})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ProjectStatistics:
    """
    Outcomes for the drawn project area.

    All values are rounded to whole numbers except the return/cost ratio,
    which has one decimal and is None when the total cost is zero.
    """
    area_ha: int
    species_count: int
    beneficiaries: int
    carbon_ag: int
    carbon_bg: int
    total_cost: int
    total_return: int
    return_cost_ratio: Optional[float]

    def to_dict(self) -> Dict:
        return asdict(self)

    def to_display(self) -> Dict[str, str]:
        """Formatted values for the eight result fields."""
        ratio = "N/A" if self.return_cost_ratio is None else f"{self.return_cost_ratio:.1f}"
        return {
            "Area (ha)": f"{self.area_ha:,}",
            "Threatened species": f"{self.species_count:,}",
            "Beneficiaries": f"{self.beneficiaries:,}",
            "Above-ground carbon (t)": f"{self.carbon_ag:,}",
            "Below-ground carbon (t)": f"{self.carbon_bg:,}",
            "Total cost": f"{self.total_cost:,}",
            "Total return": f"{self.total_return:,}",
            "Return/cost ratio": ratio,
        }
