"""
Restoration Priority Scoring

Weighted overlay of the three priority factors:
- Unit-scale normalization against per-country bounds
- Inversion where a lower raw value means higher priority
- User importance weights (0-5)
- Re-normalization inside the available area
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from core.grid import Raster, region_min_max
from core.models import CountryBounds, PriorityWeights

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# PRIORITY FACTORS
# ═══════════════════════════════════════════════════════════════════════════
class PriorityFactor(Enum):
    """The three factors a user can weight."""
    FOREST_PROXIMITY = "forest_proximity"
    OPPORTUNITY_COST = "opportunity_cost"
    CARBON_POTENTIAL = "carbon_potential"


@dataclass(frozen=True)
class FactorProfile:
    """How one raw layer becomes a priority contribution."""

    name: str
    description: str

    # Lower raw values are better (distance, cost)
    invert: bool

    # CountryBounds attributes holding (min, max)
    bounds_fields: Tuple[str, str]


FACTOR_PROFILES: Dict[PriorityFactor, FactorProfile] = {
    PriorityFactor.FOREST_PROXIMITY: FactorProfile(
        name="Proximity to Forest",
        description="How important is it that restoration occurs near existing forest?",
        invert=True,
        bounds_fields=("dist_min", "dist_max"),
    ),
    PriorityFactor.OPPORTUNITY_COST: FactorProfile(
        name="Opportunity Cost",
        description="How important is it that restoration occurs where opportunity cost is low?",
        invert=True,
        bounds_fields=("cost_min", "cost_max"),
    ),
    PriorityFactor.CARBON_POTENTIAL: FactorProfile(
        name="Carbon Sequestration Potential",
        description="How important is it that restoration occurs where carbon sequestration potential is high?",
        invert=False,
        bounds_fields=("carbon_min", "carbon_max"),
    ),
}


def factor_bounds(factor: PriorityFactor, bounds: CountryBounds) -> Tuple[float, float]:
    low_field, high_field = FACTOR_PROFILES[factor].bounds_fields
    return getattr(bounds, low_field), getattr(bounds, high_field)


def normalize(value: float, low: float, high: float) -> float:
    """Unit-scale a single value: clamp((value - low) / (high - low), 0, 1)."""
    if not high > low:
        return 0.0
    return float(min(1.0, max(0.0, (value - low) / (high - low))))


# ═══════════════════════════════════════════════════════════════════════════
# PRIORITY SCORER
# ═══════════════════════════════════════════════════════════════════════════
class PriorityScorer:
    """
    Weighted overlay engine.

    The formula is:

    raw = Σ weight_f × (1 - norm_f)   for inverted factors
        + Σ weight_f × norm_f         for the rest

    priority = unit_scale(raw, min(raw), max(raw)) over the available area

    A factor's missing pixels contribute 0 rather than disqualifying the
    pixel.
    """

    def __init__(self, bounds: CountryBounds, weights: PriorityWeights):
        self.bounds = bounds
        self.weights = weights

    def contribution(self, factor: PriorityFactor, layer: Raster) -> Raster:
        """Normalized, possibly inverted, weighted layer (still masked)."""
        profile = FACTOR_PROFILES[factor]
        low, high = factor_bounds(factor, self.bounds)
        scaled = layer.unit_scale(low, high)
        if profile.invert:
            scaled = scaled.with_data(1.0 - scaled.data)
        weight = self.weights.get(factor.value)
        return scaled.with_data(scaled.data * weight)

    def weighted_sum(self, raw_layers: Mapping[PriorityFactor, Raster]) -> Raster:
        """Unscaled weighted overlay, defined everywhere on the grid."""
        missing = [f.value for f in PriorityFactor if f not in raw_layers]
        if missing:
            raise ValueError(f"Missing priority layers: {', '.join(missing)}")

        template = raw_layers[PriorityFactor.FOREST_PROXIMITY]
        total = np.zeros(template.shape, dtype="float64")
        for factor in PriorityFactor:
            layer = raw_layers[factor]
            if not layer.is_aligned_with(template):
                raise ValueError(f"Layer {factor.value} is not on the common grid")
            total += self.contribution(factor, layer).filled(0.0)
        return template.with_data(np.ma.array(total, mask=False))

    def score(
        self,
        raw_layers: Mapping[PriorityFactor, Raster],
        available_area: Raster,
        detailed: bool = False,
    ):
        """
        Final priority raster in [0, 1], defined only inside available_area.

        When every available pixel has the same weighted sum, the range is
        zero: a sum of 0 (all weights zero) scores 0, a positive sum scores
        1 since every pixel is the maximum.

        Returns:
            The Raster, or {"priority": Raster, "breakdown": {...}} if detailed
        """
        unscaled = self.weighted_sum(raw_layers)
        in_area = available_area.valid
        masked = unscaled.with_data(np.ma.array(unscaled.data.data, mask=~in_area))

        min_max = region_min_max(masked, in_area)
        breakdown = {
            "weights": {f.value: self.weights.get(f.value) for f in PriorityFactor},
            "min": None,
            "max": None,
            "degenerate": False,
        }

        if min_max is None:
            log.warning("Available area is empty; priority raster is empty")
            priority = masked.with_data(np.ma.array(np.zeros(masked.shape), mask=True))
        else:
            low, high = min_max
            breakdown["min"], breakdown["max"] = low, high
            if high > low:
                priority = masked.unit_scale(low, high)
            else:
                breakdown["degenerate"] = True
                fill = 1.0 if high > 0 else 0.0
                log.info(f"Weighted sum is uniform ({high}) over the available area; priority set to {fill}")
                priority = masked.with_data(np.ma.array(np.full(masked.shape, fill), mask=~in_area))

        if detailed:
            return {"priority": priority, "breakdown": breakdown}
        return priority

    def explain(self) -> str:
        """Human-readable summary of the weighting."""
        lines = ["Restoration priority weighting:"]
        for factor in PriorityFactor:
            profile = FACTOR_PROFILES[factor]
            low, high = factor_bounds(factor, self.bounds)
            direction = "lower is better" if profile.invert else "higher is better"
            lines.append(
                f"  {profile.name}: weight {self.weights.get(factor.value)} "
                f"(range {low:g}-{high:g}, {direction})"
            )
        if self.weights.all_zero:
            lines.append("  All weights are 0 - every available pixel scores 0.")
        return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════
def compute_priority(
    raw_layers: Mapping[PriorityFactor, Raster],
    bounds: CountryBounds,
    weights: PriorityWeights,
    available_area: Raster,
) -> Raster:
    """Restoration priority raster in [0, 1] over the available area."""
    return PriorityScorer(bounds, weights).score(raw_layers, available_area)


def list_factors() -> List[Dict[str, str]]:
    """List the priority factors for building controls."""
    return [
        {"id": f.value, "name": FACTOR_PROFILES[f].name, "description": FACTOR_PROFILES[f].description}
        for f in PriorityFactor
    ]


def get_factor(factor_id: str) -> Optional[PriorityFactor]:
    try:
        return PriorityFactor(factor_id)
    except ValueError:
        return None
