"""
Pro Forma - project cost and return for a restoration area.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from core.models import ProjectParameters


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ProjectEconomics:
    """Cost and return over the whole project length."""
    total_cost: int
    total_return: int
    return_cost_ratio: Optional[float]  # None when total_cost is 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_cost': self.total_cost,
            'total_return': self.total_return,
            'return_cost_ratio': self.return_cost_ratio,
        }


class ProFormaEngine:
    """Engine for restoration project cost/return estimates."""

    def calculate(self, area_ha: float, params: ProjectParameters) -> ProjectEconomics:
        """
        Totals are per-hectare-per-year rates × years × hectares, rounded.

        The ratio is computed from the rounded totals and kept to one
        decimal. A zero total cost has no ratio.
        """
        total_cost = round_half_away(params.cost_per_ha_yr * params.project_length * area_ha)
        total_return = round_half_away(params.return_per_ha_yr * params.project_length * area_ha)
        return ProjectEconomics(
            total_cost=total_cost,
            total_return=total_return,
            return_cost_ratio=return_cost_ratio(total_return, total_cost),
        )


def return_cost_ratio(total_return: float, total_cost: float) -> Optional[float]:
    """total_return / total_cost to one decimal, halves away from zero, or None for a zero cost."""
    if total_cost == 0:
        return None
    ratio = Decimal(total_return) / Decimal(total_cost)
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def get_proforma_engine() -> ProFormaEngine:
    """Factory function for pro forma engine."""
    return ProFormaEngine()
