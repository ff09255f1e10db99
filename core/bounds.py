"""
Country bounds resolver.

Looks up the precomputed per-country reference values that the priority
layers are normalized against.
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import pandas as pd

from core.errors import UnsupportedCountryError
from core.models import CountryBounds

log = logging.getLogger(__name__)

COUNTRY_KEY = "COUNTRY_NA"


@dataclass(frozen=True, eq=False)
class ReferenceTables:
    """
    The four reference tables, each keyed by COUNTRY_NA.

    dist_min:  column 'min' - global minimum distance to forest
    dist_max:  column 'p95' - 95th percentile distance to forest
    opp_cost:  columns 'min_cost', 'max_cost'
    carbon:    columns 'min_rate', 'max_rate' (above-ground sequestration)
    """
    dist_min: pd.DataFrame
    dist_max: pd.DataFrame
    opp_cost: pd.DataFrame
    carbon: pd.DataFrame


def _lookup(table: pd.DataFrame, table_name: str, country: str, columns: Tuple[str, ...]) -> Tuple[float, ...]:
    rows = table[table[COUNTRY_KEY] == country]
    if rows.empty:
        raise UnsupportedCountryError(country, table_name)
    row = rows.iloc[0]
    values = []
    for column in columns:
        value = row.get(column)
        if value is None or pd.isna(value):
            raise UnsupportedCountryError(country, f"{table_name}.{column}")
        value = float(value)
        if not math.isfinite(value):
            raise UnsupportedCountryError(country, f"{table_name}.{column}")
        values.append(value)
    return tuple(values)


def get_bounds(country: str, tables: ReferenceTables) -> CountryBounds:
    """
    Resolve the normalization bounds for one country.

    Raises UnsupportedCountryError if any table lacks the country.
    """
    (dist_min,) = _lookup(tables.dist_min, "dist2forest_min", country, ("min",))
    (dist_max,) = _lookup(tables.dist_max, "dist2forest_95_perc_max", country, ("p95",))
    cost_min, cost_max = _lookup(tables.opp_cost, "min_max_table_opp_cost", country, ("min_cost", "max_cost"))
    carbon_min, carbon_max = _lookup(tables.carbon, "min_max_table_carbon_seq", country, ("min_rate", "max_rate"))

    bounds = CountryBounds(
        dist_min=dist_min,
        dist_max=dist_max,
        cost_min=cost_min,
        cost_max=cost_max,
        carbon_min=carbon_min,
        carbon_max=carbon_max,
    )
    log.info(f"Resolved bounds for {country}: {bounds.to_dict()}")
    return bounds
