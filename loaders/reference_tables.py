"""
Reference Tables Loader - Per-country normalization tables.

Four CSV files, each keyed by COUNTRY_NA, hold the precomputed bounds the
priority layers are scaled against.
"""

import logging
from pathlib import Path
from typing import Callable, Dict

import pandas as pd

from core.bounds import COUNTRY_KEY, ReferenceTables
from core.errors import DataSourceError

log = logging.getLogger(__name__)

# ReferenceTables field -> (file name, required value columns)
REFERENCE_TABLE_FILES: Dict[str, tuple] = {
    "dist_min": ("dist2forest_min.csv", ("min",)),
    "dist_max": ("dist2forest_95_perc_max.csv", ("p95",)),
    "opp_cost": ("min_max_table_opp_cost.csv", ("min_cost", "max_cost")),
    "carbon": ("min_max_table_carbon_seq.csv", ("min_rate", "max_rate")),
}


def read_table(path: Path, columns: tuple = ()) -> pd.DataFrame:
    """Read one reference CSV and check it has the key and value columns."""
    try:
        frame = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataSourceError(str(path), str(e)) from e

    missing = [c for c in (COUNTRY_KEY,) + tuple(columns) if c not in frame.columns]
    if missing:
        raise DataSourceError(str(path), f"missing columns {missing}")
    frame[COUNTRY_KEY] = frame[COUNTRY_KEY].astype(str).str.strip()
    log.debug(f"Read {len(frame)} rows from {path}")
    return frame


def load_reference_tables(locate: Callable[[str], Path]) -> ReferenceTables:
    """
    Load all four tables.

    locate maps a dataset file name to a local path (see DataRepository.locate).
    """
    frames = {
        field: read_table(locate(file_name), columns)
        for field, (file_name, columns) in REFERENCE_TABLE_FILES.items()
    }
    log.info("Loaded country reference tables")
    return ReferenceTables(**frames)
