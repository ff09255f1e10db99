"""
Data loaders for the Restoration Planning Tool.

Includes:
- Dataset cache (local files or http(s), fetched once)
- Country boundaries
- Reference tables (per-country normalization bounds)
- Rasters (windowed and grid-aligned reads)
- Species ranges (IUCN and BirdLife)
- Data repository (combines all sources per country)
"""

from loaders.remote import DatasetCache
from loaders.countries import CountryCatalog
from loaders.reference_tables import load_reference_tables
from loaders.rasters import read_aligned, read_window
from loaders.species import SPECIES_SOURCES, load_species_groups
from loaders.datasets import DataRepository, get_data_repository

__all__ = [
    "DatasetCache",
    "CountryCatalog",
    "load_reference_tables",
    "read_aligned",
    "read_window",
    "SPECIES_SOURCES",
    "load_species_groups",
    # Combined
    "DataRepository",
    "get_data_repository",
]
