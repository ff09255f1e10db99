"""
Data Repository - Everything the tool reads, in one place.

Resolves dataset files (local or remote), loads the country catalog and
reference tables once, and builds the per-country workspace: land-cover
masks plus every other layer warped onto the land-cover grid.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from rasterio.warp import Resampling

from core.bounds import ReferenceTables, get_bounds
from core.landcover import CURRENT_YEAR, HISTORICAL_YEAR, classify_landcover
from core.models import Country
from core.scoring import PriorityFactor
from core.session import CountryWorkspace
from core.settings import Settings
from core.species import SpeciesGroup
from core.zonal import ZonalRasters
from loaders.countries import CountryCatalog
from loaders.rasters import read_aligned, read_window
from loaders.reference_tables import load_reference_tables
from loaders.remote import DatasetCache
from loaders.species import load_species_groups

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# DATASET FILES
# ═══════════════════════════════════════════════════════════════════════════
LANDCOVER_FILE = "landcover.tif"
COUNTRIES_FILE = "countries.geojson"
CARBON_BG_FILE = "carbon_bgb.tif"
POPULATION_FILE = "population_{year}.tif"

PRIORITY_FILES: Dict[PriorityFactor, str] = {
    PriorityFactor.FOREST_PROXIMITY: "dist_forest.tif",
    PriorityFactor.OPPORTUNITY_COST: "opp_cost.tif",
    PriorityFactor.CARBON_POTENTIAL: "carbon_agb.tif",
}


def landcover_band(year: int) -> str:
    return f"y{year}"


class DataRepository:
    """
    Loads and caches datasets for the app.

    Usage:
        repo = DataRepository(Settings.from_env())
        names = repo.country_names()
        workspace = repo.load_country("Kenya")
    """

    def __init__(self, settings: Optional[Settings] = None, cache: Optional[DatasetCache] = None):
        self.settings = settings or Settings.from_env()
        self.cache = cache or DatasetCache(self.settings.cache_dir, self.settings.request_timeout)
        self._countries: Optional[CountryCatalog] = None
        self._tables: Optional[ReferenceTables] = None
        self._species: Optional[List[SpeciesGroup]] = None
        self._workspace: Optional[CountryWorkspace] = None

    def locate(self, name: str) -> Path:
        """Local path of a dataset file, downloading it first if remote."""
        return self.cache.resolve(self.settings.dataset_location(name))

    @property
    def countries(self) -> CountryCatalog:
        if self._countries is None:
            self._countries = CountryCatalog.from_file(self.locate(COUNTRIES_FILE))
        return self._countries

    def country_names(self) -> List[str]:
        return self.countries.names()

    def reference_tables(self) -> ReferenceTables:
        if self._tables is None:
            self._tables = load_reference_tables(self.locate)
        return self._tables

    def species_groups(self) -> List[SpeciesGroup]:
        """All taxon groups, read on first use."""
        if self._species is None:
            self._species = load_species_groups(self.locate)
        return self._species

    def load_country(self, name: str) -> CountryWorkspace:
        """
        Build the workspace for one country.

        Bounds are resolved first, so an unsupported country fails before
        any raster is read. The most recent workspace is kept.
        """
        if self._workspace is not None and self._workspace.country.name == name:
            return self._workspace

        bounds = get_bounds(name, self.reference_tables())
        geometry = self.countries.geometry(name)
        log.info(f"Loading rasters for {name}")

        landcover_path = self.locate(LANDCOVER_FILE)
        masks = classify_landcover(
            read_window(landcover_path, geometry, band=landcover_band(HISTORICAL_YEAR)),
            read_window(landcover_path, geometry, band=landcover_band(CURRENT_YEAR)),
        )
        grid = masks.current

        priority_layers = {
            factor: read_aligned(self.locate(file_name), grid)
            for factor, file_name in PRIORITY_FILES.items()
        }
        population_file = POPULATION_FILE.format(year=self.settings.population_year)
        zonal = ZonalRasters(
            population=read_aligned(self.locate(population_file), grid, Resampling.sum),
            carbon_ag=priority_layers[PriorityFactor.CARBON_POTENTIAL],
            carbon_bg=read_aligned(self.locate(CARBON_BG_FILE), grid),
        )

        self._workspace = CountryWorkspace(
            country=Country(name, geometry, bounds),
            masks=masks,
            priority_layers=priority_layers,
            zonal=zonal,
        )
        log.info(f"Loaded {name}: grid {grid.shape}, bounds {bounds.to_dict()}")
        return self._workspace


def get_data_repository(settings: Optional[Settings] = None) -> DataRepository:
    """Factory function for the data repository."""
    return DataRepository(settings)
