"""
Runtime settings for the Restoration Planning Tool.

Every value has an explicit default. Environment variables override them.
"""

import os
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """All configurable settings, read once at startup."""

    data_dir: str = "data"
    """Directory (or base URL) holding the rasters, tables and vector layers."""

    cache_dir: str = "data_cache"
    """Where remote datasets are downloaded to. Each is fetched once."""

    population_year: int = 2020
    """Which population grid to use for beneficiary counts."""

    debounce_ms: int = 500
    """Quiet interval before a drawn or edited shape triggers statistics."""

    log_level: str = "INFO"
    """Root logging level for the app."""

    request_timeout: float = 60.0
    """Seconds to wait on a remote dataset download."""

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def dataset_location(self, name: str) -> str:
        """Join a dataset file name onto the data directory or base URL."""
        if self.data_dir.startswith(("http://", "https://")):
            return self.data_dir.rstrip("/") + "/" + name
        return str(Path(self.data_dir) / name)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from RESTORATION_* environment variables."""
        defaults = cls()
        settings = cls(
            data_dir=os.getenv("RESTORATION_DATA_DIR", defaults.data_dir),
            cache_dir=os.getenv("RESTORATION_CACHE_DIR", defaults.cache_dir),
            population_year=int(os.getenv("RESTORATION_POPULATION_YEAR", defaults.population_year)),
            debounce_ms=int(os.getenv("RESTORATION_DEBOUNCE_MS", defaults.debounce_ms)),
            log_level=os.getenv("RESTORATION_LOG_LEVEL", defaults.log_level).upper(),
            request_timeout=float(os.getenv("RESTORATION_REQUEST_TIMEOUT", defaults.request_timeout)),
        )
        log.debug(f"Loaded settings: {settings.to_dict()}")
        return settings
