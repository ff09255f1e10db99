"""
Dataset Cache - Resolve dataset locations to local files.

Datasets can live in a local data directory or behind an http(s) base URL.
Remote files are downloaded once into the cache directory and reused on
every later run.
"""

import hashlib
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from core.errors import DataSourceError

log = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def is_remote(location: str) -> bool:
    return str(location).startswith(("http://", "https://"))


class DatasetCache:
    """
    Fetch-once cache for remote datasets.

    Usage:
        cache = DatasetCache("data_cache")
        path = cache.resolve("https://example.org/data/landcover.tif")
    """

    def __init__(self, cache_dir: str = "data_cache", timeout: float = 60.0, session: Optional[requests.Session] = None):
        self.cache_dir = Path(cache_dir)
        self.timeout = timeout
        self.session = session or requests.Session()

    def cache_path(self, url: str) -> Path:
        """Local file a URL is cached under: short hash of the URL plus its file name."""
        name = Path(urlparse(url).path).name or "dataset"
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
        return self.cache_dir / f"{digest}_{name}"

    def resolve(self, location: str) -> Path:
        """
        Local path for a dataset location.

        Local paths must exist. URLs are downloaded on first use.
        Raises DataSourceError if the dataset cannot be found or fetched.
        """
        if not is_remote(location):
            path = Path(location)
            if not path.exists():
                raise DataSourceError(str(location), "file not found")
            return path

        target = self.cache_path(location)
        if target.exists():
            log.debug(f"Cache hit for {location}")
            return target
        self._download(location, target)
        return target

    def _download(self, url: str, target: Path) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")
        log.info(f"Downloading {url}")
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(partial, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            partial.unlink(missing_ok=True)
            raise DataSourceError(url, str(e)) from e
        partial.replace(target)
        log.info(f"Cached {url} -> {target}")
