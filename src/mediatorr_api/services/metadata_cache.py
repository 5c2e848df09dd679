"""Read-only access to the metadata cache written by the scan job."""

import logging
from pathlib import Path
from typing import Any

from mediatorr_api.core.enums import MediaType, ReadOutcome
from mediatorr_api.core.types import ReadResult
from mediatorr_api.core.utils import read_json_object, safe_cache_name

logger = logging.getLogger(__name__)


class MetadataCache:
    """JSON metadata cached per media item.

    Films and series share the TMDb cache, keyed ``movie_<name>.json`` and
    ``tv_<name>.json``. Music lives in the iTunes cache as ``<name>.json``.
    Reads never raise: a missing or corrupt file simply means no metadata.
    """

    def __init__(self, tmdb_dir: Path, itunes_dir: Path) -> None:
        self._tmdb_dir = tmdb_dir
        self._itunes_dir = itunes_dir

    def cache_path(self, media_type: MediaType, name: str) -> Path:
        """Path of the cache file for a media item."""
        safe_name = safe_cache_name(name)
        if media_type.api_type is not None:
            return self._tmdb_dir / f"{media_type.api_type}_{safe_name}.json"
        return self._itunes_dir / f"{safe_name}.json"

    def read(self, media_type: MediaType, name: str) -> ReadResult[dict[str, Any]]:
        """Read cached metadata for a media item."""
        path = self.cache_path(media_type, name)
        result = read_json_object(path)
        if result.outcome is ReadOutcome.MALFORMED:
            logger.debug("Ignoring unreadable cache %s: %s", path, result.error)
        return result

    def purge(self, media_type: MediaType, name: str) -> bool:
        """Remove the cache file. Returns True if a file was deleted."""
        path = self.cache_path(media_type, name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not remove metadata cache %s: %s", path, e)
            return False
        return True
