"""Filesystem conventions for the sidecar files of each media item."""

import logging
from pathlib import Path

from mediatorr_api.core.enums import ArtifactKind, MediaType
from mediatorr_api.core.models import ArtifactSet, artifact_field
from mediatorr_api.services.metadata_cache import MetadataCache

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Maps a (type, name) media key to its sidecar files.

    Every item lives in ``<library>/<type>/<name>/`` and its artifacts are
    named ``<name><suffix>`` inside that folder. Presence is always read from
    disk; nothing is cached.

    Deletions are best-effort: a file that is missing or cannot be removed
    is simply not counted.
    """

    def __init__(self, library: Path, metadata_cache: MetadataCache) -> None:
        self._library = library
        self._metadata_cache = metadata_cache

    @property
    def library(self) -> Path:
        return self._library

    def type_dir(self, media_type: MediaType) -> Path:
        return self._library / media_type.value

    def media_dir(self, media_type: MediaType, name: str) -> Path:
        return self.type_dir(media_type) / name

    @staticmethod
    def artifact_path(media_dir: Path, name: str, kind: ArtifactKind) -> Path:
        return media_dir / f"{name}{kind.suffix}"

    def has_artifact(self, media_dir: Path, name: str, kind: ArtifactKind) -> bool:
        return self.artifact_path(media_dir, name, kind).exists()

    def artifact_set(self, media_dir: Path, name: str) -> ArtifactSet:
        """Check every artifact kind for a media item."""
        return ArtifactSet(
            **{
                artifact_field(kind): self.has_artifact(media_dir, name, kind)
                for kind in ArtifactKind
            }
        )

    def delete_artifacts(self, media_type: MediaType, name: str) -> int:
        """Remove every sidecar file of a media item.

        Returns:
            Number of files actually deleted.
        """
        deleted = self._unlink_kinds(media_type, name, list(ArtifactKind))
        logger.info("Deleted %d artifact(s) for %s/%s", deleted, media_type, name)
        return deleted

    def delete_metadata_artifacts(self, media_type: MediaType, name: str) -> int:
        """Remove the metadata-derived sidecars and the cached metadata.

        Structural artifacts (torrent, nfo) are kept, so the next scan only
        refreshes catalog metadata.

        Returns:
            Number of files deleted, including the cache file.
        """
        kinds = [kind for kind in ArtifactKind if kind.is_metadata_derived]
        deleted = self._unlink_kinds(media_type, name, kinds)
        if self._metadata_cache.purge(media_type, name):
            deleted += 1
        logger.info(
            "Deleted %d metadata artifact(s) for %s/%s", deleted, media_type, name
        )
        return deleted

    def _unlink_kinds(
        self, media_type: MediaType, name: str, kinds: list[ArtifactKind]
    ) -> int:
        media_dir = self.media_dir(media_type, name)
        deleted = 0
        for kind in kinds:
            path = self.artifact_path(media_dir, name, kind)
            try:
                path.unlink()
                deleted += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.debug("Could not delete %s: %s", path, e)
        return deleted
