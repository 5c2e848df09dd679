"""Media catalog: listings, detail views and stats over the library."""

import logging
import math
import os
import stat
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from unidecode import unidecode

from mediatorr_api.core.enums import ArtifactKind, MediaType, SortOrder
from mediatorr_api.core.models import (
    LibraryStats,
    MediaDetail,
    MediaFile,
    MediaListItem,
    MediaPage,
    OverrideInfo,
    TypeStats,
)
from mediatorr_api.core.utils import (
    is_safe_filename,
    is_safe_name,
    read_json_object,
    read_text,
)
from mediatorr_api.exceptions import OverrideStoreError
from mediatorr_api.services.artifacts import ArtifactStore
from mediatorr_api.services.metadata_cache import MetadataCache
from mediatorr_api.services.protocols import OverrideLookup
from mediatorr_api.services.status_file import status_mtime

logger = logging.getLogger(__name__)


def _mtime(st: os.stat_result) -> datetime:
    return datetime.fromtimestamp(st.st_mtime, UTC)


def _collation_key(name: str) -> tuple[str, str]:
    """Sort key close to a locale compare: accents and case ignored first."""
    return unidecode(name).casefold(), name


def dir_size(root: Path) -> int:
    """Total size of regular files under ``root``.

    Symbolic links are neither followed nor counted, so a link cycle or a
    link to a large external tree cannot inflate the walk. Unreadable
    entries are skipped.
    """
    total = 0
    pending = [root]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                        elif entry.is_dir(follow_symlinks=False):
                            pending.append(Path(entry.path))
                    except OSError:
                        continue
        except OSError:
            continue
    return total


class MediaCatalog:
    """Read-only views of the media library.

    Every call is a fresh filesystem snapshot; nothing is cached and no lock
    is taken, so reads are safe while a scan is adding sidecar files.

    Only a missing item directory (or an invalid name) makes ``detail``
    return None. Metadata, txt, source info and override lookups are each
    best-effort and degrade to None on their own.
    """

    DEFAULT_PER_PAGE = 24

    def __init__(
        self,
        artifacts: ArtifactStore,
        metadata_cache: MetadataCache,
        overrides: OverrideLookup,
        status_file: Path,
    ) -> None:
        self._artifacts = artifacts
        self._metadata_cache = metadata_cache
        self._overrides = overrides
        self._status_file = status_file

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list_media(
        self,
        media_type: MediaType,
        *,
        search: str = "",
        sort: SortOrder | str = SortOrder.NAME_ASC,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> MediaPage:
        """List items of one type with filtering, sorting and pagination.

        Args:
            media_type: Library section to list.
            search: Case-insensitive substring matched against folder names.
            sort: One of SortOrder; unknown values fall back to name_asc.
            page: 1-indexed page. Out-of-range pages yield no items.
            per_page: Page size, at least 1.
        """
        if per_page < 1:
            raise ValueError(f"per_page must be at least 1, got {per_page}")

        needle = search.casefold()
        items: list[MediaListItem] = []
        for path, st in self._iter_item_dirs(self._artifacts.type_dir(media_type)):
            if needle and needle not in path.name.casefold():
                continue
            items.append(
                MediaListItem(
                    name=path.name,
                    artifacts=self._artifacts.artifact_set(path, path.name),
                    modified_at=_mtime(st),
                )
            )

        items = self._sort(items, sort)
        total = len(items)
        start = (page - 1) * per_page
        page_items = items[start : start + per_page] if page >= 1 else []
        return MediaPage(
            items=page_items,
            total=total,
            page=page,
            total_pages=math.ceil(total / per_page),
        )

    @staticmethod
    def _sort(
        items: list[MediaListItem], sort: SortOrder | str
    ) -> list[MediaListItem]:
        try:
            order = SortOrder(sort)
        except ValueError:
            logger.debug("Unknown sort %r, using name_asc", sort)
            order = SortOrder.NAME_ASC

        reverse = order in (SortOrder.NAME_DESC, SortOrder.DATE_DESC)
        if order in (SortOrder.NAME_ASC, SortOrder.NAME_DESC):
            return sorted(items, key=lambda i: _collation_key(i.name), reverse=reverse)
        return sorted(items, key=lambda i: (i.modified_at, i.name), reverse=reverse)

    @staticmethod
    def _iter_item_dirs(type_dir: Path) -> Iterator[tuple[Path, os.stat_result]]:
        """Yield immediate subdirectories; a missing root yields nothing."""
        try:
            with os.scandir(type_dir) as entries:
                for entry in entries:
                    try:
                        if not entry.is_dir():
                            continue
                        st = entry.stat()
                    except OSError:
                        continue
                    yield Path(entry.path), st
        except OSError:
            return

    # -------------------------------------------------------------------------
    # Detail
    # -------------------------------------------------------------------------

    def detail(self, media_type: MediaType, name: str) -> MediaDetail | None:
        """Build the detail view of one item, or None if it does not exist."""
        if not is_safe_name(name):
            return None
        media_dir = self._artifacts.media_dir(media_type, name)
        try:
            dir_stat = media_dir.stat()
        except OSError:
            return None
        if not stat.S_ISDIR(dir_stat.st_mode):
            return None

        txt_path = self._artifacts.artifact_path(media_dir, name, ArtifactKind.TXT)
        srcinfo_path = self._artifacts.artifact_path(
            media_dir, name, ArtifactKind.SRCINFO
        )
        return MediaDetail(
            name=name,
            type=media_type,
            artifacts=self._artifacts.artifact_set(media_dir, name),
            modified_at=_mtime(dir_stat),
            files=self._list_files(media_dir),
            metadata=self._metadata_cache.read(media_type, name).value_or_none(),
            txt_content=read_text(txt_path).value_or_none(),
            source_info=read_json_object(srcinfo_path).value_or_none(),
            override=self._get_override(media_type, name),
        )

    @staticmethod
    def _list_files(media_dir: Path) -> list[MediaFile]:
        files: list[MediaFile] = []
        try:
            with os.scandir(media_dir) as entries:
                for entry in entries:
                    try:
                        if not entry.is_file():
                            continue
                        st = entry.stat()
                    except OSError:
                        continue
                    files.append(
                        MediaFile(
                            name=entry.name, size=st.st_size, modified_at=_mtime(st)
                        )
                    )
        except OSError as e:
            logger.debug("Could not list %s: %s", media_dir, e)
        return sorted(files, key=lambda f: f.name)

    def _get_override(self, media_type: MediaType, name: str) -> OverrideInfo | None:
        if not media_type.supports_override:
            return None
        try:
            override = self._overrides.get(media_type.value, name)
        except OverrideStoreError as e:
            logger.warning(
                "Override lookup failed for %s/%s: %s", media_type, name, e
            )
            return None
        if override is None:
            return None
        return override.to_info()

    # -------------------------------------------------------------------------
    # Raw files
    # -------------------------------------------------------------------------

    def file_content(
        self, media_type: MediaType, name: str, filename: str
    ) -> str | None:
        """Read a file from an item directory as text.

        The filename must pass the allow-list, and the resolved path must
        still sit inside the item directory. Every failure returns None so
        callers cannot tell a forbidden file from a missing one.
        """
        if not is_safe_name(name) or not is_safe_filename(filename):
            return None
        media_dir = self._artifacts.media_dir(media_type, name)
        try:
            base = media_dir.resolve(strict=True)
            target = (media_dir / filename).resolve(strict=True)
        except (OSError, RuntimeError):
            return None
        if target == base or not target.is_relative_to(base):
            return None
        if not target.is_file():
            return None
        return read_text(target).value_or_none()

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def stats(self) -> LibraryStats:
        """Count items per type and measure the library on disk."""
        per_type = {
            media_type: TypeStats(count=self._count_items(media_type))
            for media_type in MediaType
        }
        return LibraryStats(
            per_type=per_type,
            total_size=dir_size(self._artifacts.library),
            last_scan=status_mtime(self._status_file),
        )

    def _count_items(self, media_type: MediaType) -> int:
        type_dir = self._artifacts.type_dir(media_type)
        return sum(1 for _ in self._iter_item_dirs(type_dir))
