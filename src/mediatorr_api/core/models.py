"""Core domain models for the API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from mediatorr_api.core.enums import (
    ArtifactKind,
    LogLevel,
    MediaType,
    OutputStream,
    ScanState,
)


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys for the frontend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ArtifactSet(CamelModel):
    """Which sidecar files exist for one media item."""

    torrent: bool = False
    nfo: bool = False
    txt: bool = False
    prez: bool = False
    source_nfo: bool = False
    srcinfo: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_all_artifacts(self) -> bool:
        return all(
            getattr(self, _FIELD_BY_KIND[kind])
            for kind in ArtifactKind
            if kind.is_required
        )

    def has(self, kind: ArtifactKind) -> bool:
        return getattr(self, _FIELD_BY_KIND[kind])


_FIELD_BY_KIND = {
    ArtifactKind.TORRENT: "torrent",
    ArtifactKind.NFO: "nfo",
    ArtifactKind.TXT: "txt",
    ArtifactKind.PREZ: "prez",
    ArtifactKind.SOURCE_NFO: "source_nfo",
    ArtifactKind.SRCINFO: "srcinfo",
}


def artifact_field(kind: ArtifactKind) -> str:
    """Model field name holding the presence flag for ``kind``."""
    return _FIELD_BY_KIND[kind]


class MediaListItem(CamelModel):
    """One entry of a catalog listing."""

    name: str
    artifacts: ArtifactSet
    modified_at: datetime


class MediaPage(CamelModel):
    """A page of catalog listing results."""

    items: list[MediaListItem]
    total: int
    page: int
    total_pages: int


class MediaFile(CamelModel):
    """A regular file inside a media item directory."""

    name: str
    size: int
    modified_at: datetime


class OverrideInfo(CamelModel):
    """External catalog ID forced for a media item."""

    id: int
    api_type: str
    updated_at: datetime | None = None


class MediaDetail(CamelModel):
    """Point-in-time view of one media item."""

    name: str
    type: MediaType
    artifacts: ArtifactSet
    modified_at: datetime
    files: list[MediaFile] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None
    txt_content: str | None = None
    source_info: dict[str, Any] | None = None
    override: OverrideInfo | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_all_artifacts(self) -> bool:
        return self.artifacts.has_all_artifacts


class TypeStats(CamelModel):
    count: int = 0


class LibraryStats(CamelModel):
    """Library-wide counters."""

    per_type: dict[MediaType, TypeStats]
    total_size: int = 0
    last_scan: datetime | None = None


class ScanStatus(CamelModel):
    """Content of the status file shared with the scan job.

    Unknown keys written by the job are preserved so they reach
    subscribers unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    state: ScanState
    current: int | None = None
    total: int | None = None
    current_item: str | None = None
    media_type: str | None = None
    stats: dict[str, Any] | None = None
    stopped_manually: bool | None = None
    last_scan: str | None = None


class ScanExit(CamelModel):
    """Completion payload emitted when the scan subprocess exits."""

    state: ScanState = ScanState.IDLE
    exit_code: int | None = None
    timestamp: datetime


class LogEntry(CamelModel):
    """A classified line of scan output."""

    timestamp: datetime
    level: LogLevel
    message: str
    stream: OutputStream
