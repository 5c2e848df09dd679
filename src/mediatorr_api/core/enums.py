from enum import StrEnum


class MediaType(StrEnum):
    """Top-level library folders."""

    FILMS = "films"
    SERIES = "series"
    MUSIQUES = "musiques"

    @property
    def supports_override(self) -> bool:
        return self in (self.FILMS, self.SERIES)

    @property
    def api_type(self) -> str | None:
        """TMDb media type used for cache keys and overrides."""
        return {self.FILMS: "movie", self.SERIES: "tv"}.get(self)


class ArtifactKind(StrEnum):
    """Sidecar files generated next to each media item."""

    TORRENT = "torrent"
    NFO = "nfo"
    TXT = "txt"
    PREZ = "prez"
    SOURCE_NFO = "sourceNfo"
    SRCINFO = "srcinfo"

    @property
    def suffix(self) -> str:
        return _SUFFIXES[self]

    @property
    def is_required(self) -> bool:
        """Whether the artifact counts toward completeness."""
        return self in (self.TORRENT, self.NFO, self.TXT, self.PREZ)

    @property
    def is_metadata_derived(self) -> bool:
        """Whether the artifact is rebuilt from catalog metadata."""
        return self in (self.TXT, self.PREZ)


_SUFFIXES = {
    ArtifactKind.TORRENT: ".torrent",
    ArtifactKind.NFO: ".nfo",
    ArtifactKind.TXT: ".txt",
    ArtifactKind.PREZ: ".prez.txt",
    ArtifactKind.SOURCE_NFO: ".source.nfo",
    ArtifactKind.SRCINFO: ".srcinfo",
}


class SortOrder(StrEnum):
    """Listing sort orders."""

    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"


class ScanState(StrEnum):
    """State reported by the scan job in the status file."""

    RUNNING = "running"
    IDLE = "idle"


class ProcessState(StrEnum):
    """Lifecycle of the scan subprocess owned by this service."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class EventChannel(StrEnum):
    """Named channels on the scan event bus."""

    STATUS = "status"
    PROGRESS = "scan:progress"
    COMPLETE = "scan:complete"
    LOG = "log"


class LogLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class OutputStream(StrEnum):
    STDOUT = "stdout"
    STDERR = "stderr"


class ReadOutcome(StrEnum):
    """Outcome of a best-effort read."""

    PRESENT = "present"
    ABSENT = "absent"
    MALFORMED = "malformed"
