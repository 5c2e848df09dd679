"""Helpers for the status file shared with the scan job."""

from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from mediatorr_api.core.models import ScanStatus
from mediatorr_api.core.types import ReadResult
from mediatorr_api.core.utils import read_json_object, write_text_atomic


def read_status(path: Path) -> ReadResult[ScanStatus]:
    """Read and validate the status file without raising.

    A file caught mid-write by the scan job shows up as malformed.
    """
    raw = read_json_object(path)
    if not raw.is_present:
        return ReadResult(raw.outcome, error=raw.error)
    try:
        return ReadResult.present(ScanStatus.model_validate(raw.value))
    except ValidationError as e:
        return ReadResult.malformed(str(e))


def write_status(path: Path, status: ScanStatus) -> None:
    """Replace the status file atomically.

    Raises:
        OSError: If the file cannot be written.
    """
    write_text_atomic(path, status.model_dump_json(by_alias=True, exclude_none=True))


def status_mtime(path: Path) -> datetime | None:
    """Modification time of the status file, used as the last scan time."""
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, UTC)
    except OSError:
        return None
