"""Scan log endpoints."""

from fastapi import APIRouter

from mediatorr_api.api.deps import LogBufferDep
from mediatorr_api.core.models import LogEntry

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get(
    "",
    summary="Get buffered scan log entries",
    description="Returns the most recent scan output entries, oldest first.",
)
async def get_logs(log_buffer: LogBufferDep) -> list[LogEntry]:
    """Get the buffered entries.

    Useful for initial page load before connecting to the event stream.
    """
    return log_buffer.get_entries()
