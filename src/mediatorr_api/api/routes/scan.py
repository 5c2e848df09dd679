"""Scan control endpoints."""

from fastapi import APIRouter

from mediatorr_api.api.deps import ScanManagerDep, StatusWatcherDep
from mediatorr_api.api.exceptions import ErrorResponse
from mediatorr_api.schemas.scan import (
    ScanStartedResponse,
    ScanStoppedResponse,
    StatusResponse,
)

router = APIRouter(tags=["scan"])


@router.post(
    "/scan",
    responses={
        409: {"model": ErrorResponse, "description": "Scan already running"},
        500: {"model": ErrorResponse, "description": "Scan could not be started"},
    },
)
async def start_scan(scan_manager: ScanManagerDep) -> ScanStartedResponse:
    """Start a full library scan. Only one scan runs at a time."""
    pid = await scan_manager.trigger()
    return ScanStartedResponse(pid=pid)


@router.post(
    "/scan/stop",
    responses={409: {"model": ErrorResponse, "description": "No scan running"}},
)
async def stop_scan(scan_manager: ScanManagerDep) -> ScanStoppedResponse:
    """Ask the running scan to stop.

    The process gets SIGTERM now and SIGKILL if it outlives the grace
    period. Completion is reported on the event stream.
    """
    scan_manager.stop()
    return ScanStoppedResponse()


@router.get("/status", response_model_exclude_none=True)
async def get_status(
    status_watcher: StatusWatcherDep, scan_manager: ScanManagerDep
) -> StatusResponse:
    """Last known scan status and whether a scan process is held."""
    return StatusResponse(
        status=status_watcher.get_last_status(),
        process_state=scan_manager.state,
        process_running=scan_manager.is_running,
    )
