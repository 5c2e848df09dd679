"""Live scan events via Server-Sent Events."""

import asyncio
from collections.abc import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from mediatorr_api.api.deps import EventBusDep, SettingsDep, StatusWatcherDep
from mediatorr_api.core.enums import EventChannel
from mediatorr_api.services.event_bus import ScanEvent, ScanEventBus
from mediatorr_api.services.status_watcher import StatusWatcher

router = APIRouter(tags=["events"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


async def event_stream(
    event_bus: ScanEventBus,
    status_watcher: StatusWatcher,
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """Yield SSE frames: the current status first, then live events.

    Subscribes before reading the status so nothing emitted in between is
    lost. The subscription is released when the generator is closed.
    """
    async with event_bus.subscribe(
        EventChannel.PROGRESS, EventChannel.COMPLETE, EventChannel.LOG
    ) as queue:
        snapshot = ScanEvent(EventChannel.STATUS, status_watcher.get_last_status())
        yield snapshot.to_sse()

        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
                yield event.to_sse()
            except TimeoutError:
                # SSE comment keeps proxies from closing an idle stream
                yield ": heartbeat\n\n"


@router.get("/events", response_class=StreamingResponse)
async def stream_events(
    event_bus: EventBusDep,
    status_watcher: StatusWatcherDep,
    settings: SettingsDep,
) -> StreamingResponse:
    """Stream scan progress, completion and log events.

    Event types:
        - status: current status, sent once on connect
        - scan:progress: status file update while a scan runs
        - scan:complete: scan finished (from the status file or process exit)
        - log: one classified chunk of scan output
    """
    return StreamingResponse(
        event_stream(event_bus, status_watcher, settings.sse_heartbeat_seconds),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
