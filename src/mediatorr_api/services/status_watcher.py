"""Background poller turning status file changes into bus events."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from mediatorr_api.core.enums import ReadOutcome, ScanState
from mediatorr_api.core.models import ScanStatus
from mediatorr_api.services.event_bus import ScanEventBus
from mediatorr_api.services.status_file import read_status

logger = logging.getLogger(__name__)


class StatusWatcher:
    """Polls the status file written by the scan job.

    Polling (rather than inotify) keeps this working when the data
    directory is a network or container volume.

    Each tick reads the file; read or parse failures are skipped silently
    since the job may be mid-write. When the content differs from the last
    known status, the new status is stored and exactly one event is
    emitted: ``progress`` while running, ``complete`` once idle.
    """

    def __init__(
        self,
        status_file: Path,
        event_bus: ScanEventBus,
        poll_interval: float = 1.0,
    ) -> None:
        """Initialize watcher.

        Args:
            status_file: File written by the scan job.
            event_bus: Bus receiving progress/complete events.
            poll_interval: Seconds between reads.
        """
        self._status_file = status_file
        self._event_bus = event_bus
        self._poll_interval = poll_interval
        self._last_status: ScanStatus | None = None
        self._last_content: dict[str, Any] | None = None
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        """Check if the poll loop is running."""
        return self._task is not None and not self._task.done()

    @property
    def last_status(self) -> ScanStatus | None:
        """Last status observed by the poll loop, if any."""
        return self._last_status

    def start(self) -> None:
        """Start the poll loop background task."""
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name="status-watcher")
        logger.info(
            "Watching %s every %.1fs", self._status_file, self._poll_interval
        )

    async def stop(self) -> None:
        """Stop the poll loop. Safe to call repeatedly."""
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Status watcher stopped")

    async def _run_loop(self) -> None:
        """Main poll loop."""
        while not self._stop_event.is_set():
            self.poll_once()
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self._poll_interval,
                )
                break  # Stop event was set
            except TimeoutError:
                pass  # Next tick

    def poll_once(self) -> bool:
        """Run a single poll tick.

        Returns:
            True if a change was detected.
        """
        result = read_status(self._status_file)
        if result.value is None:
            if result.outcome is ReadOutcome.MALFORMED:
                logger.debug("Skipping unreadable status file: %s", result.error)
            return False

        status = result.value
        content = status.model_dump(by_alias=True)
        if content == self._last_content:
            return False

        self._last_content = content
        self._last_status = status
        if status.state is ScanState.RUNNING:
            self._event_bus.emit_progress(status)
        elif status.state is ScanState.IDLE:
            self._event_bus.emit_complete(status)
        return True

    def get_last_status(self) -> ScanStatus:
        """Current status for a newly connected observer.

        Falls back to a direct read of the file, then to idle.
        """
        if self._last_status is not None:
            return self._last_status
        result = read_status(self._status_file)
        if result.value is not None:
            return result.value
        return ScanStatus(state=ScanState.IDLE)
