"""Single-flight management of the external scan subprocess."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from mediatorr_api.core.enums import OutputStream, ProcessState, ScanState
from mediatorr_api.core.models import ScanExit, ScanStatus
from mediatorr_api.core.types import Clock
from mediatorr_api.exceptions import (
    NoScanRunningError,
    ScanAlreadyRunningError,
    ScanStartError,
)
from mediatorr_api.services.event_bus import ScanEventBus
from mediatorr_api.services.status_file import read_status, write_status

logger = logging.getLogger(__name__)


class ScanProcessManager:
    """Owns the one scan subprocess allowed at a time.

    State machine::

        idle -> starting -> running -> (stopping) -> idle

    The process handle held here is the only single-flight gate. The status
    file is advisory: it drives progress display, never admission.

    Key Responsibilities:
        - Spawning the scan command with stdout/stderr piped
        - Forwarding every output chunk to the event bus as a log event
        - Emitting exactly one ``complete`` event per process, carrying
          the exit code, whether it exited on its own or was stopped
        - Graceful stop (SIGTERM) escalating to SIGKILL after a grace period
    """

    READ_CHUNK_SIZE = 4096

    def __init__(
        self,
        command: Sequence[str],
        status_file: Path,
        event_bus: ScanEventBus,
        stop_grace_seconds: float = 5.0,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the process manager.

        Args:
            command: Scan command and arguments.
            status_file: Status file overwritten on manual stop.
            event_bus: Bus receiving log and completion events.
            stop_grace_seconds: Delay before a stopped process is killed.
            clock: Function returning the current time.
        """
        if not command:
            raise ValueError("Scan command must not be empty")
        self._command = list(command)
        self._status_file = status_file
        self._event_bus = event_bus
        self._stop_grace_seconds = stop_grace_seconds
        self._clock = clock or (lambda: datetime.now(UTC))

        self._state = ProcessState.IDLE
        self._process: asyncio.subprocess.Process | None = None
        self._monitor: asyncio.Task[int | None] | None = None
        self._kill_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def is_running(self) -> bool:
        """True while a scan is starting, running or stopping."""
        return self._state is not ProcessState.IDLE

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def trigger(
        self, prepare: Callable[[], Awaitable[object]] | None = None
    ) -> int:
        """Start a scan.

        The slot is claimed before ``prepare`` runs, so work that must happen
        right before the scan (deleting artifacts it will rebuild) cannot
        interleave with another trigger.

        Args:
            prepare: Optional coroutine function awaited before spawning.

        Returns:
            PID of the spawned process.

        Raises:
            ScanAlreadyRunningError: If a scan is already in flight.
            ScanStartError: If the command could not be spawned.
        """
        if self._state is not ProcessState.IDLE:
            raise ScanAlreadyRunningError()

        self._state = ProcessState.STARTING
        try:
            if prepare is not None:
                await prepare()
            process = await self._spawn()
        except BaseException:
            self._state = ProcessState.IDLE
            raise

        self._process = process
        self._state = ProcessState.RUNNING
        self._monitor = asyncio.create_task(
            self._monitor_process(process), name=f"scan-{process.pid}"
        )
        logger.info("Scan started (pid %d)", process.pid)
        return process.pid

    def stop(self) -> None:
        """Stop the running scan.

        Sends SIGTERM, schedules SIGKILL after the grace period and marks the
        status file idle right away so file observers see the stop without
        waiting for the process to exit. Completion is still reported by the
        exit monitor.

        Raises:
            NoScanRunningError: If no process is held.
        """
        process = self._process
        if process is None:
            raise NoScanRunningError()
        if self._state is ProcessState.STOPPING:
            return

        self._state = ProcessState.STOPPING
        with contextlib.suppress(ProcessLookupError):
            process.terminate()
        self._kill_task = asyncio.create_task(
            self._kill_after_grace(process), name=f"scan-kill-{process.pid}"
        )
        self._mark_stopped_manually()
        logger.info("Scan stop requested (pid %d)", process.pid)

    async def wait(self) -> int | None:
        """Wait for the current (or last) scan to exit.

        Returns:
            Exit code, or None if no scan was ever started.
        """
        if self._monitor is None:
            return None
        return await asyncio.shield(self._monitor)

    async def shutdown(self) -> None:
        """Stop any running scan and wait for it. Used at app shutdown."""
        if self._process is None:
            return
        self.stop()
        await self.wait()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _spawn(self) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Failed to start scan %s: %s", self._command, e)
            raise ScanStartError(str(e)) from e

    async def _monitor_process(self, process: asyncio.subprocess.Process) -> int | None:
        """Pump output until the process exits, then report completion."""
        readers = [
            self._pump(process.stdout, OutputStream.STDOUT),
            self._pump(process.stderr, OutputStream.STDERR),
        ]
        exit_code: int | None = None
        try:
            results = await asyncio.gather(*readers, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error("Scan output reader failed: %s", result)
            exit_code = await process.wait()
        finally:
            self._on_exit(exit_code)
        return exit_code

    async def _pump(
        self, stream: asyncio.StreamReader | None, source: OutputStream
    ) -> None:
        """Forward output chunks as log events.

        Chunks are not reassembled into lines; a line split across two reads
        shows up as two entries.
        """
        if stream is None:
            return
        while chunk := await stream.read(self.READ_CHUNK_SIZE):
            text = chunk.decode("utf-8", errors="replace").strip()
            if text:
                self._event_bus.emit_log(text, source)

    async def _kill_after_grace(self, process: asyncio.subprocess.Process) -> None:
        await asyncio.sleep(self._stop_grace_seconds)
        if process.returncode is None:
            logger.warning(
                "Scan still alive %.1fs after SIGTERM, killing (pid %d)",
                self._stop_grace_seconds,
                process.pid,
            )
            with contextlib.suppress(ProcessLookupError):
                process.kill()

    def _on_exit(self, exit_code: int | None) -> None:
        """Converge every exit path on the idle state and report it."""
        if self._kill_task is not None:
            self._kill_task.cancel()
            self._kill_task = None
        self._process = None
        self._state = ProcessState.IDLE

        if exit_code == 0:
            logger.info("Scan finished")
        else:
            logger.warning("Scan exited with code %s", exit_code)
        self._event_bus.emit_complete(
            ScanExit(exit_code=exit_code, timestamp=self._clock())
        )

    def _mark_stopped_manually(self) -> None:
        """Write an idle status flagged as a manual stop."""
        previous = read_status(self._status_file).value
        status = ScanStatus(
            state=ScanState.IDLE,
            stats=previous.stats if previous is not None else None,
            stopped_manually=True,
            last_scan=self._clock().isoformat(),
        )
        try:
            write_status(self._status_file, status)
        except OSError as e:
            logger.warning("Could not mark status file as stopped: %s", e)
