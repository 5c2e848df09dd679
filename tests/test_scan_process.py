"""Tests for the scan process manager.

The scan command is replaced by small Python scripts run with the current
interpreter, so these tests spawn real subprocesses.
"""

import asyncio
import json
import sys
from pathlib import Path

import pytest
from conftest import LibraryBuilder, MockClock
from mediatorr_api.core.enums import (
    EventChannel,
    LogLevel,
    OutputStream,
    ProcessState,
)
from mediatorr_api.core.models import LogEntry, ScanExit
from mediatorr_api.exceptions import (
    NoScanRunningError,
    ScanAlreadyRunningError,
    ScanStartError,
)
from mediatorr_api.services import scan_process
from mediatorr_api.services.event_bus import ScanEvent, ScanEventBus
from mediatorr_api.services.scan_process import ScanProcessManager

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")

SLEEPER = "import time; print('ready', flush=True); time.sleep(30)"
STUBBORN = (
    "import signal, time; signal.signal(signal.SIGTERM, signal.SIG_IGN); "
    "print('ready', flush=True); time.sleep(30)"
)


def _python(script: str) -> list[str]:
    return [sys.executable, "-c", script]


def _manager(
    script: str,
    library: LibraryBuilder,
    bus: ScanEventBus,
    clock: MockClock,
    grace: float = 5.0,
) -> ScanProcessManager:
    return ScanProcessManager(
        command=_python(script),
        status_file=library.status_file,
        event_bus=bus,
        stop_grace_seconds=grace,
        clock=clock,
    )


def _completions(events: list[ScanEvent]) -> list[ScanExit]:
    return [
        e.payload
        for e in events
        if e.channel is EventChannel.COMPLETE and isinstance(e.payload, ScanExit)
    ]


def _logs(events: list[ScanEvent]) -> list[LogEntry]:
    return [e.payload for e in events if isinstance(e.payload, LogEntry)]


async def _wait_for_log(queue: asyncio.Queue[ScanEvent], text: str) -> None:
    while True:
        event = await asyncio.wait_for(queue.get(), timeout=10)
        if isinstance(event.payload, LogEntry) and text in event.payload.message:
            return


class TestTrigger:
    """Tests for starting scans."""

    @pytest.mark.asyncio
    async def test_runs_to_completion(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        """Should forward output and report the exit code once."""
        manager = _manager("print('Processing Movie')", library, bus, clock)

        pid = await manager.trigger()
        assert pid > 0
        assert manager.is_running

        exit_code = await manager.wait()

        assert exit_code == 0
        assert manager.state is ProcessState.IDLE
        assert manager.pid is None
        assert [e.message for e in _logs(recorded)] == ["Processing Movie"]
        completions = _completions(recorded)
        assert len(completions) == 1
        assert completions[0].exit_code == 0
        assert completions[0].timestamp == clock()

    @pytest.mark.asyncio
    async def test_nonzero_exit_code(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        manager = _manager("import sys; sys.exit(3)", library, bus, clock)

        await manager.trigger()
        await manager.wait()

        assert [c.exit_code for c in _completions(recorded)] == [3]

    @pytest.mark.asyncio
    async def test_stderr_is_error(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        script = (
            "import sys; sys.stdout.reconfigure(encoding='utf-8'); "
            "print('\\u26a0\\ufe0f slow', flush=True); "
            "sys.stderr.write('boom')"
        )
        manager = _manager(script, library, bus, clock)

        await manager.trigger()
        await manager.wait()

        by_stream = {e.stream: e.level for e in _logs(recorded)}
        assert by_stream == {
            OutputStream.STDOUT: LogLevel.WARNING,
            OutputStream.STDERR: LogLevel.ERROR,
        }

    @pytest.mark.asyncio
    async def test_second_trigger_rejected(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        manager = _manager(SLEEPER, library, bus, clock, grace=0.5)

        await manager.trigger()
        try:
            with pytest.raises(ScanAlreadyRunningError):
                await manager.trigger()
        finally:
            await manager.shutdown()

        assert len(_completions(recorded)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_triggers_spawn_once(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Should spawn exactly one process when triggers race."""
        spawned: list[tuple[str, ...]] = []
        real_exec = asyncio.create_subprocess_exec

        async def counting_exec(*args, **kwargs):  # type: ignore[no-untyped-def]
            spawned.append(args)
            await asyncio.sleep(0.05)
            return await real_exec(*args, **kwargs)

        monkeypatch.setattr(
            scan_process.asyncio, "create_subprocess_exec", counting_exec
        )
        manager = _manager(SLEEPER, library, bus, clock, grace=0.5)

        results = await asyncio.gather(
            *(manager.trigger() for _ in range(5)), return_exceptions=True
        )
        try:
            pids = [r for r in results if isinstance(r, int)]
            rejected = [r for r in results if isinstance(r, ScanAlreadyRunningError)]
            assert len(pids) == 1
            assert len(rejected) == 4
            assert len(spawned) == 1
        finally:
            await manager.shutdown()

    @pytest.mark.asyncio
    async def test_spawn_failure(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
        tmp_path: Path,
    ) -> None:
        """Should return to idle without a completion event."""
        manager = ScanProcessManager(
            command=[str(tmp_path / "missing-binary")],
            status_file=library.status_file,
            event_bus=bus,
            clock=clock,
        )

        with pytest.raises(ScanStartError):
            await manager.trigger()

        assert manager.state is ProcessState.IDLE
        assert recorded == []
        assert await manager.wait() is None

    @pytest.mark.asyncio
    async def test_prepare_holds_the_slot(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        """Should reject other triggers while the prepare step runs."""
        manager = _manager("print('done')", library, bus, clock)
        rejected: list[Exception] = []

        async def prepare() -> None:
            assert manager.state is ProcessState.STARTING
            try:
                await manager.trigger()
            except ScanAlreadyRunningError as e:
                rejected.append(e)

        await manager.trigger(prepare=prepare)
        await manager.wait()

        assert len(rejected) == 1
        assert len(_completions(recorded)) == 1

    @pytest.mark.asyncio
    async def test_prepare_failure_releases_the_slot(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        manager = _manager("print('done')", library, bus, clock)

        async def prepare() -> None:
            raise OSError("disk gone")

        with pytest.raises(OSError, match="disk gone"):
            await manager.trigger(prepare=prepare)

        assert manager.state is ProcessState.IDLE
        assert manager.pid is None
        assert recorded == []

    def test_empty_command(self, library: LibraryBuilder, bus: ScanEventBus) -> None:
        with pytest.raises(ValueError):
            ScanProcessManager([], library.status_file, bus)


class TestStop:
    """Tests for stopping scans."""

    def test_stop_when_idle(
        self, library: LibraryBuilder, bus: ScanEventBus, clock: MockClock
    ) -> None:
        manager = _manager(SLEEPER, library, bus, clock)

        with pytest.raises(NoScanRunningError):
            manager.stop()

    @posix_only
    @pytest.mark.asyncio
    async def test_stop_terminates_and_marks_status(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        """Should end the process, emit one completion and flag the file."""
        library.status({"state": "running", "stats": {"films": 3}})
        manager = _manager(SLEEPER, library, bus, clock)

        async with bus.subscribe(EventChannel.LOG) as queue:
            await manager.trigger()
            await _wait_for_log(queue, "ready")

            manager.stop()
            assert manager.state is ProcessState.STOPPING
            manager.stop()  # Already stopping: no-op

            status = json.loads(library.status_file.read_text())
            assert status["state"] == "idle"
            assert status["stoppedManually"] is True
            assert status["stats"] == {"films": 3}
            assert status["lastScan"].startswith("2024-01-01T12:00:00")

            exit_code = await asyncio.wait_for(manager.wait(), timeout=10)

        assert exit_code == -15
        assert manager.state is ProcessState.IDLE
        assert [c.exit_code for c in _completions(recorded)] == [-15]

    @posix_only
    @pytest.mark.asyncio
    async def test_kill_after_grace(
        self,
        library: LibraryBuilder,
        bus: ScanEventBus,
        clock: MockClock,
        recorded: list[ScanEvent],
    ) -> None:
        """Should SIGKILL a process that ignores SIGTERM."""
        manager = _manager(STUBBORN, library, bus, clock, grace=0.2)

        async with bus.subscribe(EventChannel.LOG) as queue:
            await manager.trigger()
            await _wait_for_log(queue, "ready")
            manager.stop()
            exit_code = await asyncio.wait_for(manager.wait(), timeout=10)

        assert exit_code == -9
        assert len(_completions(recorded)) == 1

    @posix_only
    @pytest.mark.asyncio
    async def test_restart_after_stop(
        self, library: LibraryBuilder, bus: ScanEventBus, clock: MockClock
    ) -> None:
        manager = _manager(SLEEPER, library, bus, clock)

        async with bus.subscribe(EventChannel.LOG) as queue:
            await manager.trigger()
            await _wait_for_log(queue, "ready")
        await manager.shutdown()

        pid = await manager.trigger()
        try:
            assert pid == manager.pid
        finally:
            await manager.shutdown()
        assert manager.state is ProcessState.IDLE

    @pytest.mark.asyncio
    async def test_shutdown_without_scan(
        self, library: LibraryBuilder, bus: ScanEventBus, clock: MockClock
    ) -> None:
        manager = _manager(SLEEPER, library, bus, clock)

        await manager.shutdown()

        assert manager.state is ProcessState.IDLE
