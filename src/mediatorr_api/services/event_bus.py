"""Event bus for scan progress, completion and log events."""

import asyncio
import logging
import threading
from collections import defaultdict
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel

from mediatorr_api.core.enums import EventChannel, LogLevel, OutputStream
from mediatorr_api.core.models import LogEntry, ScanExit, ScanStatus
from mediatorr_api.core.types import Clock

logger = logging.getLogger(__name__)

FAILURE_GLYPH = "\u274c"  # cross mark
WARNING_GLYPH = "\u26a0"  # warning sign, usually followed by U+FE0F


def classify_log(message: str, stream: OutputStream) -> LogLevel:
    """Assign a level to a line of scan output.

    Anything on stderr or starting with the failure glyph is an error; a
    leading warning glyph is a warning; everything else is info.
    """
    if message.startswith(FAILURE_GLYPH) or stream is OutputStream.STDERR:
        return LogLevel.ERROR
    if message.startswith(WARNING_GLYPH):
        return LogLevel.WARNING
    return LogLevel.INFO


@dataclass(frozen=True, slots=True)
class ScanEvent:
    """An event published on one bus channel."""

    channel: EventChannel
    payload: BaseModel

    def data_json(self) -> str:
        return self.payload.model_dump_json(by_alias=True, exclude_none=True)

    def to_sse(self) -> str:
        """Format as a Server-Sent Events frame."""
        return f"event: {self.channel}\ndata: {self.data_json()}\n\n"


type Listener = Callable[[ScanEvent], None]


@dataclass(eq=False)
class _Subscription:
    channels: frozenset[EventChannel]
    queue: asyncio.Queue[ScanEvent] = field(repr=False)


class ScanEventBus:
    """Publish/subscribe hub for the scan subsystem.

    Two kinds of consumers are supported:
        - Queue subscribers (SSE streams) registered with ``subscribe()``.
          Backpressure is drop-oldest, so a slow stream never blocks
          producers.
        - Listener callbacks (the log ring buffer) registered with
          ``add_listener()``. A listener that raises is dropped.

    emit() is always called from the event loop thread (status watcher,
    subprocess readers and exit monitor all run there).

    The subscriber cap is a leak detector: exceeding it logs a warning but
    the subscription still succeeds.
    """

    SUBSCRIBER_QUEUE_SIZE = 100

    def __init__(self, max_subscribers: int = 50, clock: Clock | None = None) -> None:
        self._max_subscribers = max_subscribers
        self._clock = clock or (lambda: datetime.now(UTC))
        self._subscriptions: list[_Subscription] = []
        self._listeners: dict[EventChannel, list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        """Number of registered queues and listeners."""
        with self._lock:
            return self._count_locked()

    def _count_locked(self) -> int:
        listeners = sum(len(items) for items in self._listeners.values())
        return len(self._subscriptions) + listeners

    def _warn_if_leaking(self) -> None:
        count = self._count_locked()
        if count > self._max_subscribers:
            logger.warning(
                "Event bus has %d subscribers (limit %d), possible leak",
                count,
                self._max_subscribers,
            )

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def subscribe(
        self, *channels: EventChannel
    ) -> AsyncIterator[asyncio.Queue[ScanEvent]]:
        """Subscribe to events via context manager.

        Args:
            channels: Channels to receive. All channels when empty.
        """
        subscription = _Subscription(
            channels=frozenset(channels or EventChannel),
            queue=asyncio.Queue(maxsize=self.SUBSCRIBER_QUEUE_SIZE),
        )
        with self._lock:
            self._subscriptions.append(subscription)
            self._warn_if_leaking()
        try:
            yield subscription.queue
        finally:
            with self._lock:
                self._subscriptions.remove(subscription)

    def add_listener(self, channel: EventChannel, listener: Listener) -> None:
        """Register a callback invoked synchronously for each event."""
        with self._lock:
            self._listeners[channel].append(listener)
            self._warn_if_leaking()

    def remove_listener(self, channel: EventChannel, listener: Listener) -> bool:
        """Unregister a callback. Returns False if it was not registered."""
        with self._lock:
            try:
                self._listeners[channel].remove(listener)
            except ValueError:
                return False
            return True

    # -------------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------------

    def emit(self, channel: EventChannel, payload: BaseModel) -> ScanEvent:
        """Deliver an event to every listener and subscriber of a channel."""
        event = ScanEvent(channel=channel, payload=payload)
        with self._lock:
            listeners = list(self._listeners[channel])
            queues = [s.queue for s in self._subscriptions if channel in s.channels]

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Dropping failing %s listener", channel)
                self.remove_listener(channel, listener)

        for queue in queues:
            self._safe_put(queue, event)
        return event

    def _safe_put(self, queue: asyncio.Queue[ScanEvent], event: ScanEvent) -> None:
        """Put event with drop-oldest backpressure."""
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            try:
                queue.get_nowait()  # Drop oldest
                queue.put_nowait(event)
            except asyncio.QueueEmpty:
                pass  # Race condition

    def emit_log(self, message: str, stream: OutputStream) -> LogEntry:
        """Classify a line of scan output and publish it."""
        entry = LogEntry(
            timestamp=self._clock(),
            level=classify_log(message, stream),
            message=message,
            stream=stream,
        )
        self.emit(EventChannel.LOG, entry)
        return entry

    def emit_progress(self, status: ScanStatus) -> None:
        """Emit scan progress read from the status file."""
        self.emit(EventChannel.PROGRESS, status)

    def emit_complete(self, payload: ScanStatus | ScanExit) -> None:
        """Emit scan completion (status file or process exit)."""
        self.emit(EventChannel.COMPLETE, payload)
