"""Ring buffer of recent scan log entries."""

import threading
from collections import deque

from mediatorr_api.core.enums import EventChannel
from mediatorr_api.core.models import LogEntry
from mediatorr_api.services.event_bus import ScanEvent, ScanEventBus


class LogBuffer:
    """Thread-safe buffer of classified scan log entries.

    Fed by the event bus ``log`` channel so late SSE clients can load the
    recent history before streaming.

    Capacity:
        Buffer retains the last ``capacity`` entries. Older entries are
        automatically discarded, oldest first.
    """

    DEFAULT_CAPACITY = 200

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize an empty log buffer."""
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._bus: ScanEventBus | None = None

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, entry: LogEntry) -> None:
        """Append an entry, evicting the oldest once full."""
        with self._lock:
            self._entries.append(entry)

    def get_entries(self) -> list[LogEntry]:
        """Get all buffered entries in insertion order."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        """Clear all buffered entries."""
        with self._lock:
            self._entries.clear()

    # -------------------------------------------------------------------------
    # Event bus wiring
    # -------------------------------------------------------------------------

    def attach(self, bus: ScanEventBus) -> None:
        """Start buffering log events published on ``bus``."""
        if self._bus is not None:
            return
        bus.add_listener(EventChannel.LOG, self._on_event)
        self._bus = bus

    def detach(self) -> None:
        """Stop buffering. Safe to call when not attached."""
        if self._bus is None:
            return
        self._bus.remove_listener(EventChannel.LOG, self._on_event)
        self._bus = None

    def _on_event(self, event: ScanEvent) -> None:
        if isinstance(event.payload, LogEntry):
            self.append(event.payload)
